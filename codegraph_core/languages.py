"""Language <-> file-extension mapping for the structural extractor."""

from __future__ import annotations

import posixpath
from enum import Enum
from typing import Dict, List, Optional


class Language(str, Enum):
    """Closed set of languages the analysis pipeline accepts."""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PYTHON = "python"
    JAVA = "java"
    KOTLIN = "kotlin"
    SCALA = "scala"
    GO = "go"
    RUST = "rust"
    C = "c"
    CPP = "cpp"
    CSHARP = "csharp"
    PHP = "php"
    RUBY = "ruby"
    SWIFT = "swift"
    DART = "dart"
    LUA = "lua"
    SHELL = "shell"
    PERL = "perl"
    R = "r"
    JULIA = "julia"
    ELIXIR = "elixir"
    ERLANG = "erlang"
    CLOJURE = "clojure"
    HASKELL = "haskell"
    FSHARP = "fsharp"
    OCAML = "ocaml"
    SCHEME = "scheme"
    LISP = "lisp"
    FORTRAN = "fortran"
    MATLAB = "matlab"
    VBA = "vba"
    POWERSHELL = "powershell"
    # metadata-only languages (no declaration matchers)
    HTML = "html"
    CSS = "css"
    JSON = "json"
    YAML = "yaml"
    MARKDOWN = "markdown"
    SQL = "sql"
    XML = "xml"
    TOML = "toml"
    INI = "ini"
    DOCKERFILE = "dockerfile"
    MAKEFILE = "makefile"
    CMAKE = "cmake"
    GRAPHQL = "graphql"
    PROTO = "proto"


EXTENSION_MAP: Dict[str, Language] = {
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".py": Language.PYTHON,
    ".java": Language.JAVA,
    ".kt": Language.KOTLIN,
    ".kts": Language.KOTLIN,
    ".scala": Language.SCALA,
    ".sc": Language.SCALA,
    ".go": Language.GO,
    ".rs": Language.RUST,
    ".c": Language.C,
    ".h": Language.C,
    ".cpp": Language.CPP,
    ".cxx": Language.CPP,
    ".cc": Language.CPP,
    ".hpp": Language.CPP,
    ".cs": Language.CSHARP,
    ".php": Language.PHP,
    ".phtml": Language.PHP,
    ".rb": Language.RUBY,
    ".swift": Language.SWIFT,
    ".dart": Language.DART,
    ".lua": Language.LUA,
    ".sh": Language.SHELL,
    ".bash": Language.SHELL,
    ".zsh": Language.SHELL,
    ".pl": Language.PERL,
    ".pm": Language.PERL,
    ".r": Language.R,
    ".jl": Language.JULIA,
    ".ex": Language.ELIXIR,
    ".exs": Language.ELIXIR,
    ".erl": Language.ERLANG,
    ".hrl": Language.ERLANG,
    ".clj": Language.CLOJURE,
    ".cljs": Language.CLOJURE,
    ".cljc": Language.CLOJURE,
    ".hs": Language.HASKELL,
    ".fs": Language.FSHARP,
    ".fsx": Language.FSHARP,
    ".ml": Language.OCAML,
    ".mli": Language.OCAML,
    ".scm": Language.SCHEME,
    ".lisp": Language.LISP,
    ".lsp": Language.LISP,
    ".f90": Language.FORTRAN,
    ".f95": Language.FORTRAN,
    ".for": Language.FORTRAN,
    ".m": Language.MATLAB,
    ".vba": Language.VBA,
    ".bas": Language.VBA,
    ".ps1": Language.POWERSHELL,
    ".psm1": Language.POWERSHELL,
    ".html": Language.HTML,
    ".htm": Language.HTML,
    ".css": Language.CSS,
    ".scss": Language.CSS,
    ".less": Language.CSS,
    ".json": Language.JSON,
    ".yaml": Language.YAML,
    ".yml": Language.YAML,
    ".md": Language.MARKDOWN,
    ".sql": Language.SQL,
    ".xml": Language.XML,
    ".toml": Language.TOML,
    ".ini": Language.INI,
    ".cfg": Language.INI,
    ".cmake": Language.CMAKE,
    ".graphql": Language.GRAPHQL,
    ".gql": Language.GRAPHQL,
    ".proto": Language.PROTO,
}

# Files recognised by their whole name rather than an extension
FILENAME_MAP: Dict[str, Language] = {
    "dockerfile": Language.DOCKERFILE,
    "makefile": Language.MAKEFILE,
    "cmakelists.txt": Language.CMAKE,
}


def classify(path: str) -> Optional[Language]:
    """Return the language of *path*, or None when it is unsupported."""
    name = posixpath.basename(path.replace("\\", "/")).lower()
    if not name:
        return None
    if name in FILENAME_MAP:
        return FILENAME_MAP[name]
    _, ext = posixpath.splitext(name)
    return EXTENSION_MAP.get(ext)


def supported_languages() -> List[Language]:
    return list(Language)


def is_supported(language: str) -> bool:
    try:
        Language(language)
    except ValueError:
        return False
    return True
