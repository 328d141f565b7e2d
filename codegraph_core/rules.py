"""Per-language line matchers used by the structural extractor.

Every :class:`~codegraph_core.languages.Language` member has exactly one
:class:`LanguageRules` entry; the table is checked for completeness at import
time so a new language cannot be added without deciding on its matchers.
Languages with empty matcher tuples are extracted as metadata only.

Matchers run against a single stripped line. Declaration patterns expose a
``name`` group; import patterns expose ``module`` and optionally ``symbols``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Pattern, Tuple

from .languages import Language

DEFAULT_BRANCHES = r"\b(?:if|for|while|case|catch|when)\b|&&|\|\|"


def _rx(*patterns: str, flags: int = 0) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, flags) for p in patterns)


@dataclass(frozen=True)
class LanguageRules:
    type_patterns: Tuple[Pattern[str], ...] = ()
    function_patterns: Tuple[Pattern[str], ...] = ()
    import_patterns: Tuple[Pattern[str], ...] = ()
    namespace_pattern: Optional[Pattern[str]] = None
    comment_prefixes: Tuple[str, ...] = ("//", "#", "/*", "*")
    branch_pattern: Pattern[str] = re.compile(DEFAULT_BRANCHES)
    type_kind: str = "class_declaration"
    function_kind: str = "function_declaration"
    import_kind: str = "import_statement"
    # (block opener, block item) for grouped imports such as Go's ``import (``
    import_block: Optional[Tuple[Pattern[str], Pattern[str]]] = None
    # module paths use "." as the package separator (java.util.List)
    dotted_imports: bool = False

    @property
    def has_matchers(self) -> bool:
        return bool(self.type_patterns or self.function_patterns or self.import_patterns)


_C_KEYWORDS = r"(?!(?:if|else|while|for|switch|return|sizeof|do|case|typedef)\b)"
_JS_TYPES = r"^(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(?P<name>[\w$]+)"
_JS_FUNCTIONS = (
    r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(?P<name>[\w$]+)",
    r"^(?:export\s+)?(?:const|let|var)\s+(?P<name>[\w$]+)\s*(?::[^=]+)?=\s*(?:async\s+)?(?:\([^)]*\)|[\w$]+)\s*(?::[^=]+)?=>",
    r"^(?P<name>[\w$]+)\s*:\s*(?:async\s+)?\([^)]*\)\s*=>",
)
_JS_IMPORTS = (
    r"^import\s+(?:type\s+)?(?P<symbols>.+?)\s+from\s+['\"](?P<module>[^'\"]+)['\"]",
    r"^import\s+['\"](?P<module>[^'\"]+)['\"]",
    r"^export\s+(?:type\s+)?(?P<symbols>.+?)\s+from\s+['\"](?P<module>[^'\"]+)['\"]",
    r"^(?:const|let|var)\s+(?P<symbols>.+?)\s*=\s*require\(\s*['\"](?P<module>[^'\"]+)['\"]\s*\)",
    r"^require\(\s*['\"](?P<module>[^'\"]+)['\"]\s*\)",
)
_LISP_BRANCHES = r"\((?:if|cond|when|unless|case)\b"

RULES: Dict[Language, LanguageRules] = {
    Language.PYTHON: LanguageRules(
        type_patterns=_rx(r"^class\s+(?P<name>\w+)"),
        function_patterns=_rx(r"^(?:async\s+)?def\s+(?P<name>\w+)"),
        import_patterns=_rx(
            r"^from\s+(?P<module>[\w.]+)\s+import\s+\(?(?P<symbols>[^)#]*)",
            r"^import\s+(?P<module>[\w.]+)",
        ),
        comment_prefixes=("#",),
        branch_pattern=re.compile(r"\b(?:if|elif|for|while|except|and|or|case)\b"),
        type_kind="class_definition",
        function_kind="function_definition",
        dotted_imports=True,
    ),
    Language.JAVASCRIPT: LanguageRules(
        type_patterns=_rx(_JS_TYPES),
        function_patterns=_rx(*_JS_FUNCTIONS),
        import_patterns=_rx(*_JS_IMPORTS),
        comment_prefixes=("//", "/*", "*"),
    ),
    Language.TYPESCRIPT: LanguageRules(
        type_patterns=_rx(
            _JS_TYPES,
            r"^(?:export\s+)?(?:declare\s+)?(?:interface|enum|type)\s+(?P<name>[\w$]+)",
        ),
        function_patterns=_rx(*_JS_FUNCTIONS),
        import_patterns=_rx(*_JS_IMPORTS),
        comment_prefixes=("//", "/*", "*"),
    ),
    Language.JAVA: LanguageRules(
        type_patterns=_rx(
            r"^(?:@\w+\s+)*(?:(?:public|private|protected|abstract|final|static|sealed|non-sealed|strictfp)\s+)*"
            r"(?:class|interface|enum|record|@interface)\s+(?P<name>\w+)"
        ),
        function_patterns=_rx(
            r"^(?:(?:public|private|protected|static|final|abstract|synchronized|native|default)\s+)+"
            r"(?:<[^>]+>\s+)?[\w<>\[\],.?]+\s+(?P<name>\w+)\s*\(",
            r"^(?:public|private|protected)\s+(?P<name>[A-Z]\w*)\s*\(",
        ),
        import_patterns=_rx(r"^import\s+(?:static\s+)?(?P<module>\w+(?:\.\w+)*(?:\.\*)?)\s*;?"),
        namespace_pattern=re.compile(r"^package\s+(?P<name>[\w.]+)\s*;"),
        comment_prefixes=("//", "/*", "*"),
        function_kind="method_declaration",
        import_kind="import_declaration",
        dotted_imports=True,
    ),
    Language.KOTLIN: LanguageRules(
        type_patterns=_rx(
            r"^(?:(?:public|private|internal|protected|open|abstract|sealed|data|enum|inner|annotation|value)\s+)*"
            r"(?:class|interface|object)\s+(?P<name>\w+)"
        ),
        function_patterns=_rx(
            r"^(?:(?:public|private|internal|protected|open|override|suspend|inline|abstract|operator|infix)\s+)*"
            r"fun\s+(?:<[^>]+>\s+)?(?:[\w.]+\.)?(?P<name>\w+)"
        ),
        import_patterns=_rx(r"^import\s+(?P<module>\w+(?:\.\w+)*(?:\.\*)?)"),
        namespace_pattern=re.compile(r"^package\s+(?P<name>[\w.]+)"),
        comment_prefixes=("//", "/*", "*"),
        import_kind="import_declaration",
        dotted_imports=True,
    ),
    Language.SCALA: LanguageRules(
        type_patterns=_rx(
            r"^(?:(?:case|abstract|final|sealed|implicit|private|protected)\s+)*(?:class|trait|object)\s+(?P<name>\w+)"
        ),
        function_patterns=_rx(r"^(?:(?:override|private|protected|final|implicit)\s+)*def\s+(?P<name>\w+)"),
        import_patterns=_rx(r"^import\s+(?P<module>[\w.]+?)(?:\.\{(?P<symbols>[^}]*)\})?$"),
        namespace_pattern=re.compile(r"^package\s+(?P<name>[\w.]+)"),
        comment_prefixes=("//", "/*", "*"),
        import_kind="import_declaration",
        dotted_imports=True,
    ),
    Language.GO: LanguageRules(
        type_patterns=_rx(r"^type\s+(?P<name>\w+)\s+(?:struct|interface)\b"),
        function_patterns=_rx(r"^func\s+(?:\([^)]*\)\s*)?(?P<name>\w+)"),
        import_patterns=_rx(r"^import\s+(?:[\w.]+\s+)?\"(?P<module>[^\"]+)\""),
        namespace_pattern=re.compile(r"^package\s+(?P<name>\w+)"),
        comment_prefixes=("//", "/*", "*"),
        branch_pattern=re.compile(r"\b(?:if|for|case|select)\b|&&|\|\|"),
        type_kind="type_declaration",
        import_kind="import_declaration",
        import_block=(
            re.compile(r"^import\s*\($"),
            re.compile(r"^(?:[\w.]+\s+)?\"(?P<module>[^\"]+)\""),
        ),
    ),
    Language.RUST: LanguageRules(
        type_patterns=_rx(r"^(?:pub(?:\([^)]*\))?\s+)?(?:struct|enum|trait|union)\s+(?P<name>\w+)"),
        function_patterns=_rx(
            r"^(?:pub(?:\([^)]*\))?\s+)?(?:const\s+)?(?:async\s+)?(?:unsafe\s+)?(?:extern\s+\"[^\"]*\"\s+)?fn\s+(?P<name>\w+)"
        ),
        import_patterns=_rx(
            r"^(?:pub\s+)?use\s+(?P<module>[\w:]+?)(?:::\{(?P<symbols>[^}]*)\})?\s*;",
            r"^(?:pub\s+)?mod\s+(?P<module>\w+)\s*;",
        ),
        comment_prefixes=("//", "/*", "*"),
        branch_pattern=re.compile(r"\b(?:if|for|while|loop|match)\b|=>|&&|\|\|"),
        type_kind="struct_item",
        function_kind="function_item",
        import_kind="use_declaration",
    ),
    Language.C: LanguageRules(
        type_patterns=_rx(r"^(?:typedef\s+)?(?:struct|union|enum)\s+(?P<name>\w+)(?=\s*(?:\{|$))"),
        function_patterns=_rx(
            r"^" + _C_KEYWORDS + r"(?:(?:static|inline|extern|const|unsigned|signed|struct)\s+)*\w+(?:\s*\*+\s*|\s+)"
            r"(?P<name>" + _C_KEYWORDS + r"\w+)\s*\([^;]*$"
        ),
        import_patterns=_rx(r"^#\s*include\s+[<\"](?P<module>[^>\"]+)[>\"]"),
        namespace_pattern=re.compile(r"^namespace\s+(?P<name>[\w:]+)"),
        comment_prefixes=("//", "/*", "*"),
        type_kind="struct_specifier",
        function_kind="function_definition",
        import_kind="preproc_include",
    ),
    Language.CPP: LanguageRules(
        type_patterns=_rx(r"^(?:template\s*<[^>]*>\s*)?(?:typedef\s+)?(?:class|struct|union|enum(?:\s+class)?)\s+(?P<name>\w+)(?=\s*(?:[{:]|$)|\s+final\b)"),
        function_patterns=_rx(
            r"^" + _C_KEYWORDS + r"(?:(?:static|inline|extern|const|unsigned|signed|virtual|constexpr)\s+)*"
            r"[\w:<>*&]+[\s*&]+(?:[\w:]+::)?(?P<name>" + _C_KEYWORDS + r"~?\w+)\s*\([^;]*$"
        ),
        import_patterns=_rx(r"^#\s*include\s+[<\"](?P<module>[^>\"]+)[>\"]"),
        namespace_pattern=re.compile(r"^namespace\s+(?P<name>[\w:]+)"),
        comment_prefixes=("//", "/*", "*"),
        type_kind="class_specifier",
        function_kind="function_definition",
        import_kind="preproc_include",
    ),
    Language.CSHARP: LanguageRules(
        type_patterns=_rx(
            r"^(?:(?:public|private|protected|internal|static|abstract|sealed|partial|readonly)\s+)*"
            r"(?:class|interface|struct|enum|record)\s+(?P<name>\w+)"
        ),
        function_patterns=_rx(
            r"^(?:(?:public|private|protected|internal|static|virtual|override|abstract|async|sealed|extern|new)\s+)+"
            r"[\w<>\[\],.?]+\s+(?P<name>\w+)\s*\("
        ),
        import_patterns=_rx(r"^using\s+(?:static\s+)?(?P<module>[\w.]+)\s*;"),
        namespace_pattern=re.compile(r"^namespace\s+(?P<name>[\w.]+)"),
        comment_prefixes=("//", "/*", "*"),
        function_kind="method_declaration",
        import_kind="using_directive",
        dotted_imports=True,
    ),
    Language.PHP: LanguageRules(
        type_patterns=_rx(r"^(?:(?:abstract|final|readonly)\s+)*(?:class|interface|trait|enum)\s+(?P<name>\w+)"),
        function_patterns=_rx(r"^(?:(?:public|private|protected|static|abstract|final)\s+)*function\s+&?(?P<name>\w+)"),
        import_patterns=_rx(
            r"^use\s+(?:function\s+|const\s+)?(?P<module>[\w\\]+)(?:\s+as\s+\w+)?\s*;",
            r"^(?:require|include)(?:_once)?\s*\(?\s*['\"](?P<module>[^'\"]+)['\"]",
        ),
        namespace_pattern=re.compile(r"^namespace\s+(?P<name>[\w\\]+)\s*;"),
        comment_prefixes=("//", "#", "/*", "*"),
        import_kind="use_declaration",
    ),
    Language.RUBY: LanguageRules(
        type_patterns=_rx(r"^(?:class|module)\s+(?P<name>[\w:]+)"),
        function_patterns=_rx(r"^def\s+(?:self\.)?(?P<name>\w+[?!=]?)"),
        import_patterns=_rx(r"^require(?:_relative)?\s*\(?\s*['\"](?P<module>[^'\"]+)['\"]"),
        comment_prefixes=("#",),
        branch_pattern=re.compile(r"\b(?:if|elsif|unless|while|until|for|when|rescue|and|or)\b|&&|\|\|"),
        function_kind="method_declaration",
        import_kind="require_statement",
    ),
    Language.SWIFT: LanguageRules(
        type_patterns=_rx(
            r"^(?:(?:public|private|internal|fileprivate|open|final)\s+)*"
            r"(?:class|struct|enum|protocol|extension|actor)\s+(?P<name>\w+)"
        ),
        function_patterns=_rx(
            r"^(?:(?:public|private|internal|fileprivate|open|static|class|override|mutating|final|@\w+)\s+)*func\s+(?P<name>\w+)"
        ),
        import_patterns=_rx(r"^import\s+(?P<module>[\w.]+)"),
        comment_prefixes=("//", "/*", "*"),
        branch_pattern=re.compile(r"\b(?:if|guard|for|while|case|catch)\b|&&|\|\|"),
        import_kind="import_declaration",
    ),
    Language.DART: LanguageRules(
        type_patterns=_rx(r"^(?:abstract\s+)?(?:class|mixin|enum|extension)\s+(?P<name>\w+)"),
        function_patterns=_rx(
            r"^(?!(?:return|if|for|while|switch|new|await|else)\b)[\w<>?,]+\s+(?P<name>\w+)\s*\([^;]*\)\s*(?:async\s*)?(?:\{|=>)"
        ),
        import_patterns=_rx(r"^(?:import|export|part)\s+['\"](?P<module>[^'\"]+)['\"]"),
        comment_prefixes=("//", "/*", "*"),
    ),
    Language.LUA: LanguageRules(
        function_patterns=_rx(r"^(?:local\s+)?function\s+(?:[\w.]+[.:])?(?P<name>\w+)"),
        import_patterns=_rx(r"^(?:local\s+[\w,\s]+=\s*)?require\s*\(?\s*['\"](?P<module>[^'\"]+)['\"]"),
        comment_prefixes=("--",),
        branch_pattern=re.compile(r"\b(?:if|elseif|for|while|repeat|and|or)\b"),
        import_kind="require_statement",
    ),
    Language.SHELL: LanguageRules(
        function_patterns=_rx(r"^function\s+(?P<name>[\w-]+)", r"^(?P<name>[\w-]+)\s*\(\)"),
        import_patterns=_rx(r"^(?:source|\.)\s+['\"]?(?P<module>[^'\"\s;]+)"),
        comment_prefixes=("#",),
        branch_pattern=re.compile(r"\b(?:if|elif|for|while|until|case)\b|&&|\|\|"),
        function_kind="function_definition",
        import_kind="source_statement",
    ),
    Language.PERL: LanguageRules(
        function_patterns=_rx(r"^sub\s+(?P<name>\w+)"),
        import_patterns=_rx(r"^(?:use|require)\s+(?P<module>[A-Z][\w:]*)"),
        namespace_pattern=re.compile(r"^package\s+(?P<name>[\w:]+)"),
        comment_prefixes=("#",),
        branch_pattern=re.compile(r"\b(?:if|elsif|unless|for|foreach|while|until)\b|&&|\|\|"),
        function_kind="subroutine_declaration",
        import_kind="use_statement",
    ),
    Language.R: LanguageRules(
        function_patterns=_rx(r"^(?P<name>[\w.]+)\s*(?:<-|=)\s*function\b"),
        import_patterns=_rx(
            r"^(?:library|require)\s*\(\s*['\"]?(?P<module>[\w.]+)['\"]?",
            r"^source\s*\(\s*['\"](?P<module>[^'\"]+)['\"]",
        ),
        comment_prefixes=("#",),
        import_kind="library_statement",
    ),
    Language.JULIA: LanguageRules(
        type_patterns=_rx(r"^(?:mutable\s+)?struct\s+(?P<name>\w+)", r"^abstract\s+type\s+(?P<name>\w+)"),
        function_patterns=_rx(r"^function\s+(?:[\w.]+\.)?(?P<name>[\w!]+)"),
        import_patterns=_rx(r"^(?:using|import)\s+(?P<module>[\w.]+)(?::\s*(?P<symbols>.+))?"),
        namespace_pattern=re.compile(r"^module\s+(?P<name>\w+)"),
        comment_prefixes=("#",),
        type_kind="struct_definition",
        function_kind="function_definition",
        import_kind="using_statement",
        dotted_imports=True,
    ),
    Language.ELIXIR: LanguageRules(
        type_patterns=_rx(r"^defmodule\s+(?P<name>[\w.]+)"),
        function_patterns=_rx(r"^defp?\s+(?P<name>\w+[?!]?)"),
        import_patterns=_rx(r"^(?:import|require|alias|use)\s+(?P<module>[\w.]+)"),
        comment_prefixes=("#",),
        branch_pattern=re.compile(r"\b(?:if|unless|case|cond|with)\b|->"),
        type_kind="module_definition",
        dotted_imports=True,
    ),
    Language.ERLANG: LanguageRules(
        function_patterns=_rx(r"^(?P<name>[a-z]\w*)\s*\(.*\)\s*(?:when\s+.*)?->"),
        import_patterns=_rx(
            r"^-import\(\s*(?P<module>\w+)",
            r"^-include(?:_lib)?\(\s*\"(?P<module>[^\"]+)\"",
        ),
        namespace_pattern=re.compile(r"^-module\(\s*(?P<name>\w+)\s*\)"),
        comment_prefixes=("%",),
        branch_pattern=re.compile(r"\b(?:if|case|receive|when)\b"),
        import_kind="import_declaration",
    ),
    Language.CLOJURE: LanguageRules(
        type_patterns=_rx(r"^\((?:defrecord|deftype|defprotocol)\s+(?P<name>[\w\-]+)"),
        function_patterns=_rx(r"^\(defn-?\s+(?P<name>[\w\-?!*<>]+)"),
        import_patterns=_rx(
            r"\(:require\s+\[?(?P<module>[\w.\-]+)",
            r"^\((?:require|use)\s+'\[?(?P<module>[\w.\-]+)",
        ),
        namespace_pattern=re.compile(r"^\(ns\s+(?P<name>[\w.\-]+)"),
        comment_prefixes=(";",),
        branch_pattern=re.compile(_LISP_BRANCHES),
        import_kind="require_statement",
        dotted_imports=True,
    ),
    Language.HASKELL: LanguageRules(
        type_patterns=_rx(
            r"^(?:data|newtype|class)\s+(?:\([^)]*\)\s*=>\s*)?(?P<name>[A-Z]\w*)",
            r"^type\s+(?P<name>[A-Z]\w*)",
        ),
        function_patterns=_rx(r"^(?P<name>[a-z_]\w*'?)\s*::"),
        import_patterns=_rx(r"^import\s+(?:qualified\s+)?(?P<module>[\w.]+)"),
        namespace_pattern=re.compile(r"^module\s+(?P<name>[\w.]+)"),
        comment_prefixes=("--", "{-"),
        branch_pattern=re.compile(r"\b(?:if|case|where)\b|\|(?!\|)"),
        type_kind="data_declaration",
        import_kind="import_declaration",
        dotted_imports=True,
    ),
    Language.FSHARP: LanguageRules(
        type_patterns=_rx(r"^type\s+(?P<name>\w+)"),
        function_patterns=_rx(r"^let\s+(?:(?:rec|inline|private|mutable)\s+)*(?P<name>\w+)"),
        import_patterns=_rx(r"^open\s+(?P<module>[\w.]+)"),
        namespace_pattern=re.compile(r"^(?:namespace|module)\s+(?P<name>[\w.]+)"),
        comment_prefixes=("//", "(*"),
        branch_pattern=re.compile(r"\b(?:if|elif|match|for|while|when)\b|&&|\|\|"),
        type_kind="type_declaration",
        import_kind="open_declaration",
        dotted_imports=True,
    ),
    Language.OCAML: LanguageRules(
        type_patterns=_rx(r"^type\s+(?:'\w+\s+)?(?P<name>\w+)"),
        function_patterns=_rx(r"^let\s+(?:rec\s+)?(?P<name>[a-z_]\w*)"),
        import_patterns=_rx(r"^open\s+(?P<module>[\w.]+)"),
        comment_prefixes=("(*",),
        branch_pattern=re.compile(r"\b(?:if|match|for|while|when)\b|&&|\|\|"),
        type_kind="type_declaration",
        import_kind="open_declaration",
        dotted_imports=True,
    ),
    Language.SCHEME: LanguageRules(
        function_patterns=_rx(r"^\(define\s+\((?P<name>[^\s()]+)"),
        import_patterns=_rx(r"^\(import\s+\(?(?P<module>[^\s()]+)"),
        comment_prefixes=(";",),
        branch_pattern=re.compile(_LISP_BRANCHES),
    ),
    Language.LISP: LanguageRules(
        type_patterns=_rx(r"^\(defclass\s+(?P<name>[^\s()]+)", r"^\(defstruct\s+\(?(?P<name>[^\s()]+)"),
        function_patterns=_rx(r"^\(defun\s+(?P<name>[^\s()]+)"),
        import_patterns=_rx(r"^\(require\s+'?:?(?P<module>[^\s()]+)"),
        namespace_pattern=re.compile(r"^\(in-package\s+[:#']*(?P<name>[^\s()]+)"),
        comment_prefixes=(";",),
        branch_pattern=re.compile(_LISP_BRANCHES),
        import_kind="require_statement",
    ),
    Language.FORTRAN: LanguageRules(
        type_patterns=_rx(r"^type\s*(?:,[^:]*)?::\s*(?P<name>\w+)", flags=re.IGNORECASE),
        function_patterns=_rx(
            r"^(?:[\w()*=]+\s+)*(?:function|subroutine)\s+(?P<name>\w+)", flags=re.IGNORECASE
        ),
        import_patterns=_rx(r"^use\s+(?P<module>\w+)", flags=re.IGNORECASE),
        namespace_pattern=re.compile(r"^module\s+(?!procedure\b)(?P<name>\w+)", re.IGNORECASE),
        comment_prefixes=("!",),
        branch_pattern=re.compile(r"\b(?:if|do|select|case)\b", re.IGNORECASE),
        function_kind="function_definition",
    ),
    Language.MATLAB: LanguageRules(
        type_patterns=_rx(r"^classdef\s+(?:\([^)]*\)\s*)?(?P<name>\w+)"),
        function_patterns=_rx(r"^function\s+(?:\[?[\w,\s]*\]?\s*=\s*)?(?P<name>\w+)"),
        comment_prefixes=("%",),
        branch_pattern=re.compile(r"\b(?:if|elseif|for|while|case|catch)\b|&&|\|\|"),
    ),
    Language.VBA: LanguageRules(
        type_patterns=_rx(r"^(?:(?:public|private)\s+)?type\s+(?P<name>\w+)", flags=re.IGNORECASE),
        function_patterns=_rx(
            r"^(?:(?:public|private|friend|static)\s+)*(?:function|sub)\s+(?P<name>\w+)", flags=re.IGNORECASE
        ),
        comment_prefixes=("'",),
        branch_pattern=re.compile(r"\b(?:if|elseif|for|while|case|and|or)\b", re.IGNORECASE),
    ),
    Language.POWERSHELL: LanguageRules(
        type_patterns=_rx(r"^class\s+(?P<name>\w+)", flags=re.IGNORECASE),
        function_patterns=_rx(r"^function\s+(?P<name>[\w-]+)", flags=re.IGNORECASE),
        import_patterns=_rx(
            r"^(?:Import-Module|using\s+module)\s+['\"]?(?P<module>[^'\"\s]+)",
            r"^\.\s+['\"]?(?P<module>[^'\"\s]+\.ps1)",
            flags=re.IGNORECASE,
        ),
        comment_prefixes=("#",),
        branch_pattern=re.compile(r"\b(?:if|elseif|for|foreach|while|switch|catch)\b|-and\b|-or\b", re.IGNORECASE),
    ),
    Language.SQL: LanguageRules(
        type_patterns=_rx(
            r"^create\s+(?:or\s+replace\s+)?(?:temporary\s+)?(?:table|view)\s+(?:if\s+not\s+exists\s+)?[`\"]?(?P<name>[\w.]+)",
            flags=re.IGNORECASE,
        ),
        function_patterns=_rx(
            r"^create\s+(?:or\s+replace\s+)?(?:function|procedure)\s+[`\"]?(?P<name>[\w.]+)", flags=re.IGNORECASE
        ),
        comment_prefixes=("--", "/*", "*"),
        branch_pattern=re.compile(r"\b(?:case|when|if)\b", re.IGNORECASE),
        type_kind="create_table",
        function_kind="create_function",
    ),
    Language.GRAPHQL: LanguageRules(
        type_patterns=_rx(r"^(?:extend\s+)?(?:type|interface|enum|input|union|scalar)\s+(?P<name>\w+)"),
        comment_prefixes=("#",),
        type_kind="type_definition",
    ),
    Language.PROTO: LanguageRules(
        type_patterns=_rx(r"^(?:message|enum|service)\s+(?P<name>\w+)"),
        function_patterns=_rx(r"^rpc\s+(?P<name>\w+)"),
        import_patterns=_rx(r"^import\s+(?:public\s+|weak\s+)?\"(?P<module>[^\"]+)\""),
        namespace_pattern=re.compile(r"^package\s+(?P<name>[\w.]+)\s*;"),
        comment_prefixes=("//", "/*", "*"),
        type_kind="message_declaration",
        function_kind="rpc_declaration",
    ),
    # metadata-only
    Language.HTML: LanguageRules(comment_prefixes=("<!--",)),
    Language.XML: LanguageRules(comment_prefixes=("<!--",)),
    Language.CSS: LanguageRules(comment_prefixes=("/*", "*")),
    Language.JSON: LanguageRules(comment_prefixes=()),
    Language.MARKDOWN: LanguageRules(comment_prefixes=("<!--",)),
    Language.YAML: LanguageRules(comment_prefixes=("#",)),
    Language.TOML: LanguageRules(comment_prefixes=("#",)),
    Language.INI: LanguageRules(comment_prefixes=(";", "#")),
    Language.DOCKERFILE: LanguageRules(comment_prefixes=("#",)),
    Language.MAKEFILE: LanguageRules(comment_prefixes=("#",)),
    Language.CMAKE: LanguageRules(comment_prefixes=("#",)),
}

_missing = [lang.value for lang in Language if lang not in RULES]
if _missing:
    raise RuntimeError(f"No matcher rules registered for: {', '.join(_missing)}")


def rules_for(language: Language) -> LanguageRules:
    return RULES[language]
