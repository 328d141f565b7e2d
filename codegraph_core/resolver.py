"""Resolve declared imports into a file-level dependency graph.

Each import is matched against the other files of the same batch using three
tiers, tried in order:

1. path suffix: the import's module path against a candidate's full
   path, then against its extension-less path,
2. namespace: the import names a package/namespace some sibling declares,
3. textual reference: a same-namespace sibling whose source mentions the
   imported name as a whole word.

The third tier is a best-effort heuristic: a comment or an unrelated
identifier with the same spelling produces an edge too.

After per-import resolution an implicit pass links files of one package
that refer to each other by type name without any import statement (and
Python modules of one directory that mention each other's module name).

Candidates are always scanned in input order and the first match wins, so
the same batch always yields the same graph.
"""

from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import UnresolvedImport
from .languages import EXTENSION_MAP, Language
from .models import ImportInfo, ParseResult, ProjectGraph
from .rules import rules_for

logger = logging.getLogger(__name__)

EDGE_IMPORT = "import"
EDGE_NAMESPACE = "namespace"
EDGE_REFERENCE = "reference"
EDGE_PACKAGE_REFERENCE = "package_reference"
EDGE_MODULE_REFERENCE = "module_reference"

# Import-path prefixes that only say "relative to here" or name a path alias
_RELATIVE_PREFIXES = ("./", "../", "@/", "~/")
_RUST_ROOTS = ("crate/", "self/", "super/")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


@dataclass
class _Candidate:
    result: ParseResult
    node_id: str
    key: str
    stem: str
    directory: str
    namespace: Optional[str]


@dataclass
class ResolutionOutcome:
    graph: ProjectGraph
    unresolved: List[UnresolvedImport] = field(default_factory=list)

    def unresolved_labels(self) -> List[str]:
        return [f"{u.file_path}: {u.module_path}" for u in self.unresolved]


def namespace_key(value: str) -> str:
    """Normalize ``a\\b``, ``a::b`` and ``a/b`` to ``a.b``."""
    key = value.replace("\\", ".").replace("::", ".").replace("/", ".")
    return key.strip(".")


def module_key(imp: ImportInfo, language: Language, keep_extension: bool = False) -> str:
    """Turn an import's module path into a slash-separated key.

    A known file extension is dropped unless ``keep_extension`` is set.
    """
    key = imp.module_path.strip().strip("'\"<>").replace("\\", "/")
    if rules_for(language).dotted_imports:
        if key.endswith(".*"):
            key = key[:-2]
        key = key.replace(".", "/")
    key = key.replace("::", "/")
    while key.startswith(_RELATIVE_PREFIXES):
        key = key.split("/", 1)[1]
    key = key.lstrip("/")
    if language == Language.RUST:
        while key.startswith(_RUST_ROOTS):
            key = key.split("/", 1)[1]
    if keep_extension:
        return key
    stem, ext = posixpath.splitext(key)
    if ext.lower() in EXTENSION_MAP:
        key = stem
    return key


def _word(name: str) -> "re.Pattern[str]":
    return re.compile(r"(?<![\w$])" + re.escape(name) + r"(?![\w$])")


class DependencyResolver:
    """Builds the :class:`ProjectGraph` for one batch of parse results."""

    def resolve(self, results: Sequence[ParseResult]) -> ResolutionOutcome:
        graph = ProjectGraph()
        candidates: List[_Candidate] = []
        for result in results:
            graph.add_node(result.path, language=result.language.value)
            candidates.append(self._candidate(result))

        outcome = ResolutionOutcome(graph=graph)
        for importer in candidates:
            for imp in importer.result.imports:
                match = self._match(importer, imp, candidates)
                if match is None:
                    unresolved = UnresolvedImport(imp.module_path, importer.result.path)
                    logger.debug("%s", unresolved)
                    outcome.unresolved.append(unresolved)
                    continue
                target, kind = match
                graph.add_edge(importer.node_id, target.node_id, kind=kind)

        self._link_implicit_references(candidates, graph)
        logger.debug(
            "Resolved graph: %d nodes, %d edges, %d unresolved imports",
            len(graph.nodes), len(graph.edges), len(outcome.unresolved),
        )
        return outcome

    @staticmethod
    def _candidate(result: ParseResult) -> _Candidate:
        node_id = result.node_id
        key, _ = posixpath.splitext(node_id)
        if posixpath.basename(key) == "__init__":
            key = posixpath.dirname(key)
        stem = posixpath.splitext(posixpath.basename(node_id))[0]
        return _Candidate(
            result=result,
            node_id=node_id,
            key=key,
            stem=stem,
            directory=posixpath.dirname(node_id),
            namespace=namespace_key(result.namespace) if result.namespace else None,
        )

    # ------------------------------------------------------------------
    # Per-import tiers
    # ------------------------------------------------------------------

    def _match(
        self,
        importer: _Candidate,
        imp: ImportInfo,
        candidates: Sequence[_Candidate],
    ) -> Optional[Tuple[_Candidate, str]]:
        others = [c for c in candidates if c.node_id != importer.node_id]
        if not others:
            return None

        target = self._match_path(importer, imp, others)
        if target is not None:
            return target, EDGE_IMPORT
        target = self._match_namespace(importer, imp, others)
        if target is not None:
            return target, EDGE_NAMESPACE
        target = self._match_reference(importer, imp, others)
        if target is not None:
            return target, EDGE_REFERENCE
        return None

    @staticmethod
    def _match_path(importer: _Candidate, imp: ImportInfo, others: Sequence[_Candidate]) -> Optional[_Candidate]:
        language = importer.result.language
        # "util.h" names util.h even when util.c comes first
        raw = module_key(imp, language, keep_extension=True)
        if raw:
            for cand in others:
                if cand.node_id == raw or cand.node_id.endswith("/" + raw) or raw.endswith("/" + cand.node_id):
                    return cand

        key = module_key(imp, language)
        if key:
            for cand in others:
                if cand.key == key or cand.key.endswith("/" + key) or key.endswith("/" + cand.key):
                    return cand

        # com.example.User resolves to any User.java of the batch
        if language in (Language.JAVA, Language.KOTLIN, Language.SCALA) and imp.symbols:
            symbol = imp.symbols[0]
            if symbol != "*":
                for cand in others:
                    if cand.result.language == language and cand.stem == symbol:
                        return cand
        return None

    @staticmethod
    def _match_namespace(importer: _Candidate, imp: ImportInfo, others: Sequence[_Candidate]) -> Optional[_Candidate]:
        language = importer.result.language
        full = namespace_key(imp.module_path.strip().strip("'\"<>"))
        if full.endswith(".*"):
            full = full[:-2]
        parent = full.rsplit(".", 1)[0] if "." in full else ""
        wanted = {full, parent} - {""}
        if not wanted:
            return None

        matches = [
            c for c in others
            if c.namespace in wanted and c.result.language == language
        ]
        if not matches:
            return None
        bare = imp.bare_name
        for cand in matches:
            if cand.stem == bare:
                return cand
        return matches[0]

    @staticmethod
    def _match_reference(importer: _Candidate, imp: ImportInfo, others: Sequence[_Candidate]) -> Optional[_Candidate]:
        if importer.namespace is None:
            return None
        bare = imp.bare_name
        if not _IDENTIFIER.match(bare):
            return None
        pattern = _word(bare)
        for cand in others:
            if cand.namespace != importer.namespace or cand.result.language != importer.result.language:
                continue
            if pattern.search(cand.result.content):
                return cand
        return None

    # ------------------------------------------------------------------
    # Implicit same-package references
    # ------------------------------------------------------------------

    def _link_implicit_references(self, candidates: Sequence[_Candidate], graph: ProjectGraph) -> None:
        stem_patterns: Dict[str, "re.Pattern[str]"] = {}

        def mentions(content: str, stem: str) -> bool:
            if not _IDENTIFIER.match(stem):
                return False
            if stem not in stem_patterns:
                stem_patterns[stem] = _word(stem)
            return bool(stem_patterns[stem].search(content))

        for source in candidates:
            language = source.result.language
            content = source.result.content
            for sibling in candidates:
                if sibling.node_id == source.node_id or sibling.result.language != language:
                    continue
                if graph.has_edge(source.node_id, sibling.node_id):
                    continue
                if source.namespace is not None and sibling.namespace == source.namespace:
                    if mentions(content, sibling.stem):
                        graph.add_edge(source.node_id, sibling.node_id, kind=EDGE_PACKAGE_REFERENCE, weight=2)
                elif language == Language.PYTHON and sibling.directory == source.directory:
                    if sibling.stem != "__init__" and mentions(content, sibling.stem):
                        graph.add_edge(source.node_id, sibling.node_id, kind=EDGE_MODULE_REFERENCE)
