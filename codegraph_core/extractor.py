"""Heuristic structural extraction of declarations from source text.

The extractor is line-oriented on purpose: each physical line is matched
against the type, function and import rules of its language (in that
priority order) and at most one declaration is recorded per line. Nested
structure such as methods inside a class is not reconstructed; every
declaration becomes a direct child of the file's ``program`` node.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple, Union

from .errors import ExtractionDegraded, ExtractionFailed
from .languages import Language
from .models import FunctionInfo, ImportInfo, ParseResult, SourceFile, StructuralNode, TypeInfo
from .rules import LanguageRules, rules_for

logger = logging.getLogger(__name__)

# Dotted import languages where the last segment names the imported type
_SYMBOL_TAIL_LANGUAGES = {Language.JAVA, Language.KOTLIN, Language.SCALA}

_TYPE = "type"
_FUNCTION = "function"
_IMPORT = "import"


def decode_content(content: Union[str, bytes], path: str) -> str:
    """Return *content* as text; undecodable bytes raise ExtractionFailed."""
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ExtractionFailed(f"Content is not valid UTF-8: {exc}", path) from exc


def split_symbols(raw: str) -> List[str]:
    """Split an import's symbol clause (``{ a, b as c }``, ``A, B``) into names."""
    names: List[str] = []
    for part in re.split(r"[,{}()]", raw):
        part = part.strip()
        if not part or part.startswith("#"):
            continue
        if part.startswith("type "):
            part = part[5:].strip()
        if " as " in part:
            part = part.split(" as ", 1)[0].strip()
        if part:
            names.append(part)
    return names


class StructuralExtractor:
    """Stateless line-matcher extractor; safe to share across threads."""

    def extract(self, source: SourceFile, language: Language) -> ParseResult:
        content = decode_content(source.content, source.path)
        rules = rules_for(language)
        lines = content.splitlines()

        root = StructuralNode(
            kind="program",
            text=source.path,
            start_line=1,
            end_line=max(len(lines), 1),
            attributes={"language": language.value},
        )
        result = ParseResult(
            path=source.path,
            language=language,
            structural_node=root,
            lines_of_code=len(lines),
            comment_lines=self._count_comments(lines, rules),
            namespace=self._find_namespace(lines, rules),
            degraded=not rules.has_matchers,
            content=content,
        )

        if result.degraded:
            logger.debug("%s", ExtractionDegraded(f"No declaration matchers for {language.value}; metadata only", source.path))
            return result

        declarations = self._scan(lines, rules, language, root, result)
        self._close_spans(declarations, lines, rules, len(lines))
        return result

    # ------------------------------------------------------------------
    # Line scanning
    # ------------------------------------------------------------------

    def _scan(
        self,
        lines: List[str],
        rules: LanguageRules,
        language: Language,
        root: StructuralNode,
        result: ParseResult,
    ) -> List[Tuple[StructuralNode, FunctionInfo]]:
        declarations: List[Tuple[StructuralNode, FunctionInfo]] = []
        in_import_block = False

        for line_no, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line:
                continue

            if in_import_block:
                if line.startswith(")"):
                    in_import_block = False
                    continue
                item = rules.import_block[1].match(line) if rules.import_block else None
                if item:
                    self._add_import(root, result, rules, language, line, line_no, item.group("module"), None)
                continue

            if self._is_comment(line, rules):
                continue

            if rules.import_block and rules.import_block[0].match(line):
                in_import_block = True
                continue

            matched = self._first_match(line, rules)
            if matched is None:
                continue
            category, match = matched

            if category == _IMPORT:
                symbols = match.groupdict().get("symbols")
                self._add_import(root, result, rules, language, line, line_no, match.group("module"), symbols)
                continue

            name = match.group("name")
            kind = rules.type_kind if category == _TYPE else rules.function_kind
            node = StructuralNode(
                kind=kind,
                text=line,
                start_line=line_no,
                end_line=line_no,
                attributes={"name": name, "category": category},
            )
            root.children.append(node)
            if category == _TYPE:
                info: FunctionInfo = TypeInfo(name=name, start_line=line_no, end_line=line_no)
                result.types.append(info)
            else:
                info = FunctionInfo(name=name, start_line=line_no, end_line=line_no)
                result.functions.append(info)
            declarations.append((node, info))

        return declarations

    @staticmethod
    def _first_match(line: str, rules: LanguageRules) -> Optional[Tuple[str, "re.Match[str]"]]:
        for category, patterns in (
            (_TYPE, rules.type_patterns),
            (_FUNCTION, rules.function_patterns),
            (_IMPORT, rules.import_patterns),
        ):
            for pattern in patterns:
                match = pattern.search(line)
                if match:
                    return category, match
        return None

    @staticmethod
    def _add_import(
        root: StructuralNode,
        result: ParseResult,
        rules: LanguageRules,
        language: Language,
        line: str,
        line_no: int,
        module: str,
        symbols_raw: Optional[str],
    ) -> None:
        module = module.strip()
        symbols = split_symbols(symbols_raw) if symbols_raw else []
        if not symbols and language in _SYMBOL_TAIL_LANGUAGES and "." in module:
            symbols = [module.rsplit(".", 1)[-1]]
        root.children.append(StructuralNode(
            kind=rules.import_kind,
            text=line,
            start_line=line_no,
            end_line=line_no,
            attributes={"module": module, "category": _IMPORT},
        ))
        result.imports.append(ImportInfo(module_path=module, symbols=symbols, line=line_no))

    # ------------------------------------------------------------------
    # Spans and complexity
    # ------------------------------------------------------------------

    def _close_spans(
        self,
        declarations: List[Tuple[StructuralNode, FunctionInfo]],
        lines: List[str],
        rules: LanguageRules,
        last_line: int,
    ) -> None:
        """A declaration runs until the line before the next one (or EOF)."""
        for idx, (node, info) in enumerate(declarations):
            if idx + 1 < len(declarations):
                end = max(declarations[idx + 1][1].start_line - 1, info.start_line)
            else:
                end = max(last_line, info.start_line)
            node.end_line = end
            info.end_line = end
            info.complexity = 1 + self._branch_count(lines[info.start_line - 1:end], rules)
            node.attributes["complexity"] = str(info.complexity)

    def _branch_count(self, span: List[str], rules: LanguageRules) -> int:
        total = 0
        for raw in span:
            line = raw.strip()
            if not line or self._is_comment(line, rules):
                continue
            total += len(rules.branch_pattern.findall(line))
        return total

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @staticmethod
    def _is_comment(line: str, rules: LanguageRules) -> bool:
        return bool(rules.comment_prefixes) and line.startswith(rules.comment_prefixes)

    def _count_comments(self, lines: List[str], rules: LanguageRules) -> int:
        return sum(1 for raw in lines if self._is_comment(raw.strip(), rules))

    @staticmethod
    def _find_namespace(lines: List[str], rules: LanguageRules) -> Optional[str]:
        if rules.namespace_pattern is None:
            return None
        for raw in lines:
            match = rules.namespace_pattern.match(raw.strip())
            if match:
                return match.group("name")
        return None
