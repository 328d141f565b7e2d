"""Optional semantic enrichment of a structural analysis.

The controller walks a small state machine for every run::

    IDLE -> REQUESTING -> VALIDATING -> MERGED   -> IDLE
                     \\            \\-> FALLBACK -> IDLE
                      \\--------------> FALLBACK -> IDLE

Exactly one provider call is made per run, on a dedicated daemon thread,
bounded by a hard timeout and abandoned early when the caller sets the
cancellation event. Any transport problem, timeout, cancellation or schema
violation ends in FALLBACK: a deterministic summary computed from the
project metadata, shaped exactly like a provider answer. No retries.
"""

from __future__ import annotations

import json
import logging
import queue
import re
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from pydantic import ValidationError

from .errors import (
    EnrichmentCancelled,
    EnrichmentError,
    EnrichmentSchemaViolation,
    EnrichmentTimeout,
    EnrichmentTransportFailure,
)
from .models import ParseResult, ProjectGraph, ProjectMetadata
from .schema import Architecture, CodePattern, EnrichmentResult, GraphOverlay, Severity

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_CHAR_LIMIT = 20000
DEFAULT_TIMEOUT = 60.0
TRUNCATION_MARKER = "\n... [truncated]"
# How often the waiting thread checks the cancellation event
POLL_INTERVAL = 0.05

_FENCED = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)


class EnrichmentProvider(Protocol):
    def generate(self, prompt: str) -> Optional[str]:
        ...


class EnrichmentState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    VALIDATING = "validating"
    MERGED = "merged"
    FALLBACK = "fallback"


@dataclass
class EnrichmentOutcome:
    """What one enrichment run produced.

    ``graph`` is the user-facing graph: the provider's overlay after a merge
    with a non-empty overlay, otherwise the structural graph unchanged.
    """

    state: EnrichmentState
    result: EnrichmentResult
    graph: ProjectGraph
    error: Optional[EnrichmentError] = None

    @property
    def merged(self) -> bool:
        return self.state == EnrichmentState.MERGED


# ----------------------------------------------------------------------
# Requesting
# ----------------------------------------------------------------------

def _names(items: Iterable[object], limit: int = 25) -> str:
    names = [getattr(i, "name", str(i)) for i in items]
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        shown += f", ... (+{len(names) - limit})"
    return shown or "-"


def build_context(
    results: Sequence[ParseResult],
    metadata: ProjectMetadata,
    graph: ProjectGraph,
    limit: int = DEFAULT_CONTEXT_CHAR_LIMIT,
) -> str:
    """Serialize the structural analysis into the single provider request."""
    lines: List[str] = [
        "Project Summary:",
        f"Files: {metadata.total_files}",
        f"Total Lines: {metadata.total_lines}",
        f"Functions: {metadata.total_functions}",
        f"Types: {metadata.total_types}",
        f"Languages: {', '.join(f'{k} ({v})' for k, v in metadata.languages.items()) or '-'}",
        f"Dependencies: {len(metadata.dependencies)}",
        f"Average Complexity: {metadata.complexity.average}",
        "",
        "File List:",
    ]
    lines.extend(r.node_id for r in results)

    lines += ["", "File Structure:"]
    for r in results:
        header = f"{r.node_id} [{r.language.value}, {r.lines_of_code} lines"
        if r.namespace:
            header += f", namespace {r.namespace}"
        lines.append(header + "]")
        lines.append(f"  types: {_names(r.types)}")
        lines.append(f"  functions: {_names(r.functions)}")
        lines.append(f"  imports: {_names(i.module_path for i in r.imports)}")

    lines += ["", "Detected AST Relationships:"]
    if graph.edges:
        lines.extend(f"{e.source} -> {e.target} ({e.kind})" for e in graph.edges)
    else:
        lines.append("None detected yet")

    lines += [
        "",
        "TASK:",
        "1. Provide an architectural summary.",
        "2. Identify design patterns and risks.",
        "3. Return a graphOverlay of the real dependencies between these files,",
        "   using the detected relationships as a baseline. Use only paths from the File List.",
    ]

    context = "\n".join(lines)
    if len(context) > limit:
        context = context[:limit] + TRUNCATION_MARKER
    return context


# ----------------------------------------------------------------------
# Validating
# ----------------------------------------------------------------------

def extract_json_payload(text: str) -> str:
    """Return the JSON object embedded in *text*.

    Code fences are stripped when present; otherwise the span from the first
    ``{`` to the last ``}`` is taken, tolerating prose on either side.
    """
    stripped = text.strip()
    fenced = _FENCED.search(stripped)
    if fenced:
        stripped = fenced.group(1).strip()
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end < start:
        raise EnrichmentSchemaViolation("No JSON object found in provider response")
    return stripped[start:end + 1]


def validate_response(text: str, known_paths: Set[str]) -> EnrichmentResult:
    """Parse and validate a provider response; raises EnrichmentSchemaViolation."""
    payload = extract_json_payload(text)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise EnrichmentSchemaViolation(f"Invalid JSON in provider response: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise EnrichmentSchemaViolation("Provider response is not a JSON object")
    try:
        return EnrichmentResult.model_validate(data, context={"known_paths": known_paths})
    except ValidationError as exc:
        raise EnrichmentSchemaViolation(
            f"Provider response does not match the enrichment schema ({exc.error_count()} errors)"
        ) from exc


def overlay_graph(overlay: GraphOverlay, results: Sequence[ParseResult]) -> ProjectGraph:
    """Build the user-facing graph from a validated overlay.

    Overlay endpoints missing from ``overlay.nodes`` are added from the file
    list and self edges are dropped.
    """
    languages = {r.node_id: r.language.value for r in results}
    graph = ProjectGraph()
    for node in overlay.nodes:
        graph.add_node(node.id, label=node.label, language=languages.get(node.id, "unknown"))
    for edge in overlay.edges:
        for endpoint in (edge.source, edge.target):
            graph.add_node(endpoint, language=languages.get(endpoint, "unknown"))
        graph.add_edge(edge.source, edge.target, kind=edge.kind, weight=edge.weight)
    return graph


# ----------------------------------------------------------------------
# Fallback
# ----------------------------------------------------------------------

def fallback_result(metadata: ProjectMetadata) -> EnrichmentResult:
    """Deterministic local analysis with the same schema as a provider answer."""
    language_count = len(metadata.languages)
    average = metadata.complexity.average
    complexity_score = round(average * 10, 2)
    quality_score = round(min(100.0, max(0.0, 100.0 - complexity_score)), 2)
    histogram = ", ".join(f"{lang} ({count})" for lang, count in metadata.languages.items()) or "none"

    summary = (
        f"Project analysis shows {metadata.total_files} files across {language_count} languages "
        f"with {metadata.total_functions} functions and {metadata.total_types} types. "
        f"Average function complexity is {average:.1f}. Languages: {histogram}."
    )

    patterns = [
        CodePattern(
            type="project",
            name="Multi-language Support" if language_count > 1 else "Single-language Project",
            line=1,
            description=f"Project uses {language_count} different programming languages",
            severity=Severity.INFO,
        )
    ]
    if complexity_score > 50:
        patterns.append(CodePattern(
            type="complexity",
            name="High Average Complexity",
            line=1,
            description=f"Highest function complexity is {metadata.complexity.highest}",
            severity=Severity.WARNING,
        ))
    if metadata.unresolved_imports:
        patterns.append(CodePattern(
            type="dependency",
            name="External Dependencies",
            line=1,
            description=f"{len(metadata.unresolved_imports)} imports do not resolve to files of the project",
            severity=Severity.INFO,
        ))

    recommendations = [
        "Consider standardizing coding patterns across languages",
        "Review dependency usage and consider consolidation",
    ]
    if complexity_score > 50:
        recommendations.append("Refactor the most complex functions into smaller units")

    oop = metadata.total_types > metadata.total_functions / 2
    return EnrichmentResult(
        summary=summary,
        patterns=patterns,
        recommendations=recommendations,
        complexity_score=complexity_score,
        quality_score=quality_score,
        complexity_factors=[
            f"Average complexity: {average:.1f}",
            f"Total functions: {metadata.total_functions}",
            f"Total lines: {metadata.total_lines}",
        ],
        architecture=Architecture(
            type="Object-oriented" if oop else "Mixed",
            patterns=["Class-based components"] if metadata.total_types > 0 else ["Function-based modules"],
            issues=["High average complexity"] if complexity_score > 50 else [],
        ),
        graph_overlay=None,
    )


# ----------------------------------------------------------------------
# Controller
# ----------------------------------------------------------------------

class EnrichmentController:
    """Runs one enrichment per :meth:`run` call; not shared between analyses."""

    def __init__(
        self,
        provider: Optional[EnrichmentProvider],
        timeout: float = DEFAULT_TIMEOUT,
        context_char_limit: int = DEFAULT_CONTEXT_CHAR_LIMIT,
    ) -> None:
        self.provider = provider
        self.timeout = timeout
        self.context_char_limit = context_char_limit
        self.state = EnrichmentState.IDLE
        self.history: List[EnrichmentState] = [EnrichmentState.IDLE]
        self.outcome: Optional[EnrichmentState] = None

    def _transition(self, state: EnrichmentState) -> None:
        logger.debug("Enrichment %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def run(
        self,
        results: Sequence[ParseResult],
        metadata: ProjectMetadata,
        graph: ProjectGraph,
        cancel_event: Optional[threading.Event] = None,
    ) -> EnrichmentOutcome:
        try:
            self._transition(EnrichmentState.REQUESTING)
            context = build_context(results, metadata, graph, self.context_char_limit)
            text = self._request(context, cancel_event)

            self._transition(EnrichmentState.VALIDATING)
            result = validate_response(text, {r.node_id for r in results})
            user_graph = graph
            if result.graph_overlay is not None and not result.graph_overlay.is_empty():
                user_graph = overlay_graph(result.graph_overlay, results)
            self._transition(EnrichmentState.MERGED)
            outcome = EnrichmentOutcome(EnrichmentState.MERGED, result, user_graph)
        except EnrichmentError as exc:
            logger.warning("Enrichment failed, using local fallback: %s", exc)
            self._transition(EnrichmentState.FALLBACK)
            outcome = EnrichmentOutcome(EnrichmentState.FALLBACK, fallback_result(metadata), graph, exc)

        self.outcome = outcome.state
        self._transition(EnrichmentState.IDLE)
        return outcome

    def _request(self, context: str, cancel_event: Optional[threading.Event]) -> str:
        provider = self.provider
        if provider is None:
            raise EnrichmentTransportFailure("No enrichment provider configured")
        if cancel_event is not None and cancel_event.is_set():
            raise EnrichmentCancelled("Analysis cancelled before the enrichment request")

        answers: "queue.Queue[Tuple[Optional[str], Optional[BaseException]]]" = queue.Queue()

        def call() -> None:
            try:
                answers.put((provider.generate(context), None))
            except Exception as exc:
                answers.put((None, exc))

        worker = threading.Thread(target=call, name="codegraph-enrich", daemon=True)
        worker.start()
        deadline = time.monotonic() + self.timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise EnrichmentTimeout(f"No provider response within {self.timeout:g}s")
            try:
                text, error = answers.get(timeout=min(POLL_INTERVAL, remaining))
                break
            except queue.Empty:
                if cancel_event is not None and cancel_event.is_set():
                    raise EnrichmentCancelled("Analysis cancelled during the enrichment request")

        if error is not None:
            raise EnrichmentTransportFailure(f"Provider raised: {error!r}") from error
        if text is None or not str(text).strip():
            raise EnrichmentTransportFailure("Provider returned an empty response")
        return str(text)
