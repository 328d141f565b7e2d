"""The code-knowledge-graph analysis pipeline.

``files -> classify -> extract (worker pool) -> aggregate -> resolve ->
detect cycles -> [enrich]``

:class:`CodeGraphPipeline` holds configuration only. Every :meth:`analyze`
call builds its own parse results, graph and enrichment controller, so one
instance can serve concurrent callers.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Sequence, Tuple

from .aggregator import aggregate
from .config import PipelineConfig
from .cycles import CycleDetector
from .enrichment import EnrichmentController, EnrichmentProvider
from .errors import ExtractionFailed, FatalInputError, UnsupportedLanguage
from .extractor import StructuralExtractor
from .languages import Language, classify
from .models import AnalysisResult, ParseResult, SourceFile
from .resolver import DependencyResolver

logger = logging.getLogger(__name__)


def _check_fields(index: int, path: Any, content: Any) -> SourceFile:
    if not isinstance(path, str) or not path.strip():
        raise FatalInputError(f"File #{index}: path must be a non-empty string, got {type(path).__name__}")
    if not isinstance(content, (str, bytes)):
        raise FatalInputError(
            f"File #{index}: content must be str or bytes, got {type(content).__name__}", path
        )
    return SourceFile(path=path, content=content)


def coerce_sources(files: Any) -> List[SourceFile]:
    """Validate the caller's file list.

    Accepts a list or tuple whose items are :class:`SourceFile` objects,
    ``(path, content)`` pairs or ``{"path": ..., "content": ...}`` mappings.
    Anything else raises :class:`FatalInputError`.
    """
    if not isinstance(files, (list, tuple)):
        raise FatalInputError(f"Expected a list of files, got {type(files).__name__}")

    sources: List[SourceFile] = []
    for index, item in enumerate(files):
        if isinstance(item, SourceFile):
            sources.append(_check_fields(index, item.path, item.content))
        elif isinstance(item, Mapping):
            if "path" not in item or "content" not in item:
                raise FatalInputError(f"File #{index}: mapping needs 'path' and 'content' keys")
            sources.append(_check_fields(index, item["path"], item["content"]))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            sources.append(_check_fields(index, item[0], item[1]))
        else:
            raise FatalInputError(f"File #{index}: expected a (path, content) record, got {type(item).__name__}")
    return sources


class CodeGraphPipeline:
    """Stateless analysis service; construct once and pass it around."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        provider: Optional[EnrichmentProvider] = None,
        extractor: Optional[StructuralExtractor] = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.provider = provider
        self.extractor = extractor or StructuralExtractor()

    def analyze(
        self,
        files: Sequence[Any],
        enrich: bool = False,
        cancel_event: Optional[threading.Event] = None,
        provider: Optional[EnrichmentProvider] = None,
    ) -> AnalysisResult:
        """Run the full analysis over *files*.

        Args:
            files: Ordered file records (see :func:`coerce_sources`)
            enrich: Ask the enrichment provider for a semantic analysis
            cancel_event: Set by the caller to abandon a pending enrichment
            provider: Overrides the pipeline's provider for this call

        Returns:
            A complete :class:`AnalysisResult`. Only malformed input raises
            (:class:`FatalInputError`); every other problem degrades locally.
        """
        sources = coerce_sources(files)

        classified: List[Tuple[int, SourceFile, Language]] = []
        skipped: List[Tuple[int, str]] = []
        for index, source in enumerate(sources):
            language = classify(source.path)
            if language is None:
                logger.debug("Skipping %s", UnsupportedLanguage("No language registered", source.path))
                skipped.append((index, source.path))
                continue
            classified.append((index, source, language))

        results = self._extract_all(classified, skipped)
        skipped_paths = [path for _, path in sorted(skipped)]

        metadata = aggregate(results, skipped_paths)
        resolution = DependencyResolver().resolve(results)
        metadata.unresolved_imports = resolution.unresolved_labels()
        structural = resolution.graph
        cycles = CycleDetector(self.config.max_cycles).detect(structural)

        analysis = AnalysisResult(
            files=results,
            project_metadata=metadata,
            graph=structural,
            cycles=cycles,
            structural_graph=structural,
        )
        logger.info(
            "Analyzed %d files (%d skipped): %d edges, %d cycles",
            len(results), len(skipped_paths), len(structural.edges), len(cycles),
        )

        if enrich:
            controller = EnrichmentController(
                provider if provider is not None else self.provider,
                timeout=self.config.enrichment_timeout,
                context_char_limit=self.config.context_char_limit,
            )
            outcome = controller.run(results, metadata, structural, cancel_event)
            analysis.enrichment = outcome.result
            analysis.enrichment_state = outcome.state.value
            analysis.graph = outcome.graph

        return analysis

    def _extract_all(
        self,
        classified: List[Tuple[int, SourceFile, Language]],
        skipped: List[Tuple[int, str]],
    ) -> List[ParseResult]:
        """Extract every file in a worker pool; results keep input order."""
        if not classified:
            return []
        workers = min(len(classified), self.config.max_workers or os.cpu_count() or 1)

        results: List[ParseResult] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="codegraph-extract") as pool:
            futures = [
                (index, source, pool.submit(self.extractor.extract, source, language))
                for index, source, language in classified
            ]
            for index, source, future in futures:
                try:
                    results.append(future.result())
                except ExtractionFailed as exc:
                    logger.warning("Skipping %s", exc)
                    skipped.append((index, source.path))
                except Exception as exc:
                    logger.warning("Failed to extract %s: %s", source.path, exc)
                    skipped.append((index, source.path))
        return results
