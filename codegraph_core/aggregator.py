"""Fold per-file parse results into project-level metadata."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from .models import ComplexityStats, ParseResult, ProjectMetadata


def complexity_stats(results: Sequence[ParseResult]) -> ComplexityStats:
    """Average/highest/lowest over every function score; zeros when there are none."""
    scores = [fn.complexity for result in results for fn in result.functions]
    if not scores:
        return ComplexityStats(average=0.0, highest=0, lowest=0)
    return ComplexityStats(
        average=round(sum(scores) / len(scores), 2),
        highest=max(scores),
        lowest=min(scores),
    )


def aggregate(results: Sequence[ParseResult], skipped: Iterable[str] = ()) -> ProjectMetadata:
    """Build :class:`ProjectMetadata` from *results*.

    Totals and the language histogram do not depend on the order of
    *results*; the dependency list keeps file order (first occurrence wins)
    so repeated runs over the same input produce the same output.
    """
    histogram: Dict[str, int] = {}
    dependencies: List[str] = []
    seen = set()

    for result in results:
        tag = result.language.value
        histogram[tag] = histogram.get(tag, 0) + 1
        for imp in result.imports:
            if imp.module_path not in seen:
                seen.add(imp.module_path)
                dependencies.append(imp.module_path)

    return ProjectMetadata(
        total_files=len(results),
        total_lines=sum(r.lines_of_code for r in results),
        total_comment_lines=sum(r.comment_lines for r in results),
        total_functions=sum(len(r.functions) for r in results),
        total_types=sum(len(r.types) for r in results),
        languages=dict(sorted(histogram.items())),
        dependencies=dependencies,
        complexity=complexity_stats(results),
        skipped_files=list(skipped),
    )
