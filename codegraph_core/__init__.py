"""Multi-language code knowledge graph: structural extraction, dependency graph, cycles, enrichment."""

from .config import LLMConfig, PipelineConfig, load_config
from .errors import CodeGraphError, FatalInputError
from .languages import Language, classify
from .models import AnalysisResult, Cycle, ParseResult, ProjectGraph, SourceFile
from .pipeline import CodeGraphPipeline

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "CodeGraphError",
    "CodeGraphPipeline",
    "Cycle",
    "FatalInputError",
    "LLMConfig",
    "Language",
    "ParseResult",
    "PipelineConfig",
    "ProjectGraph",
    "SourceFile",
    "classify",
    "load_config",
]
