"""Schema of the enrichment payload returned by a provider.

Providers are asked for a flat JSON object (``summary``, ``patterns``,
``recommendations``, ``complexityScore``, ``qualityScore`` and an optional
``graphOverlay``). The nested layout some models answer with
(``complexity: {score, factors}``, ``quality: {score}``, ``graph: {...}``)
is lifted into the flat one before validation. Validation fails closed:
a missing or ill-typed field raises :class:`pydantic.ValidationError`.

Pass ``context={"known_paths": {...}}`` to ``model_validate`` to also
enforce that every overlay node and edge endpoint is an analysed file.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import normalize_path


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CodePattern(_CamelModel):
    type: str
    name: str
    line: int = Field(default=1, ge=0)
    description: str
    severity: Severity = Severity.INFO


class OverlayNode(_CamelModel):
    id: str
    label: Optional[str] = None
    type: Optional[str] = None

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, v: str) -> str:
        return normalize_path(v.strip())


class OverlayEdge(_CamelModel):
    source: str
    target: str
    kind: str = Field(default="import", validation_alias=AliasChoices("kind", "type"))
    weight: int = Field(default=1, ge=0, validation_alias=AliasChoices("weight", "strength"))

    @field_validator("source", "target")
    @classmethod
    def _normalize_endpoint(cls, v: str) -> str:
        return normalize_path(v.strip())


class GraphOverlay(_CamelModel):
    nodes: List[OverlayNode] = Field(default_factory=list)
    edges: List[OverlayEdge] = Field(default_factory=list)

    def is_empty(self) -> bool:
        """An overlay without edges carries no relationships to show."""
        return not self.edges


class Architecture(_CamelModel):
    type: str = "Unknown"
    patterns: List[str] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)


class EnrichmentResult(_CamelModel):
    """Validated semantic analysis attached to an :class:`AnalysisResult`."""

    summary: str = Field(min_length=1)
    patterns: List[CodePattern]
    recommendations: List[str]
    complexity_score: float = Field(ge=0)
    quality_score: float = Field(ge=0, le=100)
    complexity_factors: List[str] = Field(default_factory=list)
    architecture: Optional[Architecture] = None
    graph_overlay: Optional[GraphOverlay] = None

    @model_validator(mode="before")
    @classmethod
    def _lift_nested_layout(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        complexity = data.get("complexity")
        if isinstance(complexity, dict):
            data.setdefault("complexityScore", complexity.get("score"))
            data.setdefault("complexityFactors", complexity.get("factors", []))
        quality = data.get("quality")
        if isinstance(quality, dict):
            data.setdefault("qualityScore", quality.get("score"))
        if "graphOverlay" not in data and isinstance(data.get("graph"), dict):
            data["graphOverlay"] = data["graph"]
        return data

    @model_validator(mode="after")
    def _check_overlay_paths(self, info: ValidationInfo) -> "EnrichmentResult":
        known = (info.context or {}).get("known_paths")
        if known is None or self.graph_overlay is None:
            return self
        unknown = [n.id for n in self.graph_overlay.nodes if n.id not in known]
        for edge in self.graph_overlay.edges:
            unknown.extend(p for p in (edge.source, edge.target) if p not in known)
        if unknown:
            raise ValueError(f"graphOverlay references unknown paths: {sorted(set(unknown))}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
