"""Tests for the enrichment controller, schema validation and fallback."""

import json
import threading
import time

import pytest

from codegraph_core.errors import (
    EnrichmentCancelled,
    EnrichmentSchemaViolation,
    EnrichmentTimeout,
    EnrichmentTransportFailure,
)
from codegraph_core.enrichment import (
    TRUNCATION_MARKER,
    EnrichmentController,
    EnrichmentState,
    build_context,
    extract_json_payload,
    fallback_result,
    overlay_graph,
    validate_response,
)
from codegraph_core.models import ProjectGraph
from codegraph_core.schema import EnrichmentResult, GraphOverlay, OverlayEdge, OverlayNode

IDLE = EnrichmentState.IDLE
REQUESTING = EnrichmentState.REQUESTING
VALIDATING = EnrichmentState.VALIDATING
MERGED = EnrichmentState.MERGED
FALLBACK = EnrichmentState.FALLBACK


@pytest.fixture
def analysis(pipeline, go_files):
    return pipeline.analyze(go_files)


def _payload(**overrides):
    data = {
        "summary": "Three Go files in two packages.",
        "patterns": [{"type": "structure", "name": "Layered", "description": "app depends on pkg"}],
        "recommendations": ["Keep packages small"],
        "complexityScore": 12,
        "qualityScore": 88,
    }
    data.update(overrides)
    return json.dumps(data)


def _run(provider, analysis, **kwargs):
    timeout = kwargs.pop("timeout", 5.0)
    controller = EnrichmentController(provider, timeout=timeout)
    outcome = controller.run(analysis.files, analysis.project_metadata, analysis.graph, **kwargs)
    return controller, outcome


class TestExtractJsonPayload:
    def test_plain_object(self):
        """Test a bare JSON object is returned as is."""
        assert extract_json_payload('{"a": 1}') == '{"a": 1}'

    def test_fenced_block(self):
        """Test a fenced json block is unwrapped."""
        text = 'Here you go:\n```json\n{"a": {"b": 2}}\n```\nThanks'
        assert json.loads(extract_json_payload(text)) == {"a": {"b": 2}}

    def test_prose_around_object(self):
        """Test the object is cut out of surrounding prose."""
        assert extract_json_payload('Result: {"a": 1} -- end') == '{"a": 1}'

    def test_no_object(self):
        """Test text without an object raises."""
        with pytest.raises(EnrichmentSchemaViolation):
            extract_json_payload("I could not analyze this project.")


class TestController:
    def test_valid_overlay_is_merged(self, mock_provider, analysis):
        """Test a valid answer with an overlay is merged."""
        overlay = {
            "nodes": [{"id": "a.go", "label": "a"}, {"id": "b.go"}],
            "edges": [
                {"source": "a.go", "target": "b.go", "kind": "calls", "weight": 3},
                {"source": "b.go", "target": "c.go"},
            ],
        }
        mock_provider.generate.return_value = "```json\n" + _payload(graphOverlay=overlay) + "\n```"
        controller, outcome = _run(mock_provider, analysis)

        assert outcome.state == MERGED
        assert outcome.merged
        assert controller.history == [IDLE, REQUESTING, VALIDATING, MERGED, IDLE]
        assert controller.state == IDLE
        assert controller.outcome == MERGED
        assert outcome.result.summary == "Three Go files in two packages."
        assert outcome.graph.node_ids() == ["a.go", "b.go", "c.go"]
        assert [(e.source, e.target, e.kind, e.weight) for e in outcome.graph.edges] == [
            ("a.go", "b.go", "calls", 3),
            ("b.go", "c.go", "import", 1),
        ]
        mock_provider.generate.assert_called_once()

    def test_response_without_overlay_keeps_structural_graph(self, mock_provider, analysis):
        """Test an answer without an overlay keeps the structural graph."""
        mock_provider.generate.return_value = _payload(graphOverlay={"nodes": [], "edges": []})
        _, outcome = _run(mock_provider, analysis)

        assert outcome.state == MERGED
        assert outcome.graph is analysis.graph

    def test_invalid_json_in_prose_falls_back(self, mock_provider, analysis):
        """Test broken JSON falls back."""
        mock_provider.generate.return_value = "Sure! Here is the analysis: {not json at all}"
        controller, outcome = _run(mock_provider, analysis)

        assert outcome.state == FALLBACK
        assert controller.history == [IDLE, REQUESTING, VALIDATING, FALLBACK, IDLE]
        assert isinstance(outcome.error, EnrichmentSchemaViolation)
        assert outcome.result == fallback_result(analysis.project_metadata)
        assert outcome.graph is analysis.graph

    def test_unknown_overlay_path_falls_back(self, mock_provider, analysis):
        """Test an overlay naming an unknown file falls back."""
        overlay = {"nodes": [], "edges": [{"source": "a.go", "target": "ghost.go"}]}
        mock_provider.generate.return_value = _payload(graphOverlay=overlay)
        _, outcome = _run(mock_provider, analysis)

        assert outcome.state == FALLBACK
        assert isinstance(outcome.error, EnrichmentSchemaViolation)

    def test_missing_required_field_falls_back(self, mock_provider, analysis):
        """Test an answer missing a required field falls back."""
        data = json.loads(_payload())
        del data["summary"]
        mock_provider.generate.return_value = json.dumps(data)
        _, outcome = _run(mock_provider, analysis)

        assert outcome.state == FALLBACK

    def test_out_of_range_score_falls_back(self, mock_provider, analysis):
        """Test an out-of-range score falls back."""
        mock_provider.generate.return_value = _payload(qualityScore=140)
        _, outcome = _run(mock_provider, analysis)

        assert outcome.state == FALLBACK

    def test_empty_response_skips_validation(self, mock_provider, analysis):
        """Test an empty answer falls back without validating."""
        controller, outcome = _run(mock_provider, analysis)

        assert outcome.state == FALLBACK
        assert controller.history == [IDLE, REQUESTING, FALLBACK, IDLE]
        assert isinstance(outcome.error, EnrichmentTransportFailure)

    def test_provider_exception_falls_back(self, mock_provider, analysis):
        """Test a provider exception falls back."""
        mock_provider.generate.side_effect = RuntimeError("connection reset")
        controller, outcome = _run(mock_provider, analysis)

        assert outcome.state == FALLBACK
        assert controller.history == [IDLE, REQUESTING, FALLBACK, IDLE]
        assert isinstance(outcome.error, EnrichmentTransportFailure)

    def test_no_provider_falls_back(self, analysis):
        """Test a missing provider falls back."""
        controller, outcome = _run(None, analysis)

        assert outcome.state == FALLBACK
        assert isinstance(outcome.error, EnrichmentTransportFailure)

    def test_timeout_falls_back_promptly(self, mock_provider, analysis):
        """Test a hung provider falls back once the timeout passes."""
        release = threading.Event()
        mock_provider.generate.side_effect = lambda prompt: release.wait(5) and None
        try:
            start = time.monotonic()
            controller, outcome = _run(mock_provider, analysis, timeout=0.2)
            elapsed = time.monotonic() - start
            abandoned = [t for t in threading.enumerate() if t.name == "codegraph-enrich"]
        finally:
            release.set()

        assert abandoned and all(t.daemon for t in abandoned)
        assert outcome.state == FALLBACK
        assert isinstance(outcome.error, EnrichmentTimeout)
        assert controller.history == [IDLE, REQUESTING, FALLBACK, IDLE]
        assert elapsed < 2.0

    def test_cancellation_during_request(self, mock_provider, analysis):
        """Test cancelling during the request falls back."""
        release = threading.Event()
        cancel = threading.Event()
        mock_provider.generate.side_effect = lambda prompt: release.wait(5) and None
        timer = threading.Timer(0.1, cancel.set)
        timer.start()
        try:
            start = time.monotonic()
            _, outcome = _run(mock_provider, analysis, timeout=5.0, cancel_event=cancel)
            elapsed = time.monotonic() - start
        finally:
            release.set()
            timer.cancel()

        assert outcome.state == FALLBACK
        assert isinstance(outcome.error, EnrichmentCancelled)
        assert elapsed < 2.0

    def test_cancelled_before_request_never_calls_provider(self, mock_provider, analysis):
        """Test a cancelled run never calls the provider."""
        cancel = threading.Event()
        cancel.set()
        controller, outcome = _run(mock_provider, analysis, cancel_event=cancel)

        assert outcome.state == FALLBACK
        assert isinstance(outcome.error, EnrichmentCancelled)
        assert controller.history == [IDLE, REQUESTING, FALLBACK, IDLE]
        mock_provider.generate.assert_not_called()

    def test_single_request_per_run(self, mock_provider, analysis):
        """Test each run makes exactly one provider call."""
        mock_provider.generate.return_value = "garbage"
        _run(mock_provider, analysis)

        assert mock_provider.generate.call_count == 1


class TestContext:
    def test_sections(self, analysis):
        """Test the context lists files, metadata and relationships."""
        context = build_context(analysis.files, analysis.project_metadata, analysis.graph)

        for section in ("Project Summary:", "File List:", "File Structure:", "Detected AST Relationships:", "TASK:"):
            assert section in context
        assert "a.go -> b.go (import)" in context
        assert "a.go [go, 5 lines, namespace app]" in context

    def test_no_relationships(self, analysis):
        """Test the context of a graph without edges."""
        context = build_context(analysis.files, analysis.project_metadata, ProjectGraph())

        assert "None detected yet" in context

    def test_truncation(self, analysis):
        """Test long contexts are truncated."""
        context = build_context(analysis.files, analysis.project_metadata, analysis.graph, limit=50)

        assert context.endswith(TRUNCATION_MARKER)
        assert len(context) == 50 + len(TRUNCATION_MARKER)

    def test_context_is_passed_to_provider(self, mock_provider, analysis):
        """Test the built context is what the provider receives."""
        _run(mock_provider, analysis)
        prompt = mock_provider.generate.call_args[0][0]

        assert prompt.startswith("Project Summary:")


class TestValidation:
    def test_nested_layout_is_accepted(self):
        """Test the nested answer layout is lifted."""
        text = json.dumps({
            "summary": "ok",
            "patterns": [],
            "recommendations": [],
            "complexity": {"score": 12, "factors": ["deep nesting"]},
            "quality": {"score": 80},
            "graph": {"nodes": [], "edges": [{"source": "a.go", "target": "b.go", "type": "calls", "strength": 3}]},
        })
        result = validate_response(text, {"a.go", "b.go"})

        assert result.complexity_score == 12
        assert result.complexity_factors == ["deep nesting"]
        assert result.quality_score == 80
        edge = result.graph_overlay.edges[0]
        assert (edge.kind, edge.weight) == ("calls", 3)

    def test_non_object_is_rejected(self):
        """Test a JSON array is rejected."""
        with pytest.raises(EnrichmentSchemaViolation):
            validate_response("[1, 2, 3]", set())

    def test_overlay_paths_are_normalized(self):
        """Test overlay paths are normalized before checking."""
        text = _payload(graphOverlay={"nodes": [{"id": "./src\\a.go"}], "edges": []})
        result = validate_response(text, {"src/a.go"})

        assert result.graph_overlay.nodes[0].id == "src/a.go"

    def test_serializes_camel_case(self):
        """Test the enrichment result serializes with camelCase keys."""
        result = validate_response(_payload(), set())
        payload = result.to_dict()

        assert payload["complexityScore"] == 12
        assert payload["qualityScore"] == 88
        assert payload["patterns"][0]["severity"] == "info"


class TestOverlayGraph:
    def test_adds_missing_endpoints_and_drops_self_edges(self, analysis):
        """Test overlay endpoints are added and self edges dropped."""
        overlay = GraphOverlay(
            nodes=[OverlayNode(id="a.go")],
            edges=[OverlayEdge(source="a.go", target="c.go"), OverlayEdge(source="b.go", target="b.go")],
        )
        graph = overlay_graph(overlay, analysis.files)

        assert graph.node_ids() == ["a.go", "c.go", "b.go"]
        assert [(e.source, e.target) for e in graph.edges] == [("a.go", "c.go")]
        assert graph.nodes[1].language == "go"


class TestFallback:
    def test_deterministic_and_schema_valid(self, analysis):
        """Test the fallback is deterministic and passes the schema."""
        first = fallback_result(analysis.project_metadata)
        second = fallback_result(analysis.project_metadata)

        assert first == second
        assert EnrichmentResult.model_validate(first.to_dict()) == first
        assert first.graph_overlay is None

    def test_scores_follow_complexity(self, analysis):
        """Test fallback scores follow project complexity."""
        result = fallback_result(analysis.project_metadata)

        assert result.complexity_score == 10.0
        assert result.quality_score == 90.0
        assert result.summary.startswith("Project analysis shows 3 files across 1 languages with 3 functions and 0 types.")
        assert result.patterns[0].name == "Single-language Project"
        assert result.architecture.type == "Mixed"
