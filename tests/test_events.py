"""Tests for SSE event payloads."""
import json

from app.models.events import EventType
from app.models.pipeline import ResponsePayload
from app.services import streaming


class TestEventStructure:
    def test_sources_ready_flags_search_failure(self):
        event = streaming.sources_ready([], evidence_count=0, provider="serper", search_failed=True)

        assert event.event == EventType.SOURCES_READY
        assert event.data == {"sources": [], "evidence_count": 0, "provider": "serper", "search_failed": True}

    def test_sources_ready_omits_defaults(self):
        event = streaming.sources_ready([{"title": "A", "link": "https://a"}], evidence_count=2)
        assert "search_failed" not in event.data
        assert "provider" not in event.data

    def test_enrichment_complete_marks_missing_value(self):
        assert streaming.enrichment_complete("images", None).data["ok"] is False
        assert streaming.enrichment_complete("images", []).data["ok"] is True

    def test_to_sse_serializes_data(self):
        payload = ResponsePayload(answer="hi", follow_up_questions=None, included=frozenset({"follow_ups"}))
        event = streaming.response_complete(payload.to_dict(), runtime_ms=12)

        sse = event.to_sse()

        assert sse["event"] == "response_complete"
        assert json.loads(sse["data"]) == {
            "payload": {"answer": "hi", "followUpQuestions": None},
            "runtime_ms": 12,
        }

    def test_format_renders_wire_frame(self):
        frame = streaming.error("failed", stage="llm").format()
        assert frame.startswith("event: error\ndata: ")
        assert frame.endswith("\n\n")
