from __future__ import annotations

from typing import Any

from app.models.events import EventType, SSEEvent


def retrieval_started(query: str, pages_to_scan: int) -> SSEEvent:
    return SSEEvent(
        event=EventType.RETRIEVAL_STARTED,
        data={"query": query, "pages_to_scan": pages_to_scan},
    )


def sources_ready(
    sources: list[dict[str, str]] | None,
    *,
    evidence_count: int,
    provider: str | None = None,
    search_failed: bool = False,
) -> SSEEvent:
    data: dict[str, Any] = {"evidence_count": evidence_count}
    if sources is not None:
        data["sources"] = sources
    if provider:
        data["provider"] = provider
    if search_failed:
        data["search_failed"] = True
    return SSEEvent(event=EventType.SOURCES_READY, data=data)


def answer_progress(chunk: str) -> SSEEvent:
    return SSEEvent(event=EventType.ANSWER_PROGRESS, data={"chunk": chunk})


def answer_complete(answer: str, strategy: str) -> SSEEvent:
    return SSEEvent(
        event=EventType.ANSWER_COMPLETE,
        data={"answer": answer, "strategy": strategy},
    )


def enrichment_complete(name: str, value: Any) -> SSEEvent:
    return SSEEvent(
        event=EventType.ENRICHMENT_COMPLETE,
        data={"name": name, "value": value, "ok": value is not None},
    )


def response_complete(payload: dict[str, Any], runtime_ms: int | None = None) -> SSEEvent:
    data: dict[str, Any] = {"payload": payload}
    if runtime_ms is not None:
        data["runtime_ms"] = runtime_ms
    return SSEEvent(event=EventType.RESPONSE_COMPLETE, data=data)


def error(message: str, stage: str | None = None) -> SSEEvent:
    data: dict[str, Any] = {"message": message}
    if stage:
        data["stage"] = stage
    return SSEEvent(event=EventType.ERROR, data=data)
