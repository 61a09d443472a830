from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse

from app.agents.orchestrator import AnswerOrchestrator
from app.api.deps import get_orchestrator
from app.errors import QueryValidationError, UpstreamProviderError
from app.models.events import SSEEvent
from app.models.pipeline import AnswerQuery
from app.models.schemas import AnswerRequest, AnswerResponse
from app.services import logger as log_service
from app.services import streaming

router = APIRouter(tags=["answer"])

UPSTREAM_ERROR_DETAIL = "Upstream provider error"

_STREAM_DONE = object()


def _to_query(request: AnswerRequest) -> AnswerQuery:
    try:
        return request.to_query()
    except ValidationError as e:
        errors = [
            {**err, "loc": ("body", *err["loc"])}
            for err in e.errors(include_url=False, include_context=False)
        ]
        raise RequestValidationError(errors) from e


@router.post("/", responses={200: {"model": AnswerResponse}})
async def answer(
    request: AnswerRequest,
    orchestrator: AnswerOrchestrator = Depends(get_orchestrator),
):
    """Answer a question from live web evidence."""
    try:
        payload = await orchestrator.run(_to_query(request))
    except QueryValidationError:
        return Response(status_code=400)
    except UpstreamProviderError as e:
        log_service.log_provider_failure(e.provider, "answer", str(e))
        raise HTTPException(status_code=502, detail=UPSTREAM_ERROR_DETAIL) from e
    return JSONResponse(content=payload.to_dict())


@router.post("/stream")
async def answer_stream(
    request: AnswerRequest,
    orchestrator: AnswerOrchestrator = Depends(get_orchestrator),
):
    """SSE variant of ``POST /``; emits one event per pipeline stage."""
    try:
        query = _to_query(request)
    except QueryValidationError:
        return Response(status_code=400)

    async def event_generator():
        queue: asyncio.Queue = asyncio.Queue()

        async def emit(event: SSEEvent) -> None:
            await queue.put(event)

        async def run() -> None:
            try:
                await orchestrator.run(query, emit=emit)
            except UpstreamProviderError as e:
                log_service.log_provider_failure(e.provider, "answer_stream", str(e))
                await queue.put(streaming.error(UPSTREAM_ERROR_DETAIL, stage=e.provider))
            except Exception as e:
                log_service.log_event(
                    event_type="stream_error",
                    message="Unhandled error in answer stream",
                    error=str(e),
                )
                await queue.put(streaming.error("Answer stream failed unexpectedly."))
            finally:
                await queue.put(_STREAM_DONE)

        task = asyncio.create_task(run())
        try:
            while True:
                item = await queue.get()
                if item is _STREAM_DONE:
                    break
                yield item.to_sse()
        finally:
            if not task.done():
                task.cancel()

    return EventSourceResponse(event_generator())
