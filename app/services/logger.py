"""Centralized logging service using loguru.

Every record carries a ``request_id`` extra ("-" outside a request) so the
lines of one answer can be grepped out of the daily file.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger

from app.config import Settings, settings

NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "sse_starlette.sse",
    "httpx",
    "httpcore",
    "hpack",
    "openai._base_client",
    "sentence_transformers",
    "asyncio",
)

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[request_id]} | "
    "{name}:{function}:{line} - {message}"
)


def configure_logging(cfg: Settings) -> Path:
    """Install the console and daily-file sinks; returns the log directory."""
    log_dir = Path(cfg.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.configure(extra={"request_id": "-"})
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=cfg.app_log_level.upper(),
        colorize=True,
    )
    logger.add(
        log_dir / "answer_engine_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(cfg.noisy_log_level.upper())
    return log_dir


configure_logging(settings)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
    streamed: bool = False,
) -> None:
    """Log one chat-completion call with its token usage."""
    call_data = {
        "timestamp": _now(),
        "model": model,
        "caller": caller,
        "streamed": streamed,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
        "duration_ms": duration_ms,
        "status": status,
        "error": error,
    }
    if error:
        logger.error(f"LLM_CALL_FAILED: {call_data}")
    else:
        logger.info(f"LLM_CALL: {call_data}")


def log_pipeline_step(
    request_id: str,
    state: str,
    elapsed_ms: int,
    data: Optional[dict] = None,
) -> None:
    """Log an orchestrator state transition."""
    logger.bind(request_id=request_id).info(
        f"PIPELINE_STATE: {{'state': {state!r}, 'elapsed_ms': {elapsed_ms}, 'data': {data!r}}}"
    )


def log_provider_failure(provider: str, operation: str, error: str) -> None:
    """Log an upstream failure that reaches the HTTP layer."""
    logger.error(
        f"PROVIDER_FAILED: {{'timestamp': {_now()!r}, 'provider': {provider!r}, "
        f"'operation': {operation!r}, 'error': {error!r}}}"
    )


def log_event(
    event_type: str,
    message: str,
    **kwargs,
) -> None:
    """Log a generic event."""
    event_data = {
        "timestamp": _now(),
        "event_type": event_type,
        "message": message,
        **kwargs,
    }
    logger.info(f"EVENT: {event_data}")
