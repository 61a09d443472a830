from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import answer
from app.config import settings
from app.services import logger as log_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log_service.log_event(
        event_type="startup",
        message="Answer engine started",
        search_provider=settings.search_provider,
        embedding_backend=settings.embedding_backend,
        model=settings.default_model,
    )
    yield
    # Shutdown


app = FastAPI(
    title="Answer Engine",
    description="Answers questions from live web evidence",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(answer.router)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    log_service.logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "answer-engine"}
