from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from threadsearch import __version__
from threadsearch.errors import SearchFailedError
from threadsearch.logging import configure_logging, get_logger
from threadsearch.server.runtime import get_runtime, get_runtime_async, reset_runtime
from threadsearch.server.schemas import SearchResponseSchema

_logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    runtime = await get_runtime_async()
    configure_logging(runtime.config.log_level, runtime.config.log_json)
    yield
    await reset_runtime()


app = FastAPI(
    title="threadsearch",
    description="Question answering over channel and direct message history",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/ai/search", response_model=SearchResponseSchema)
async def search_with_ai(query: str | None = None, x_user_id: str | None = Header(default=None)):
    if not x_user_id:
        return JSONResponse(status_code=401, content={"error": "Authentication required"})
    if not query or not query.strip():
        return JSONResponse(status_code=400, content={"error": "Search query is required"})

    runtime = get_runtime()
    try:
        with structlog.contextvars.bound_contextvars(user_id=x_user_id):
            result = await runtime.search.perform_search(query, x_user_id)
    except SearchFailedError as e:
        _logger.exception("Search failed", user_id=x_user_id)
        content = {"error": "Failed to perform AI search"}
        if runtime.config.debug:
            content["details"] = str(e)
        return JSONResponse(status_code=500, content=content)

    return SearchResponseSchema.from_response(result)
