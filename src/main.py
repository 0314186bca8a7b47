from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
import logging
import uvicorn

from ai import ClaudeAnalyzer, ClaudeClient
from terminal import Config, DevTerminalPipeline
from terminal.analyzer import KeywordAnalyzer
from terminal.errors import DevTerminalError
from terminal.logging_config import configure_logging
from terminal.repository import DevTerminalRepository
from terminal.store import InMemoryRecordStore, PostgresRecordStore

# Load environment variables
config = Config.from_env()

logger = logging.getLogger(__name__)


class TerminalRequest(BaseModel):
    """Body accepted by the dev terminal endpoint."""
    action: str
    prompt: Optional[str] = None
    requestType: Optional[str] = None
    targetUsers: Optional[List[str]] = None
    buildMode: Optional[str] = None
    useCivicMemory: Optional[bool] = None
    previewBeforeBuild: Optional[bool] = None
    requestId: Optional[str] = None
    options: Optional[Dict[str, Any]] = None


def build_analyzer(config: Config):
    if config.analyzer_backend == "claude":
        return ClaudeAnalyzer(ClaudeClient(api_key=config.anthropic_api_key, model=config.analyzer_model))
    return KeywordAnalyzer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(config.log_level, config.log_format)
    logger.info("Starting Dev Terminal API...")

    if config.database_url:
        store = PostgresRecordStore(config.database_url)
        await store.connect()
    else:
        logger.warning("DATABASE_URL not set, using in-memory record store")
        store = InMemoryRecordStore()

    app.state.pipeline = DevTerminalPipeline(
        DevTerminalRepository(store), analyzer=build_analyzer(config), config=config
    )
    yield
    # Shutdown
    logger.info("Shutting down Dev Terminal API...")
    if isinstance(store, PostgresRecordStore):
        await store.close()


# Create FastAPI app
app = FastAPI(
    title="Dev Terminal",
    description="Rule-based code generation pipeline that turns feature requests into schemas, policies and components",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"][1:])
        problems.append(f"{field}: {error['msg']}" if field else error["msg"])
    message = "Invalid request body: " + "; ".join(problems)
    logger.warning(message)
    return JSONResponse(status_code=400, content={"error": message})


def get_pipeline(request: Request) -> DevTerminalPipeline:
    return request.app.state.pipeline


@app.get("/")
async def root():
    return {
        "message": "Dev Terminal API",
        "description": "Rule-based code generation pipeline",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/api/status")
async def api_status():
    return {
        "api": "online",
        "database": "postgres" if config.database_url else "in_memory",
        "analyzer": config.analyzer_backend,
        "abort_policy": config.abort_policy,
    }


@app.post("/api/dev-terminal")
async def dev_terminal(body: TerminalRequest, pipeline: DevTerminalPipeline = Depends(get_pipeline)):
    try:
        return await pipeline.dispatch(body.model_dump())
    except DevTerminalError as e:
        logger.warning(f"Dev terminal {body.action} failed: {e.message}")
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except Exception as e:
        logger.exception("Error in dev terminal")
        return JSONResponse(status_code=500, content={"error": str(e)})


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="info"
    )
