"""Main entry point for AlgoVision API."""
import logging
import time
from typing import Optional
import tiktoken
from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from config import (
    PORT,
    ENVIRONMENT,
    CORS_ORIGINS,
    HISTORY_MAX_TURNS,
    HISTORY_MAX_TOKENS,
    FAILURE_LOG_PATH,
    FAILURE_LOG_ENABLED,
)
from models.api import QueryRequest, QueryResult
from services.history_window import HistoryWindow
from services.llm_client import LLMClient, CredentialMissingError
from services.failure_logger import FailureLogger
from services.visualization_pipeline import VisualizationPipeline

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="AlgoVision API",
    description="Turns DSA questions into step-by-step visualizations and example code",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services (will be done on startup)
llm_client: Optional[LLMClient] = None
failure_logger: Optional[FailureLogger] = None
pipeline: VisualizationPipeline = None
tiktoken_encoder = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global llm_client, failure_logger, pipeline, tiktoken_encoder

    logger.info("Initializing AlgoVision services...")

    try:
        # Initialize tiktoken encoder for history token budgeting
        tiktoken_encoder = tiktoken.get_encoding("o200k_base")
        logger.info("Initialized tiktoken encoder (o200k_base)")

        try:
            llm_client = LLMClient()
            logger.info("Initialized LLMClient")
        except CredentialMissingError as e:
            # Serve fallback artifacts until a key is configured
            llm_client = None
            logger.warning(f"LLMClient not configured: {e.error.message}")

        if FAILURE_LOG_ENABLED:
            failure_logger = FailureLogger(FAILURE_LOG_PATH)
            logger.info("Initialized FailureLogger")

        pipeline = VisualizationPipeline(
            llm_client=llm_client,
            history_window=HistoryWindow(
                max_turns=HISTORY_MAX_TURNS,
                max_tokens=HISTORY_MAX_TOKENS,
                encoder=tiktoken_encoder
            ),
            failure_logger=failure_logger
        )
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Release file handles."""
    if failure_logger is not None:
        failure_logger.close()


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "AlgoVision API is running",
        "environment": ENVIRONMENT,
        "llm_configured": llm_client is not None
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "algovision-api",
        "version": "1.0.0"
    }


@app.post("/api/process-query", response_model=QueryResult)
async def process_query_endpoint(request: QueryRequest) -> QueryResult:
    """
    Generate a visualization for a DSA question.

    Generation, extraction and validation failures never surface as HTTP
    errors: the pipeline answers with the fallback artifact instead, and its
    message explains what went wrong.

    Args:
        request: QueryRequest with query and recent conversation history

    Returns:
        QueryResult with message, code and visualization

    Raises:
        HTTPException: 400 for an empty query
    """
    if not request.query or not request.query.strip():
        raise HTTPException(status_code=400, detail="Query field is required and cannot be empty")

    start_time = time.time()
    history = [turn.to_turn() for turn in request.history]
    logger.info(f"Received query: {request.query[:100]} (history={len(history)})")

    # Groq client is synchronous; keep the event loop free for concurrent queries
    outcome = await run_in_threadpool(pipeline.run, request.query, history)

    total_latency_ms = int((time.time() - start_time) * 1000)
    logger.info(f"Query finished with {outcome.stage.value} in {total_latency_ms}ms")
    return QueryResult.model_validate(outcome.result)


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting AlgoVision API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
