"""
Contradiction Engine API
========================

FastAPI endpoints over the analysis pipeline.

Endpoints:
- GET  /health   - Health check
- POST /analyze  - Analyze free text
- POST /compare  - Compare two documents
- POST /report   - Analyze (or compare) and render a report

Errors:
- InputError  -> 400 (empty, oversized or unreadable text)
- ConfigError -> 422 (unknown option, bad sensitivity level or output format)

Run with:
    uvicorn contradiction_engine.api:app --host 0.0.0.0 --port 8000
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import build_config, get_settings
from .engine import ContradictionEngine
from .errors import ConfigError, InputError
from .report import ReportGenerator
from .schemas import (
    AnalysisResult,
    AnalyzeTextRequest,
    CompareDocumentsRequest,
    ComparisonResult,
    ErrorResponse,
    HealthResponse,
    OutputFormat,
    ReportRequest,
)

settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

REPORT_MEDIA_TYPES = {
    OutputFormat.JSON: "application/json",
    OutputFormat.TEXT: "text/plain; charset=utf-8",
    OutputFormat.MARKDOWN: "text/markdown; charset=utf-8",
    OutputFormat.HTML: "text/html; charset=utf-8",
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    422: {"model": ErrorResponse, "description": "Invalid options"},
}


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="Contradiction Engine",
    description="Contradiction detection with majority-vote verification and a SHA-512 audit chain",
    version=settings.service_version,
    docs_url="/docs",
    redoc_url="/redoc",
)

CORS_ALLOW_ORIGINS = settings.cors_origins()
logger.info(f"CORS allow origins: {CORS_ALLOW_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    logger.info(f"Rejected input on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="input_error", detail=str(exc)).model_dump(by_alias=True),
    )


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError):
    logger.info(f"Rejected options on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error="config_error", detail=str(exc)).model_dump(by_alias=True),
    )


def get_engine(options: Optional[Dict[str, Any]]) -> ContradictionEngine:
    """Engine for one request: request options on top of environment defaults"""
    current = get_settings()
    config = build_config(options, base=current.default_analysis_config())
    return ContradictionEngine(config, max_text_chars=current.max_text_chars)


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        version=get_settings().service_version,
        timestamp=datetime.now(),
    )


@app.post(
    "/analyze",
    response_model=AnalysisResult,
    tags=["Analysis"],
    summary="Analyze free text for contradictions",
    responses=ERROR_RESPONSES,
)
def analyze_text(request: AnalyzeTextRequest):
    """
    Analyze free text for contradictions.

    Options mirror ``AnalysisConfig`` (camelCase or snake_case keys).
    """
    return get_engine(request.options).analyze(request.text)


@app.post(
    "/compare",
    response_model=ComparisonResult,
    tags=["Analysis"],
    summary="Compare two documents",
    responses=ERROR_RESPONSES,
)
def compare_texts(request: CompareDocumentsRequest):
    return get_engine(request.options).compare_documents(request.text1, request.text2)


@app.post("/report", tags=["Reports"], responses=ERROR_RESPONSES)
def render_report(request: ReportRequest):
    """Render an analysis (or, with ``text2``, a comparison) in the configured output format."""
    engine = get_engine(request.options)
    if request.text2 is not None:
        result = engine.compare_documents(request.text, request.text2)
    else:
        result = engine.analyze(request.text)

    output_format = engine.config.output_format
    content = ReportGenerator(output_format).generate(result)
    return Response(content=content, media_type=REPORT_MEDIA_TYPES[output_format])
