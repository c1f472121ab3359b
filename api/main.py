"""
MLRClear API — Main Application

POST /analyze   — Analyze promotional content for claims, issues and risk
POST /summary   — Re-analyze with reviewer overrides applied
GET  /patterns  — List the active claim pattern library
GET  /health    — Health check
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Union

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from mlrclear import __version__
from mlrclear.config import settings
from mlrclear.engine import ComplianceEngine, apply_overrides
from mlrclear.engine import engine as default_engine
from mlrclear.errors import AnalysisCancelled, InvalidContextError, UnknownClaimError
from mlrclear.logging import get_logger, setup_logging
from mlrclear.models import ValidationContext
from mlrclear.schemas.analysis import (
    AnalysisResponse,
    AnalyzeRequest,
    ContentAssetModel,
    HealthResponse,
    PatternsResponse,
    SummaryRequest,
    ValidationContextModel,
)
from mlrclear.sections import ContentAsset
from mlrclear.serialize import result_to_dict

logger = get_logger("api")


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("MLRClear API starting",
                extra={"library_version": default_engine.library.version})
    yield
    logger.info("MLRClear API shutting down")


app = FastAPI(
    title="MLRClear API",
    description="Medical/Legal/Regulatory compliance analysis for promotional content",
    version=f"{__version__} (library {default_engine.library.version})",
    lifespan=lifespan,
)

# CORS: set MLRCLEAR_CORS_ORIGINS in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=False,
)


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The analysis could not be completed."},
    )


def get_engine() -> ComplianceEngine:
    return default_engine


def _to_content(content: Union[str, ContentAssetModel]) -> Union[str, ContentAsset]:
    if isinstance(content, str):
        return content
    return ContentAsset(**content.model_dump())


def _to_context(model: ValidationContextModel) -> ValidationContext:
    return ValidationContext(
        brand_id=model.brand_id,
        therapeutic_area=model.therapeutic_area,
        asset_type=model.asset_type,
        target_audience=model.target_audience,
        region=model.region,
        brand_guidelines=model.brand_guidelines,
        target_markets=tuple(model.target_markets),
    )


async def _analyze(request: AnalyzeRequest, engine: ComplianceEngine):
    context = _to_context(request.context)
    try:
        result = await engine.analyze_async(
            _to_content(request.content), context, timeout=request.timeout,
        )
    except InvalidContextError as e:
        raise HTTPException(400, str(e))
    except AnalysisCancelled:
        raise HTTPException(504, "Analysis timed out before completion.")
    return result, context


# ============================================================
# ROUTES
# ============================================================

@app.post("/analyze", response_model=AnalysisResponse)
async def analyze(
    request: AnalyzeRequest,
    engine: ComplianceEngine = Depends(get_engine),
):
    """Analyze content against the pattern library and brand guidelines."""
    start = time.time()
    result, context = await _analyze(request, engine)

    logger.info(
        f"Analyze complete: risk={result.risk_profile.overall_risk.value}",
        extra={
            "brand_id": context.brand_id,
            "claims_count": len(result.claims),
            "issues_count": len(result.issues),
            "overall_risk": result.risk_profile.overall_risk.value,
            "duration_ms": int((time.time() - start) * 1000),
        },
    )
    return result_to_dict(result)


@app.post("/summary", response_model=AnalysisResponse)
async def summary(
    request: SummaryRequest,
    engine: ComplianceEngine = Depends(get_engine),
):
    """
    Analyze, then apply reviewer overrides by claim id.

    Overridden claims count as valid and no longer contribute risk.
    Claim ids are deterministic, so ids from an earlier /analyze call
    of the same content and context are accepted.
    """
    result, context = await _analyze(request, engine)
    try:
        apply_overrides(result, {o.claim_id: o.reason for o in request.overrides}, context)
    except UnknownClaimError as e:
        raise HTTPException(404, str(e.args[0]))
    return result_to_dict(result)


@app.get("/patterns", response_model=PatternsResponse)
async def get_patterns(engine: ComplianceEngine = Depends(get_engine)):
    """Return every rule in the active pattern library, by index."""
    patterns = engine.library.describe()
    return {
        "library_version": engine.library.version,
        "total": len(patterns),
        "patterns": patterns,
    }


@app.get("/health", response_model=HealthResponse)
async def health(engine: ComplianceEngine = Depends(get_engine)):
    """Health check."""
    return {
        "status": "operational",
        "version": __version__,
        "library_version": engine.library.version,
        "patterns": len(engine.library),
    }


# --- Security + Version Headers Middleware ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security and version headers to all responses."""
    response = await call_next(request)
    response.headers["X-MLRClear-Version"] = __version__
    response.headers["X-Pattern-Library-Version"] = default_engine.library.version
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# --- Body Size Limit Middleware ---
_MAX_BODY_BYTES = 1_048_576  # 1 MB


@app.middleware("http")
async def enforce_body_size_limit(request: Request, call_next):
    """Reject requests exceeding 1MB."""
    content_length = request.headers.get("content-length")
    if content_length:
        try:
            if int(content_length) > _MAX_BODY_BYTES:
                return JSONResponse(
                    status_code=413,
                    content={"detail": "Request body too large."},
                )
        except ValueError:
            pass  # Malformed content-length; let the framework handle it

    return await call_next(request)


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host=settings.HOST, port=settings.PORT)
