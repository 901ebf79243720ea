"""
Formsheets - FastAPI Backend

Website form submissions written straight into Google Sheets.

Run Instructions:
-----------------
1. Install dependencies:
   pip install -e .

2. Configure the target spreadsheet and service account:
   export GOOGLE_SHEET_ID=...
   export GOOGLE_SERVICE_ACCOUNT_JSON="$(cat service-account.json)"

3. Run the app locally with uvicorn:
   uvicorn main:app --host 0.0.0.0 --port 8000 --reload

4. Submit a form:
   curl -X POST http://localhost:8000/submit-to-sheets \
     -H "Content-Type: application/json" \
     -d '{"tableName": "contact_submissions", "data": {"name": "Asha"}}'
"""
import os
import time

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from formsheets.api import submissions_router
from formsheets.di.container import container
from formsheets.services.errors import ConfigurationError, FormSheetsError, status_code_for
from formsheets.services.logging import log_error, log_request, logger
from formsheets.services.metrics import get_metrics, record_error, record_request
from formsheets.services.rate_limit import RateLimitMiddleware

VERSION = "1.0.0"

app = FastAPI(
    title="Formsheets API",
    description="""
    Formsheets API - form submissions to Google Sheets

    Every accepted submission becomes one row in the spreadsheet tab mapped to
    its `tableName`. Tabs and header rows are created on first use.

    ## Rate Limiting
    Default: 5 requests per 60 seconds per client IP.
    Configure via `RATE_LIMIT_REQUESTS` and `RATE_LIMIT_WINDOW` environment variables.
    """,
    version=VERSION,
)

app.include_router(submissions_router)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log requests and record metrics."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_id = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            log_request(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=duration_ms,
                client_id=client_id
            )

            record_request(request.method, request.url.path, response.status_code, duration_ms)

            if response.status_code >= 400:
                record_error(f"http_{response.status_code}", request.url.path)

            return response
        except Exception as e:
            record_error("exception", request.url.path)
            log_error("request_exception", str(e), {"path": request.url.path, "method": request.method})
            raise


# Add middleware in order (last added is first executed)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RateLimitMiddleware)


@app.exception_handler(FormSheetsError)
async def formsheets_exception_handler(request: Request, exc: FormSheetsError):
    """Handle all FormSheetsErrors with structured responses."""
    log_error(exc.code.value, exc.message, {"path": request.url.path, **exc.context})
    return JSONResponse(
        status_code=status_code_for(exc),
        content=exc.to_dict()
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed submission bodies get the same envelope as other errors."""
    fields = [".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request",
            "details": "Invalid or missing fields: " + ", ".join(f for f in fields if f),
        }
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions with a structured response."""
    log_error("unhandled_exception", str(exc), {"path": request.url.path, "method": request.method}, exc)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
        }
    )


allowed_origins = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Create the audit table and refuse to start without Sheets config."""
    container.sync_store().init_db()
    try:
        container.ingestion()
    except ConfigurationError as exc:
        log_error(exc.code.value, exc.message, {"detail": exc.detail, **exc.context})
        raise
    logger.info("Formsheets ready, writing to spreadsheet %s", container.config().spreadsheet_id)


@app.get(
    "/health",
    tags=["System"],
    summary="Health Check",
    description="Check API health and version",
)
async def health():
    """No authentication required."""
    return {
        "status": "healthy",
        "service": "formsheets",
        "version": VERSION,
    }


@app.get(
    "/metrics",
    tags=["System"],
    summary="Get Metrics",
    description="Get API performance and usage metrics",
)
async def metrics_endpoint():
    """
    Get API metrics.

    Returns:
    - Uptime information
    - Request statistics by endpoint and status
    - Error statistics
    - Ingestions by form type and outcome
    """
    return get_metrics()
