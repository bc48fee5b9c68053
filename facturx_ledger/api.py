"""
FastAPI application for the ledger builder.

Provides REST API endpoints for:
- Health check
- Building a reconciled ledger from an invoice request
- Validating an invoice request without building
- Listing the validation rules
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import logger, API_HOST, API_PORT, CORS_ORIGINS
from .errors import InvoiceRejected
from .ledger import build_ledger
from .schemas import InvoiceLedger, InvoiceRequest, RequestValidationResult
from .validator import validate_request


# ============================================================================
# FastAPI App Configuration
# ============================================================================

app = FastAPI(
    title="Factur-X Ledger API",
    description="""
    Reconciled line-item ledgers for Factur-X / ZUGFeRD invoices.

    ## Features

    - **Build**: Resolve net prices, apply discounts, split credits and
      reconcile against the declared grand total
    - **Validate**: Check a request and get every error code at once
    """,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns the service status and version information.
    """
    from . import __version__
    return HealthResponse(status="ok", version=__version__)


@app.post(
    "/ledger",
    response_model=InvoiceLedger,
    tags=["Ledger"],
    summary="Build a reconciled ledger",
)
async def create_ledger(request: InvoiceRequest) -> InvoiceLedger:
    """
    Build the reconciled ledger for one invoice request.

    Entries come back in their final order: ordinary items, invoice
    discount, credit items, rounding adjustment. A request failing
    validation is rejected with status 422 and every error code.
    """
    return build_ledger(request)


@app.post(
    "/validate",
    response_model=RequestValidationResult,
    tags=["Validation"],
    summary="Validate an invoice request",
)
async def validate(request: InvoiceRequest) -> RequestValidationResult:
    """Run all request and line rules without building a ledger."""
    result = validate_request(request)
    logger.info(f"Validated invoice {result.invoice_id}: {'valid' if result.is_valid else 'invalid'}")
    return result


@app.get("/rules", tags=["System"])
async def list_rules():
    """List all validation rules applied by the service."""
    from .rules import LINE_RULES, REQUEST_RULES

    return {
        "total_rules": len(REQUEST_RULES) + len(LINE_RULES),
        "request_rules": [
            {"code": rule.code, "description": rule.description} for rule in REQUEST_RULES
        ],
        "line_rules": [
            {"code": rule.code, "description": rule.description} for rule in LINE_RULES
        ],
    }


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(InvoiceRejected)
async def invoice_rejected_handler(request: Request, exc: InvoiceRejected):
    """Reject invalid requests with every error code."""
    return JSONResponse(
        status_code=422,
        content={"detail": "Invoice request rejected", "errors": exc.errors},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions without leaking internals."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# ============================================================================
# Main Entry Point
# ============================================================================

def run_server():
    """Run the API server using uvicorn."""
    import uvicorn
    logger.info(f"Factur-X Ledger API starting on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    run_server()
