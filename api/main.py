"""
Shop Records API - Main Application.

FastAPI application with CORS enabled for frontend communication.
Service errors are mapped to HTTP responses here so routers stay thin.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from config import configure_logging
from services.errors import (
    InsufficientStockError,
    PurchaseWorkflowError,
    RecordNotFoundError,
    ValidationError,
)

configure_logging()
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Shop Records API",
    description="REST API for customers, products, freebies and purchases of a small shop",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# TODO: restrict allow_origins to the deployed frontend URL
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Error Mapping
# ============================================================================

@app.exception_handler(ValidationError)
def handle_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(RecordNotFoundError)
def handle_not_found(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InsufficientStockError)
def handle_insufficient_stock(request: Request, exc: InsufficientStockError):
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "product_id": exc.product_id,
            "current_qty": exc.current_qty,
            "change": exc.change,
        },
    )


@app.exception_handler(PurchaseWorkflowError)
def handle_purchase_workflow_error(request: Request, exc: PurchaseWorkflowError):
    logger.error(
        "Purchase workflow failed",
        extra={"step": exc.step, "purchase_id": exc.purchase_id, "compensated": exc.compensated},
    )
    cause = exc.__cause__
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "step": exc.step,
            "purchase_id": exc.purchase_id,
            "compensated": exc.compensated,
            "compensation_errors": exc.compensation_errors,
            "cause": str(cause) if cause is not None else None,
        },
    )


@app.exception_handler(ValueError)
def handle_value_error(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "shop-records-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Shop Records API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import analytics, auth, customers, freebies, products, purchases

app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(customers.router, prefix="/api/v1", tags=["Customers"])
app.include_router(products.router, prefix="/api/v1", tags=["Products"])
app.include_router(freebies.router, prefix="/api/v1", tags=["Freebies"])
app.include_router(purchases.router, prefix="/api/v1", tags=["Purchases"])
app.include_router(analytics.router, prefix="/api/v1", tags=["Analytics"])
