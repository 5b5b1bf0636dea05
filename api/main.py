"""FastAPI application entry point"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
import logging

# Setup logging
from docpricing.logging_config import setup_logging
setup_logging()

load_dotenv()

from docpricing.config import settings
from docpricing.models.database import create_tables
from docpricing.pricing.errors import ValidationError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="DocPricing API",
    description="Totals, tax and discount engine for quotations, purchase orders and sales invoices",
    version=settings.APP_VERSION,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def _pricing_validation_error(request: Request, exc: ValidationError):
    """Invalid pricing input is the caller's to fix: 422 naming the line and field"""
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"detail": exc.to_dict()})


@app.on_event("startup")
async def _init_database() -> None:
    """Ensure database tables exist"""
    await create_tables()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "DocPricing API",
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy"}


# Import routes
from api.routes import pricing, documents
app.include_router(pricing.router, prefix="/api", tags=["pricing"])
app.include_router(documents.router, prefix="/api", tags=["documents"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
