"""FastAPI application entry point"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Setup logging
from billing.logging_config import setup_logging
setup_logging()

load_dotenv()

from billing.config import settings

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="GST taxable invoices: item ledger, tax totals, PDFs and sales reports",
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


@app.on_event("startup")
async def _init_database() -> None:
    """Ensure database tables exist."""
    from billing.models.database import init_db

    await init_db()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy"}


# Import routes
from api.routes import invoices, reports
app.include_router(invoices.router, prefix="/api", tags=["invoices"])
app.include_router(reports.router, prefix="/api", tags=["reports"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
