"""
Pricing Decisions - FastAPI Application

Main entry point for the pricing decisions backend.

Lifecycle:
- Website → context resolution → verdict (Decision v1)
- Context edits / regeneration → new context / verdict versions
- Status machine: pending → approved / rejected / deferred → completed
- Scenario chosen → MeasurableOutcome seeded with KPIs
- Scenario comparison → cached deltas
"""
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import decisions_router, outcomes_router
from .database import init_db

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    logger.info("Database initialized")
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Pricing Decisions",
    description="""
    Pricing Decisions - Decision Lifecycle API

    Tracks pricing decisions from first verdict to measured outcome.

    ## Key Principles
    - Context and verdict histories are append-only
    - Status changes follow a fixed transition table
    - Outcome corrections supersede, never delete
    - Scenario deltas are cached, never authoritative
    """,
    version="2.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(decisions_router)
app.include_router(outcomes_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "2.0.0"}


# For running with: python -m app.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
