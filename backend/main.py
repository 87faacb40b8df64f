"""
Focus Flow – Backend API
Start with: uvicorn main:app --reload
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from db import init_db
from logging_config import setup_logging
from routers import sessions, todos

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Focus Flow API (database: %s)", settings.database_url.split("://")[0])
    init_db()
    yield


app = FastAPI(
    title="Focus Flow API",
    description="Focus sessions, productivity stats and an ordered todo list",
    version="0.2.0",
    lifespan=lifespan,
)

# Allow frontend (Next.js) to call this API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions.router)
app.include_router(todos.router)


@app.get("/health")
def health():
    """Check that the API is running. Frontend can call this first."""
    return {"status": "ok", "message": "Focus Flow API is running"}


@app.get("/")
def root():
    """Root welcome."""
    return {"app": "Focus Flow", "docs": "/docs"}
