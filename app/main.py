# /app/main.py

# --- Core FastAPI Imports ---
import os
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

# --- Application-specific Router Imports ---
from .routers import (
    classes_router,
    students_router,
    reports_router,
    compare_router,
    state_router,
)

# --- Service Imports for Startup Logic ---
from .db.database import create_tables
from .services.database_service import DatabaseService
from .services.state_controller import ApplicationStateController

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Runs ONCE when the application starts: the state is loaded before any
    # request can mutate (and therefore save) it.
    create_tables()
    controller = ApplicationStateController(DatabaseService())
    await controller.load()
    app.state.controller = controller
    yield
    logger.info("Story Grader backend shutting down.")

# --- FastAPI Application Instance Creation ---
app = FastAPI(
    title="Story Grader Backend API",
    description="Handwritten story evaluation for classrooms, powered by Gemini.",
    version="2.0.0",
    lifespan=lifespan
)

# --- Middleware Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- API Router Inclusion ---
app.include_router(classes_router.router, prefix="/api/classes", tags=["Classes"])
app.include_router(students_router.router, prefix="/api/students", tags=["Students"])
app.include_router(reports_router.router, prefix="/api/reports", tags=["Archived Reports"])
app.include_router(compare_router.router, prefix="/api/compare", tags=["Comparison"])
app.include_router(state_router.router, prefix="/api/state", tags=["Backup & Settings"])

# --- Root / Health Check Endpoint ---
@app.get("/", tags=["Health Check"])
async def read_root():
    """A simple health check endpoint to confirm the API is online."""
    return {"status": "Story Grader backend is running!", "version": app.version}
