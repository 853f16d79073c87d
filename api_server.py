"""FastAPI REST API server for Email Reminder Service.

Endpoints for listing and adding tracked emails, and the acknowledgment link
that reminder emails point to. The reminder sweep runs alongside the API and
is started and stopped with the application lifespan.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Depends, HTTPException, Body, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy.orm import Session

import crud
import schemas
import database
from background_worker import build_sweep, worker_loop
from config import settings
from exceptions import ValidationError, LimitExceeded, DuplicateKey, NotFound
from logger_config import setup_logger

logger = setup_logger(__name__, 'api.log')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the reminder sweep with the app and stop it on shutdown."""
    worker_task = None
    stop_event = asyncio.Event()

    if settings.WORKER_ENABLED:
        app.state.sweep = build_sweep(settings)
        worker_task = asyncio.create_task(
            worker_loop(app.state.sweep, settings.WORKER_CHECK_INTERVAL, stop_event),
            name="reminder-worker"
        )
        app.state.worker_task = worker_task
    else:
        logger.warning("Reminder worker is disabled in configuration")

    try:
        yield
    finally:
        if worker_task is not None:
            stop_event.set()
            await worker_task


# Create FastAPI application
app = FastAPI(
    title="Email Reminder Service API",
    description="Tracks up to three email addresses and reminds members about unacknowledged ones",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Answer unusable add-email bodies (bad JSON, wrong types) with 400."""
    if request.method == "POST" and request.url.path == "/emails":
        logger.info(f"Rejected add-email body: {exc.errors()}")
        return JSONResponse(status_code=400, content={"detail": "Email is required"})
    return await request_validation_exception_handler(request, exc)


@app.get("/")
def root():
    """Root endpoint - service information"""
    return {
        "service": "Email Reminder Service API",
        "version": "1.0.0",
        "status": "healthy",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "emails": "/emails"
        }
    }


@app.get("/health")
def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "email_reminder_service",
        "database": settings.DATABASE_URL.split("://")[0],
        "worker_enabled": settings.WORKER_ENABLED
    }


@app.get("/emails", response_model=List[schemas.TrackedEmailResponse])
def list_emails(db: Session = Depends(database.get_db)):
    """List all tracked emails, newest first."""
    try:
        records = crud.list_tracked_emails(db)
    except Exception as e:
        logger.error(f"Error fetching emails: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error fetching emails")
    return [schemas.TrackedEmailResponse.from_record(r) for r in records]


@app.post("/emails", response_model=schemas.TrackedEmailCreated, status_code=201)
def add_email(
    payload: schemas.TrackedEmailCreate = Body(default=None),
    db: Session = Depends(database.get_db)
):
    """Add a tracked email.

    Request body example:
    ```json
    {"address": "ops@example.com"}
    ```

    At most three emails can be tracked and each address only once.
    """
    address = payload.address if payload else None
    try:
        record = crud.create_tracked_email(db, address)
    except (ValidationError, LimitExceeded, DuplicateKey) as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"Error adding email: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error adding email")

    return {
        "message": "Email added successfully",
        "email": schemas.TrackedEmailResponse.from_record(record)
    }


@app.get("/acknowledge/{record_id}", response_class=HTMLResponse)
def acknowledge_email(record_id: str, db: Session = Depends(database.get_db)):
    """Mark a tracked email as seen (link clicked from a reminder email).

    Visiting the link again still succeeds.
    """
    try:
        crud.acknowledge_tracked_email(db, record_id)
    except NotFound:
        return HTMLResponse("<h1>Email entry not found</h1>", status_code=404)
    except Exception as e:
        logger.error(f"Error acknowledging email {record_id}: {str(e)}", exc_info=True)
        return HTMLResponse("<h1>Error updating status</h1>", status_code=500)

    return HTMLResponse("<h1>Acknowledged! notifications stopped.</h1>")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="info"
    )
