# jobboard/main.py
import os
import time

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db, init_db
from .errors import AppError, register_exception_handlers
from .logging_config import get_logger
from .routers import auth, jobs, users

logger = get_logger(__name__)

app = FastAPI(title=settings.APP_NAME)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGIN.split(",") if o.strip()],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


# Initialize database on startup
@app.on_event("startup")
def startup_event():
    if settings.uses_default_secret:
        logger.warning("JWT_SECRET is not set; using the development fallback secret")
    init_db()


app.include_router(auth.router)
app.include_router(jobs.router)
app.include_router(users.router)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/health", tags=["monitoring"])
def health_check(db: Session = Depends(get_db)):
    """
    Checks if the application is healthy, including the database connection.
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check could not reach the database")
        raise AppError("Database connection error", status_code=503)
    return {"status": "ok", "database": "ok", "environment": settings.ENVIRONMENT}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("jobboard.main:app", host=settings.HOST, port=settings.PORT)
