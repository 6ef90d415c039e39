from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import uvicorn
from sqlalchemy import text

import guestlist.models  # noqa: F401  (registers tables)
from guestlist.api.routes import auth, calendar_import, gigs, guests, health, signup
from guestlist.core.config import settings
from guestlist.core.errors import GuestListError
from guestlist.core.logging import setup_logging
from guestlist.db.base import Base
from guestlist.db.session import SessionLocal, engine

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    # Startup
    logger.info("🚀 Starting Guest List service...")

    # Create database tables
    logger.info("📦 Creating database tables...")
    Base.metadata.create_all(bind=engine)

    # Test database connection
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        raise
    finally:
        db.close()

    yield

    # Shutdown
    logger.info("👋 Shutting down...")

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Capacity-limited guest lists for gigs with public sign-up links",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GuestListError)
async def guestlist_error_handler(request: Request, exc: GuestListError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Include routers
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["Health"])
app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Auth"])
app.include_router(calendar_import.router, prefix=settings.API_PREFIX, tags=["Import"])
app.include_router(gigs.router, prefix=settings.API_PREFIX, tags=["Gigs"])
app.include_router(guests.router, prefix=settings.API_PREFIX, tags=["Guests"])
app.include_router(signup.router, prefix=settings.API_PREFIX, tags=["Sign-up"])

@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "health": "/api/health",
            "login": "/api/auth/login",
            "gigs": "/api/gigs",
            "import": "/api/gigs/import",
            "signup": "/api/gigs/{slug}/guests",
            "csv": "/api/gigs/{slug}/csv"
        }
    }

def run():
    uvicorn.run("guestlist.main:app", host="0.0.0.0", port=8000, reload=False)

if __name__ == "__main__":
    run()
