from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import HTTPException
from dotenv import load_dotenv
import logging
import time
import uvicorn

# Load environment variables from .env file
load_dotenv()

from optrip.core.logging import setup_logging
from optrip.core.settings import get_settings
from optrip.api.v1 import maps, trips

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title="OpTrip API", version="1.0.0")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests_middleware(request: Request, call_next):
    """Log incoming requests, their processing time, and unhandled errors."""
    start_time = time.time()
    method = request.method
    path = request.url.path

    logger.info(f"Request: {method} {path}")

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"Error: {method} {path} - Exception: {str(e)} - Duration: {process_time:.4f}s",
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error. Please check logs for more details."},
        )

    process_time = time.time() - start_time
    logger.info(
        f"Response: {method} {path} - Status: {response.status_code} - Duration: {process_time:.4f}s"
    )
    return response


# Include routers
app.include_router(trips.router, prefix="/api/v1/trips", tags=["trips"])
app.include_router(maps.router, prefix="/api/v1/maps", tags=["maps"])


@app.get("/api/v1", summary="API Welcome", tags=["General"])
async def api_welcome_message():
    """Provides a welcome message and basic API information."""
    return {
        "message": "Welcome to OpTrip API v1.0",
        "version": app.version,
        "documentation_url": app.docs_url,
        "openapi_url": app.openapi_url,
    }


@app.get("/health", tags=["General"])
async def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}


@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code >= 500:
        logger.error(f"HTTPException {exc.status_code} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


if __name__ == "__main__":
    logger.info(f"Starting server on {settings.HOST}:{settings.PORT}, environment: {settings.ENVIRONMENT}")

    uvicorn.run(
        "optrip.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.ENVIRONMENT == "development",
    )
