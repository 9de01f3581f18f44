import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from pymongo.errors import PyMongoError

from rentwheels.api.routers import bookings, cars, users
from rentwheels.core.config import get_settings
from rentwheels.core.exceptions import RentWheelsError, StorageUnavailable
from rentwheels.core.logging_config import setup_logging
from rentwheels.services.auth_service import initialize_firebase
from rentwheels.services.database_service import MongoDBService

# --- Application Setup ---
setup_logging()  # Initialize logging first
settings = get_settings()
app = FastAPI(
    title="Rent Wheels API",
    description="Peer-to-peer car rental marketplace: listings, bookings and user accounts.",
    version="1.0.0",
)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception Handlers ---
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Custom validation error response for clarity
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(RentWheelsError)
async def rentwheels_exception_handler(request: Request, exc: RentWheelsError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=exc.headers,
    )

@app.exception_handler(PyMongoError)
async def storage_exception_handler(request: Request, exc: PyMongoError):
    # Driver messages can leak hosts and query details; keep them in the logs
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "internal server error"},
    )

# --- Routers ---
app.include_router(users.router, tags=["Users"])
app.include_router(cars.router, tags=["Cars"])
app.include_router(bookings.router, tags=["Bookings"])

# --- Root Endpoint ---
@app.get("/", tags=["Root"], summary="API Root", response_class=PlainTextResponse)
async def read_root():
    """Liveness text used by the hosting platform."""
    return "Rent Wheels server is running"

# --- Lifecycle Events ---
@app.on_event("startup")
async def startup_event():
    logger.info("--- Starting FastAPI application ---")
    logger.info(f"Log level set to: {settings.LOG_LEVEL}")
    app.state.firebase_app = initialize_firebase(settings)

    db_service = MongoDBService.from_settings(settings)
    try:
        await db_service.ping()
    except StorageUnavailable:
        # Re-raised so startup aborts and uvicorn exits non-zero
        logger.critical("MongoDB is unreachable at startup, refusing to serve requests.")
        await db_service.close()
        raise
    await db_service.ensure_indexes()
    app.state.db_service = db_service
    if settings.ENFORCE_CAR_OWNERSHIP:
        logger.info("Car updates and deletions are restricted to the listing's provider.")
    logger.info("Application startup complete.")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("--- Shutting down FastAPI application ---")
    db_service = getattr(app.state, "db_service", None)
    if db_service is not None:
        await db_service.close()
