import logging
import time
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cricket_talent.core.config import settings

# Base and engine are needed for table creation
from cricket_talent.db.session import engine, Base

# Import every model so SQLAlchemy "sees" them before creating the tables
from cricket_talent.db.models import _all  # noqa: F401

# Routers
from cricket_talent.api.auth import router as auth_router
from cricket_talent.api.admin import router as admin_router
from cricket_talent.api.access_codes import router as access_codes_router
from cricket_talent.api.parents import router as parents_router
from cricket_talent.api.achievements import router as achievements_router
from cricket_talent.services.errors import CoreError

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG_MODE else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("cricket_talent")

app = FastAPI(
    title="Cricket Talent Platform",
    version="1.0.0",
)

# Create the tables
Base.metadata.create_all(bind=engine)

# Wire the routers
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(access_codes_router)
app.include_router(parents_router)
app.include_router(achievements_router)

# Let the React frontend talk to the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CoreError)
def handle_core_error(request: Request, exc: CoreError):
    # Each error keeps its own code so the UI can tell "ask for a new code" from "contact support"
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "detail": jsonable_encoder(exc.errors()),
            "code": "VALIDATION_FAILED",
        },
    )


@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed = (time.time() - start) * 1000
    if elapsed > 500:
        logger.warning(
            f"⚠️  SLOW REQUEST: {request.method} {request.url.path} "
            f"took {elapsed:.2f}ms - Status: {response.status_code}"
        )
    return response


@app.get("/")
def read_root():
    return {"message": "Cricket Talent API up and running 🏏"}
