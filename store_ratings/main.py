from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from store_ratings.api.routes import admin as admin_router
from store_ratings.api.routes import auth as auth_router
from store_ratings.api.routes import store_owner as store_owner_router
from store_ratings.api.routes import stores as stores_router
from store_ratings.core.config import settings
from store_ratings.core.exceptions import AppError, Internal
from store_ratings.core.logger import setup_logger
from store_ratings.db import models  # noqa: F401  registers tables on Base.metadata
from store_ratings.db.base import Base, engine

logger = setup_logger("store_ratings.main")

app = FastAPI(
    title="Store Ratings API",
    description="Role based store rating platform",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


# --------------------------------------------------
# Error rendering
# --------------------------------------------------
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"detail": "Validation failed", "errors": errors}),
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("%s %s hit a constraint: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content={"detail": "Conflict with existing data"})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    # IntegrityError has its own handler; other storage faults surface as Internal
    logger.error("%s %s storage fault", request.method, request.url.path, exc_info=exc)
    return await app_error_handler(request, Internal())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    err = Internal()
    return JSONResponse(status_code=err.status_code, content={"detail": err.message})


@app.get("/")
def root():
    return {"message": "Store Ratings API running"}


app.include_router(auth_router.router, prefix="/api/auth")
app.include_router(stores_router.router, prefix="/api")
app.include_router(store_owner_router.router, prefix="/api")
app.include_router(admin_router.router, prefix="/api")
