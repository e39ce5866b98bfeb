# FastAPI application

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from utils.config import Config
from utils.logger import setup_logging
from utils.response import create_error_response
from api.middleware import setup_middleware
from db.errors import EngineError
from db.manager import DatabaseManager
from db.schema import create_tables

from api.auth import auth_router
from api.food_items import food_items_router
from api.claims import claims_router
from api.donations import donations_router
from api.stats import stats_router

config = Config()

setup_logging(config.config)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Campus Food Rescue API starting")
    logger.info(f"Environment: {config.env}")
    logger.info(f"Debug mode: {config.config['app']['debug']}")

    db_config = config.get_database_config()
    with DatabaseManager(db_config["path"], busy_timeout=db_config["busy_timeout_seconds"]) as db:
        create_tables(db)

    yield

    logger.info("Campus Food Rescue API shutting down")


app = FastAPI(
    title=config.config['app']['name'],
    version=config.config['app']['version'],
    description=config.config['app']['description'],
    debug=config.config['app']['debug'],
    lifespan=lifespan
)

setup_middleware(app, config.config)

app.include_router(auth_router, tags=["auth"])
app.include_router(food_items_router, tags=["food items"])
app.include_router(claims_router, tags=["food claims"])
app.include_router(donations_router, tags=["donations"])
app.include_router(stats_router, tags=["stats"])


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    """Expected business failures: status comes from the error kind"""
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.kind}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path}: {exc.kind}: {exc.message}")

    return JSONResponse(
        status_code=exc.http_status,
        content=create_error_response(exc.message, data={"kind": exc.kind})
    )


@app.exception_handler(PermissionError)
async def permission_error_handler(request: Request, exc: PermissionError):
    return JSONResponse(
        status_code=403,
        content=create_error_response(str(exc), data={"kind": "forbidden"})
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content=create_error_response(str(exc), data={"kind": "invalid_argument"})
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=create_error_response("Internal server error")
    )


@app.get("/")
async def root():
    return {
        "message": "Campus Food Rescue API is running",
        "version": config.config['app']['version'],
        "status": "healthy"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": config.config['app']['version'],
        "environment": config.env
    }


if __name__ == "__main__":
    import uvicorn

    server_config = config.config['server']

    uvicorn.run(
        "api.main:app",
        host=server_config.get('host', '127.0.0.1'),
        port=server_config.get('port', 8000),
        reload=server_config.get('reload', False),
        workers=1 if server_config.get('reload', False) else server_config.get('workers', 1),
        log_level="debug" if config.config['app']['debug'] else "info"
    )
