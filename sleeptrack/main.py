from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sleeptrack.core.config import configure_logging
from sleeptrack.core.db import database
from sleeptrack.api.v1.health import router as health_router
from sleeptrack.api.v1.auth import router as auth_router
from sleeptrack.api.v1.sleep import router as sleep_router
from sleeptrack.api.v1.productivity import router as productivity_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    database.create_all()
    yield


app = FastAPI(title="sleeptrack", version="1.0.0", lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse({"error": message}, status_code=400)


app.include_router(health_router, prefix="/v1")
app.include_router(auth_router, prefix="/v1")
app.include_router(sleep_router, prefix="/v1")
app.include_router(productivity_router, prefix="/v1")
