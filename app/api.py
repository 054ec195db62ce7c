import logging
from contextlib import asynccontextmanager

import psycopg
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.routes import admin, ads, auth, listings, payments
from core.db.schema import init_db
from core.errors import (
    AppError,
    MarketRecalculationError,
    NotFound,
    PaymentError,
    PersistenceError,
    ValidationError,
)

# Ensure .env values are loaded even if uvicorn is launched without `dotenv run`.
# Use override=True so editing `.env` (and restarting uvicorn) reliably takes effect even if
# older values exist in the environment from a previous shell/session.
load_dotenv(override=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("hsc.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="HSC Classifieds", lifespan=lifespan)


app.include_router(auth.router)
app.include_router(listings.router)
app.include_router(ads.router)
app.include_router(payments.router)
app.include_router(admin.router)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault(
        "Content-Security-Policy",
        "default-src 'self'; img-src 'self' data: https:; style-src 'self' 'unsafe-inline'; "
        "script-src 'self' https://js.stripe.com; frame-src https://js.stripe.com https://checkout.stripe.com; "
        "font-src 'self' data:; connect-src 'self';",
    )
    return response


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    response = _error(str(exc.detail), exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(message, 400)


@app.exception_handler(ValidationError)
async def validation_error(request: Request, exc: ValidationError):
    return _error(exc.message, 400)


@app.exception_handler(NotFound)
async def not_found(request: Request, exc: NotFound):
    return _error(exc.message, 404)


@app.exception_handler(PaymentError)
async def payment_error(request: Request, exc: PaymentError):
    return _error(exc.message, 502 if exc.upstream else 400)


@app.exception_handler(MarketRecalculationError)
async def market_unavailable(request: Request, exc: MarketRecalculationError):
    return _error(MarketRecalculationError.public_message, 503)


@app.exception_handler(PersistenceError)
async def persistence_error(request: Request, exc: PersistenceError):
    return _error(PersistenceError.public_message, 500)


@app.exception_handler(AppError)
async def app_error(request: Request, exc: AppError):
    return _error(AppError.public_message, 500)


@app.exception_handler(psycopg.Error)
async def database_error(request: Request, exc: psycopg.Error):
    log.error("Unhandled database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(PersistenceError.public_message, 500)


@app.get("/")
def health():
    return {"status": "ok", "service": "hsc-classifieds"}
