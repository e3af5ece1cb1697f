import os
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from recipe_api.utils.db import init_db
from recipe_api.utils.logging import logger
from recipe_api.routes import auth, recipe
from recipe_api.scheduler import scheduler
from recipe_api.settings import settings
import bugsnag
from bugsnag.asgi import BugsnagMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting recipe API with database at {settings.database_path}")

    await init_db()
    scheduler.start()

    yield

    logger.info("Stopping recipe API")
    scheduler.shutdown()


if settings.bugsnag_api_key:
    bugsnag.configure(
        api_key=settings.bugsnag_api_key,
        project_root=os.path.dirname(os.path.abspath(__file__)),
        release_stage=settings.env or "development",
        notify_release_stages=["development", "staging", "production"],
        auto_capture_sessions=True,
    )


app = FastAPI(title="Recipe Box API", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    route = f"{request.method} {request.url.path}"
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"{route} raised {type(e).__name__} after "
            f"{time.perf_counter() - started:.4f}s",
            exc_info=True,
        )
        raise

    logger.info(
        f"{route} -> {response.status_code} in {time.perf_counter() - started:.4f}s"
    )
    return response


if settings.bugsnag_api_key:
    app.add_middleware(BugsnagMiddleware)

    @app.middleware("http")
    async def bugsnag_request_middleware(request: Request, call_next):
        # Headers are left out: they carry bearer tokens and the refresh cookie
        bugsnag.configure_request(
            context=f"{request.method} {request.url.path}",
            request_data={
                "url": str(request.url),
                "method": request.method,
                "query_params": dict(request.query_params),
                "path_params": request.path_params,
            },
        )
        return await call_next(request)


# The refresh cookie only travels cross-site with credentials enabled, which
# rules out a wildcard origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_origin_regex=settings.allowed_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth.router, tags=["auth"])
app.include_router(recipe.router, prefix="/recipes", tags=["recipes"])


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return _error_response(500, "An unexpected error occurred")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(
        ".".join(str(part) for part in error["loc"] if part != "body")
        for error in exc.errors()
    )
    logger.warning(f"Rejected {request.method} {request.url.path}: {fields}")
    return _error_response(400, f"Invalid request: {fields or 'malformed body'}")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return _error_response(exc.status_code, str(exc.detail))


@app.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    return {"status": "ok"}
