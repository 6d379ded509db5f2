import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.config import get_settings
from app.routers import auth, uploads, videos
from app.services.uploads import assets_dir

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Video Upload API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Log every error response and render it as {"error": message}."""
    cause = getattr(exc, "cause", None)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("%s %s -> %s %s: %s", request.method, request.url.path, exc.status_code, exc.detail, cause)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("%s %s -> 400 invalid request: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


app.include_router(auth.router)
app.include_router(videos.router)
app.include_router(uploads.router)

ASSETS_DIR = assets_dir(settings)
ASSETS_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/assets", StaticFiles(directory=ASSETS_DIR), name="assets")


@app.get("/")
def root():
    return {"message": "Video Upload API", "docs": "/docs"}
