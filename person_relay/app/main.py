import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from person_relay.adapters.detection_client import DetectionError
from person_relay.adapters.image_store import StorageError
from person_relay.app.factory import build_service
from person_relay.app.settings import get_settings
from person_relay.services.relay_service import RelayService


logger = logging.getLogger(__name__)
settings = get_settings()

relay_service = build_service(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        relay_service.detector.close()
        relay_service.notifier.close()
        relay_service.weather.close()


app = FastAPI(title="Person Relay", version="0.1.0", lifespan=lifespan)

app.mount(
    "/image",
    StaticFiles(directory=settings.images_dir, check_dir=False),
    name="images",
)


CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type"]

# The camera dashboard calls the relay from another origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
)


# Registered after CORSMiddleware so it wraps it: every OPTIONS request gets 200.
@app.middleware("http")
async def short_circuit_options(request: Request, call_next):
    if request.method == "OPTIONS":
        return PlainTextResponse(
            "",
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
                "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
            },
        )
    return await call_next(request)


@app.exception_handler(StarletteHTTPException)
async def plain_text_http_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def plain_text_validation_error(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    return PlainTextResponse("Error reading file", status_code=400)


def get_service() -> RelayService:
    return relay_service


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/upload", response_class=PlainTextResponse)
def upload(
    request: Request,
    file: Optional[UploadFile] = File(None),
    service: RelayService = Depends(get_service),
) -> str:
    client = request.client.host if request.client else "unknown"
    logger.info("Received request: %s %s from %s", request.method, request.url.path, client)

    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="Error reading file")

    try:
        result = service.handle_upload(file.filename, file.file)
    except StorageError:
        logger.exception("Saving upload %s failed", file.filename)
        raise HTTPException(status_code=500, detail="Error saving file")
    except DetectionError as exc:
        logger.error("Object detection failed for %s: %s", file.filename, exc)
        raise HTTPException(status_code=500, detail="Error detecting objects")
    finally:
        file.file.close()

    logger.debug("Upload %s processed (detected=%s)", result.stored_name, result.detected)
    return "Successfully processed"


@app.get("/detection")
def detection(service: RelayService = Depends(get_service)) -> list[dict]:
    return service.recent_detections()
