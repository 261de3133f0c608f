"""FastAPI entrypoint and HTTP routes."""

from urllib.parse import quote

from fastapi import FastAPI, File, HTTPException, Response, UploadFile, status

from plushie_registry.config.settings import get_settings
from plushie_registry.i18n.messages import translate
from plushie_registry.imgproc.blob import DEFAULT_MEDIA_TYPE, ImageBlob
from plushie_registry.imgproc.normalize import DecodeError, EncodeError, ImageNormalizer


def create_app() -> FastAPI:
    """Initialise the FastAPI application."""

    settings = get_settings()
    normalizer = ImageNormalizer.from_settings(settings)
    app = FastAPI(
        title="Plushie Registry image service",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
    )

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness probes."""

        return {"status": "ok"}

    @app.post("/normalize", tags=["images"])
    async def normalize_image(file: UploadFile = File(...)) -> Response:
        """Return the upload-ready version of ``file``."""

        blob = ImageBlob(
            data=await file.read(),
            media_type=file.content_type or DEFAULT_MEDIA_TYPE,
            name=file.filename or "upload",
        )
        try:
            result = await normalizer.normalize(blob)
        except DecodeError as exc:
            raise HTTPException(
                status_code=422,
                detail=translate(exc),
            ) from exc
        except EncodeError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=translate(exc),
            ) from exc

        return Response(
            content=result.data,
            media_type=result.media_type,
            headers={
                "Content-Disposition": f"inline; filename*=UTF-8''{quote(result.name)}",
                "X-Normalized": "true" if result is not blob else "false",
            },
        )

    return app


app = create_app()
