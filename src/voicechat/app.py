"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .errors import SpeechGatewayError, SynthesisFailedError
from .routers.tts import router as tts_router

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _configure_logging() -> None:
    """Configure logging based on LOG_LEVEL environment variable."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    log_file = os.getenv("LOG_FILE")
    handlers: list[logging.Handler] = []

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT))
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT))
    handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    logging.getLogger("voicechat").setLevel(log_level)

    # Also capture uvicorn logs
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)


async def _gateway_error_handler(
    request: Request, exc: SpeechGatewayError
) -> JSONResponse:
    if isinstance(exc, SynthesisFailedError):
        logging.getLogger(__name__).warning(
            "Synthesis failed for %s (exit=%s)", request.url.path, exc.returncode
        )
        # Diagnostics stay server-side; callers get a generic failure.
        return JSONResponse({"error": "speech synthesis failed"}, status_code=500)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


def create_app() -> FastAPI:
    # Configure logging first thing
    _configure_logging()

    settings = get_settings()
    if not settings.synthesizer_configured:
        logging.warning(
            "PIPER_MODEL_PATH/PIPER_CONFIG_PATH not set; /api/tts will return 500"
        )

    app = FastAPI(
        title="Voice Chat Backend",
        version="0.1.0",
        description="Text-to-speech gateway around the Piper command-line synthesizer.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SpeechGatewayError, _gateway_error_handler)
    app.include_router(tts_router)

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str | bool]:
        current = get_settings()
        return {
            "status": "ok",
            "synthesizer": current.piper_bin,
            "configured": current.synthesizer_configured,
        }

    return app


__all__ = ["create_app"]
