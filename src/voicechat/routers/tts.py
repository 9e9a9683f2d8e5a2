from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import Response
from pydantic import ValidationError

from ..config import get_settings
from ..errors import InvalidInputError
from ..schemas.tts import ErrorResponse, SynthesisRequest
from ..services.speech_synthesis import PiperSynthesizer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/tts", tags=["tts"])


async def _read_payload(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


@router.post(
    "",
    response_class=Response,
    responses={
        200: {"content": {"audio/wav": {}}, "description": "Synthesized speech"},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def synthesize_speech(request: Request) -> Response:
    """Turn ``{"text": ...}`` into WAV audio via the Piper binary."""

    # The body is validated by hand so that bad input maps to 400, not 422.
    payload = await _read_payload(request)
    try:
        body = SynthesisRequest.model_validate(payload)
    except ValidationError:
        logger.info("Rejected synthesis request without usable text")
        raise InvalidInputError("text required") from None

    synthesizer = PiperSynthesizer.from_settings(get_settings())
    audio = await synthesizer.synthesize(body.text)

    return Response(
        content=audio,
        media_type="audio/wav",
        headers={"Cache-Control": "no-store"},
    )
