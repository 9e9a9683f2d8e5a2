"""Piper-backed speech synthesis.

The gateway delegates every request to the external ``piper`` binary:

    text --stdin--> piper --model M --config C --output_file OUT --> OUT.wav

Each call owns a uniquely named output file for exactly as long as it takes
to read it back; ``temporary_output_path`` removes it on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from ..config import Settings
from ..errors import ServerMisconfiguredError, SynthesisFailedError

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "piper-"
OUTPUT_SUFFIX = ".wav"


@contextmanager
def temporary_output_path(directory: Optional[Path] = None) -> Iterator[Path]:
    """Yield a fresh, collision-resistant WAV path and delete it afterwards.

    The file itself is not created; the synthesizer writes it. Removal is
    best-effort: a missing file or an OS error during cleanup is ignored.
    """
    base = Path(directory) if directory is not None else Path(tempfile.gettempdir())
    try:
        base.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Synthesis output directory %s is unusable: %s", base, exc)
        raise ServerMisconfiguredError(
            "TTS_OUTPUT_DIR is not a usable directory"
        ) from exc
    path = base / f"{OUTPUT_PREFIX}{uuid.uuid4().hex}{OUTPUT_SUFFIX}"
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.debug("Failed to remove synthesis output %s: %s", path, exc)


@dataclass(frozen=True)
class PiperSynthesizer:
    """Runs one Piper process per synthesis."""

    model_path: str
    config_path: str
    binary: str = "piper"
    output_dir: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PiperSynthesizer":
        if not settings.synthesizer_configured:
            logger.error("PIPER_MODEL_PATH and PIPER_CONFIG_PATH must both be set")
            raise ServerMisconfiguredError("Set PIPER_MODEL_PATH and PIPER_CONFIG_PATH")
        return cls(
            model_path=str(settings.piper_model_path),
            config_path=str(settings.piper_config_path),
            binary=settings.piper_bin,
            output_dir=settings.tts_output_dir,
        )

    def build_command(self, output_path: Path) -> list[str]:
        return [
            self.binary,
            "--model",
            self.model_path,
            "--config",
            self.config_path,
            "--output_file",
            str(output_path),
        ]

    async def synthesize(self, text: str) -> bytes:
        """Return the WAV bytes Piper produces for ``text``."""

        with temporary_output_path(self.output_dir) as output_path:
            await self._run(text, output_path)
            try:
                audio = await asyncio.to_thread(output_path.read_bytes)
            except FileNotFoundError:
                raise SynthesisFailedError(
                    "piper produced no audio", returncode=0
                ) from None
            except OSError as exc:
                raise SynthesisFailedError(
                    "could not read piper output", returncode=0, stderr=str(exc)
                ) from exc

        logger.info(
            "Synthesized %d characters into %d bytes of audio", len(text), len(audio)
        )
        return audio

    async def _run(self, text: str, output_path: Path) -> None:
        argv = self.build_command(output_path)
        logger.debug("Launching synthesizer argv=%s", argv)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("Failed to launch synthesizer %s: %s", self.binary, exc)
            raise SynthesisFailedError(
                f"failed to launch {self.binary}", stderr=str(exc)
            ) from exc

        # communicate() writes the text, closes stdin and waits for exit.
        _, stderr_bytes = await process.communicate(input=text.encode("utf-8"))
        stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")

        if process.returncode != 0:
            logger.error(
                "Synthesizer exited %s: %s", process.returncode, stderr.strip()
            )
            raise SynthesisFailedError(
                f"piper exited {process.returncode}",
                returncode=process.returncode,
                stderr=stderr,
            )


__all__ = ["PiperSynthesizer", "temporary_output_path"]
