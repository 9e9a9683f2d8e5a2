"""Fetching synthesized speech from the gateway and playing it locally.

Every playback gets its own ``PlaybackSession``: the session owns the clip's
temporary file and the player process, and releases both when the ``async
with`` block ends. Nothing is shared between playbacks.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Sequence

import httpx

from .session import ChatSession, Message

logger = logging.getLogger(__name__)

PLAYER_ENV_VAR = "VOICECHAT_PLAYER"

_PLAYER_CANDIDATES: tuple[tuple[str, ...], ...] = (
    ("paplay",),
    ("aplay", "-q"),
    ("afplay",),
    ("ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"),
)


class PlaybackError(RuntimeError):
    """Raised when a clip cannot be decoded or played."""


def default_player_command() -> Optional[list[str]]:
    """Return the audio player argv prefix, or ``None`` if none is available."""
    override = os.environ.get(PLAYER_ENV_VAR, "").strip()
    if override:
        return shlex.split(override)
    for candidate in _PLAYER_CANDIDATES:
        if shutil.which(candidate[0]):
            return list(candidate)
    return None


class GatewayClient:
    """HTTP client for the ``/api/tts`` endpoint."""

    def __init__(
        self,
        server_url: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def synthesize(self, text: str) -> bytes:
        """Return WAV bytes for ``text``; raises ``httpx.HTTPError`` on failure."""
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            resp = await client.post(f"{self.server_url}/api/tts", json={"text": text})
            resp.raise_for_status()
            return resp.content


class PlaybackSession:
    """One synthesized clip, materialised on disk for the lifetime of the session."""

    def __init__(self, audio: bytes, player_command: Optional[Sequence[str]]) -> None:
        self._audio = audio
        self._player_command = list(player_command) if player_command else None
        self._path: Optional[Path] = None
        self._process: Optional[asyncio.subprocess.Process] = None

    @property
    def path(self) -> Optional[Path]:
        return self._path

    async def __aenter__(self) -> "PlaybackSession":
        if not self._audio.startswith(b"RIFF"):
            raise PlaybackError("response is not a WAV stream")
        fd, name = tempfile.mkstemp(prefix="voicechat-", suffix=".wav")
        with os.fdopen(fd, "wb") as handle:
            handle.write(self._audio)
        self._path = Path(name)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        process = self._process
        if process is not None and process.returncode is None:
            process.kill()
            await process.wait()
        self._process = None
        if self._path is not None:
            try:
                self._path.unlink(missing_ok=True)
            except OSError as err:
                logger.debug("Failed to remove playback file %s: %s", self._path, err)
            self._path = None

    async def play(self) -> None:
        """Play the clip to completion."""
        if self._path is None:
            raise PlaybackError("playback session is not open")
        if not self._player_command:
            raise PlaybackError("no audio player available")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._player_command,
                str(self._path),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as err:
            raise PlaybackError(f"failed to launch {self._player_command[0]}") from err

        _, stderr = await self._process.communicate()
        returncode = self._process.returncode
        self._process = None
        if returncode != 0:
            detail = (stderr or b"").decode("utf-8", errors="replace").strip()
            raise PlaybackError(f"player exited {returncode}: {detail}")


class MessagePlayer:
    """Plays chat messages aloud, one session per playback."""

    def __init__(
        self,
        chat: ChatSession,
        client: GatewayClient,
        player_command: Optional[Sequence[str]] = None,
    ) -> None:
        self._chat = chat
        self._client = client
        self._player_command = (
            list(player_command) if player_command else default_player_command()
        )

    async def listen(self, message: Message) -> bool:
        """Synthesize and play ``message``.

        Returns ``True`` if the clip played through. Failures leave the
        message idle again and return ``False``.
        """
        if not self._chat.begin_playback(message.id):
            return False
        try:
            audio = await self._client.synthesize(message.text)
            async with PlaybackSession(audio, self._player_command) as playback:
                await playback.play()
            return True
        except (httpx.HTTPError, PlaybackError, OSError) as exc:
            logger.debug("Playback of message %s failed: %s", message.id, exc)
            return False
        finally:
            self._chat.end_playback(message.id)


__all__ = [
    "GatewayClient",
    "MessagePlayer",
    "PLAYER_ENV_VAR",
    "PlaybackError",
    "PlaybackSession",
    "default_player_command",
]
