"""Error types raised by the speech synthesis gateway."""

from __future__ import annotations


class SpeechGatewayError(Exception):
    """Base error; rendered to clients as ``{"error": message}``."""

    status_code: int = 500
    kind: str = "gateway-error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(SpeechGatewayError):
    """The request did not carry a usable ``text`` field."""

    status_code = 400
    kind = "invalid-input"


class ServerMisconfiguredError(SpeechGatewayError):
    """Required synthesizer paths are missing from the environment."""

    status_code = 500
    kind = "server-misconfigured"


class SynthesisFailedError(SpeechGatewayError):
    """The synthesizer could not be launched or exited unsuccessfully.

    ``returncode`` is ``None`` when the process never started. ``stderr``
    holds whatever diagnostics the synthesizer produced; it is logged but
    never sent back to the caller.
    """

    status_code = 500
    kind = "synthesis-failed"

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


__all__ = [
    "InvalidInputError",
    "ServerMisconfiguredError",
    "SpeechGatewayError",
    "SynthesisFailedError",
]
