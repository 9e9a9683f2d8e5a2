"""CLI entrypoint for running the FastAPI app with uvicorn."""

from __future__ import annotations

import uvicorn

from .config import get_settings


def main() -> None:
    """Run the ASGI server."""

    settings = get_settings()
    uvicorn.run(
        "voicechat.app:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        reload=False,
    )


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
