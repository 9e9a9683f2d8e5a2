#!/usr/bin/env python3
"""Shell Chat CLI - Terminal chat surface for the voicechat backend.

Messages live only in this process. Any message can be read aloud through the
backend's /api/tts endpoint.
"""

import argparse
import asyncio
import os
import shlex
import signal
import sys
from typing import Optional

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.style import Style
from rich.text import Text

from voicechat.chat import (
    Author,
    CallDialog,
    ChatSession,
    GatewayClient,
    Message,
    MessagePlayer,
)

# Styles
USER_STYLE = Style(color="bright_blue", bold=True)
PEER_STYLE = Style(color="bright_green")
ERROR_STYLE = Style(color="red", bold=True)
INFO_STYLE = Style(color="cyan")


class ShellChat:
    """Terminal chat client for the voicechat backend."""

    def __init__(self, server_url: str, player: Optional[list[str]] = None):
        self.server_url = server_url.rstrip("/")
        self.console = Console()
        self.chat = ChatSession()
        self.dialog = CallDialog()
        self.player = MessagePlayer(self.chat, GatewayClient(self.server_url), player)
        self.running = True

    async def _check_health(self) -> bool:
        """Check if backend is reachable."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self.server_url}/health")
                if resp.status_code == 200:
                    data = resp.json()
                    if not data.get("configured", False):
                        self.console.print(
                            "[dim]Backend reachable, but speech synthesis is not configured.[/dim]"
                        )
                    else:
                        self.console.print(
                            f"[dim]Connected to backend. Synthesizer: {data.get('synthesizer', '?')}[/dim]"
                        )
                    return True
        except Exception as e:
            self.console.print(
                f"[error]Cannot connect to backend: {e}[/error]", style=ERROR_STYLE
            )
        return False

    async def _run_call_dialog(self) -> None:
        """Ask for a phone number, then pretend to place the call."""
        self.console.print(
            Panel(
                "Оператор свяжется с вами после подтверждения.",
                title="Введите номер телефона",
                border_style="dim",
            )
        )
        while self.dialog.is_open:
            phone = Prompt.ask("[bold]Телефон[/bold]", default="", show_default=False)
            if not phone.strip():
                continue
            with self.console.status("Звоним..."):
                await self.dialog.place_call(phone)

    def _print_message(self, index: int, message: Message) -> None:
        if message.author is Author.USER:
            line = Text(f"{index}. ", style="dim")
            line.append(message.text, style=USER_STYLE)
            line.justify = "right"
        else:
            line = Text(f"{index}. ", style="dim")
            line.append(message.text, style=PEER_STYLE)
        self.console.print(line)

    def _show_history(self) -> None:
        if not self.chat.messages:
            self.console.print("[dim]No messages yet[/dim]")
            return
        for index, message in enumerate(self.chat.messages, start=1):
            self._print_message(index, message)

    async def _listen(self, arg: Optional[str]) -> None:
        """Read a message aloud (the latest one when no index is given)."""
        if not self.chat.messages:
            self.console.print("[dim]Nothing to play[/dim]")
            return
        try:
            index = int(arg) if arg else len(self.chat.messages)
        except ValueError:
            self.console.print("[dim]Usage: /listen [n][/dim]")
            return
        if not 1 <= index <= len(self.chat.messages):
            self.console.print(
                f"[error]No message #{index}[/error]", style=ERROR_STYLE
            )
            return

        message = self.chat.messages[index - 1]
        with self.console.status(f"Playing #{index}..."):
            await self.player.listen(message)

    def _show_help(self) -> None:
        """Show available commands."""
        help_text = """
[bold]Commands:[/bold]
  /help              Show this help message
  /reply             Simulate an incoming reply
  /listen [n]        Read message n aloud (default: last message)
  /history           Show all messages
  /quit              Exit shell-chat

[bold]Shortcuts:[/bold]
  Ctrl+D             Exit shell-chat
"""
        self.console.print(
            Panel(help_text.strip(), title="Shell Chat Help", border_style="blue")
        )

    async def _handle_command(self, cmd: str) -> bool:
        """Handle slash commands. Returns True if handled."""
        parts = cmd.strip().split(maxsplit=1)
        if not parts:
            return False

        command = parts[0].lower()

        if command == "/help":
            self._show_help()
            return True
        elif command == "/quit":
            self.running = False
            return True
        elif command == "/reply":
            message = self.chat.simulate_reply()
            self._print_message(len(self.chat.messages), message)
            return True
        elif command == "/listen":
            await self._listen(parts[1] if len(parts) > 1 else None)
            return True
        elif command == "/history":
            self._show_history()
            return True

        return False

    async def run(self) -> None:
        """Main chat loop."""
        if not await self._check_health():
            return

        await self._run_call_dialog()

        self.console.print()
        self.console.print(
            "[bold]Shell Chat[/bold] - Type /help for commands, Ctrl+D to exit",
            style=INFO_STYLE,
        )
        self.console.print()

        while self.running:
            try:
                self.chat.draft = Prompt.ask("[bold blue]Введите сообщение[/bold blue]")

                if self.chat.draft.startswith("/"):
                    handled = await self._handle_command(self.chat.draft)
                    self.chat.draft = ""
                    if not handled:
                        self.console.print("[dim]Unknown command. Type /help[/dim]")
                    continue

                message = self.chat.submit()
                if message is not None:
                    self._print_message(len(self.chat.messages), message)

            except EOFError:
                # Ctrl+D
                self.console.print("\n[dim]Goodbye![/dim]")
                break
            except KeyboardInterrupt:
                self.console.print()
                continue


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Shell Chat - Terminal chat surface for the voicechat backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  shell_chat.py                           Connect to localhost:8000
  shell_chat.py --server http://pi:8000   Connect to remote server
  shell_chat.py --player "aplay -q"       Use a specific audio player

Environment Variables:
  VOICECHAT_SERVER    Default server URL
  VOICECHAT_PLAYER    Default audio player command
""",
    )
    parser.add_argument(
        "--server",
        "-s",
        default=os.environ.get("VOICECHAT_SERVER", "http://localhost:8000"),
        help="Backend server URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--player",
        default=None,
        help="Audio player command (default: $VOICECHAT_PLAYER or first of paplay/aplay/afplay/ffplay)",
    )

    args = parser.parse_args()

    def signal_handler(sig, frame):
        print("\nExiting...")
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    player = shlex.split(args.player) if args.player else None
    chat = ShellChat(server_url=args.server, player=player)
    try:
        asyncio.run(chat.run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
