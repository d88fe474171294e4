"""Terminal viewer for the live counter.

Two independent loops share one ClientAnimator:
- receive loop: WebSocket messages -> animator targets, reconnecting after
  a fixed delay whenever the connection drops
- frame loop: redraws at a fixed cadence, whatever the network is doing

While disconnected, the frame loop keeps extrapolating at the last known rate.

Can be run as:
    displacement-viewer --url ws://localhost:8000/ws
"""

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Callable

import websockets
import websockets.exceptions
from rich.console import Console
from rich.live import Live
from rich.text import Text

from displacement_api.client.animator import ClientAnimator, Frame
from displacement_api.domain.constants import (
    ANIMATOR_FRAME_INTERVAL_SECONDS,
    VIEWER_RECONNECT_DELAY_SECONDS,
)

logger = logging.getLogger(__name__)

console = Console()

DEFAULT_URL = "ws://localhost:8000/ws"


@dataclass
class ConnectionStatus:
    connected: bool = False
    reconnects: int = 0


def handle_message(raw: str | bytes, animator: ClientAnimator) -> bool:
    """Apply one server message; returns False if it was ignored."""
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("[Viewer] Unparseable message ignored")
        return False
    if message.get("type") not in ("init", "tick"):
        return False
    animator.on_update(message.get("data") or {})
    return True


async def receive_loop(
    url: str,
    animator: ClientAnimator,
    status: ConnectionStatus,
    reconnect_delay: float = VIEWER_RECONNECT_DELAY_SECONDS,
    connect: Callable = websockets.connect,
    max_attempts: int | None = None,
) -> None:
    """Feed server messages into the animator, reconnecting on failure."""
    attempts = 0
    while max_attempts is None or attempts < max_attempts:
        attempts += 1
        try:
            async with connect(url) as ws:
                status.connected = True
                async for raw in ws:
                    handle_message(raw, animator)
        except (websockets.exceptions.WebSocketException, OSError) as e:
            logger.info(f"[Viewer] Connection lost: {e}")
        finally:
            status.connected = False
        status.reconnects += 1
        await asyncio.sleep(reconnect_delay)


def render(frame: Frame, animator: ClientAnimator, status: ConnectionStatus) -> Text:
    text = Text()
    text.append("LIVE" if status.connected else "RECONNECTING", style="bold green" if status.connected else "bold yellow")
    text.append("\n\n")
    text.append(f"{frame.integer:,}", style="bold white on red" if frame.pulse else "bold white")
    text.append(f".{frame.hundredths:02d}", style="dim")
    text.append("\n")
    text.append(
        f"{animator.per_day:,} jobs/day (range {animator.per_day_low:,} - {animator.per_day_high:,})",
        style="dim",
    )
    return text


async def frame_loop(
    animator: ClientAnimator,
    status: ConnectionStatus,
    draw: Callable[[Text], None],
    interval: float = ANIMATOR_FRAME_INTERVAL_SECONDS,
    max_frames: int | None = None,
) -> None:
    """Redraw at a fixed cadence, suspending between frames."""
    frames = 0
    while max_frames is None or frames < max_frames:
        frame = animator.frame()
        draw(render(frame, animator, status))
        frames += 1
        await asyncio.sleep(interval)


async def run_viewer(url: str, reconnect_delay: float = VIEWER_RECONNECT_DELAY_SECONDS) -> None:
    animator = ClientAnimator()
    status = ConnectionStatus()
    with Live(Text("Connecting..."), console=console, refresh_per_second=30, transient=False) as live:
        await asyncio.gather(
            receive_loop(url, animator, status, reconnect_delay=reconnect_delay),
            frame_loop(animator, status, live.update),
        )


def main() -> int:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(description="Watch the live AI job displacement counter")
    parser.add_argument(
        "--url",
        type=str,
        default=DEFAULT_URL,
        help="WebSocket URL of the counter stream",
    )
    parser.add_argument(
        "--reconnect-delay",
        type=float,
        default=VIEWER_RECONNECT_DELAY_SECONDS,
        help="Seconds to wait before reconnecting",
    )
    args = parser.parse_args()

    try:
        asyncio.run(run_viewer(args.url, reconnect_delay=args.reconnect_delay))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
