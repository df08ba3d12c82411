"""Look up lyrics through a running lyricsync service and print them.

    lyricsync-lookup --title "Song" --artist "Band" --duration 215
"""
import argparse
import asyncio
import sys
from typing import Optional

from rich.console import Console

from .client import ServiceClient
from .config import SERVICE_URL
from .models import LyricLine
from .utils import fmt_time

console = Console()


def _print_lyrics(lines: list[LyricLine]):
    for line in lines:
        console.print(f"  [dim]{fmt_time(line.time)}[/dim]  {line.text}")


def _print_error(message: str):
    console.print(f"  [red]✗[/red] {message}")


async def run_lookup(args: argparse.Namespace, client: ServiceClient) -> int:
    """Drive one track change through a TrackSession. Returns a process exit code."""
    session = client.track_session(_print_lyrics, _print_error)
    probe = (lambda: args.duration) if args.duration else None
    try:
        lines = await session.track_changed(
            args.title,
            args.artist,
            album=args.album,
            language=args.lang,
            duration_probe=probe,
        )
    finally:
        await client.aclose()
    if session.invalidated or lines is None:
        return 1
    return 0


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="lyricsync-lookup", description="Print synced lyrics for one track.")
    ap.add_argument("--title", required=True)
    ap.add_argument("--artist", default="")
    ap.add_argument("--album", default="")
    ap.add_argument("--lang", default="", help="BCP-47 tag of the player UI, e.g. ja-JP")
    ap.add_argument("--duration", type=float, default=0.0, help="track length in seconds")
    ap.add_argument("--service", default=SERVICE_URL, help="lyricsync base URL")
    return ap.parse_args(argv)


def main(argv: Optional[list[str]] = None):
    args = parse_args(argv)
    sys.exit(asyncio.run(run_lookup(args, ServiceClient(args.service))))


if __name__ == "__main__":
    main()
