"""lyricsync — entry point."""
import asyncio
import logging
import sys

import uvicorn
from rich.logging import RichHandler

from lyricsync.config import WEB_HOST, WEB_PORT, DEV_MODE
from lyricsync.preflight import run_preflight, console
from lyricsync.web.server import create_app


def main():
    logging.basicConfig(
        level=logging.DEBUG if DEV_MODE else logging.INFO,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    ok = asyncio.run(run_preflight())
    if not ok:
        sys.exit(1)

    console.print(f"  [bold cyan]♪[/bold cyan]  Listening on http://{WEB_HOST}:{WEB_PORT}\n")
    uvicorn.run(create_app(), host=WEB_HOST, port=WEB_PORT, log_config=None)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console.print("\n  Goodbye.\n")
        sys.exit(0)
