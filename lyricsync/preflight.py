"""Startup Preflight Check"""
from rich.console import Console

from .catalog import CatalogClient
from .config import APP_VERSION, CATALOG_HOST, DATA_DIR

console = Console()


async def run_preflight(catalog: CatalogClient | None = None) -> bool:
    """
    Run all startup checks. Print results. Return True unless a blocking check fails.
    The catalog is advisory: cached lyrics still work offline.
    """
    console.print(f"\n  [bold]♪  lyricsync v{APP_VERSION}[/bold] — preflight check\n")

    checks = [
        ("Python deps", _check_python_deps, True),
        ("Data directory", _check_data_dir, True),
        ("Lyrics catalog", lambda: _check_catalog(catalog), False),
    ]

    results = []
    for i, (label, fn, blocking) in enumerate(checks, 1):
        ok, msg, fix = await fn()
        results.append((ok, blocking, label, fix))
        if ok:
            icon, status = "[green]✓[/green]", f"[green]{msg}[/green]"
        elif blocking:
            icon, status = "[red]✗[/red]", f"[red]{msg}[/red]"
        else:
            icon, status = "[yellow]![/yellow]", f"[yellow]{msg}[/yellow]"
        dots = "." * max(30 - len(label), 3)
        console.print(f"  [{i}/{len(checks)}] {label} {dots} {icon} {status}")

    # Print fix instructions for any failures
    failures = [(label, fix) for ok, _, label, fix in results if not ok and fix]
    if failures:
        console.print("")
        for label, fix in failures:
            console.print(f"  [yellow]Fix for {label}:[/yellow]")
            for line in fix.strip().splitlines():
                console.print(f"    {line}")
            console.print("")

    console.print("")
    return all(ok for ok, blocking, _, _ in results if blocking)


async def _check_python_deps() -> tuple[bool, str, str]:
    missing = []
    versions = []
    try:
        import httpx as hx
        versions.append(f"httpx {hx.__version__}")
    except ImportError:
        missing.append("httpx")

    try:
        import starlette
        versions.append(f"starlette {starlette.__version__}")
    except ImportError:
        missing.append("starlette")

    try:
        import dotenv  # noqa: F401
        versions.append("python-dotenv")
    except ImportError:
        missing.append("python-dotenv")

    if missing:
        return False, f"missing: {', '.join(missing)}", "Run: pip install -e ."
    return True, ", ".join(versions), ""


async def _check_data_dir() -> tuple[bool, str, str]:
    try:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        probe = DATA_DIR / ".write_test"
        probe.write_text("ok")
        probe.unlink()
    except OSError as e:
        return False, f"not writable ({e.strerror})", f"Check permissions on {DATA_DIR}\nor set DATA_DIR in .env"
    return True, str(DATA_DIR), ""


async def _check_catalog(catalog: CatalogClient | None) -> tuple[bool, str, str]:
    own = catalog is None
    client = catalog or CatalogClient()
    try:
        if await client.ping():
            return True, f"reachable at {client.host.replace('https://', '')}", ""
    finally:
        if own:
            await client.aclose()
    return False, "unreachable — serving cached lyrics only", (
        f"Check your connection to {CATALOG_HOST}\n"
        "or point CATALOG_HOST in .env at a mirror."
    )
