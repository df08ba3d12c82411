"""Starlette app — HTTP routes + WebSocket message protocol."""
import asyncio
import contextlib
import logging
import uuid
from typing import Optional

import httpx
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..cache import LyricsCache
from ..catalog import CatalogClient
from ..config import APP_VERSION, CACHE_FILE, SESSION_FILE, MONITORED_DOMAIN, FLUSH_INTERVAL
from ..errors import format_error
from ..models import Query
from ..sources import SourceOrchestrator
from ..storage import JsonFileStore
from ..store import PlayerStateStore, SessionRepository, STORE_UPDATED
from ..utils import fmt_time
from .state import ClientHub, PLAYER, OBSERVER, ROLES

logger = logging.getLogger(__name__)

# Shared state, rebuilt by create_app()
_hub = ClientHub()
_catalog: Optional[CatalogClient] = None
_cache: Optional[LyricsCache] = None
_store: Optional[PlayerStateStore] = None

# In-flight fetchLyrics replies, so slow lookups never block a reader loop
_background: set[asyncio.Task] = set()


# ── Lyrics ───────────────────────────────────────────────────────────────────

async def _lyrics_reply(data: dict) -> dict:
    query = Query.from_request(data)
    if not query.title:
        return {"success": False, "error": "title is required"}
    logger.info("fetchLyrics %r by %r (%s)", query.title, query.artist, fmt_time(query.duration))
    try:
        lines = await _cache.get(query)
    except Exception as e:
        msg = format_error("lyrics_fetch", str(e), title=query.title, artist=query.artist)
        return {"success": False, "error": msg}
    return {"success": True, "data": [line.to_json() for line in lines]}


async def lyrics(request):
    params = dict(request.query_params)
    if not params.get("title"):
        return JSONResponse({"success": False, "error": "title is required"}, status_code=400)
    return JSONResponse(await _lyrics_reply(params))


# ── Player store ─────────────────────────────────────────────────────────────

def _fresh_store() -> dict:
    """Zombie cleanup against connected players, then the current map."""
    _store.reconcile(_hub.clients(PLAYER))
    return _store.to_json()


async def store_snapshot(request):
    return JSONResponse({"store": _fresh_store()})


# ── Health ───────────────────────────────────────────────────────────────────

async def health(request):
    catalog_ok = await _catalog.ping()
    return JSONResponse({
        "status": "ok" if catalog_ok else "degraded",
        "version": APP_VERSION,
        "checks": {
            "catalog": {"ok": catalog_ok, "host": _catalog.host},
            "cache": {"ok": True, "entries": _cache.entry_count()},
            "players": {"ok": True, "tracked": len(_store), "connected": len(_hub.clients(PLAYER))},
            "clients": {"ok": True, "count": _hub.client_count},
        },
    })


# ── WebSocket ────────────────────────────────────────────────────────────────

async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    role = websocket.query_params.get("role", OBSERVER)
    if role not in ROLES:
        role = OBSERVER
    client_id = websocket.query_params.get("instance") or str(uuid.uuid4())
    queue = _hub.subscribe(client_id, role)
    logger.info("WS connected: %s (%s)", client_id, role)

    # Send initial sync
    if role == OBSERVER:
        await websocket.send_json({"type": STORE_UPDATED, "data": {"store": _store.to_json()}})
    else:
        await websocket.send_json({"type": "hello", "data": {"instanceId": client_id}})

    # Two tasks: one reads from client, one writes from queue
    async def _reader():
        try:
            while True:
                data = await websocket.receive_json()
                if isinstance(data, dict):
                    await _handle_ws_message(client_id, role, queue, data)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error("WS reader error: %s", e)

    async def _writer():
        try:
            while True:
                event, data = await queue.get()
                await websocket.send_json({"type": event, "data": data})
        except Exception:
            pass

    reader_task = asyncio.create_task(_reader())
    writer_task = asyncio.create_task(_writer())

    try:
        done, pending = await asyncio.wait(
            [reader_task, writer_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
    finally:
        _hub.unsubscribe(queue)
        logger.info("WS disconnected: %s", client_id)
        # A player connection going away is its tab closing, unless another
        # connection still holds the same instance id
        if role == PLAYER and not _hub.is_connected(client_id):
            _store.remove(client_id)


async def _handle_ws_message(client_id: str, role: str, queue: asyncio.Queue, message: dict):
    """Route incoming WebSocket messages to the cache and the store."""
    msg_type = message.get("type", "")
    request_id = message.get("id")
    data = message.get("data") or {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s from %s: data is not an object", msg_type, client_id)
        return

    if msg_type == "fetchLyrics":
        task = asyncio.create_task(_reply_lyrics(queue, request_id, data))
        _background.add(task)
        task.add_done_callback(_background.discard)

    elif msg_type == "updateState":
        snapshot = data.get("snapshot", data)
        if role != PLAYER:
            logger.warning("Ignoring updateState from observer %s", client_id)
        elif isinstance(snapshot, dict):
            _store.upsert(client_id, snapshot)

    elif msg_type == "navigated":
        url = str(data.get("url", ""))
        if MONITORED_DOMAIN not in url:
            _store.remove(client_id)

    elif msg_type == "getStoreSnapshot":
        _hub.reply(queue, msg_type, {"id": request_id, "store": _fresh_store()})

    elif msg_type == "broadcastForceSync":
        players = _hub.publish("forceSync", {}, role=PLAYER)
        _hub.reply(queue, msg_type, {"id": request_id, "status": "broadcasted", "players": players})

    else:
        logger.warning("Unknown WS message type: %s", msg_type)


async def _reply_lyrics(queue: asyncio.Queue, request_id, data: dict):
    reply = await _lyrics_reply(data)
    _hub.reply(queue, "fetchLyrics", {"id": request_id, **reply})


# ── App factory ──────────────────────────────────────────────────────────────

def create_app(
    catalog_transport: Optional[httpx.AsyncBaseTransport] = None,
    cache_backend=None,
    session_backend=None,
) -> Starlette:
    global _hub, _catalog, _cache, _store

    _hub = ClientHub()
    _catalog = CatalogClient(transport=catalog_transport)
    _cache = LyricsCache(
        cache_backend if cache_backend is not None else JsonFileStore(CACHE_FILE, FLUSH_INTERVAL),
        SourceOrchestrator(_catalog),
    )
    _store = PlayerStateStore(
        SessionRepository(
            session_backend if session_backend is not None else JsonFileStore(SESSION_FILE, FLUSH_INTERVAL)
        ),
        publish=lambda event, data: _hub.publish(event, data, role=OBSERVER),
    )

    routes = [
        Route("/api/health", health),
        Route("/api/lyrics", lyrics),
        Route("/api/store", store_snapshot),
        WebSocketRoute("/ws", websocket_endpoint),
    ]

    return Starlette(routes=routes, lifespan=_lifespan)


@contextlib.asynccontextmanager
async def _lifespan(app):
    # Fresh process: sweep expired lyrics, forget every player from the last run
    removed = _cache.invalidate_if_stale()
    _store.reset()
    _store.reconcile(_hub.clients(PLAYER))
    logger.info("Lyrics service ready (%d expired cache entries removed)", removed)
    try:
        yield
    finally:
        for task in list(_background):
            task.cancel()
        await _cache.drain()
        _flush_backends()
        await _catalog.aclose()
        logger.info("Lyrics service stopped")


def _flush_backends():
    """Write out changes the JSON stores are still holding back."""
    for stage, backend in (("cache_write", _cache.backend), ("session_save", _store.repository.backend)):
        try:
            backend.flush()
        except OSError as e:
            format_error(stage, str(e), operation="shutdown flush")
