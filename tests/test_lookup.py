import asyncio

import httpx

from lyricsync.client import ServiceClient
from lyricsync.lookup import parse_args, run_lookup


def lookup(handler, *argv: str) -> int:
    client = ServiceClient("http://service.test", transport=httpx.MockTransport(handler))
    return asyncio.run(run_lookup(parse_args(["--title", "Song", "--artist", "Band", *argv]), client))


def test_prints_lyrics_from_the_service(capsys):
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"success": True, "data": [
            {"time": 0.0, "text": "first line"},
            {"time": 65.2, "text": "second line"},
        ]})

    assert lookup(handler, "--duration", "215", "--lang", "en-US") == 0
    out = capsys.readouterr().out
    assert "first line" in out
    assert "1:05" in out
    assert seen["duration"] == "215.0"
    assert seen["lang"] == "en-US"


def test_unknown_duration_is_sent_as_zero():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"success": False, "error": "nothing"})

    assert lookup(handler) == 0
    assert seen["duration"] == "0.0"


def test_unreachable_service_fails(capsys):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert lookup(handler) == 1
    assert "Please reload" in capsys.readouterr().out
