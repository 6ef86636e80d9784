import asyncio
import json

import httpx
import pytest

from lexnav.citations.section_client import HttpSectionClient
from lexnav.core.exceptions import RecoverableFetchFailure


def _client(handler):
    return HttpSectionClient(base_url="http://test/api/v1/", timeout=1.0, transport=httpx.MockTransport(handler))


def _run(client, call):
    async def run():
        async with client:
            return await call(client)

    return asyncio.run(run())


def test_get_section_parses_payload():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"content": "Full text", "eid": "sec_3", "number": 3, "html_content": None})

    section = _run(_client(handler), lambda client: client.get_section("DOC-7", "sec_3"))

    assert section.content == "Full text"
    assert section.number == "3"
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/v1/documents/DOC-7/sections/sec_3"


def test_missing_section_is_recoverable():
    def handler(request):
        return httpx.Response(404, json={"detail": "not found"})

    with pytest.raises(RecoverableFetchFailure):
        _run(_client(handler), lambda client: client.get_section("DOC-7", "sec_99"))


def test_expand_source_posts_excerpt():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"full_excerpt": "The whole passage.", "section_id": "sec_3"})

    expanded = _run(
        _client(handler),
        lambda client: client.expand_source("DOC-7", "The whole", section="Section 3", chunk_id=None),
    )

    assert expanded.full_excerpt == "The whole passage."
    assert expanded.section_id == "sec_3"
    assert bodies == [{"excerpt": "The whole", "section": "Section 3"}]


def test_invalid_json_is_recoverable():
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(RecoverableFetchFailure):
        _run(_client(handler), lambda client: client.expand_source("DOC-7", "text"))


def test_connection_errors_are_recoverable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(RecoverableFetchFailure):
        _run(_client(handler), lambda client: client.get_section("DOC-7", "sec_3"))
