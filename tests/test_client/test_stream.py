"""Tests for incremental body reading with progress reporting."""

from __future__ import annotations

import httpx
import pytest

from resttree.client.stream import read_stream
from resttree.exceptions import StreamError


def _octet_response(content, length: int) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"content-type": "application/octet-stream", "content-length": str(length)},
        content=content,
    )


async def _async_chunks(*parts: bytes):
    for part in parts:
        yield part


class TestReadStream:
    @pytest.mark.asyncio
    async def test_progress_sums_to_total(self) -> None:
        chunks = [b"x" * 40, b"y" * 35, b"z" * 25]
        calls: list[tuple[int, int]] = []
        response = _octet_response(_async_chunks(*chunks), 100)

        text = await read_stream(response, 100, lambda r, t: calls.append((r, t)))

        assert text == "x" * 40 + "y" * 35 + "z" * 25
        assert len(calls) >= len(chunks)
        assert calls[-1] == (100, 100)
        assert [received for received, _ in calls] == sorted(received for received, _ in calls)

    @pytest.mark.asyncio
    async def test_async_progress_callback_is_awaited(self) -> None:
        calls: list[int] = []

        async def on_progress(received: int, total: int) -> None:
            calls.append(received)

        response = _octet_response(_async_chunks(b"ab", b"c"), 3)
        await read_stream(response, 3, on_progress)
        assert calls == [2, 3]

    @pytest.mark.asyncio
    async def test_without_callback(self) -> None:
        response = _octet_response(_async_chunks(b"plain"), 5)
        assert await read_stream(response, 5) == "plain"

    @pytest.mark.asyncio
    async def test_multibyte_character_split_across_chunks(self) -> None:
        encoded = "héllo".encode()
        response = _octet_response(_async_chunks(encoded[:2], encoded[2:]), len(encoded))
        assert await read_stream(response, len(encoded)) == "héllo"

    @pytest.mark.asyncio
    async def test_invalid_bytes_are_replaced(self) -> None:
        response = _octet_response(_async_chunks(b"a\xffb"), 3)
        assert await read_stream(response, 3) == "a�b"

    @pytest.mark.asyncio
    async def test_sync_stream_is_iterated(self) -> None:
        calls: list[int] = []
        response = _octet_response(iter([b"one", b"two"]), 6)
        text = await read_stream(response, 6, lambda r, t: calls.append(r))
        assert text == "onetwo"
        assert calls == [3, 6]

    @pytest.mark.asyncio
    async def test_total_is_passed_through_unchanged(self) -> None:
        calls: list[tuple[int, int]] = []
        response = _octet_response(_async_chunks(b"abc"), 10)
        await read_stream(response, 10, lambda r, t: calls.append((r, t)))
        assert calls == [(3, 10)]

    @pytest.mark.asyncio
    async def test_failure_mid_stream_raises_stream_error(self) -> None:
        async def broken():
            yield b"partial"
            raise httpx.ReadError("connection reset")

        response = _octet_response(broken(), 100)
        with pytest.raises(StreamError, match="after 7 of 100 bytes") as excinfo:
            await read_stream(response, 100)
        assert isinstance(excinfo.value.__cause__, httpx.ReadError)
