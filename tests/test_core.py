"""Tests for logging helpers and the tool request decorator."""

import logging

import pytest

from wpreader.core import MCPToolError, mask_secret, request_id_ctx, track_request
from wpreader.core.logging import RequestIdFilter


class TestMaskSecret:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "<empty>"),
            ("", "<empty>"),
            ("short", "****"),
            ("abcdefghijkl", "abcd...****"),
        ],
    )
    def test_masking(self, value, expected):
        assert mask_secret(value) == expected


class TestRequestIdFilter:
    def _record(self):
        return logging.LogRecord("wpreader", logging.INFO, __file__, 1, "msg", None, None)

    def test_prefix_when_request_id_is_set(self):
        token = request_id_ctx.set("abc123")
        try:
            record = self._record()
            assert RequestIdFilter().filter(record)
            assert record.request_id == "[abc123] "
        finally:
            request_id_ctx.reset(token)

    def test_empty_without_request_id(self):
        record = self._record()
        RequestIdFilter().filter(record)
        assert record.request_id == ""


class TestTrackRequest:
    @pytest.mark.asyncio
    async def test_returns_result_and_clears_request_id(self):
        @track_request("sample_tool")
        async def sample_tool(value: int) -> int:
            assert request_id_ctx.get() is not None
            return value * 2

        assert await sample_tool(value=21) == 42
        assert request_id_ctx.get() is None

    @pytest.mark.asyncio
    async def test_restores_outer_request_id(self):
        @track_request("sample_tool")
        async def sample_tool():
            return request_id_ctx.get()

        token = request_id_ctx.set("outer")
        try:
            inner = await sample_tool()
            assert inner != "outer"
            assert request_id_ctx.get() == "outer"
        finally:
            request_id_ctx.reset(token)

    @pytest.mark.asyncio
    async def test_tool_errors_pass_through(self):
        original = MCPToolError("Authentication required", code=-32001)

        @track_request("auth_tool")
        async def auth_tool():
            raise original

        with pytest.raises(MCPToolError) as exc_info:
            await auth_tool()
        assert exc_info.value is original

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_tool_errors(self):
        @track_request("broken_tool")
        async def broken_tool():
            raise ValueError("boom")

        with pytest.raises(MCPToolError, match="broken_tool failed: boom") as exc_info:
            await broken_tool()
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert broken_tool.__name__ == "broken_tool"
        assert request_id_ctx.get() is None
