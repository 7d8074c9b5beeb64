"""Tests for JSON-RPC message encoding and Content-Length framing."""

import asyncio
import json

import pytest

from lsp import (
    DecodeError,
    ErrorObject,
    FramingError,
    Notification,
    Request,
    Response,
    TransportError,
    decode_message,
    encode_message,
    read_frame,
    write_frame,
)


def make_reader(data: bytes, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader


def split_frame(frame: bytes) -> tuple[bytes, bytes]:
    header, _, body = frame.partition(b"\r\n\r\n")
    return header, body


class TestEncodeMessage:
    def test_request_frame(self):
        frame = encode_message(Request(id=1, method="initialize", params={"rootUri": "file:///w"}))
        header, body = split_frame(frame)

        assert header == f"Content-Length: {len(body)}".encode("ascii")
        assert json.loads(body) == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {"rootUri": "file:///w"},
        }

    def test_body_is_compact(self):
        _, body = split_frame(encode_message(Notification(method="initialized", params={})))
        assert b" " not in body

    def test_notification_has_no_id(self):
        _, body = split_frame(encode_message(Notification(method="exit")))
        assert json.loads(body) == {"jsonrpc": "2.0", "method": "exit"}

    def test_request_without_params_omits_them(self):
        _, body = split_frame(encode_message(Request(id=7, method="shutdown")))
        assert "params" not in json.loads(body)

    def test_null_result_is_kept(self):
        _, body = split_frame(encode_message(Response(id=2, result=None)))
        assert json.loads(body) == {"jsonrpc": "2.0", "id": 2, "result": None}

    def test_error_response(self):
        response = Response(id="srv-1", error=ErrorObject(code=-32601, message="nope"))
        _, body = split_frame(encode_message(response))
        assert json.loads(body) == {
            "jsonrpc": "2.0",
            "id": "srv-1",
            "error": {"code": -32601, "message": "nope"},
        }

    def test_length_counts_utf8_bytes(self):
        frame = encode_message(Notification(method="log", params={"text": "héllo ✓"}))
        header, body = split_frame(frame)
        assert int(header.split(b":")[1]) == len(body)
        assert json.loads(body)["params"]["text"] == "héllo ✓"


class TestDecodeMessage:
    def test_request_round_trip(self):
        original = Request(id=3, method="textDocument/completion", params={"a": [1, 2]})
        _, body = split_frame(encode_message(original))
        assert decode_message(body) == original

    def test_notification_round_trip(self):
        original = Notification(method="textDocument/publishDiagnostics", params={"uri": "file:///a"})
        _, body = split_frame(encode_message(original))
        assert decode_message(body) == original

    def test_response_round_trip(self):
        original = Response(id=4, result={"items": []})
        _, body = split_frame(encode_message(original))
        assert decode_message(body) == original

    def test_error_response_round_trip(self):
        original = Response(id=5, error=ErrorObject(code=-32603, message="boom", data={"x": 1}))
        _, body = split_frame(encode_message(original))
        decoded = decode_message(body)
        assert decoded.error == original.error

    def test_invalid_json(self):
        with pytest.raises(DecodeError):
            decode_message(b"{not json")

    def test_non_object(self):
        with pytest.raises(DecodeError):
            decode_message(b"[1, 2, 3]")

    def test_neither_id_nor_method(self):
        with pytest.raises(DecodeError):
            decode_message(b'{"jsonrpc": "2.0"}')


class TestReadFrame:
    @pytest.mark.asyncio
    async def test_single_frame(self, frame):
        reader = make_reader(frame({"jsonrpc": "2.0", "id": 1, "result": None}))
        body = await read_frame(reader)
        assert json.loads(body) == {"jsonrpc": "2.0", "id": 1, "result": None}

    @pytest.mark.asyncio
    async def test_consecutive_frames(self, frame):
        reader = make_reader(frame({"n": 1}) + frame({"n": 2}))
        assert json.loads(await read_frame(reader)) == {"n": 1}
        assert json.loads(await read_frame(reader)) == {"n": 2}
        assert await read_frame(reader) is None

    @pytest.mark.asyncio
    async def test_headers_in_any_order_and_case(self):
        body = b'{"ok":true}'
        data = (
            b"Content-Type: application/vscode-jsonrpc; charset=utf-8\r\n"
            + f"content-LENGTH: {len(body)}\r\n\r\n".encode("ascii")
            + body
        )
        assert await read_frame(make_reader(data)) == body

    @pytest.mark.asyncio
    async def test_clean_eof(self):
        assert await read_frame(make_reader(b"")) is None

    @pytest.mark.asyncio
    async def test_missing_content_length(self):
        reader = make_reader(b"Content-Type: application/json\r\n\r\n{}")
        with pytest.raises(FramingError):
            await read_frame(reader)

    @pytest.mark.asyncio
    async def test_non_numeric_content_length(self):
        reader = make_reader(b"Content-Length: ten\r\n\r\n{}")
        with pytest.raises(FramingError):
            await read_frame(reader)

    @pytest.mark.asyncio
    async def test_negative_content_length(self):
        reader = make_reader(b"Content-Length: -4\r\n\r\n{}")
        with pytest.raises(FramingError):
            await read_frame(reader)

    @pytest.mark.asyncio
    async def test_eof_inside_headers(self):
        reader = make_reader(b"Content-Length: 10\r\n")
        with pytest.raises(FramingError):
            await read_frame(reader)

    @pytest.mark.asyncio
    async def test_eof_inside_body(self):
        reader = make_reader(b"Content-Length: 10\r\n\r\n{}")
        with pytest.raises(FramingError):
            await read_frame(reader)


class TestWriteFrame:
    @pytest.mark.asyncio
    async def test_writes_encoded_frame(self, fake_writer):
        message = Notification(method="initialized", params={})
        await write_frame(fake_writer, message)
        assert bytes(fake_writer.buffer) == encode_message(message)

    @pytest.mark.asyncio
    async def test_broken_pipe(self, fake_writer):
        fake_writer.fail = True
        with pytest.raises(TransportError):
            await write_frame(fake_writer, Notification(method="exit"))
