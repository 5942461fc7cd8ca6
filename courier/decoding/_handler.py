'''
The two-stage response body decoder: undo the `content-encoding` chain,
then interpret the bytes according to `content-type`.
'''
from __future__ import annotations

import dataclasses as dc
import json
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

import httpx

from courier.decoding._compression import decompress, parse_encodings
from courier.decoding._media import MediaTypeError, get_encoding_charset, parse_media_type
from courier.errors import FetchBodyError, ParserError

logger = logging.getLogger(__name__)


ModeOfHandling = Literal['raw', 'decompress', 'parse']


def collect_headers(headers: httpx.Headers) -> dict[str, str | tuple[str, ...]]:
    '''
    Flatten `httpx.Headers` into a plain dict with lowercase names, a header
    sent more than once becoming a tuple of its values.
    '''
    collected: dict[str, str | tuple[str, ...]] = {}
    for name, value in headers.multi_items():
        key = name.lower()
        previous = collected.get(key)
        if previous is None:
            collected[key] = value
        elif isinstance(previous, tuple):
            collected[key] = (*previous, value)
        else:
            collected[key] = (previous, value)

    return collected


@dc.dataclass(frozen=True, slots=True)
class ResponseEnvelope:
    status_code: int
    headers: Mapping[str, str | tuple[str, ...]]
    raw_body: bytes = b''

    @classmethod
    def create(
        cls,
        status_code: int,
        headers: Mapping[str, Any] | None = None,
        raw_body: bytes = b'',
    ) -> ResponseEnvelope:
        normalized = {
            key.lower(): tuple(value) if isinstance(value, list) else value
            for key, value in (headers or {}).items()
        }
        return cls(
            status_code=status_code,
            headers=MappingProxyType(normalized),
            raw_body=bytes(raw_body),
        )

    @classmethod
    def from_httpx(cls, response: httpx.Response, raw_body: bytes) -> ResponseEnvelope:
        return cls(
            status_code=response.status_code,
            headers=MappingProxyType(collect_headers(response.headers)),
            raw_body=raw_body,
        )

    def header(self, name: str) -> str | tuple[str, ...] | None:
        return self.headers.get(name.lower())


def _single_value(value: str | tuple[str, ...] | None) -> str | None:
    if isinstance(value, tuple):
        return value[0] if value else None
    return value


def decompress_envelope(envelope: ResponseEnvelope) -> bytes:
    encodings = parse_encodings(envelope.header('content-encoding'))
    if not encodings:
        return envelope.raw_body

    return decompress(
        envelope.raw_body,
        encodings,
        status_code=envelope.status_code,
        headers=envelope.headers,
    )


def parse_body(envelope: ResponseEnvelope, buffer: bytes) -> Any:
    '''
    Interpret a decompressed body according to the envelope `content-type`.

    Returns
    -------
    str for `text/*`, the decoded value for `application/json` and the
    untouched bytes for everything else (including a missing header).

    Raises
    ------
    ParserError
        On an invalid media type or a JSON syntax error.
    '''
    content_type = _single_value(envelope.header('content-type'))
    if not content_type:
        return buffer

    try:
        media_type = parse_media_type(content_type)
    except MediaTypeError as exc:
        raise ParserError(
            buffer=buffer,
            status_code=envelope.status_code,
            headers=envelope.headers,
            reason=exc,
        ) from exc

    if not (media_type.is_text or media_type.is_json):
        return buffer

    # bytes invalid in the charset become U+FFFD, decoding text never fails
    charset = get_encoding_charset(media_type.charset)
    text = buffer.decode(charset, errors='replace')

    if media_type.is_text:
        return text

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParserError(
            buffer=buffer,
            text=text,
            status_code=envelope.status_code,
            headers=envelope.headers,
            reason=exc,
        ) from exc


def decode(envelope: ResponseEnvelope, mode: ModeOfHandling = 'parse') -> Any:
    '''
    Decode the body of `envelope`.

    Parameters
    ----------
    envelope : ResponseEnvelope
    mode : ModeOfHandling, optional
        - `raw`: return the body untouched
        - `decompress`: undo the content-encoding chain only
        - `parse`: decompress, then interpret per content-type (default)

    Raises
    ------
    DecompressionError
    ParserError
    '''
    if mode == 'raw':
        return envelope.raw_body

    buffer = decompress_envelope(envelope)
    if mode == 'decompress':
        return buffer

    if mode != 'parse':
        raise ValueError(f'Unknown decoding mode: {mode!r}')

    return parse_body(envelope, buffer)


async def read_raw_body(response: httpx.Response) -> bytes:
    '''
    Read the body exactly as it came over the wire, without letting httpx
    undo the content-encoding.

    Raises
    ------
    FetchBodyError
    '''
    try:
        return b''.join([chunk async for chunk in response.aiter_raw()])
    except Exception as exc:
        logger.debug(f'Failed to read response body: {exc}')
        raise FetchBodyError(
            status_code=response.status_code,
            headers=collect_headers(response.headers),
            reason=exc,
        ) from exc
    finally:
        await response.aclose()


class ResponseHandler:
    '''
    Read and decode the body of a streamed `httpx.Response`.
    The body is read once and reused by subsequent calls.
    '''
    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self._envelope: ResponseEnvelope | None = None

    async def envelope(self) -> ResponseEnvelope:
        if self._envelope is None:
            raw_body = await read_raw_body(self.response)
            self._envelope = ResponseEnvelope.from_httpx(self.response, raw_body)
        return self._envelope

    async def get_data(self, mode: ModeOfHandling = 'parse') -> Any:
        envelope = await self.envelope()
        return decode(envelope, mode)
