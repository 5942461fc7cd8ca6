'''
Streaming variants of the request façade: the body is never buffered, raw
chunks are handed to the caller as they arrive.
'''
from __future__ import annotations

import dataclasses as dc
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from typing import Any, Protocol

import httpx

from courier.decoding import collect_headers
from courier.http._request import Courier

logger = logging.getLogger(__name__)


class Writable(Protocol):
    def write(self, data: bytes, /) -> Any:
        ...


@dc.dataclass(frozen=True, slots=True)
class StreamInfo:
    status_code: int
    headers: Mapping[str, str | tuple[str, ...]]


StreamFactory = Callable[[StreamInfo], Writable]
StreamCursor = Callable[[StreamFactory], Awaitable[StreamInfo]]


async def _write(writable: Writable, chunk: bytes) -> None:
    result = writable.write(chunk)
    if inspect.isawaitable(result):
        await result


def stream(
    courier: Courier,
    method: str,
    uri: str | httpx.URL,
    **options: Any,
) -> StreamCursor:
    '''
    Prepare a streamed request. The returned cursor takes a factory which
    receives the status code and headers and returns where the raw body
    is written (anything with a sync or async `write`).

    Examples
    --------
    >>> cursor = stream(courier, 'GET', 'https://example.com/archive.tar.gz')
    >>> with open('archive.tar.gz', 'wb') as fd:
    ...     info = await cursor(lambda info: fd)
    '''
    prepared = courier.prepare(method, uri, **options)

    async def cursor(factory: StreamFactory) -> StreamInfo:
        response = await prepared.dispatcher.send(prepared.request, stream=True)
        try:
            info = StreamInfo(
                status_code=response.status_code,
                headers=collect_headers(response.headers),
            )
            writable = factory(info)
            async for chunk in response.aiter_raw():
                await _write(writable, chunk)
        finally:
            await response.aclose()

        logger.debug(f'Streamed {prepared.request.method} {prepared.request.url} -> {info.status_code}')
        return info

    return cursor


async def pipeline(
    courier: Courier,
    method: str,
    uri: str | httpx.URL,
    **options: Any,
) -> AsyncIterator[bytes]:
    '''
    Iterate over the raw body chunks of a request.
    '''
    prepared = courier.prepare(method, uri, **options)
    response = await prepared.dispatcher.send(prepared.request, stream=True)
    try:
        async for chunk in response.aiter_raw():
            yield chunk
    finally:
        await response.aclose()
