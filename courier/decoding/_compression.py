'''
Reverse the `content-encoding` chain of a response body.
'''
import logging
import zlib
from collections.abc import Callable, Mapping, Sequence

import brotli

from courier.errors import DecompressionError, UnsupportedEncodingError

logger = logging.getLogger(__name__)


def _gunzip(data: bytes) -> bytes:
    return zlib.decompress(data, zlib.MAX_WBITS | 16)


def _inflate(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error as exc:
        # some servers send raw deflate streams without the zlib wrapper
        try:
            return zlib.decompress(data, -zlib.MAX_WBITS)
        except zlib.error:
            raise exc from None


def _brotli(data: bytes) -> bytes:
    return brotli.decompress(data)


def _identity(data: bytes) -> bytes:
    return data


DECOMPRESSORS: Mapping[str, Callable[[bytes], bytes]] = {
    'gzip': _gunzip,
    'x-gzip': _gunzip,
    'deflate': _inflate,
    'br': _brotli,
    'identity': _identity,
}


def parse_encodings(header: str | Sequence[str] | None) -> list[str]:
    '''
    Split a `content-encoding` header value (a single token, a
    comma-separated string or a list of either) into lowercase tokens.

    Parameters
    ----------
    header : str | Sequence[str] | None

    Returns
    -------
    list[str]
    '''
    if not header:
        return []

    values = [header] if isinstance(header, str) else list(header)
    encodings: list[str] = []
    for value in values:
        encodings.extend(
            token.strip().lower()
            for token in value.split(',')
            if token.strip()
        )

    return encodings


def decompress(
    buffer: bytes,
    encodings: list[str],
    *,
    status_code: int | None = None,
    headers: Mapping | None = None,
) -> bytes:
    '''
    Undo every encoding of `encodings`, last applied first.

    Raises
    ------
    UnsupportedEncodingError
        If one of the tokens is not a known encoding (nothing is decoded).
    DecompressionError
        If a decoder fails on the data.
    '''
    for encoding in encodings:
        if encoding not in DECOMPRESSORS:
            raise UnsupportedEncodingError(
                encoding,
                buffer=buffer,
                encodings=encodings,
                status_code=status_code,
                headers=headers,
            )

    data = buffer
    for encoding in reversed(encodings):
        try:
            data = DECOMPRESSORS[encoding](data)
        except (zlib.error, brotli.error) as exc:
            logger.debug(f'Failed to decode {encoding} body: {exc}')
            raise DecompressionError(
                buffer=buffer,
                encodings=encodings,
                status_code=status_code,
                headers=headers,
                reason=exc,
            ) from exc

    return data
