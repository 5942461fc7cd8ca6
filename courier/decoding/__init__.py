'''
**courier.decoding**
--------------------

Response body decoding in two stages: the `content-encoding` chain is
undone in reverse order (gzip, x-gzip, deflate, br), then the bytes are
interpreted per `content-type` (text, JSON or raw bytes).
'''
from courier.decoding._compression import DECOMPRESSORS, decompress, parse_encodings
from courier.decoding._handler import (
    ModeOfHandling,
    ResponseEnvelope,
    ResponseHandler,
    collect_headers,
    decode,
    parse_body,
    read_raw_body,
)
from courier.decoding._media import (
    MediaType,
    MediaTypeError,
    get_encoding_charset,
    parse_media_type,
)

__all__ = [
    'DECOMPRESSORS',
    'decompress',
    'parse_encodings',
    'ModeOfHandling',
    'ResponseEnvelope',
    'ResponseHandler',
    'collect_headers',
    'decode',
    'parse_body',
    'read_raw_body',
    'MediaType',
    'MediaTypeError',
    'get_encoding_charset',
    'parse_media_type',
]
