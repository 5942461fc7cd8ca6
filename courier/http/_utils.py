import base64
import json
from collections.abc import AsyncIterable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

import httpx


DEFAULT_HEADER = MappingProxyType({'user-agent': 'courier'})

Body = bytes | str | Mapping | list | httpx.QueryParams | AsyncIterable[bytes] | Iterable[bytes] | None


def is_async_iterable(value: object) -> bool:
    return isinstance(value, AsyncIterable)


def create_authorization_header(token: str) -> str:
    '''
    `user:password` tokens become a Basic authorization, anything else
    a Bearer one.
    '''
    if ':' in token:
        encoded = base64.b64encode(token.encode('utf-8')).decode('ascii')
        return f'Basic {encoded}'
    return f'Bearer {token}'


def _find_key(headers: Mapping[str, str], name: str) -> str | None:
    for key in headers:
        if key.lower() == name:
            return key
    return None


def create_headers(
    headers: Mapping[str, str] | None = None,
    authorization: str | None = None,
) -> dict[str, str]:
    '''
    Copy `headers`, add the default user-agent unless one is given and
    set the authorization header when a token is provided.

    Parameters
    ----------
    headers : Mapping[str, str] | None, optional
    authorization : str | None, optional

    Returns
    -------
    dict[str, str]
    '''
    result = dict(headers or {})

    for name, value in DEFAULT_HEADER.items():
        if _find_key(result, name) is None:
            result[name] = value

    if authorization is not None:
        key = _find_key(result, 'authorization') or 'authorization'
        result[key] = create_authorization_header(authorization)

    return result


def _content_length(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode('utf-8')
    return str(len(data))


def create_body(body: Body, headers: dict[str, str] | None = None) -> Any:
    '''
    Serialize `body` for sending and set the matching content headers
    on `headers` (mutated in place).

    - mappings and lists: JSON, `content-type: application/json`
    - `httpx.QueryParams`: url-encoded form
    - bytes and str: sent as is
    - sync or async byte iterables: streamed untouched, no headers added
    '''
    if body is None:
        return None

    headers = headers if headers is not None else {}

    if isinstance(body, (bytes, bytearray, memoryview)):
        data = bytes(body)
        headers['content-length'] = _content_length(data)
        return data

    if isinstance(body, str):
        headers['content-length'] = _content_length(body)
        return body

    if isinstance(body, httpx.QueryParams):
        data = str(body)
        headers['content-type'] = 'application/x-www-form-urlencoded'
        headers['content-length'] = _content_length(data)
        return data

    if isinstance(body, (Mapping, list, tuple)):
        data = json.dumps(body)
        headers['content-type'] = 'application/json'
        headers['content-length'] = _content_length(data)
        return data

    return body
