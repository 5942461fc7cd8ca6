'''
**courier.errors**
------------------

The exception family raised by courier. Errors raised while handling a
response all derive from `CourierError` and carry the `status_code` and
`headers` of that response, so callers can branch on attributes rather
than parsing messages.
'''
from __future__ import annotations

from collections.abc import Mapping
from typing import Any


Headers = Mapping[str, 'str | tuple[str, ...]']


class CourierError(Exception):
    '''
    Base class for every error bound to an HTTP response.

    Parent: Exception
    '''
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        headers: Headers | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.headers: Headers = headers if headers is not None else {}


class HttpOnHttpError(CourierError):
    '''
    Raised when the response status code is 400 or higher and the caller
    asked for HTTP errors to be thrown. The decoded body is kept in `data`.
    '''
    def __init__(
        self,
        *,
        status_code: int,
        status_message: str,
        headers: Headers | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(status_message, status_code=status_code, headers=headers)
        self.status_message = status_message
        self.data = data

    @classmethod
    def from_response(cls, response: Any) -> 'HttpOnHttpError':
        '''
        Build the error from any response-shaped object exposing
        `status_code` (and ideally `status_message`/`reason_phrase`,
        `headers` and `data`).
        '''
        status_message = (
            getattr(response, 'status_message', None)
            or getattr(response, 'reason_phrase', None)
            or ''
        )
        return cls(
            status_code=response.status_code,
            status_message=status_message,
            headers=getattr(response, 'headers', None),
            data=getattr(response, 'data', None),
        )


class ResponseHandlerError(CourierError):
    '''
    Base class for failures while reading, decompressing or parsing
    a response body. `reason` holds the underlying exception, if any.
    '''
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        headers: Headers | None = None,
        reason: BaseException | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, headers=headers)
        self.reason = reason


class FetchBodyError(ResponseHandlerError):
    def __init__(
        self,
        *,
        status_code: int | None = None,
        headers: Headers | None = None,
        reason: BaseException | None = None,
    ) -> None:
        super().__init__(
            'An unexpected error occurred while trying to retrieve the '
            f"response body (reason: '{reason}').",
            status_code=status_code,
            headers=headers,
            reason=reason,
        )


class DecompressionError(ResponseHandlerError):
    '''
    Raised when the body cannot be decompressed. `buffer` is the body as it
    was received and `encodings` the tokens of the `content-encoding` header.
    '''
    def __init__(
        self,
        message: str | None = None,
        *,
        buffer: bytes = b'',
        encodings: list[str] | None = None,
        status_code: int | None = None,
        headers: Headers | None = None,
        reason: BaseException | None = None,
    ) -> None:
        if message is None:
            message = (
                'An unexpected error occurred when trying to decompress the '
                f"response body (reason: '{reason}')."
            )
        super().__init__(
            message,
            status_code=status_code,
            headers=headers,
            reason=reason,
        )
        self.buffer = buffer
        self.encodings: list[str] = encodings or []


class UnsupportedEncodingError(DecompressionError):
    def __init__(
        self,
        encoding: str,
        *,
        buffer: bytes = b'',
        encodings: list[str] | None = None,
        status_code: int | None = None,
        headers: Headers | None = None,
    ) -> None:
        super().__init__(
            f"Unsupported encoding '{encoding}'.",
            buffer=buffer,
            encodings=encodings,
            status_code=status_code,
            headers=headers,
        )
        self.encoding = encoding


class ParserError(ResponseHandlerError):
    '''
    Raised when the decompressed body cannot be interpreted according to
    its `content-type`. `text` is only set when the body was decoded to a
    string before the failure.
    '''
    def __init__(
        self,
        *,
        buffer: bytes = b'',
        text: str | None = None,
        status_code: int | None = None,
        headers: Headers | None = None,
        reason: BaseException | None = None,
    ) -> None:
        super().__init__(
            'An unexpected error occurred when trying to parse the '
            f"response body (reason: '{reason}').",
            status_code=status_code,
            headers=headers,
            reason=reason,
        )
        self.buffer = buffer
        self.text = text


class ResolutionError(ValueError):
    '''
    Raised when a request target cannot be resolved to a URL.

    Parent: ValueError
    '''


class InvalidURIError(ResolutionError):
    def __init__(self, uri: str, reason: str = 'not an absolute URL') -> None:
        super().__init__(f"Invalid URI '{uri}': {reason}")
        self.uri = uri


class RetryError(Exception):
    ...


class RetryAbortedError(RetryError):
    def __init__(self) -> None:
        super().__init__('Aborted')


class RetriesExceededError(RetryError):
    def __init__(self, attempts: int | None = None) -> None:
        super().__init__('Exceeded the maximum number of allowed retries!')
        self.attempts = attempts


def is_courier_error(error: object) -> bool:
    return isinstance(error, CourierError)


def is_http_error(error: object) -> bool:
    return isinstance(error, HttpOnHttpError)
