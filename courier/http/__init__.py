'''
**courier.http**
----------------

The request façade (`Courier`), pooled agents built on httpx, streaming
helpers and the retry engine with its policies.
'''
from courier.http import _policies as policies
from courier.http._client import (
    ClientConfig,
    CourierAgent,
    KeepAlive,
    alpn_protocols,
    call_limited,
    create_agent,
    create_proxy_agent,
    create_transport,
    default_ssl_context,
    semaphore_limiter,
    socket_options,
)
from courier.http._policies import (
    DEFAULT_RETRY_CODES,
    CallablePolicy,
    Decision,
    DefaultPolicy,
    HttpCodePolicy,
    Outcome,
    RetryPolicy,
    Verdict,
)
from courier.http._request import (
    Courier,
    PreparedRequest,
    RequestResponse,
    apply_querystring,
)
from courier.http._result import Err, Ok, Result
from courier.http._retry import (
    AbortSignal,
    RetryMetrics,
    RetryOptions,
    RetryResult,
    RetryState,
    retry,
    retry_policy,
)
from courier.http._stream import StreamInfo, pipeline, stream
from courier.http._utils import (
    DEFAULT_HEADER,
    create_authorization_header,
    create_body,
    create_headers,
    is_async_iterable,
)

__all__ = [
    'policies',
    'ClientConfig',
    'CourierAgent',
    'KeepAlive',
    'alpn_protocols',
    'call_limited',
    'create_agent',
    'create_proxy_agent',
    'create_transport',
    'default_ssl_context',
    'semaphore_limiter',
    'socket_options',
    'DEFAULT_RETRY_CODES',
    'CallablePolicy',
    'Decision',
    'DefaultPolicy',
    'HttpCodePolicy',
    'Outcome',
    'RetryPolicy',
    'Verdict',
    'Courier',
    'PreparedRequest',
    'RequestResponse',
    'apply_querystring',
    'Err',
    'Ok',
    'Result',
    'AbortSignal',
    'RetryMetrics',
    'RetryOptions',
    'RetryResult',
    'RetryState',
    'retry',
    'retry_policy',
    'StreamInfo',
    'pipeline',
    'stream',
    'DEFAULT_HEADER',
    'create_authorization_header',
    'create_body',
    'create_headers',
    'is_async_iterable',
]
