'''
**courier**
-----------

An ergonomic async HTTP client layer on top of httpx: path-prefix routing
to custom agents, content-encoding/content-type aware body decoding and a
retry engine with pluggable policies.
'''
from courier.agents import AgentRegistry, AgentResolver, CustomAgent, ResolvedTarget
from courier.decoding import ResponseEnvelope, ResponseHandler, decode
from courier.errors import (
    CourierError,
    DecompressionError,
    FetchBodyError,
    HttpOnHttpError,
    InvalidURIError,
    ParserError,
    ResolutionError,
    RetriesExceededError,
    RetryAbortedError,
    UnsupportedEncodingError,
    is_courier_error,
    is_http_error,
)
from courier.http import (
    AbortSignal,
    ClientConfig,
    Courier,
    CourierAgent,
    RequestResponse,
    RetryOptions,
    create_agent,
    create_proxy_agent,
    pipeline,
    policies,
    retry,
    retry_policy,
    semaphore_limiter,
    stream,
)

__all__ = [
    'AgentRegistry',
    'AgentResolver',
    'CustomAgent',
    'ResolvedTarget',
    'ResponseEnvelope',
    'ResponseHandler',
    'decode',
    'CourierError',
    'DecompressionError',
    'FetchBodyError',
    'HttpOnHttpError',
    'InvalidURIError',
    'ParserError',
    'ResolutionError',
    'RetriesExceededError',
    'RetryAbortedError',
    'UnsupportedEncodingError',
    'is_courier_error',
    'is_http_error',
    'AbortSignal',
    'ClientConfig',
    'Courier',
    'CourierAgent',
    'RequestResponse',
    'RetryOptions',
    'create_agent',
    'create_proxy_agent',
    'pipeline',
    'policies',
    'retry',
    'retry_policy',
    'semaphore_limiter',
    'stream',
]
