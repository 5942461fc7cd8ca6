import asyncio
import contextlib
import dataclasses as dc
import logging
import socket
import ssl
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from courier.agents import ConcurrencyLimiter


logger = logging.getLogger(__name__)

T = TypeVar('T')


def _base_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=100,
        max_keepalive_connections=20,
        keepalive_expiry=15,
    )


def _base_timeouts() -> httpx.Timeout:
    return httpx.Timeout(
        connect=5.0,
        read=10.0,
        write=10.0,
        pool=5.0,
    )


@dc.dataclass(slots=True)
class KeepAlive:
    '''
    TCP keepalive probing of pooled connections, in seconds. Options the
    platform lacks are skipped.
    '''
    idle: int = 60
    interval: int = 10
    count: int = 5


@dc.dataclass(slots=True)
class ClientConfig:
    '''
    Configuration of a pooled agent. The defaults suit most services.

    `retries` only covers connection establishment inside httpcore;
    request-level retries belong to `courier.retry`. `http2` also decides
    which protocols are offered through ALPN.
    '''
    timeout: httpx.Timeout = dc.field(default_factory=_base_timeouts)
    limits: httpx.Limits = dc.field(default_factory=_base_limits)
    keepalive: KeepAlive | None = dc.field(default_factory=KeepAlive)
    http2: bool = True
    follow_redirects: bool = True
    trust_env: bool = False
    retries: int = 1


def socket_options(config: ClientConfig) -> list[tuple[int, int, int]]:
    '''
    TCP_NODELAY plus the keepalive probing of `config.keepalive`.
    '''
    opts = [(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)]

    keepalive = config.keepalive
    if keepalive is None:
        return opts

    opts.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))
    for name, value in (
        ('TCP_KEEPIDLE', keepalive.idle),
        ('TCP_KEEPINTVL', keepalive.interval),
        ('TCP_KEEPCNT', keepalive.count),
    ):
        option = getattr(socket, name, None)
        if option is not None:
            opts.append((socket.IPPROTO_TCP, option, value))

    return opts


def alpn_protocols(http2: bool) -> list[str]:
    return ['h2', 'http/1.1'] if http2 else ['http/1.1']


def default_ssl_context(http2: bool = True) -> ssl.SSLContext:
    '''
    Verifying TLS 1.2+ context advertising the protocols the agent speaks.

    Parameters
    ----------
    http2 : bool, optional
        Offer `h2` before `http/1.1`, by default True

    Returns
    -------
    ssl.SSLContext
    '''
    ctx = ssl.create_default_context(purpose=ssl.Purpose.SERVER_AUTH)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    ctx.options |= ssl.OP_NO_COMPRESSION

    with contextlib.suppress(NotImplementedError):
        ctx.set_alpn_protocols(alpn_protocols(http2))

    return ctx


def create_transport(
    config: ClientConfig | None = None,
    proxy: str | httpx.Proxy | None = None,
) -> httpx.AsyncHTTPTransport:
    config = config or ClientConfig()
    return httpx.AsyncHTTPTransport(
        verify=default_ssl_context(config.http2),
        http2=config.http2,
        limits=config.limits,
        trust_env=config.trust_env,
        proxy=proxy,
        retries=config.retries,
        socket_options=socket_options(config),
    )


async def log_request(request: httpx.Request) -> None:
    logger.debug(f'Sending request: {request.method} {request.url}')


class CourierAgent(httpx.AsyncClient):
    '''
    A pooled dispatcher: `httpx.AsyncClient` over a tuned transport.
    Each agent owns its own connection pool.
    '''

    def __init__(
        self,
        *,
        config: ClientConfig | None = None,
        proxy: str | httpx.Proxy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config: ClientConfig = config or ClientConfig()

        super().__init__(
            transport=transport or create_transport(self._config, proxy),
            timeout=self._config.timeout,
            follow_redirects=self._config.follow_redirects,
            trust_env=self._config.trust_env,
            event_hooks={'request': [log_request]},
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def send(self, request: httpx.Request, **kwargs: Any) -> httpx.Response:
        # requests built outside `build_request` carry no timeout
        request.extensions.setdefault('timeout', self.timeout.as_dict())
        return await super().send(request, **kwargs)


def create_agent(config: ClientConfig | None = None) -> CourierAgent:
    return CourierAgent(config=config)


def create_proxy_agent(
    proxy: str | httpx.Proxy,
    config: ClientConfig | None = None,
) -> CourierAgent:
    return CourierAgent(config=config, proxy=proxy)


def semaphore_limiter(concurrency: int) -> ConcurrencyLimiter:
    '''
    A limiter admitting at most `concurrency` calls at a time.

    Parameters
    ----------
    concurrency : int

    Returns
    -------
    ConcurrencyLimiter
    '''
    if concurrency < 1:
        raise ValueError('concurrency must be at least 1')

    semaphore = asyncio.Semaphore(concurrency)

    async def limit(callback: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await callback()

    return limit


async def call_limited(
    callback: Callable[[], Awaitable[T]],
    limiter: ConcurrencyLimiter | None,
) -> Any:
    if limiter is None:
        return await callback()
    return await limiter(callback)
