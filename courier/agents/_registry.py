'''
Custom agents and the resolver mapping a logical request target
(method + URI, possibly a bare path such as `/svc/health`) onto a
concrete URL and the dispatcher that should send it.
'''
from __future__ import annotations

import dataclasses as dc
import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import Any, Protocol, TypeVar, runtime_checkable

import httpx

from courier.agents._cache import ResolutionCache, cache_key
from courier.errors import InvalidURIError

logger = logging.getLogger(__name__)

T = TypeVar('T')

_MISSING = object()


@runtime_checkable
class Dispatcher(Protocol):
    '''
    Anything able to send an `httpx.Request` over its own connection pool.
    `httpx.AsyncClient` (plain, proxied or backed by a `MockTransport`)
    satisfies it.
    '''
    async def send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        ...


ConcurrencyLimiter = Callable[[Callable[[], Awaitable[Any]]], Awaitable[Any]]


@dc.dataclass(frozen=True, slots=True)
class CustomAgent:
    '''
    A dispatcher bound to an origin, reachable through a path prefix.

    Attributes
    ----------
    - path_prefix: requests to `/<path_prefix>/...` or `<path_prefix>/...`
    are routed to `origin`.

    - origin: the base URL the remainder of the path is joined onto.

    - dispatcher: the pooled client used for this origin.

    - limiter: optional gate admitting a bounded number of concurrent calls.
    '''
    path_prefix: str
    origin: str
    dispatcher: Dispatcher = dc.field(compare=False, hash=False)
    limiter: ConcurrencyLimiter | None = dc.field(default=None, compare=False, hash=False)

    @property
    def origin_url(self) -> httpx.URL:
        return httpx.URL(self.origin)


@dc.dataclass(frozen=True, slots=True)
class ResolvedTarget:
    url: httpx.URL
    dispatcher: Dispatcher | None = None
    limiter: ConcurrencyLimiter | None = None


class AgentRegistry:
    '''
    An insertion-ordered set of `CustomAgent`. Agents are expected to be
    registered once at startup; lookups iterate in registration order.
    '''
    __slots__ = ('_agents',)

    def __init__(self, agents: list[CustomAgent] | None = None) -> None:
        self._agents: dict[CustomAgent, None] = {}
        for agent in agents or []:
            self.register(agent)

    def register(self, agent: CustomAgent) -> CustomAgent:
        if agent not in self._agents:
            self._agents[agent] = None
            logger.debug(f'Registered agent /{agent.path_prefix} -> {agent.origin}')
        return agent

    def unregister(self, agent: CustomAgent) -> None:
        self._agents.pop(agent, None)

    def find_by_hostname(self, url: httpx.URL) -> CustomAgent | None:
        '''
        Return the first agent whose origin hostname equals the hostname
        of `url`. Ports and schemes are not compared.

        Parameters
        ----------
        url : httpx.URL

        Returns
        -------
        CustomAgent | None
        '''
        hostname = url.host
        for agent in self._agents:
            if agent.origin_url.host == hostname:
                return agent

        return None

    def __iter__(self) -> Iterator[CustomAgent]:
        return iter(list(self._agents))

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent: object) -> bool:
        return agent in self._agents


def match_path_prefix(uri: str, agent: CustomAgent) -> httpx.URL | None:
    '''
    Match both `/prefix/xxx` and `prefix/xxx` against the agent prefix and,
    on match, join the rest of the path onto the agent origin.

    Examples
    --------
    >>> match_path_prefix('/windev/ws_monitoring', windev)
    URL('https://ws.dev.example.com/ws_monitoring')
    '''
    prefix = f'/{agent.path_prefix}' if uri.startswith('/') else agent.path_prefix
    if not uri.startswith(prefix):
        return None

    return agent.origin_url.join(uri[len(prefix):])


def parse_absolute_url(uri: str) -> httpx.URL:
    try:
        url = httpx.URL(uri)
    except httpx.InvalidURL as exc:
        raise InvalidURIError(uri, str(exc)) from exc

    if not url.scheme or not url.host:
        raise InvalidURIError(uri)

    return url


def _target_for(url: httpx.URL, agent: CustomAgent | None) -> ResolvedTarget:
    if agent is None:
        return ResolvedTarget(url=url)
    return ResolvedTarget(url=url, dispatcher=agent.dispatcher, limiter=agent.limiter)


class AgentResolver:
    '''
    Resolve `(method, uri)` pairs against an `AgentRegistry`, memoizing
    results in a `ResolutionCache`.
    '''
    def __init__(
        self,
        registry: AgentRegistry | None = None,
        cache: ResolutionCache | None = None,
    ) -> None:
        self.registry = registry if registry is not None else AgentRegistry()
        self.cache = cache if cache is not None else ResolutionCache()

    def resolve_string(self, uri: str) -> ResolvedTarget:
        '''
        Resolve a string URI: the first agent whose prefix matches wins,
        otherwise the URI must be absolute and the hostname decides which
        agent (if any) dispatches it.

        Raises
        ------
        InvalidURIError
            If no prefix matches and `uri` is not an absolute URL.
        '''
        for agent in self.registry:
            url = match_path_prefix(uri, agent)
            if url is not None:
                return _target_for(url, agent)

        url = parse_absolute_url(uri)
        return _target_for(url, self.registry.find_by_hostname(url))

    def resolve(self, method: str, uri: str | httpx.URL) -> ResolvedTarget:
        key = cache_key(method, uri)
        cached = self.cache.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f'Resolution cache hit for {key}')
            return cached

        if isinstance(uri, str):
            target = self.resolve_string(uri)
        else:
            target = _target_for(uri, self.registry.find_by_hostname(uri))

        self.cache.set(key, target)
        logger.debug(f'Resolved {key} -> {target.url}')
        return target
