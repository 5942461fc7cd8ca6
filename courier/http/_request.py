from __future__ import annotations

import dataclasses as dc
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Self

import httpx

from courier.agents import (
    AgentRegistry,
    AgentResolver,
    ConcurrencyLimiter,
    Dispatcher,
    ResolutionCache,
)
from courier.decoding import ModeOfHandling, ResponseHandler
from courier.errors import CourierError, HttpOnHttpError
from courier.http._client import ClientConfig, call_limited, create_agent
from courier.http._result import Err, Ok, Result
from courier.http._utils import Body, create_body, create_headers

logger = logging.getLogger(__name__)


QueryString = Mapping[str, Any] | str | Sequence[tuple[str, Any]] | httpx.QueryParams


@dc.dataclass(slots=True)
class RequestResponse:
    data: Any
    headers: Mapping[str, str | tuple[str, ...]]
    status_code: int
    status_message: str


@dc.dataclass(slots=True)
class PreparedRequest:
    request: httpx.Request
    dispatcher: Dispatcher
    limiter: ConcurrencyLimiter | None = None


def apply_querystring(url: httpx.URL, querystring: QueryString | None) -> httpx.URL:
    '''
    Set every key of `querystring` on `url`, replacing values already
    present in the URL.
    '''
    if querystring is None:
        return url

    for key, value in httpx.QueryParams(querystring).multi_items():
        url = url.copy_set_param(key, value)

    return url


class Courier:
    '''
    The request façade: resolves the target against the registered agents,
    sends it through the matching dispatcher and decodes the body.

    Parameters
    ----------
    registry : AgentRegistry | None, optional
        The custom agents to route to, by default an empty registry
    agent : Dispatcher | None, optional
        Dispatcher used when no custom agent matches, by default a
        `CourierAgent` built from `config` (and closed by `aclose`)
    config : ClientConfig | None, optional
    cache : ResolutionCache | None, optional
    '''

    def __init__(
        self,
        registry: AgentRegistry | None = None,
        *,
        agent: Dispatcher | None = None,
        config: ClientConfig | None = None,
        cache: ResolutionCache | None = None,
    ) -> None:
        self.resolver = AgentResolver(registry, cache)
        self._owns_agent = agent is None
        self.agent: Dispatcher = agent if agent is not None else create_agent(config)

    @property
    def registry(self) -> AgentRegistry:
        return self.resolver.registry

    def prepare(
        self,
        method: str,
        uri: str | httpx.URL,
        *,
        headers: Mapping[str, str] | None = None,
        querystring: QueryString | None = None,
        body: Body = None,
        authorization: str | None = None,
        agent: Dispatcher | None = None,
        limit: ConcurrencyLimiter | None = None,
    ) -> PreparedRequest:
        target = self.resolver.resolve(method, uri)
        url = apply_querystring(target.url, querystring)

        all_headers = create_headers(headers, authorization)
        content = create_body(body, all_headers)

        request = httpx.Request(
            method.upper(),
            url,
            headers=all_headers,
            content=content,
        )
        return PreparedRequest(
            request=request,
            dispatcher=agent or target.dispatcher or self.agent,
            limiter=limit or target.limiter,
        )

    async def request(
        self,
        method: str,
        uri: str | httpx.URL,
        *,
        mode: ModeOfHandling = 'parse',
        throw_on_http_error: bool = True,
        **options: Any,
    ) -> RequestResponse:
        '''
        Send a request and decode its response.

        Parameters
        ----------
        method : str
        uri : str | httpx.URL
            An absolute URL or a path starting with a custom agent prefix.
        mode : ModeOfHandling, optional
            How the body is decoded, by default 'parse'
        throw_on_http_error : bool, optional
            Raise `HttpOnHttpError` for status codes >= 400, by default True
        **options
            `headers`, `querystring`, `body`, `authorization`, `agent`, `limit`

        Returns
        -------
        RequestResponse

        Raises
        ------
        HttpOnHttpError
        FetchBodyError, DecompressionError, ParserError
        InvalidURIError
        httpx.HTTPError
            On transport failures.
        '''
        prepared = self.prepare(method, uri, **options)

        async def exchange() -> RequestResponse:
            response = await prepared.dispatcher.send(prepared.request, stream=True)
            handler = ResponseHandler(response)
            data = await handler.get_data(mode)
            envelope = await handler.envelope()
            return RequestResponse(
                data=data,
                headers=dict(envelope.headers),
                status_code=response.status_code,
                status_message=response.reason_phrase,
            )

        result = await call_limited(exchange, prepared.limiter)
        logger.debug(f'{prepared.request.method} {prepared.request.url} -> {result.status_code}')

        if throw_on_http_error and result.status_code >= 400:
            raise HttpOnHttpError.from_response(result)

        return result

    async def get(self, uri: str | httpx.URL, **options: Any) -> RequestResponse:
        return await self.request('GET', uri, **options)

    async def post(self, uri: str | httpx.URL, **options: Any) -> RequestResponse:
        return await self.request('POST', uri, **options)

    async def put(self, uri: str | httpx.URL, **options: Any) -> RequestResponse:
        return await self.request('PUT', uri, **options)

    async def patch(self, uri: str | httpx.URL, **options: Any) -> RequestResponse:
        return await self.request('PATCH', uri, **options)

    async def delete(self, uri: str | httpx.URL, **options: Any) -> RequestResponse:
        return await self.request('DELETE', uri, **options)

    async def safe_request(
        self,
        method: str,
        uri: str | httpx.URL,
        **options: Any,
    ) -> Result[RequestResponse, Exception]:
        '''
        Same as `request` but returns `Err(error)` instead of raising
        courier or transport errors.
        '''
        try:
            return Ok(await self.request(method, uri, **options))
        except (CourierError, httpx.HTTPError) as exc:
            return Err(exc)

    async def safe_get(self, uri: str | httpx.URL, **options: Any) -> Result[RequestResponse, Exception]:
        return await self.safe_request('GET', uri, **options)

    async def safe_post(self, uri: str | httpx.URL, **options: Any) -> Result[RequestResponse, Exception]:
        return await self.safe_request('POST', uri, **options)

    async def safe_put(self, uri: str | httpx.URL, **options: Any) -> Result[RequestResponse, Exception]:
        return await self.safe_request('PUT', uri, **options)

    async def safe_patch(self, uri: str | httpx.URL, **options: Any) -> Result[RequestResponse, Exception]:
        return await self.safe_request('PATCH', uri, **options)

    async def safe_delete(self, uri: str | httpx.URL, **options: Any) -> Result[RequestResponse, Exception]:
        return await self.safe_request('DELETE', uri, **options)

    async def aclose(self) -> None:
        if self._owns_agent and isinstance(self.agent, httpx.AsyncClient):
            await self.agent.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
