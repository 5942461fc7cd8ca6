import gzip
import json

import httpx
import pytest

from courier.agents import AgentRegistry, CustomAgent
from courier.errors import (
    HttpOnHttpError,
    InvalidURIError,
    ParserError,
    UnsupportedEncodingError,
    is_http_error,
)
from courier.http import Courier, Err, Ok, semaphore_limiter

from conftest import RecordingTransport, raw_response


BASE_URL = 'http://local.test'


def local_server(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == '/':
        return raw_response(200, b'{"uptime": 12.5}', {'content-type': 'application/json'})
    if path == '/qs':
        body = json.dumps({'name': request.url.params.get('name')}).encode()
        return raw_response(200, body, {'content-type': 'application/json'})
    if path == '/echo':
        body = json.dumps({
            'method': request.method,
            'headers': dict(request.headers),
            'body': request.content.decode(),
        }).encode()
        return raw_response(200, body, {'content-type': 'application/json'})
    if path == '/jsonError':
        return raw_response(200, b"{ 'foo': bar }", {'content-type': 'application/json'})
    if path == '/gzip':
        return raw_response(
            200,
            gzip.compress(b'{"compressed": true}'),
            {'content-type': 'application/json', 'content-encoding': 'gzip'},
        )
    if path == '/badencoding':
        return raw_response(200, b'payload', {'content-encoding': 'unknown'})
    return raw_response(404, b'<html><body>Not Found</body></html>', {'content-type': 'text/html'})


@pytest.fixture
async def local_transport():
    return RecordingTransport(local_server)


@pytest.fixture
async def courier(local_transport, windev):
    async with httpx.AsyncClient(transport=local_transport) as agent:
        local = CustomAgent(path_prefix='local', origin=BASE_URL, dispatcher=agent)
        async with Courier(AgentRegistry([local, windev]), agent=agent) as client:
            yield client


class TestRequest:

    async def test_get_through_agent_prefix(self, courier):
        response = await courier.get('/local/')

        assert response.status_code == 200
        assert response.status_message == 'OK'
        assert response.data == {'uptime': 12.5}
        assert response.headers == {'content-type': 'application/json'}

    async def test_querystring(self, courier):
        response = await courier.get('/local/qs', querystring={'name': 'foobar'})

        assert response.data == {'name': 'foobar'}

    async def test_querystring_replaces_existing_values(self, courier, local_transport):
        await courier.get('/local/qs?name=old&keep=1', querystring=[('name', 'new')])

        params = local_transport.requests[-1].url.params
        assert params.get_list('name') == ['new']
        assert params.get('keep') == '1'

    async def test_dispatches_to_the_matching_agent(self, courier, windev_transport, local_transport):
        response = await courier.get('/windev/ws_monitoring')

        assert response.data is True
        assert len(windev_transport.requests) == 1
        assert str(windev_transport.requests[0].url) == 'https://ws.dev.example.com/ws_monitoring'
        assert local_transport.requests == []

    async def test_explicit_agent_overrides_resolution(self, courier, windev_client, windev_transport):
        response = await courier.get('http://local.test/', agent=windev_client)

        assert response.data is True
        assert str(windev_transport.requests[0].url) == 'http://local.test/'

    async def test_absolute_url_uses_the_default_agent(self, courier, local_transport):
        response = await courier.get('http://elsewhere.test/')

        assert response.data == {'uptime': 12.5}
        assert local_transport.requests[-1].url.host == 'elsewhere.test'

    async def test_http_error(self, courier):
        with pytest.raises(HttpOnHttpError) as exc_info:
            await courier.get('/local/unknown')

        error = exc_info.value
        assert is_http_error(error)
        assert error.status_code == 404
        assert error.status_message == 'Not Found'
        assert error.data == '<html><body>Not Found</body></html>'
        assert error.headers == {'content-type': 'text/html'}

    async def test_http_error_not_thrown_when_disabled(self, courier):
        response = await courier.get('/local/unknown', throw_on_http_error=False)

        assert response.status_code == 404
        assert response.data == '<html><body>Not Found</body></html>'

    async def test_parser_error(self, courier):
        with pytest.raises(ParserError) as exc_info:
            await courier.get('/local/jsonError')

        error = exc_info.value
        assert isinstance(error.reason, json.JSONDecodeError)
        assert error.text == "{ 'foo': bar }"
        assert error.buffer == b"{ 'foo': bar }"

    async def test_gzip_is_decoded(self, courier):
        response = await courier.get('/local/gzip')

        assert response.data == {'compressed': True}

    async def test_raw_mode(self, courier):
        response = await courier.get('/local/gzip', mode='raw')

        assert gzip.decompress(response.data) == b'{"compressed": true}'
        assert response.headers['content-encoding'] == 'gzip'

    async def test_decompress_mode(self, courier):
        response = await courier.get('/local/gzip', mode='decompress')

        assert response.data == b'{"compressed": true}'

    async def test_unsupported_encoding(self, courier):
        with pytest.raises(UnsupportedEncodingError) as exc_info:
            await courier.get('/local/badencoding')

        assert exc_info.value.buffer == b'payload'
        assert exc_info.value.status_code == 200

    async def test_invalid_uri(self, courier):
        with pytest.raises(InvalidURIError):
            await courier.get('/nowhere/healthz')

    @pytest.mark.parametrize('method', ['post', 'put', 'patch', 'delete'])
    async def test_json_body(self, courier, method):
        response = await getattr(courier, method)('/local/echo', body={'title': 'foo'})

        assert response.data['method'] == method.upper()
        assert json.loads(response.data['body']) == {'title': 'foo'}
        assert response.data['headers']['content-type'] == 'application/json'
        assert response.data['headers']['user-agent'] == 'courier'

    async def test_form_body(self, courier):
        response = await courier.post('/local/echo', body=httpx.QueryParams({'foo': 'bar'}))

        assert response.data['body'] == 'foo=bar'
        assert response.data['headers']['content-type'] == 'application/x-www-form-urlencoded'

    async def test_authorization(self, courier):
        response = await courier.get('/local/echo', authorization='secret')

        assert response.data['headers']['authorization'] == 'Bearer secret'

    async def test_limit(self, courier):
        executed = []

        async def limit(callback):
            executed.append(True)
            return await callback()

        response = await courier.get('/local/', limit=limit)

        assert response.data == {'uptime': 12.5}
        assert executed == [True]

    async def test_agent_limiter(self, local_transport):
        limiter = semaphore_limiter(1)
        calls = []

        async def tracking(callback):
            calls.append(True)
            return await limiter(callback)

        async with httpx.AsyncClient(transport=local_transport) as agent:
            registry = AgentRegistry([
                CustomAgent(path_prefix='local', origin=BASE_URL, dispatcher=agent, limiter=tracking),
            ])
            courier = Courier(registry, agent=agent)
            await courier.get('/local/')

        assert calls == [True]


class TestSafeRequest:

    async def test_ok(self, courier):
        result = await courier.safe_get('/local/')

        assert isinstance(result, Ok)
        assert result.ok
        assert result.unwrap().data == {'uptime': 12.5}

    async def test_err(self, courier):
        result = await courier.safe_get('/local/unknown')

        assert isinstance(result, Err)
        assert result.err
        assert is_http_error(result.error)
        assert result.error.status_code == 404
        assert result.unwrap_or(None) is None
