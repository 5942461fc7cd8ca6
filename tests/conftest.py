import httpx
import pytest

from courier.agents import AgentRegistry, AgentResolver, CustomAgent


WINDEV_ORIGIN = 'https://ws.dev.example.com'
WINDEV_MONITORING_URL = 'https://ws.dev.example.com/ws_monitoring'


def raw_response(
    status_code: int = 200,
    body: bytes = b'',
    headers: dict | None = None,
) -> httpx.Response:
    '''
    A response whose body is still unread, as a transport would return it,
    so the decoder sees the bytes exactly as sent.
    '''
    return httpx.Response(status_code, headers=headers, stream=httpx.ByteStream(body))


class RecordingTransport(httpx.AsyncBaseTransport):
    '''
    Mock transport keeping every request it receives.
    '''
    def __init__(self, handler) -> None:
        self.requests: list[httpx.Request] = []
        self._mock = httpx.MockTransport(handler)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return await self._mock.handle_async_request(request)


def json_ok(request: httpx.Request) -> httpx.Response:
    return raw_response(200, b'true', {'content-type': 'application/json'})


@pytest.fixture
async def windev_transport():
    return RecordingTransport(json_ok)


@pytest.fixture
async def windev_client(windev_transport):
    async with httpx.AsyncClient(transport=windev_transport) as client:
        yield client


@pytest.fixture
def windev(windev_client) -> CustomAgent:
    return CustomAgent(
        path_prefix='windev',
        origin=WINDEV_ORIGIN,
        dispatcher=windev_client,
    )


@pytest.fixture
def registry(windev) -> AgentRegistry:
    return AgentRegistry([windev])


@pytest.fixture
def resolver(registry) -> AgentResolver:
    return AgentResolver(registry)
