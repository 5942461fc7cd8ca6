import socket
import ssl

import httpx

from courier.http import (
    ClientConfig,
    CourierAgent,
    KeepAlive,
    alpn_protocols,
    create_agent,
    default_ssl_context,
    socket_options,
)

from conftest import raw_response


class TestClientConfig:

    def test_defaults(self):
        config = ClientConfig()

        assert config.http2
        assert config.follow_redirects
        assert config.timeout.connect == 5.0
        assert config.limits.max_connections == 100

    def test_default_ssl_context(self):
        ctx = default_ssl_context()

        assert ctx.minimum_version == ssl.TLSVersion.TLSv1_2
        assert ctx.check_hostname
        assert ctx.verify_mode == ssl.CERT_REQUIRED

    def test_alpn_follows_http2(self):
        assert alpn_protocols(True) == ['h2', 'http/1.1']
        assert alpn_protocols(False) == ['http/1.1']

    def test_socket_options_follow_keepalive(self):
        opts = socket_options(ClientConfig(keepalive=KeepAlive(idle=30)))

        assert (socket.IPPROTO_TCP, socket.TCP_NODELAY, 1) in opts
        assert (socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1) in opts
        if hasattr(socket, 'TCP_KEEPIDLE'):
            assert (socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, 30) in opts

    def test_keepalive_disabled(self):
        opts = socket_options(ClientConfig(keepalive=None))

        assert opts == [(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)]


class TestCourierAgent:

    async def test_send_applies_the_agent_timeout(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.extensions['timeout'])
            return raw_response(200, b'ok')

        config = ClientConfig(timeout=httpx.Timeout(3.0))
        async with CourierAgent(config=config, transport=httpx.MockTransport(handler)) as agent:
            response = await agent.send(httpx.Request('GET', 'https://example.com/'))

        assert response.status_code == 200
        assert seen == [httpx.Timeout(3.0).as_dict()]
        assert agent.config is config

    async def test_create_agent(self):
        agent = create_agent()
        try:
            assert isinstance(agent, httpx.AsyncClient)
            assert agent.follow_redirects
        finally:
            await agent.aclose()
