import dataclasses as dc

import httpx
import pytest

from courier.agents import (
    AgentRegistry,
    AgentResolver,
    CustomAgent,
    ResolutionCache,
    match_path_prefix,
)
from courier.errors import InvalidURIError, ResolutionError

from conftest import WINDEV_MONITORING_URL


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestAgentRegistry:

    def test_register_keeps_insertion_order(self, windev):
        other = CustomAgent(path_prefix='other', origin='https://other.example.com', dispatcher=object())
        registry = AgentRegistry()
        registry.register(other)
        registry.register(windev)

        assert list(registry) == [other, windev]

    def test_register_same_agent_twice_is_noop(self, windev):
        registry = AgentRegistry([windev])
        registry.register(windev)

        assert len(registry) == 1
        assert windev in registry

    def test_find_by_hostname(self, registry, windev):
        assert registry.find_by_hostname(httpx.URL('https://ws.dev.example.com')) is windev

    def test_find_by_hostname_ignores_port_and_scheme(self, registry, windev):
        assert registry.find_by_hostname(httpx.URL('http://ws.dev.example.com:8080/x')) is windev

    def test_find_by_hostname_unknown(self, registry):
        assert registry.find_by_hostname(httpx.URL('https://www.google.fr/')) is None


class TestMatchPathPrefix:

    def test_match_with_leading_slash(self, windev):
        url = match_path_prefix('/windev/ws_monitoring', windev)
        assert str(url) == WINDEV_MONITORING_URL

    def test_match_without_leading_slash(self, windev):
        url = match_path_prefix('windev/ws_monitoring', windev)
        assert str(url) == WINDEV_MONITORING_URL

    def test_no_match(self, windev):
        assert match_path_prefix('/xd/ws_monitoring', windev) is None


class TestResolveString:

    def test_resolve_with_agent_prefix(self, resolver, windev):
        target = resolver.resolve_string('/windev/ws_monitoring')

        assert str(target.url) == WINDEV_MONITORING_URL
        assert target.dispatcher is windev.dispatcher

    def test_absolute_url_without_agent(self, resolver):
        target = resolver.resolve_string('https://www.google.fr/')

        assert str(target.url) == 'https://www.google.fr/'
        assert target.dispatcher is None
        assert target.limiter is None

    def test_absolute_url_attaches_agent_by_hostname(self, resolver, windev):
        target = resolver.resolve_string(WINDEV_MONITORING_URL)

        assert target.dispatcher is windev.dispatcher

    @pytest.mark.parametrize('uri', ['/xdd/healthz', 'xdd/healthz', 'healthz'])
    def test_relative_uri_without_agent_raises(self, resolver, uri):
        with pytest.raises(InvalidURIError) as exc_info:
            resolver.resolve_string(uri)

        assert exc_info.value.uri == uri
        assert isinstance(exc_info.value, ResolutionError)
        assert isinstance(exc_info.value, ValueError)

    def test_first_registered_prefix_wins(self):
        first = CustomAgent(path_prefix='svc', origin='https://first.example.com', dispatcher=object())
        second = CustomAgent(path_prefix='svc/v2', origin='https://second.example.com', dispatcher=object())
        resolver = AgentResolver(AgentRegistry([first, second]))

        target = resolver.resolve_string('/svc/v2/items')

        assert str(target.url) == 'https://first.example.com/v2/items'
        assert target.dispatcher is first.dispatcher


class TestResolve:

    def test_resolve_string_is_cached(self, resolver, windev):
        target = resolver.resolve('GET', WINDEV_MONITORING_URL)

        assert str(target.url) == WINDEV_MONITORING_URL
        assert target.dispatcher is windev.dispatcher
        assert resolver.cache.has('GET' + WINDEV_MONITORING_URL)

    def test_resolve_url_object_is_cached(self, resolver, windev):
        url = httpx.URL(WINDEV_MONITORING_URL)
        target = resolver.resolve('post', url)

        assert target.url == url
        assert target.dispatcher is windev.dispatcher
        assert resolver.cache.has('POST' + str(url))

    def test_second_call_returns_cached_value(self, resolver, monkeypatch):
        first = resolver.resolve('GET', '/windev/ws_monitoring')

        def fail(uri):
            raise AssertionError('resolution should come from the cache')

        monkeypatch.setattr(resolver, 'resolve_string', fail)
        assert resolver.resolve('GET', '/windev/ws_monitoring') is first

    def test_cached_target_is_immutable(self, resolver):
        target = resolver.resolve('GET', '/windev/ws_monitoring')

        with pytest.raises(dc.FrozenInstanceError):
            target.url = httpx.URL('https://evil.example/')

        assert str(resolver.resolve('GET', '/windev/ws_monitoring').url) == WINDEV_MONITORING_URL

    def test_cached_entry_is_returned_verbatim(self, resolver):
        resolver.cache.set('GET' + WINDEV_MONITORING_URL, True)

        assert resolver.resolve('GET', WINDEV_MONITORING_URL) is True

    def test_method_is_part_of_the_key(self, resolver, windev):
        resolver.cache.set('POST' + WINDEV_MONITORING_URL, True)
        target = resolver.resolve('GET', WINDEV_MONITORING_URL)

        assert str(target.url) == WINDEV_MONITORING_URL
        assert target.dispatcher is windev.dispatcher
        assert resolver.cache.has('GET' + WINDEV_MONITORING_URL)

    def test_url_object_skips_prefix_matching(self):
        agent = CustomAgent(path_prefix='svc', origin='https://h/', dispatcher=object())
        resolver = AgentResolver(AgentRegistry([agent]))
        url = httpx.URL('https://other.example/svc/health')

        target = resolver.resolve('GET', url)

        assert target.url == url
        assert target.dispatcher is None

    def test_failure_is_not_cached(self, resolver):
        with pytest.raises(InvalidURIError):
            resolver.resolve('GET', '/unknown/path')

        assert not resolver.cache.has('GET/unknown/path')

    def test_prefix_agent_end_to_end(self):
        dispatcher = object()
        registry = AgentRegistry()
        registry.register(CustomAgent(path_prefix='svc', origin='https://h/', dispatcher=dispatcher))
        resolver = AgentResolver(registry)

        target = resolver.resolve('GET', 'svc/health')
        assert str(target.url) == 'https://h/health'
        assert target.dispatcher is dispatcher

        unrelated = resolver.resolve('GET', 'https://other.example/')
        assert str(unrelated.url) == 'https://other.example/'
        assert unrelated.dispatcher is None


class TestResolutionCache:

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = ResolutionCache(maxsize=10, ttl=60, timer=clock)
        cache.set('GETx', 'value')

        clock.now = 59
        assert cache.get('GETx') == 'value'

        clock.now = 61
        assert cache.get('GETx') is None
        assert len(cache) == 0

    def test_least_recently_used_is_evicted(self):
        cache = ResolutionCache(maxsize=2, ttl=60)
        cache.set('a', 1)
        cache.set('b', 2)
        cache.get('a')
        cache.set('c', 3)

        assert cache.has('a')
        assert not cache.has('b')
        assert cache.has('c')

    def test_clear(self):
        cache = ResolutionCache()
        cache.set('a', 1)
        cache.clear()

        assert 'a' not in cache
