'''
**courier.agents**
------------------

Custom agents (a dispatcher bound to an origin and a path prefix), the
registry holding them and the cached resolver turning a `(method, uri)`
pair into a concrete URL plus dispatcher.
'''
from courier.agents._cache import (
    URI_CACHE_MAXSIZE,
    URI_CACHE_TTL,
    ResolutionCache,
    cache_key,
)
from courier.agents._registry import (
    AgentRegistry,
    AgentResolver,
    ConcurrencyLimiter,
    CustomAgent,
    Dispatcher,
    ResolvedTarget,
    match_path_prefix,
    parse_absolute_url,
)

__all__ = [
    'URI_CACHE_MAXSIZE',
    'URI_CACHE_TTL',
    'ResolutionCache',
    'cache_key',
    'AgentRegistry',
    'AgentResolver',
    'ConcurrencyLimiter',
    'CustomAgent',
    'Dispatcher',
    'ResolvedTarget',
    'match_path_prefix',
    'parse_absolute_url',
]
