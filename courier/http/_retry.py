'''
retry engine for arbitrary (sync or async) operations

Raises
------
RetriesExceededError
    _raised when the retry budget is exhausted, the last error is not attached_
RetryAbortedError
    _raised as soon as the abort signal fires_
'''
from __future__ import annotations

import asyncio
import dataclasses as dc
import functools
import inspect
import logging
import math
import time
from collections.abc import Awaitable, Callable
from typing import Any, Generic, ParamSpec, TypeVar

from courier.errors import RetriesExceededError, RetryAbortedError
from courier.http._policies import DefaultPolicy, Outcome, RetryPolicy, Verdict

logger = logging.getLogger(__name__)

P = ParamSpec('P')
R = TypeVar('R')


class AbortSignal:
    '''
    Cooperative cancellation token shared between the caller, the
    operation and the backoff delay. Must be fired from the event loop
    thread.
    '''
    __slots__ = ('_event',)

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_aborted(self) -> None:
        if self.aborted:
            raise RetryAbortedError()


@dc.dataclass(slots=True)
class RetryOptions:
    '''
    Options of the retry engine. Timeouts are in seconds.
    '''
    retries: int = 3
    forever: bool = False
    factor: float = 2.0
    min_timeout: float = 1.0
    max_timeout: float = math.inf
    signal: AbortSignal | None = None

    def get_timeout(self, attempt: int) -> float:
        '''
        The deterministic backoff delay to wait after `attempt`
        (1-based): `min_timeout * factor ** (attempt - 1)`, clamped to
        `max_timeout`. A delay too large for a float counts as infinite,
        so `forever` retries keep going past a thousand attempts.
        '''
        if self.min_timeout <= 0:
            return 0.0

        try:
            timeout = self.min_timeout * math.pow(self.factor, attempt - 1)
        except OverflowError:
            timeout = math.inf

        return max(0.0, min(timeout, self.max_timeout))


@dc.dataclass(frozen=True, slots=True)
class RetryMetrics:
    attempt: int
    elapsed_timeout_time: float
    execution_timestamp: float


@dc.dataclass(frozen=True, slots=True)
class RetryResult(Generic[R]):
    data: R
    metrics: RetryMetrics


@dc.dataclass(slots=True)
class RetryState:
    start: float = dc.field(default_factory=time.monotonic)
    attempt: int = 0
    elapsed_timeout_time: float = 0.0
    execution_timestamp: float = 0.0

    def next_attempt(self) -> None:
        self.attempt += 1
        self.execution_timestamp = time.time()
        self.elapsed_timeout_time = time.monotonic() - self.start

    def metrics(self) -> RetryMetrics:
        return RetryMetrics(
            attempt=self.attempt,
            elapsed_timeout_time=self.elapsed_timeout_time,
            execution_timestamp=self.execution_timestamp,
        )


async def _invoke(operation: Callable[[], R | Awaitable[R]]) -> R:
    result = operation()
    if inspect.isawaitable(result):
        return await result
    return result


async def _backoff(delay: float, signal: AbortSignal | None) -> None:
    if signal is None:
        await asyncio.sleep(delay)
        return

    try:
        await asyncio.wait_for(signal.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return

    logger.warning('Retry aborted during backoff delay')
    raise RetryAbortedError()


async def retry(
    operation: Callable[[], R | Awaitable[R]],
    options: RetryOptions | None = None,
    policy: RetryPolicy | None = None,
) -> RetryResult[R]:
    '''
    Call `operation` until `policy` accepts its outcome, the retry budget
    is exhausted or `options.signal` is aborted.

    Parameters
    ----------
    operation : Callable[[], R | Awaitable[R]]
        A zero-argument callable, sync or async.
    options : RetryOptions | None, optional
        by default `RetryOptions()`
    policy : RetryPolicy | None, optional
        by default a policy retrying every raised error

    Returns
    -------
    RetryResult[R]
        The accepted value and the metrics of the successful attempt.

    Raises
    ------
    RetryAbortedError
    RetriesExceededError
    BaseException
        Whatever error the policy rejects, unmodified.
    '''
    options = options or RetryOptions()
    policy = policy or DefaultPolicy()
    signal = options.signal
    state = RetryState()

    while True:
        if signal is not None:
            signal.raise_if_aborted()

        state.next_attempt()
        try:
            data = await _invoke(operation)
        except Exception as exc:
            decision = policy.classify(Outcome(error=exc))
            # an accepted error has no value to return, it propagates like a rejection
            if decision.verdict is not Verdict.RETRY:
                if decision.error is None or decision.error is exc:
                    raise
                raise decision.error from exc
            logger.debug(f'Attempt {state.attempt} failed: {exc!r}')
        else:
            decision = policy.classify(Outcome(data=data))
            if decision.verdict is Verdict.ACCEPT:
                return RetryResult(data=data, metrics=state.metrics())
            if decision.verdict is Verdict.REJECT:
                if decision.error is None:
                    raise RuntimeError(
                        f'{type(policy).__name__} rejected attempt {state.attempt} without an error'
                    )
                raise decision.error
            logger.debug(f'Attempt {state.attempt} returned a value to retry')

        if signal is not None and signal.aborted:
            logger.warning(f'Retry aborted after attempt {state.attempt}')
            raise RetryAbortedError()

        if not options.forever and state.attempt >= options.retries:
            raise RetriesExceededError(state.attempt)

        delay = options.get_timeout(state.attempt)
        logger.debug(f'Retrying in {delay:.3f}s (attempt {state.attempt + 1})')
        await _backoff(delay, signal)


class retry_policy:
    '''
    Decorator running every call of an async function through `retry`.

    Examples
    --------
    >>> @retry_policy(retries=3, min_timeout=0.25)
    ... async def fetch():
    ...     ...
    '''
    def __init__(
        self,
        *,
        policy: RetryPolicy | None = None,
        **options: Any,
    ) -> None:
        self.options = RetryOptions(**options)
        self.policy = policy

    async def call_with_retries(
        self,
        func: Callable[P, Awaitable[R]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> R:
        result = await retry(
            lambda: func(*args, **kwargs),
            self.options,
            self.policy,
        )
        return result.data

    def __call__(self, func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return await self.call_with_retries(func, *args, **kwargs)

        return wrapper
