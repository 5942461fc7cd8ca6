'''
Retry policies: classifiers deciding whether the outcome of an attempt
should be retried, accepted, or rejected outright.
'''
from __future__ import annotations

import dataclasses as dc
import enum
from collections.abc import Callable, Iterable
from typing import Any

from courier.errors import HttpOnHttpError


DEFAULT_RETRY_CODES = frozenset({
    307, 408, 429, 444, 500, 502, 503, 504, 520, 521, 522, 523, 524,
})


class Verdict(enum.Enum):
    RETRY = 'retry'
    ACCEPT = 'accept'
    REJECT = 'reject'


@dc.dataclass(frozen=True, slots=True)
class Decision:
    verdict: Verdict
    error: BaseException | None = None

    @classmethod
    def retry(cls) -> Decision:
        return cls(Verdict.RETRY)

    @classmethod
    def accept(cls) -> Decision:
        return cls(Verdict.ACCEPT)

    @classmethod
    def reject(cls, error: BaseException) -> Decision:
        return cls(Verdict.REJECT, error)


@dc.dataclass(frozen=True, slots=True)
class Outcome:
    '''
    The result of one attempt: either the value returned by the operation
    or the exception it raised.
    '''
    data: Any = None
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class RetryPolicy:
    def classify(self, outcome: Outcome) -> Decision:
        raise NotImplementedError


class DefaultPolicy(RetryPolicy):
    '''
    Retry on any raised error, accept any returned value.
    '''
    def classify(self, outcome: Outcome) -> Decision:
        if outcome.failed:
            return Decision.retry()
        return Decision.accept()


class CallablePolicy(RetryPolicy):
    def __init__(self, func: Callable[[Outcome], Decision]) -> None:
        self.func = func

    def classify(self, outcome: Outcome) -> Decision:
        return self.func(outcome)


class HttpCodePolicy(RetryPolicy):
    '''
    Retry HTTP failures whose status code is in `codes`.

    Errors without a status code (network failures, timeouts) are always
    retried. A response-shaped value below 400 is accepted; any other
    status outside `codes` is rejected immediately.
    '''
    def __init__(
        self,
        codes: Iterable[int] | None = None,
        include_defaults: bool = False,
    ) -> None:
        selected = set(DEFAULT_RETRY_CODES if codes is None else codes)
        if include_defaults:
            selected |= DEFAULT_RETRY_CODES
        self.codes: frozenset[int] = frozenset(selected)

    def classify(self, outcome: Outcome) -> Decision:
        if outcome.failed:
            status = getattr(outcome.error, 'status_code', None)
            if not isinstance(outcome.error, HttpOnHttpError) or status is None:
                return Decision.retry()
            if status in self.codes:
                return Decision.retry()
            return Decision.reject(outcome.error)

        status = getattr(outcome.data, 'status_code', None)
        if status is None or status < 400:
            return Decision.accept()
        if status in self.codes:
            return Decision.retry()

        return Decision.reject(HttpOnHttpError.from_response(outcome.data))


def none() -> RetryPolicy:
    return DefaultPolicy()


def httpcode(
    codes: Iterable[int] | None = None,
    include_defaults: bool = False,
) -> HttpCodePolicy:
    '''
    Build an `HttpCodePolicy`.

    Parameters
    ----------
    codes : Iterable[int] | None, optional
        Status codes to retry, by default `DEFAULT_RETRY_CODES`
    include_defaults : bool, optional
        Also retry the default codes when `codes` is given, by default False
    '''
    return HttpCodePolicy(codes, include_defaults)
