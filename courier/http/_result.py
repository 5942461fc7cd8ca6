'''
Minimal Ok/Err envelope returned by the `safe_*` request helpers.
'''
from __future__ import annotations

import dataclasses as dc
from typing import Generic, TypeVar, Union


T = TypeVar('T')
E = TypeVar('E', bound=BaseException)


@dc.dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    @property
    def err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dc.dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    @property
    def ok(self) -> bool:
        return False

    @property
    def err(self) -> bool:
        return True

    def unwrap(self):
        raise self.error

    def unwrap_or(self, default):
        return default


Result = Union[Ok[T], Err[E]]
