"""
Success-or-failure values passed across the pipeline's isolation boundaries.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

T = TypeVar('T')


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return False


Result = Union[Success[T], Failure]
