"""Result variants threaded through the resolution pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories a pipeline stage can report."""

    CLIENT_ERROR = "client_error"
    NOT_FOUND = "not_found"
    ORIGIN_ERROR = "origin_error"
    NO_VIABLE_RELEASE = "no_viable_release"
    NO_ASSET_FOR_RELEASE = "no_asset_for_release"
    STORAGE_ERROR = "storage_error"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage outcome."""

    value: T


@dataclass(frozen=True)
class Fail:
    """Failed stage outcome.

    ``status_code`` is the upstream HTTP status when the failure came from
    the origin, otherwise ``None``.
    """

    kind: ErrorKind
    detail: str
    status_code: Optional[int] = None


Result = Union[Ok[T], Fail]
