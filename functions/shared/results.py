# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNAVAILABLE = "UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class RepositoryError:
    """A classified remote failure."""

    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


@dataclass(frozen=True)
class RepositoryResult(Generic[T]):
    """
    Outcome of a repository call.

    `value` is always set, to the failure value (False or an empty list) when
    the call failed. Truthiness follows success, so callers that only care
    whether the call worked can keep writing `if result:`.
    """

    value: T
    error: Optional[RepositoryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T) -> "RepositoryResult[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls, value: T, kind: ErrorKind, message: str
    ) -> "RepositoryResult[T]":
        return cls(value=value, error=RepositoryError(kind=kind, message=message))
