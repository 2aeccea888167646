# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Error taxonomy carried inside ``Err`` results."""

from enum import Enum
from typing import Any

from attrs import field, frozen
from beartype import beartype


class ErrorKind(str, Enum):
    """Business and infrastructure failure categories."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    QUOTE_EXPIRED = "QUOTE_EXPIRED"
    QUOTE_ALREADY_CONSUMED = "QUOTE_ALREADY_CONSUMED"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"


@frozen
class RatingError:
    """Failure returned by catalog, rating, quote and policy operations.

    Only ``STORAGE_UNAVAILABLE`` is retryable. Every other kind is a final
    business answer that the caller surfaces as-is.
    """

    kind: ErrorKind = field()
    message: str = field()
    details: dict[str, Any] = field(factory=dict, eq=False)

    @property
    def retryable(self) -> bool:
        """Whether repeating the same call may succeed."""
        return self.kind is ErrorKind.STORAGE_UNAVAILABLE

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"

    @classmethod
    @beartype
    def not_found(cls, message: str, **details: Any) -> "RatingError":
        return cls(ErrorKind.NOT_FOUND, message, details)

    @classmethod
    @beartype
    def invalid_input(cls, message: str, **details: Any) -> "RatingError":
        return cls(ErrorKind.INVALID_INPUT, message, details)

    @classmethod
    @beartype
    def quote_expired(cls, quote_number: str) -> "RatingError":
        return cls(
            ErrorKind.QUOTE_EXPIRED,
            f"Quote {quote_number} has expired",
            {"quote_number": quote_number},
        )

    @classmethod
    @beartype
    def quote_already_consumed(cls, quote_number: str) -> "RatingError":
        return cls(
            ErrorKind.QUOTE_ALREADY_CONSUMED,
            f"Quote {quote_number} has already been converted to a policy",
            {"quote_number": quote_number},
        )

    @classmethod
    @beartype
    def storage_unavailable(cls, message: str, **details: Any) -> "RatingError":
        return cls(ErrorKind.STORAGE_UNAVAILABLE, message, details)
