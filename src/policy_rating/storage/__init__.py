# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Persistence backends for catalog data, quotes and policies."""

from .base import (
    DuplicateIssuanceError,
    DuplicateQuoteNumberError,
    DuplicateTransactionError,
    IssuanceUnit,
    RatingStore,
    StorageError,
    StorageUnavailableError,
)
from .memory import InMemoryRatingStore
from .postgres import PostgresRatingStore
from .seed import load_reference_catalog

__all__ = [
    "DuplicateIssuanceError",
    "DuplicateQuoteNumberError",
    "DuplicateTransactionError",
    "InMemoryRatingStore",
    "IssuanceUnit",
    "PostgresRatingStore",
    "RatingStore",
    "StorageError",
    "StorageUnavailableError",
    "load_reference_catalog",
]
