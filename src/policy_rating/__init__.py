# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Policy Rating Engine.

Prices insurance packages, issues time-limited quotes and converts paid
quotes into policies exactly once.
"""

from .engine import RatingEngine, create_engine

__version__ = "1.0.0"

__all__ = ["RatingEngine", "__version__", "create_engine"]
