"""
Application Layer - Use Cases and Services

This package contains application services that orchestrate domain logic.
No direct I/O dependencies - storage is passed in.
"""

from showback.application.pool_service import PoolService
from showback.application.rating_service import RatingService

__all__ = [
    "PoolService",
    "RatingService",
]
