from .base import ActivityChannel
from .mock import ActivityIdGenerator, MockActivityChannel

__all__ = ["ActivityChannel", "ActivityIdGenerator", "MockActivityChannel"]
