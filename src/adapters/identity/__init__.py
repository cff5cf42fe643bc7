"""Identity service adapters."""

from .memory import InMemoryIdentityService

__all__ = ["InMemoryIdentityService"]
