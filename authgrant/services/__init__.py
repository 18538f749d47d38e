"""Storage backends for the grant engine."""

from .store import GrantStore
from .policy import TokenPolicy
from .memory import InMemoryStore

__all__ = ('GrantStore', 'TokenPolicy', 'InMemoryStore')
