"""
Resilience Module

Protects the cache from an unavailable remote store.

COMPONENTS:
===========
- CircuitBreaker: CLOSED / OPEN / HALF_OPEN guard around remote calls
- CIRCUIT_OPEN: sentinel returned instead of raising when short-circuited
"""

from .circuit_breaker import CIRCUIT_OPEN, CircuitBreaker

__all__ = [
    "CIRCUIT_OPEN",
    "CircuitBreaker",
]
