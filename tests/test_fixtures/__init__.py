"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import CacheTestFactory
from .settings_factory import make_settings

__all__ = ["CacheTestFactory", "make_settings"]
