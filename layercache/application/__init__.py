"""
Application Module

FastAPI admin surface for the cache (health, stats, invalidation, flush).
"""

from layercache.application.app import create_app

__all__ = ["create_app"]
