"""
Infrastructure Module

Concrete cache layers: Redis client, local cache, remote wrapper, manager.
"""
