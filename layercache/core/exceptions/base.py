"""
Base Exception Class

This module contains ONLY the base exception class that all other exceptions inherit from.
Cache-specific exceptions live in cache.py.
"""

from typing import Any


class LayerCacheError(Exception):
    """
    Base exception for all layercache errors.

    All custom exceptions inherit from this class to enable:
    - Consistent error handling
    - Cache key correlation
    - Structured error logging

    Attributes:
        message: Error message
        key: Cache key the error relates to (if any)
        details: Additional error details (dict)

    Example:
        raise CacheKeyError(
            "GET failed",
            key="user:42",
            details={"operation": "get", "host": "localhost"}
        )
    """

    def __init__(
        self, message: str, key: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.key = key
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, message, key, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "key": self.key,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "LayerCacheError":
        """Attach a hint for resolving the error. Returns self for chaining."""
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "LayerCacheError":
        """
        Add additional context to the error details.

        Args:
            **context: Key-value pairs to add to details

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        key_str = f", key='{self.key}'" if self.key else ""
        return f"{self.__class__.__name__}(message='{self.message}'{key_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        key: str | None = None,
        **details
    ) -> "LayerCacheError":
        """
        Create an error from another exception.

        Useful for wrapping redis-py exceptions with additional context.

        Args:
            exc: Original exception to wrap
            message: Custom message (defaults to original exception message)
            key: Cache key for correlation
            **details: Additional context to include

        Example:
            >>> try:
            ...     await client.get("user:42")
            ... except redis.RedisError as e:
            ...     raise CacheKeyError.from_exception(e, key="user:42", operation="get")
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, key=key, details=error_details)
