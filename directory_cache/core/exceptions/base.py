"""
Root of the directory cache error hierarchy.

Cache-specific errors live in cache.py; this module holds the shared base
and ConfigurationError.
"""

from typing import Any


class DirectoryCacheError(Exception):
    """
    Base class for every error raised by this package.

    Carries a request ID for log correlation and a `details` dict that ends
    up both in the structured log line and in the JSON error body.

        raise CacheSerializationError(
            "Value of type Photo is not cache-safe",
            details={"path": "$.person.photo", "type": "Photo"},
        )
    """

    def __init__(
        self, message: str, request_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.request_id = request_id
        # Own copy, callers may reuse their dict
        self.details = dict(details or {})
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Body for the JSON error response."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_context(self, **context) -> "DirectoryCacheError":
        """Merge `context` into `details` and return self."""
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        parts = [f"message='{self.message}'"]
        if self.request_id:
            parts.append(f"request_id='{self.request_id}'")
        if self.details:
            parts.append(f"details={self.details}")
        return f"{type(self).__name__}({', '.join(parts)})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        request_id: str | None = None,
        **details,
    ) -> "DirectoryCacheError":
        """
        Wrap a third-party exception, keeping its type and text in `details`.

            except redis.exceptions.ConnectionError as e:
                raise CacheConnectionError.from_exception(e, host=host, port=port)
        """
        return cls(
            message or str(exc),
            request_id=request_id,
            details={
                "original_error": type(exc).__name__,
                "original_message": str(exc),
                **details,
            },
        )


class ConfigurationError(DirectoryCacheError):
    """Settings that cannot be used as given."""
