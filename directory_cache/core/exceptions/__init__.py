"""
Exception Module

Structured exception hierarchy for the directory cache service.

Module Structure:
-----------------
- **base.py**: DirectoryCacheError base class + ConfigurationError
- **cache.py**: Cache-related exceptions (Redis, serialization, keys)

Usage:
------
```python
from directory_cache.core.exceptions import CacheSerializationError
```
"""

from directory_cache.core.exceptions.base import ConfigurationError, DirectoryCacheError
from directory_cache.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
)

__all__ = [
    "DirectoryCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
]
