"""
Exception Module

Structured exception hierarchy for the cache subsystem, organized by theme.

Module Structure:
-----------------
- **base.py**: StepCacheError base class
- **cache.py**: Cache backend and storage tier exceptions
- **reporting.py**: AppError and ErrorCode for the error-reporting sink

Usage:
------
```python
from stepcache.core.exceptions import StorageQuotaExceededError, AppError, ErrorCode
```
"""

from stepcache.core.exceptions.base import StepCacheError
from stepcache.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    StorageQuotaExceededError,
    StorageTierError,
    StorageUnavailableError,
)
from stepcache.core.exceptions.reporting import AppError, ErrorCode

__all__ = [
    # Base
    "StepCacheError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "StorageTierError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    # Reporting
    "AppError",
    "ErrorCode",
]
