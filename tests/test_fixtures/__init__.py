"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import (
    FailingKeyValueClient,
    FakeClock,
    HangingKeyValueClient,
    InMemoryKeyValueClient,
    client_factory,
)
from .data_factory import DirectoryFactory, FakeDirectory
from .settings_factory import make_settings

__all__ = [
    "DirectoryFactory",
    "FailingKeyValueClient",
    "FakeClock",
    "FakeDirectory",
    "HangingKeyValueClient",
    "InMemoryKeyValueClient",
    "client_factory",
    "make_settings",
]
