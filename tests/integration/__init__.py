"""
Integration tests.

These need a running Redis (USE_REAL_REDIS=1) and are skipped otherwise.
"""
