"""
directory_cache

Multi-tier read-through cache (memory → Redis → database) for the town and
person directory pages.
"""

__version__ = "1.0.0"
