"""
API Routes

- pages.py: homepage, town and person page data with cache headers
- admin.py: cache clearing, statistics, config and key invalidation
"""
