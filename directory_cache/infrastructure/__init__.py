"""Infrastructure: cache tiers and their Redis client."""
