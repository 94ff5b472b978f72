"""Domain Models: cache entries, statistics and shared value objects."""
