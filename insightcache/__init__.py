"""insightcache: two-tier (memory + disk) response cache for the Global Insights dashboard."""

__version__ = "1.0.0"
