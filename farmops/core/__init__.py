"""Pure analytics core: statistics, bucketing, aggregation, scoring and alerts."""
