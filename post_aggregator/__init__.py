"""Blog post aggregation gateway."""
