"""Posts pipeline.

Flow: validate query → query cache → TagFetcher per tag (concurrent) → dedup → sort → cache.
"""
