"""Dimension search service package.

Layout:
- ``api``: HTTP endpoints for search and index lifecycle operations.
- ``search``: version resolution, snippet extraction and search orchestration.
- ``runtime``: service-local metrics and the index build output queue.
"""
