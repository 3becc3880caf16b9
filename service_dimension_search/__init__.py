"""Dimension search service.

Searches the options of a dataset version dimension and manages the
per-instance dimension search indexes. The FastAPI application lives in
``service_dimension_search.app``.
"""
