"""Tests for the dimension search service.

Unit tests use the in-memory fakes in ``tests.mocks`` in place of the Dataset
API, the search engine and the message bus. Tests that need real services
live under ``integration`` and are skipped when those services are absent.
"""
