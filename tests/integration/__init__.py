"""Integration test suite for end-to-end flows.

Covers the index build request path from the output queue to Redis.
"""
