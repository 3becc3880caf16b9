"""API subpackage for the dimension search service.

Routers expose the dimension search endpoint and, on private deployments,
index create/delete. Transport layer remains thin and delegates to
``SearchManager``.
"""
