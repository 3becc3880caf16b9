"""Dataset API client.

- ``client``: async HTTP client returning typed not-found errors for
  datasets, editions, and versions.
"""
