"""Search index adapters.

Primary components:
- ``base``: abstract ``SearchIndex`` interface.
- ``models``: engine response models, normalized across engine versions.
- ``query``: query body construction and index naming.
- ``opensearch``: OpenSearch/Elasticsearch implementation of the interface.
- ``factory``: construct a search index from ``SearchConfig``.
"""
