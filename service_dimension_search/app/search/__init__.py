"""Dimension search components.

Includes the ``SearchManager`` which resolves the dataset version, validates
paging, queries the dimension index and turns highlights into snippets.
"""
