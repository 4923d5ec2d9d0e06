"""
Storefront Catalog Backend

Catalog entities (categories, products, reviews and promotional content)
whose records are kept consistent with their media in a remote store.
"""

__version__ = "1.0.0"
