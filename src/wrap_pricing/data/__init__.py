"""Data subpackage - catalog persistence and CSV import/export."""
from .store import CatalogStore, CatalogStoreError, default_catalog

__all__ = ['CatalogStore', 'CatalogStoreError', 'default_catalog']
