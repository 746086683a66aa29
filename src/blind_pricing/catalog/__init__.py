"""Catalog subpackage - read-only access to pricing reference data."""
from .repository import CatalogRepository, DataFrameCatalogRepository
from .integrity import check_catalog

__all__ = ['CatalogRepository', 'DataFrameCatalogRepository', 'check_catalog']
