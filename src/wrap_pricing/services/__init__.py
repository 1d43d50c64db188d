"""Services subpackage - catalog maintenance and cart handling."""
from .catalog_service import CatalogService, ValidationResult
from .cart_service import CartService, CartLine

__all__ = ['CatalogService', 'ValidationResult', 'CartService', 'CartLine']
