"""
Process-wide service instances shared by the API routers.
"""
from ..config.settings import get_settings
from ..data.store import CatalogStore
from ..engine import PricingEngine
from ..services import CartService, CatalogService

settings = get_settings()
store = CatalogStore(settings.data_file)
engine = PricingEngine(settings=settings, store=store)

# Edits go through the service; the engine picks up each new snapshot
catalog_service = CatalogService(store, on_change=engine.set_catalog)
engine.set_catalog(catalog_service.catalog)

cart_service = CartService(engine)
