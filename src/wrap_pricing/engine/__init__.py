"""Engine subpackage - core pricing logic and selection state."""
from .pricing_engine import PricingEngine, compute_price, material_cost
from .errors import SelectionError
from .models import (
    Catalog,
    Category,
    Coverage,
    ExtraOption,
    Vehicle,
    PrintMaterial,
    LaminationMaterial,
    WhitePrintSettings,
    Selection,
    PriceBreakdown,
    BreakdownLine,
)

__all__ = [
    'PricingEngine', 'compute_price', 'material_cost', 'SelectionError',
    'Catalog', 'Category', 'Coverage', 'ExtraOption', 'Vehicle',
    'PrintMaterial', 'LaminationMaterial', 'WhitePrintSettings',
    'Selection', 'PriceBreakdown', 'BreakdownLine',
]
