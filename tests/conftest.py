import os
import sys
import tempfile

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

# The API builds its services at import time; point them at a scratch catalog
_scratch_dir = tempfile.mkdtemp(prefix='wrap_pricing_tests_')
os.environ.setdefault('WRAP_PRICING_DATA_FILE', os.path.join(_scratch_dir, 'catalog.json'))
os.environ.setdefault('WRAP_PRICING_EXPORT_DIR', os.path.join(_scratch_dir, 'exports'))

from wrap_pricing.engine.models import (
    Catalog,
    Category,
    Coverage,
    ExtraOption,
    LaminationMaterial,
    PrintMaterial,
    Vehicle,
    WhitePrintSettings,
)
from wrap_pricing.data.store import CatalogStore


@pytest.fixture
def sample_catalog():
    """
    Small catalog with round numbers:
    - van: Full Wrap 1000 (+ UV Protection 100, Reflective 0), Partial Wrap 500
    - sedan: Hood 300, no options
    - print: 20% with white, 10% without, fixed 50
    - lamination: 10%, fixed 30
    - white print: 15%
    """
    return Catalog(
        categories=(Category(id='cat-van', name='Van'), Category(id='cat-sedan', name='Sedan')),
        vehicles=(
            Vehicle(
                id='van',
                manufacturer='Ford',
                model='Transit',
                category_id='cat-van',
                production_period='2014-2023',
                coverages=(
                    Coverage(id='full', name='Full Wrap', price=1000.0),
                    Coverage(id='partial', name='Partial Wrap', price=500.0),
                ),
                extra_options=(
                    ExtraOption(id='uv', name='UV Protection', price=100.0),
                    ExtraOption(id='free', name='Reflective', price=0.0),
                ),
            ),
            Vehicle(
                id='sedan',
                manufacturer='Dacia',
                model='Logan',
                category_id='cat-sedan',
                coverages=(Coverage(id='hood', name='Hood', price=300.0),),
            ),
        ),
        print_materials=(
            PrintMaterial(id='premium', name='Premium Vinyl', calculation_mode='percentage', value=20.0,
                          allows_white_print=True),
            PrintMaterial(id='standard', name='Standard Vinyl', calculation_mode='percentage', value=10.0),
            PrintMaterial(id='mesh', name='Perforated Mesh', calculation_mode='fixed_amount', value=50.0),
        ),
        lamination_materials=(
            LaminationMaterial(id='matte', name='Matte Lamination', calculation_mode='percentage', value=10.0),
            LaminationMaterial(id='shield', name='Anti-Graffiti', calculation_mode='fixed_amount', value=30.0),
        ),
        white_print_settings=WhitePrintSettings(calculation_mode='percentage', value=15.0),
    )


@pytest.fixture
def store(tmp_path):
    return CatalogStore(tmp_path / 'catalog.json')


@pytest.fixture
def api_client():
    """TestClient against the app, with the catalog and cart reset to defaults."""
    from fastapi.testclient import TestClient
    from wrap_pricing.api import state
    from wrap_pricing.api.main import app
    from wrap_pricing.data.store import default_catalog

    state.catalog_service.replace_catalog(default_catalog())
    state.cart_service.clear()
    with TestClient(app) as client:
        yield client
    state.catalog_service.replace_catalog(default_catalog())
    state.cart_service.clear()
