"""
Catalog Store - JSON file persistence for the catalog snapshot.

A missing file yields the default catalog; a file missing some sections
falls back to the defaults for those sections only.
"""
import json
import logging
from pathlib import Path

from ..engine.models import Catalog

logger = logging.getLogger(__name__)

CATALOG_SECTIONS = (
    'categories',
    'vehicles',
    'print_materials',
    'lamination_materials',
    'white_print_settings',
)


DEFAULT_DATA = {
    'categories': [
        {'id': '1', 'name': 'SUV'},
        {'id': '2', 'name': 'Van'},
        {'id': '3', 'name': 'Sedan'},
        {'id': '4', 'name': 'Hatchback'},
    ],
    'vehicles': [
        {
            'id': '1',
            'manufacturer': 'BMW',
            'model': 'X5',
            'category_id': '1',
            'production_period': '2019-2023',
            'coverages': [
                {'id': '1', 'name': 'Full Wrap', 'price': 2500},
                {'id': '2', 'name': 'Partial Wrap', 'price': 1500},
            ],
            'extra_options': [
                {'id': '1', 'name': 'UV Protection', 'price': 300},
                {'id': '2', 'name': 'Matte Finish', 'price': 200},
            ],
        },
        {
            'id': '2',
            'manufacturer': 'Mercedes',
            'model': 'Sprinter',
            'category_id': '2',
            'production_period': '2018-2023',
            'coverages': [
                {'id': '3', 'name': 'Side Wrap', 'price': 1800},
            ],
            'extra_options': [
                {'id': '3', 'name': 'Reflective', 'price': 150},
            ],
        },
    ],
    'print_materials': [
        {'id': '1', 'name': 'Standard Vinyl', 'calculation_mode': 'percentage', 'value': 15,
         'allows_white_print': False},
        {'id': '2', 'name': 'Premium Vinyl', 'calculation_mode': 'percentage', 'value': 25,
         'allows_white_print': True},
        {'id': '3', 'name': 'Perforated Mesh', 'calculation_mode': 'fixed_amount', 'value': 45,
         'allows_white_print': False},
    ],
    'lamination_materials': [
        {'id': '1', 'name': 'Matte Lamination', 'calculation_mode': 'percentage', 'value': 20},
        {'id': '2', 'name': 'Gloss Lamination', 'calculation_mode': 'percentage', 'value': 18},
        {'id': '3', 'name': 'Anti-Graffiti Lamination', 'calculation_mode': 'fixed_amount', 'value': 35},
    ],
    'white_print_settings': {'calculation_mode': 'percentage', 'value': 35},
}


class CatalogStoreError(Exception):
    """The catalog file exists but cannot be read."""


def default_catalog() -> Catalog:
    """The seed catalog used when no data file exists yet."""
    return Catalog.from_dict(DEFAULT_DATA)


class CatalogStore:
    """Reads and writes the catalog JSON document."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Catalog:
        """Load the catalog, falling back to defaults where data is missing."""
        if not self.path.exists():
            logger.info("No catalog at %s, using default data", self.path)
            return default_catalog()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogStoreError(f"Cannot read catalog {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise CatalogStoreError(f"Catalog {self.path} must contain a JSON object")

        merged = {}
        for section in CATALOG_SECTIONS:
            if data.get(section) is None:
                logger.warning("Catalog %s has no '%s', using defaults", self.path, section)
                merged[section] = DEFAULT_DATA[section]
            else:
                merged[section] = data[section]

        try:
            return Catalog.from_dict(merged)
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogStoreError(f"Invalid catalog data in {self.path}: {e}") from e

    def save(self, catalog: Catalog):
        """Write the catalog back to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(catalog.to_dict(), f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        finally:
            # Only left behind when the write or the rename failed
            tmp_path.unlink(missing_ok=True)
        logger.info("Catalog saved to %s", self.path)
