"""
CSV Import/Export - tabular views of the catalog and of priced quotes.

Exports build pandas DataFrames with human-readable headers. Imports read
the same shapes back (plus a few alternative header spellings) and reconcile
each row against existing entities:
- categories and vehicles are matched by name and skipped when present
- coverages and extra options are matched to a vehicle by ID, falling back to
  manufacturer + model, then updated by name or appended
- materials are matched by type + name, then updated or created
Bad rows never abort an import; they are reported in the ImportResult.
"""
import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.models import (
    FIXED_AMOUNT,
    LINE_BASE,
    LINE_EXTRA_OPTIONS,
    LINE_LAMINATION,
    LINE_PRINT,
    LINE_WHITE_PRINT,
    PERCENTAGE,
    Catalog,
    Category,
    Coverage,
    ExtraOption,
    LaminationMaterial,
    PriceBreakdown,
    PrintMaterial,
    Selection,
    Vehicle,
    parse_calculation_mode,
)
from ..services.catalog_service import new_id

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of importing one or more files."""
    success: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def merge(self, other: 'ImportResult'):
        self.success += other.success
        self.updated += other.updated
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


# ============================================================================
# EXPORT
# ============================================================================

MODE_LABELS = {PERCENTAGE: 'Percentage', FIXED_AMOUNT: 'Fixed Amount'}


def vehicles_frame(catalog: Catalog) -> pd.DataFrame:
    return pd.DataFrame([{
        'Vehicle ID': v.id,
        'Manufacturer': v.manufacturer,
        'Model': v.model,
        'Category': catalog.category_name(v.category_id),
        'Production Period': v.production_period,
        'Coverages': len(v.coverages),
        'Extra Options': len(v.extra_options),
    } for v in catalog.vehicles], columns=[
        'Vehicle ID', 'Manufacturer', 'Model', 'Category', 'Production Period', 'Coverages', 'Extra Options'
    ])


def categories_frame(catalog: Catalog) -> pd.DataFrame:
    return pd.DataFrame([{
        'Category': c.name,
        'Vehicles': sum(1 for v in catalog.vehicles if v.category_id == c.id),
    } for c in catalog.categories], columns=['Category', 'Vehicles'])


def _priced_items_frame(catalog: Catalog, attr: str, name_header: str) -> pd.DataFrame:
    rows = []
    for v in catalog.vehicles:
        for item in getattr(v, attr):
            rows.append({
                'Vehicle ID': v.id,
                'Manufacturer': v.manufacturer,
                'Model': v.model,
                'Category': catalog.category_name(v.category_id),
                name_header: item.name,
                'Price': item.price,
            })
    return pd.DataFrame(rows, columns=['Vehicle ID', 'Manufacturer', 'Model', 'Category', name_header, 'Price'])


def coverages_frame(catalog: Catalog) -> pd.DataFrame:
    return _priced_items_frame(catalog, 'coverages', 'Coverage')


def extra_options_frame(catalog: Catalog) -> pd.DataFrame:
    return _priced_items_frame(catalog, 'extra_options', 'Option')


def materials_frame(catalog: Catalog) -> pd.DataFrame:
    rows = [{
        'Material Type': 'Print',
        'Name': m.name,
        'Calculation Mode': MODE_LABELS[m.calculation_mode],
        'Value': m.value,
        'Allows White Print': 'Yes' if m.allows_white_print else 'No',
    } for m in catalog.print_materials]
    rows += [{
        'Material Type': 'Lamination',
        'Name': m.name,
        'Calculation Mode': MODE_LABELS[m.calculation_mode],
        'Value': m.value,
        'Allows White Print': 'N/A',
    } for m in catalog.lamination_materials]
    return pd.DataFrame(rows, columns=['Material Type', 'Name', 'Calculation Mode', 'Value', 'Allows White Print'])


EXPORTERS = {
    'vehicles': vehicles_frame,
    'categories': categories_frame,
    'coverages': coverages_frame,
    'extra_options': extra_options_frame,
    'materials': materials_frame,
}


def export_dataset(catalog: Catalog, dataset: str) -> pd.DataFrame:
    """Build the export frame for one dataset name."""
    if dataset not in EXPORTERS:
        raise ValueError(f"Unknown dataset '{dataset}'. Expected one of: {', '.join(EXPORTERS)}")
    return EXPORTERS[dataset](catalog)


@dataclass
class QuoteRecord:
    """A priced selection, flattened for export."""
    vehicle: str
    coverage: str
    breakdown: PriceBreakdown

    @classmethod
    def from_selection(cls, catalog: Catalog, selection: Selection, breakdown: PriceBreakdown) -> 'QuoteRecord':
        vehicle = catalog.get_vehicle(selection.vehicle_id)
        coverage = vehicle.get_coverage(selection.coverage_id) if vehicle else None
        return cls(
            vehicle=vehicle.display_name if vehicle else '',
            coverage=coverage.name if coverage else '',
            breakdown=breakdown,
        )


QUOTE_COLUMNS = ['Vehicle', 'Coverage', 'Base Price', 'Extra Options', 'Print', 'Lamination', 'White Print', 'Total']


def quotes_frame(quotes: list[QuoteRecord]) -> pd.DataFrame:
    """One row per quote with a column per cost component."""
    return pd.DataFrame([{
        'Vehicle': q.vehicle,
        'Coverage': q.coverage,
        'Base Price': q.breakdown.amount_for(LINE_BASE),
        'Extra Options': q.breakdown.amount_for(LINE_EXTRA_OPTIONS),
        'Print': q.breakdown.amount_for(LINE_PRINT),
        'Lamination': q.breakdown.amount_for(LINE_LAMINATION),
        'White Print': q.breakdown.amount_for(LINE_WHITE_PRINT),
        'Total': q.breakdown.total,
    } for q in quotes], columns=QUOTE_COLUMNS)


def write_quotes(quotes: list[QuoteRecord], path: Path) -> Path:
    """Write quotes to .xlsx (openpyxl) or .csv, chosen by the file suffix."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = quotes_frame(quotes)
    if path.suffix.lower() == '.xlsx':
        df.to_excel(path, index=False, sheet_name='Quotes', engine='openpyxl')
    else:
        df.to_csv(path, index=False)
    logger.info("Wrote %d quotes to %s", len(quotes), path)
    return path


# ============================================================================
# IMPORT
# ============================================================================

CATEGORY_NAME = ('category', 'category name', 'name', 'nume categorie', 'nume')
MANUFACTURER = ('manufacturer', 'make', 'producer', 'producător', 'producator')
MODEL = ('model',)
VEHICLE_CATEGORY = ('category', 'categorie', 'categoria')
PERIOD = ('production period', 'period', 'perioada fabricație', 'perioada_fabricatie', 'perioada')
VEHICLE_ID = ('vehicle id', 'vehicle_id')
COVERAGE_NAME = ('coverage', 'coverage name', 'nume acoperire', 'name')
OPTION_NAME = ('option', 'option name', 'extra option', 'nume opțiune', 'name')
PRICE = ('price', 'price (ron)', 'preț (ron)', 'pret')
MATERIAL_TYPE = ('material type', 'type', 'tip material')
MATERIAL_NAME = ('name', 'nume')
MODE = ('calculation mode', 'mode', 'tip calcul')
VALUE = ('value', 'valoare')
ALLOWS_WHITE = ('allows white print', 'permite print alb')

_TRUE_WORDS = {'yes', 'true', '1', 'y', 'da'}


def read_csv(source) -> pd.DataFrame:
    """Read a CSV as plain strings (empty cells become '')."""
    return pd.read_csv(source, dtype=str, keep_default_na=False)


def _rows(df: pd.DataFrame) -> list[dict]:
    """Rows keyed by lower-cased, stripped headers."""
    normalized = df.rename(columns=lambda c: str(c).strip().lower())
    return normalized.to_dict(orient='records')


def _get(row: dict, aliases: tuple) -> str:
    for alias in aliases:
        value = row.get(alias)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ''


def _parse_number(text: str) -> float:
    cleaned = text.replace(' ', '')
    if ',' in cleaned and '.' not in cleaned:
        cleaned = cleaned.replace(',', '.')
    number = float(cleaned)
    # float() also accepts "nan" and "inf"
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {text!r}")
    return number


def _find_vehicle(catalog: Catalog, row: dict) -> Optional[Vehicle]:
    vehicle_id = _get(row, VEHICLE_ID)
    if vehicle_id:
        vehicle = catalog.get_vehicle(vehicle_id)
        if vehicle:
            return vehicle

    manufacturer = _get(row, MANUFACTURER).lower()
    model = _get(row, MODEL).lower()
    if not manufacturer or not model:
        return None
    return next(
        (v for v in catalog.vehicles
         if v.manufacturer.lower() == manufacturer and v.model.lower() == model),
        None,
    )


def import_categories(catalog: Catalog, df: pd.DataFrame) -> tuple[Catalog, ImportResult]:
    result = ImportResult()
    categories = list(catalog.categories)

    for line, row in enumerate(_rows(df), start=2):
        name = _get(row, CATEGORY_NAME)
        if not name:
            result.errors.append(f"Row {line}: category name is missing")
            continue
        if any(c.name.lower() == name.lower() for c in categories):
            result.warnings.append(f"Category '{name}' already exists")
            continue
        categories.append(Category(id=new_id(), name=name))
        result.success += 1

    return replace(catalog, categories=tuple(categories)), result


def import_vehicles(catalog: Catalog, df: pd.DataFrame) -> tuple[Catalog, ImportResult]:
    result = ImportResult()
    vehicles = list(catalog.vehicles)

    for line, row in enumerate(_rows(df), start=2):
        manufacturer = _get(row, MANUFACTURER)
        model = _get(row, MODEL)
        if not manufacturer or not model:
            result.errors.append(f"Row {line}: manufacturer and model are required")
            continue

        category_id = ''
        category_name = _get(row, VEHICLE_CATEGORY)
        if category_name:
            category = catalog.get_category_by_name(category_name)
            if category:
                category_id = category.id
            else:
                result.warnings.append(
                    f"Category '{category_name}' does not exist, "
                    f"'{manufacturer} {model}' saved without a category"
                )

        duplicate = any(
            v.manufacturer.lower() == manufacturer.lower() and v.model.lower() == model.lower()
            for v in vehicles
        )
        if duplicate:
            result.warnings.append(f"Vehicle '{manufacturer} {model}' already exists")
            continue

        vehicles.append(Vehicle(
            id=new_id(),
            manufacturer=manufacturer,
            model=model,
            category_id=category_id,
            production_period=_get(row, PERIOD),
        ))
        result.success += 1

    return replace(catalog, vehicles=tuple(vehicles)), result


def _import_priced_items(
    catalog: Catalog,
    df: pd.DataFrame,
    attr: str,
    item_cls,
    name_aliases: tuple,
    label: str,
) -> tuple[Catalog, ImportResult]:
    result = ImportResult()

    for line, row in enumerate(_rows(df), start=2):
        name = _get(row, name_aliases)
        if not name:
            result.errors.append(f"Row {line}: {label} name is missing")
            continue

        try:
            price = _parse_number(_get(row, PRICE))
        except ValueError:
            result.errors.append(f"Row {line}: invalid price for {label} '{name}'")
            continue
        if price < 0:
            result.errors.append(f"Row {line}: negative price for {label} '{name}'")
            continue

        vehicle = _find_vehicle(catalog, row)
        if vehicle is None:
            result.errors.append(f"Row {line}: no vehicle matches {label} '{name}'")
            continue

        items = getattr(vehicle, attr)
        existing = next((i for i in items if i.name.lower() == name.lower()), None)
        if existing:
            items = tuple(replace(i, price=price) if i.id == existing.id else i for i in items)
            result.updated += 1
        else:
            items = items + (item_cls(id=new_id(), name=name, price=price),)
            result.success += 1

        updated_vehicle = replace(vehicle, **{attr: items})
        catalog = replace(catalog, vehicles=tuple(
            updated_vehicle if v.id == vehicle.id else v for v in catalog.vehicles
        ))

    return catalog, result


def import_coverages(catalog: Catalog, df: pd.DataFrame) -> tuple[Catalog, ImportResult]:
    return _import_priced_items(catalog, df, 'coverages', Coverage, COVERAGE_NAME, 'coverage')


def import_extra_options(catalog: Catalog, df: pd.DataFrame) -> tuple[Catalog, ImportResult]:
    return _import_priced_items(catalog, df, 'extra_options', ExtraOption, OPTION_NAME, 'extra option')


def import_materials(catalog: Catalog, df: pd.DataFrame) -> tuple[Catalog, ImportResult]:
    result = ImportResult()
    print_materials = list(catalog.print_materials)
    lamination_materials = list(catalog.lamination_materials)

    for line, row in enumerate(_rows(df), start=2):
        name = _get(row, MATERIAL_NAME)
        material_type = _get(row, MATERIAL_TYPE).lower()
        if not name:
            result.errors.append(f"Row {line}: material name is missing")
            continue

        try:
            mode = parse_calculation_mode(_get(row, MODE))
            value = _parse_number(_get(row, VALUE))
        except ValueError as e:
            result.errors.append(f"Row {line}: {e}")
            continue
        if value < 0:
            result.errors.append(f"Row {line}: negative value for material '{name}'")
            continue

        if material_type == 'print':
            allows_white = _get(row, ALLOWS_WHITE).lower() in _TRUE_WORDS
            target = print_materials
            new = PrintMaterial(id=new_id(), name=name, calculation_mode=mode, value=value,
                                allows_white_print=allows_white)
            changes = {'calculation_mode': mode, 'value': value, 'allows_white_print': allows_white}
        elif material_type in ('lamination', 'laminare'):
            target = lamination_materials
            new = LaminationMaterial(id=new_id(), name=name, calculation_mode=mode, value=value)
            changes = {'calculation_mode': mode, 'value': value}
        else:
            result.errors.append(f"Row {line}: unknown material type '{material_type}'")
            continue

        index = next((i for i, m in enumerate(target) if m.name.lower() == name.lower()), None)
        if index is None:
            target.append(new)
            result.success += 1
        else:
            target[index] = replace(target[index], **changes)
            result.updated += 1

    return replace(
        catalog,
        print_materials=tuple(print_materials),
        lamination_materials=tuple(lamination_materials),
    ), result


IMPORTERS = {
    'categories': import_categories,
    'vehicles': import_vehicles,
    'coverages': import_coverages,
    'extra_options': import_extra_options,
    'materials': import_materials,
}

# Checked in order; "categor" must win over "vehicle" for e.g. vehicle_categories.csv
_FILENAME_HINTS = (
    ('categor', 'categories'),
    ('coverage', 'coverages'),
    ('acoperir', 'coverages'),
    ('option', 'extra_options'),
    ('optiun', 'extra_options'),
    ('material', 'materials'),
    ('vehicle', 'vehicles'),
    ('vehicul', 'vehicles'),
)


def detect_dataset(filename: str) -> Optional[str]:
    """Guess the dataset from a file name."""
    lowered = filename.lower()
    for hint, dataset in _FILENAME_HINTS:
        if hint in lowered:
            return dataset
    return None


def import_dataset(catalog: Catalog, dataset: str, df: pd.DataFrame) -> tuple[Catalog, ImportResult]:
    if dataset not in IMPORTERS:
        raise ValueError(f"Unknown dataset '{dataset}'. Expected one of: {', '.join(IMPORTERS)}")
    catalog, result = IMPORTERS[dataset](catalog, df)
    logger.info(
        "Imported %s: %d added, %d updated, %d errors, %d warnings",
        dataset, result.success, result.updated, len(result.errors), len(result.warnings),
    )
    return catalog, result


def import_files(catalog: Catalog, files: dict[str, pd.DataFrame]) -> tuple[Catalog, ImportResult]:
    """Import several files, dispatching each by its name."""
    total = ImportResult()
    for filename, df in files.items():
        dataset = detect_dataset(filename)
        if dataset is None:
            total.warnings.append(f"File type of '{filename}' not recognised")
            continue
        catalog, result = import_dataset(catalog, dataset, df)
        total.merge(result)
    return catalog, total
