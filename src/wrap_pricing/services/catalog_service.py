"""
Catalog Service - CRUD operations for vehicles, categories and materials.
Every change is validated, written through the store, and announced to
listeners (the live pricing engine) as a fresh snapshot.
"""
import logging
import math
import uuid
from dataclasses import dataclass, field, fields, replace
from typing import Callable, Optional

from ..data.store import CatalogStore
from ..engine.models import (
    PERCENTAGE,
    Catalog,
    Category,
    Coverage,
    ExtraOption,
    LaminationMaterial,
    PrintMaterial,
    Vehicle,
    WhitePrintSettings,
    parse_calculation_mode,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of catalog entry validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, message: str):
        self.errors.append(message)
        self.valid = False


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def _replace_item(items: tuple, item_id: str, new_item) -> tuple:
    return tuple(new_item if item.id == item_id else item for item in items)


def _remove_item(items: tuple, item_id: str) -> tuple:
    return tuple(item for item in items if item.id != item_id)


def _find(items: tuple, item_id: str):
    return next((item for item in items if item.id == item_id), None)


def _provided(updates: dict) -> dict:
    """Drop explicit nulls; a null field means "leave unchanged"."""
    return {k: v for k, v in updates.items() if v is not None}


def _apply_updates(entity, updates: dict, protected=('id',)):
    """Copy of a frozen entity with the known, non-protected fields replaced."""
    names = {f.name for f in fields(entity)}
    changes = {k: v for k, v in _provided(updates).items() if k in names and k not in protected}
    if 'calculation_mode' in changes:
        changes['calculation_mode'] = parse_calculation_mode(changes['calculation_mode'])
    for key in ('price', 'value'):
        if key in changes:
            changes[key] = float(changes[key])
    return replace(entity, **changes)


class CatalogService:
    """Service for managing the catalog."""

    def __init__(self, store: CatalogStore, on_change: Optional[Callable[[Catalog], None]] = None):
        self.store = store
        self.on_change = on_change
        self.catalog = store.load()

    def reload(self) -> Catalog:
        """Re-read the catalog from disk."""
        self.catalog = self.store.load()
        if self.on_change:
            self.on_change(self.catalog)
        return self.catalog

    def replace_catalog(self, catalog: Catalog) -> Catalog:
        """Persist a whole new snapshot (used by imports)."""
        self.store.save(catalog)
        self.catalog = catalog
        if self.on_change:
            self.on_change(catalog)
        return catalog

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_category(self, name: str, category_id: Optional[str] = None) -> ValidationResult:
        result = ValidationResult(valid=True)
        if not str(name or '').strip():
            result.add_error("Name is required")
            return result

        existing = self.catalog.get_category_by_name(name)
        if existing and existing.id != category_id:
            result.add_error(f"Category '{name}' already exists")
        return result

    def validate_vehicle(self, vehicle: Vehicle) -> ValidationResult:
        result = ValidationResult(valid=True)
        if not vehicle.manufacturer.strip():
            result.add_error("Manufacturer is required")
        if not vehicle.model.strip():
            result.add_error("Model is required")

        if vehicle.category_id and self.catalog.get_category(vehicle.category_id) is None:
            result.add_error(f"Category '{vehicle.category_id}' not found")

        for other in self.catalog.vehicles:
            if other.id == vehicle.id:
                continue
            if (other.manufacturer.lower() == vehicle.manufacturer.lower()
                    and other.model.lower() == vehicle.model.lower()):
                result.warnings.append(f"Vehicle '{vehicle.display_name}' already exists")
                break
        return result

    def validate_priced_item(self, name: str, price) -> ValidationResult:
        """Coverages and extra options: a name and a non-negative price."""
        result = ValidationResult(valid=True)
        if not str(name or '').strip():
            result.add_error("Name is required")
        try:
            number = float(price)
        except (TypeError, ValueError):
            result.add_error("Price must be a number")
            return result
        if not math.isfinite(number):
            result.add_error("Price must be a finite number")
        elif number < 0:
            result.add_error("Price must not be negative")
        return result

    def validate_material(self, name: Optional[str], calculation_mode, value) -> ValidationResult:
        """Print/lamination materials and white-print settings."""
        result = ValidationResult(valid=True)
        if name is not None and not str(name).strip():
            result.add_error("Name is required")

        mode = None
        try:
            mode = parse_calculation_mode(calculation_mode)
        except ValueError as e:
            result.add_error(str(e))

        try:
            number = float(value)
        except (TypeError, ValueError):
            result.add_error("Value must be a number")
            return result

        if not math.isfinite(number):
            result.add_error("Value must be a finite number")
        elif number < 0:
            result.add_error("Value must not be negative")
        elif mode == PERCENTAGE and number > 100:
            result.warnings.append(f"Percentage above 100% ({number:g}%)")
        return result

    @staticmethod
    def _raise_if_invalid(result: ValidationResult):
        if not result.valid:
            raise ValueError("; ".join(result.errors))

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def create_category(self, name: str) -> Category:
        self._raise_if_invalid(self.validate_category(name))
        category = Category(id=new_id(), name=name.strip())
        self._commit(replace(self.catalog, categories=self.catalog.categories + (category,)))
        return category

    def update_category(self, category_id: str, name: str) -> Category:
        current = self._require(self.catalog.categories, category_id, "Category")
        self._raise_if_invalid(self.validate_category(name, category_id))
        category = replace(current, name=name.strip())
        self._commit(replace(self.catalog, categories=_replace_item(self.catalog.categories, category_id, category)))
        return category

    def delete_category(self, category_id: str) -> bool:
        """Delete a category; vehicles in it are kept without a category."""
        self._require(self.catalog.categories, category_id, "Category")
        vehicles = tuple(
            replace(v, category_id='') if v.category_id == category_id else v
            for v in self.catalog.vehicles
        )
        self._commit(replace(
            self.catalog,
            categories=_remove_item(self.catalog.categories, category_id),
            vehicles=vehicles,
        ))
        return True

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def create_vehicle(
        self,
        manufacturer: str,
        model: str,
        category_id: str = '',
        production_period: str = '',
    ) -> Vehicle:
        vehicle = Vehicle(
            id=new_id(),
            manufacturer=manufacturer.strip(),
            model=model.strip(),
            category_id=category_id or '',
            production_period=production_period or '',
        )
        self._raise_if_invalid(self.validate_vehicle(vehicle))
        self._commit(replace(self.catalog, vehicles=self.catalog.vehicles + (vehicle,)))
        return vehicle

    def update_vehicle(self, vehicle_id: str, updates: dict) -> Vehicle:
        current = self._require(self.catalog.vehicles, vehicle_id, "Vehicle")
        # Coverages and options have their own operations
        vehicle = _apply_updates(current, updates, protected=('id', 'coverages', 'extra_options'))
        self._raise_if_invalid(self.validate_vehicle(vehicle))
        self._save_vehicle(vehicle)
        return vehicle

    def delete_vehicle(self, vehicle_id: str) -> bool:
        self._require(self.catalog.vehicles, vehicle_id, "Vehicle")
        self._commit(replace(self.catalog, vehicles=_remove_item(self.catalog.vehicles, vehicle_id)))
        return True

    # ------------------------------------------------------------------
    # Coverages and extra options (owned by a vehicle)
    # ------------------------------------------------------------------

    def add_coverage(self, vehicle_id: str, name: str, price: float) -> Coverage:
        vehicle = self._require(self.catalog.vehicles, vehicle_id, "Vehicle")
        self._raise_if_invalid(self.validate_priced_item(name, price))
        coverage = Coverage(id=new_id(), name=name.strip(), price=float(price))
        self._save_vehicle(replace(vehicle, coverages=vehicle.coverages + (coverage,)))
        return coverage

    def update_coverage(self, vehicle_id: str, coverage_id: str, updates: dict) -> Coverage:
        vehicle = self._require(self.catalog.vehicles, vehicle_id, "Vehicle")
        current = self._require(vehicle.coverages, coverage_id, "Coverage")
        coverage = _apply_updates(current, updates)
        self._raise_if_invalid(self.validate_priced_item(coverage.name, coverage.price))
        self._save_vehicle(replace(vehicle, coverages=_replace_item(vehicle.coverages, coverage_id, coverage)))
        return coverage

    def delete_coverage(self, vehicle_id: str, coverage_id: str) -> bool:
        vehicle = self._require(self.catalog.vehicles, vehicle_id, "Vehicle")
        self._require(vehicle.coverages, coverage_id, "Coverage")
        self._save_vehicle(replace(vehicle, coverages=_remove_item(vehicle.coverages, coverage_id)))
        return True

    def add_extra_option(self, vehicle_id: str, name: str, price: float) -> ExtraOption:
        vehicle = self._require(self.catalog.vehicles, vehicle_id, "Vehicle")
        self._raise_if_invalid(self.validate_priced_item(name, price))
        option = ExtraOption(id=new_id(), name=name.strip(), price=float(price))
        self._save_vehicle(replace(vehicle, extra_options=vehicle.extra_options + (option,)))
        return option

    def update_extra_option(self, vehicle_id: str, option_id: str, updates: dict) -> ExtraOption:
        vehicle = self._require(self.catalog.vehicles, vehicle_id, "Vehicle")
        current = self._require(vehicle.extra_options, option_id, "Extra option")
        option = _apply_updates(current, updates)
        self._raise_if_invalid(self.validate_priced_item(option.name, option.price))
        self._save_vehicle(replace(vehicle, extra_options=_replace_item(vehicle.extra_options, option_id, option)))
        return option

    def delete_extra_option(self, vehicle_id: str, option_id: str) -> bool:
        vehicle = self._require(self.catalog.vehicles, vehicle_id, "Vehicle")
        self._require(vehicle.extra_options, option_id, "Extra option")
        self._save_vehicle(replace(vehicle, extra_options=_remove_item(vehicle.extra_options, option_id)))
        return True

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    def create_print_material(
        self,
        name: str,
        calculation_mode: str,
        value: float,
        allows_white_print: bool = False,
    ) -> PrintMaterial:
        self._raise_if_invalid(self.validate_material(name, calculation_mode, value))
        material = PrintMaterial(
            id=new_id(),
            name=name.strip(),
            calculation_mode=parse_calculation_mode(calculation_mode),
            value=float(value),
            allows_white_print=bool(allows_white_print),
        )
        self._commit(replace(self.catalog, print_materials=self.catalog.print_materials + (material,)))
        return material

    def update_print_material(self, material_id: str, updates: dict) -> PrintMaterial:
        current = self._require(self.catalog.print_materials, material_id, "Print material")
        updates = _provided(updates)
        self._raise_if_invalid(self.validate_material(
            updates.get('name', current.name),
            updates.get('calculation_mode', current.calculation_mode),
            updates.get('value', current.value),
        ))
        material = _apply_updates(current, updates)
        self._commit(replace(
            self.catalog,
            print_materials=_replace_item(self.catalog.print_materials, material_id, material),
        ))
        return material

    def delete_print_material(self, material_id: str) -> bool:
        self._require(self.catalog.print_materials, material_id, "Print material")
        self._commit(replace(
            self.catalog,
            print_materials=_remove_item(self.catalog.print_materials, material_id),
        ))
        return True

    def create_lamination_material(self, name: str, calculation_mode: str, value: float) -> LaminationMaterial:
        self._raise_if_invalid(self.validate_material(name, calculation_mode, value))
        material = LaminationMaterial(
            id=new_id(),
            name=name.strip(),
            calculation_mode=parse_calculation_mode(calculation_mode),
            value=float(value),
        )
        self._commit(replace(
            self.catalog,
            lamination_materials=self.catalog.lamination_materials + (material,),
        ))
        return material

    def update_lamination_material(self, material_id: str, updates: dict) -> LaminationMaterial:
        current = self._require(self.catalog.lamination_materials, material_id, "Lamination material")
        updates = _provided(updates)
        self._raise_if_invalid(self.validate_material(
            updates.get('name', current.name),
            updates.get('calculation_mode', current.calculation_mode),
            updates.get('value', current.value),
        ))
        material = _apply_updates(current, updates)
        self._commit(replace(
            self.catalog,
            lamination_materials=_replace_item(self.catalog.lamination_materials, material_id, material),
        ))
        return material

    def delete_lamination_material(self, material_id: str) -> bool:
        self._require(self.catalog.lamination_materials, material_id, "Lamination material")
        self._commit(replace(
            self.catalog,
            lamination_materials=_remove_item(self.catalog.lamination_materials, material_id),
        ))
        return True

    def update_white_print_settings(self, calculation_mode: str, value: float) -> WhitePrintSettings:
        self._raise_if_invalid(self.validate_material(None, calculation_mode, value))
        settings = WhitePrintSettings(
            calculation_mode=parse_calculation_mode(calculation_mode),
            value=float(value),
        )
        self._commit(replace(self.catalog, white_print_settings=settings))
        return settings

    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Get counts for the status screens."""
        catalog = self.catalog
        return {
            'categories': len(catalog.categories),
            'vehicles': len(catalog.vehicles),
            'coverages': sum(len(v.coverages) for v in catalog.vehicles),
            'extra_options': sum(len(v.extra_options) for v in catalog.vehicles),
            'print_materials': len(catalog.print_materials),
            'lamination_materials': len(catalog.lamination_materials),
        }

    def _require(self, items: tuple, item_id: str, label: str):
        item = _find(items, item_id)
        if item is None:
            raise LookupError(f"{label} '{item_id}' not found")
        return item

    def _save_vehicle(self, vehicle: Vehicle):
        self._commit(replace(self.catalog, vehicles=_replace_item(self.catalog.vehicles, vehicle.id, vehicle)))

    def _commit(self, catalog: Catalog):
        self.store.save(catalog)
        self.catalog = catalog
        logger.info("Catalog updated")
        if self.on_change:
            self.on_change(catalog)
