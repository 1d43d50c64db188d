"""
Pricing Engine - derives a wrap job price from a catalog snapshot and a selection.

Computation order:
1. Resolve vehicle, coverage, extra options and materials (fail on any miss)
2. Base price = coverage + selected extra options
3. Print cost against the base price
4. Lamination cost against base + print (when a lamination is selected)
5. White print surcharge against base + print (when requested and allowed)
6. Total = sum of all of the above

Amounts are plain floats; nothing is rounded here.
"""
import logging
from typing import Optional

from ..config.settings import get_settings, Settings
from .errors import SelectionError
from .models import (
    FIXED_AMOUNT,
    LINE_BASE,
    LINE_EXTRA_OPTIONS,
    LINE_LAMINATION,
    LINE_PRINT,
    LINE_WHITE_PRINT,
    Catalog,
    PriceBreakdown,
    Selection,
)

logger = logging.getLogger(__name__)


def material_cost(calculation_mode: str, value: float, base: float) -> float:
    """Cost of a priced process: a fixed amount, or a percentage of ``base``."""
    if calculation_mode == FIXED_AMOUNT:
        return value
    return base * (value / 100)


def compute_price(catalog: Catalog, selection: Selection) -> PriceBreakdown:
    """
    Compute the price breakdown for a selection.

    Raises:
        SelectionError: when any referenced entity is missing; no partial
            breakdown is returned.
    """
    # 1. Resolve everything up front
    vehicle = catalog.get_vehicle(selection.vehicle_id)
    if vehicle is None:
        raise SelectionError('vehicle', selection.vehicle_id)

    coverage = vehicle.get_coverage(selection.coverage_id)
    if coverage is None:
        raise SelectionError('coverage', selection.coverage_id)

    for index, option_id in enumerate(selection.extra_option_ids):
        if vehicle.get_extra_option(option_id) is None:
            raise SelectionError(f'extraOption[{index}]', option_id)

    print_material = catalog.get_print_material(selection.print_material_id)
    if print_material is None:
        raise SelectionError('printMaterial', selection.print_material_id)

    lamination = None
    if selection.lamination_material_id is not None:
        lamination = catalog.get_lamination_material(selection.lamination_material_id)
        if lamination is None:
            raise SelectionError('laminationMaterial', selection.lamination_material_id)

    breakdown = PriceBreakdown()
    breakdown.add_trace("Vehicle", vehicle.display_name, vehicle.id)

    # 2. Base vehicle price, options summed in the vehicle's display order
    selected = set(selection.extra_option_ids)
    options_sum = sum(o.price for o in vehicle.extra_options if o.id in selected)
    base_price = coverage.price + options_sum

    breakdown.add_line(f"Base price ({coverage.name})", coverage.price, LINE_BASE)
    breakdown.add_trace("Coverage", coverage.name, f"{coverage.price:.2f}")
    if options_sum > 0:
        breakdown.add_line("Extra options", options_sum, LINE_EXTRA_OPTIONS)
        breakdown.add_trace("Extra options", f"{len(selected)} selected", f"{options_sum:.2f}")

    # 3. Print
    print_cost = material_cost(print_material.calculation_mode, print_material.value, base_price)
    breakdown.add_line(f"Print cost ({print_material.name})", print_cost, LINE_PRINT)
    breakdown.add_trace(
        "Print",
        f"{print_material.name} ({print_material.calculation_mode} {print_material.value:g})",
        f"{print_cost:.2f}",
    )

    # Lamination and white print share this base; neither compounds on the other
    layered_base = base_price + print_cost

    # 4. Lamination
    lamination_cost = 0.0
    if lamination is not None:
        lamination_cost = material_cost(lamination.calculation_mode, lamination.value, layered_base)
        breakdown.add_line(f"Lamination cost ({lamination.name})", lamination_cost, LINE_LAMINATION)
        breakdown.add_trace(
            "Lamination",
            f"{lamination.name} ({lamination.calculation_mode} {lamination.value:g})",
            f"{lamination_cost:.2f}",
        )
    else:
        breakdown.add_trace("Lamination", "No lamination selected")

    # 5. White print
    white_print_cost = 0.0
    if selection.white_print_requested and print_material.allows_white_print:
        settings = catalog.white_print_settings
        white_print_cost = material_cost(settings.calculation_mode, settings.value, layered_base)
        breakdown.add_line("White print surcharge", white_print_cost, LINE_WHITE_PRINT)
        breakdown.add_trace(
            "White print",
            f"{settings.calculation_mode} {settings.value:g}",
            f"{white_print_cost:.2f}",
        )
    elif selection.white_print_requested:
        breakdown.add_trace("White print", f"Not available for {print_material.name}")

    # 6. Total
    breakdown.total = base_price + print_cost + lamination_cost + white_print_cost
    breakdown.add_trace("Total", "Base + print + lamination + white print", f"{breakdown.total:.2f}")

    logger.debug("Computed %.2f for vehicle %s / coverage %s", breakdown.total, vehicle.id, coverage.id)
    return breakdown


class PricingEngine:
    """
    Holds the current catalog snapshot and prices selections against it.

    The snapshot is replaced wholesale on reload; a calculation in flight
    keeps working against the snapshot it started with.
    """

    def __init__(self, settings: Optional[Settings] = None, catalog: Optional[Catalog] = None, store=None):
        """Initialize engine with a catalog, loading it from the store when not given."""
        self.settings = settings or get_settings()

        if store is None:
            from ..data.store import CatalogStore
            store = CatalogStore(self.settings.data_file)
        self.store = store

        self.catalog = catalog if catalog is not None else self.store.load()

    def reload_data(self):
        """Reload the catalog snapshot from the store."""
        self.catalog = self.store.load()
        logger.info(
            "Catalog reloaded: %d vehicles, %d print / %d lamination materials",
            len(self.catalog.vehicles),
            len(self.catalog.print_materials),
            len(self.catalog.lamination_materials),
        )

    def set_catalog(self, catalog: Catalog):
        """Swap in a new snapshot (after an edit that was already persisted)."""
        self.catalog = catalog

    def calculate(self, selection: Selection) -> PriceBreakdown:
        """Price a selection against the current snapshot."""
        catalog = self.catalog
        return compute_price(catalog, selection)

    def try_calculate(self, selection: Selection) -> Optional[PriceBreakdown]:
        """
        Price a selection, returning None while it is incomplete or inconsistent.

        Interactive surfaces show a placeholder instead of an error in that case.
        """
        try:
            return self.calculate(selection)
        except SelectionError as e:
            logger.debug("Selection not priceable yet: %s", e)
            return None
