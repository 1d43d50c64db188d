"""
Cart Service - turns a priced selection into an order line.

The total is always recomputed from the catalog; a client-supplied total is
only compared against it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..engine.models import PriceBreakdown, Selection
from ..engine.pricing_engine import PricingEngine

logger = logging.getLogger(__name__)

TOTAL_TOLERANCE = 0.01


@dataclass
class CartLine:
    """A configured wrap job ready for an external order system."""
    title: str
    selection: Selection
    vehicle: str
    coverage: str
    extra_options: list[str]
    print_material: str
    lamination_material: Optional[str]
    white_print: bool
    total: float
    breakdown: PriceBreakdown
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec='seconds'))
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'vehicle_id': self.selection.vehicle_id,
            'coverage_id': self.selection.coverage_id,
            'extra_option_ids': list(self.selection.extra_option_ids),
            'print_material_id': self.selection.print_material_id,
            'lamination_material_id': self.selection.lamination_material_id,
            'vehicle': self.vehicle,
            'coverage': self.coverage,
            'extra_options': self.extra_options,
            'print_material': self.print_material,
            'lamination_material': self.lamination_material,
            'white_print': self.white_print,
            'total': self.total,
            'breakdown': self.breakdown.to_dict(),
            'created_at': self.created_at,
            'warnings': self.warnings,
        }


class CartService:
    """Builds cart lines and forwards them to an order sink."""

    def __init__(self, engine: PricingEngine, sink: Optional[Callable[[CartLine], None]] = None):
        self.engine = engine
        self.sink = sink
        self.lines: list[CartLine] = []

    def build_line(self, selection: Selection, client_total: Optional[float] = None) -> CartLine:
        """
        Price the selection and describe it as a cart line.

        Raises:
            SelectionError: when the selection does not resolve.
        """
        catalog = self.engine.catalog
        breakdown = self.engine.calculate(selection)

        # calculate() already proved these references resolve
        vehicle = catalog.get_vehicle(selection.vehicle_id)
        coverage = vehicle.get_coverage(selection.coverage_id)
        print_material = catalog.get_print_material(selection.print_material_id)
        lamination = catalog.get_lamination_material(selection.lamination_material_id)
        selected = set(selection.extra_option_ids)

        line = CartLine(
            title=f"Graphics {vehicle.display_name} - {coverage.name}",
            selection=selection,
            vehicle=vehicle.display_name,
            coverage=coverage.name,
            extra_options=[o.name for o in vehicle.extra_options if o.id in selected],
            print_material=print_material.name,
            lamination_material=lamination.name if lamination else None,
            white_print=selection.white_print_requested and print_material.allows_white_print,
            total=breakdown.total,
            breakdown=breakdown,
        )

        if client_total is not None and abs(client_total - breakdown.total) > TOTAL_TOLERANCE:
            message = f"Submitted total {client_total:.2f} replaced by computed total {breakdown.total:.2f}"
            logger.warning("%s for '%s'", message, line.title)
            line.warnings.append(message)

        return line

    def add_to_cart(self, selection: Selection, client_total: Optional[float] = None) -> CartLine:
        """Build a line, keep it, and hand it to the sink."""
        line = self.build_line(selection, client_total)
        self.lines.append(line)
        if self.sink:
            self.sink(line)
        logger.info("Added '%s' to cart at %.2f", line.title, line.total)
        return line

    def clear(self):
        self.lines = []

    @property
    def total(self) -> float:
        return sum(line.total for line in self.lines)
