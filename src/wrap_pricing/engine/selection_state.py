"""
Selection state reducer for interactive calculators.

Dependent fields are reset by explicit transitions instead of reactive side
effects: ``reduce(catalog, state, action)`` returns the next ``Selection``.
"""
from dataclasses import dataclass, replace
from typing import Optional, Union

from .models import Catalog, Selection


@dataclass(frozen=True)
class VehicleSelected:
    vehicle_id: Optional[str]


@dataclass(frozen=True)
class CoverageSelected:
    coverage_id: Optional[str]


@dataclass(frozen=True)
class ExtraOptionToggled:
    option_id: str


@dataclass(frozen=True)
class PrintMaterialSelected:
    material_id: Optional[str]


@dataclass(frozen=True)
class LaminationSelected:
    material_id: Optional[str]


@dataclass(frozen=True)
class WhitePrintToggled:
    requested: bool


@dataclass(frozen=True)
class CatalogReloaded:
    """The catalog changed underneath the form."""


@dataclass(frozen=True)
class SelectionReset:
    """Start over with the catalog defaults."""


Action = Union[
    VehicleSelected,
    CoverageSelected,
    ExtraOptionToggled,
    PrintMaterialSelected,
    LaminationSelected,
    WhitePrintToggled,
    CatalogReloaded,
    SelectionReset,
]


def initial_state(catalog: Catalog) -> Selection:
    """Empty selection with the first print and lamination material pre-selected."""
    return Selection(
        print_material_id=catalog.print_materials[0].id if catalog.print_materials else None,
        lamination_material_id=catalog.lamination_materials[0].id if catalog.lamination_materials else None,
    )


def _white_print_allowed(catalog: Catalog, material_id: Optional[str]) -> bool:
    material = catalog.get_print_material(material_id)
    return bool(material and material.allows_white_print)


def reduce(catalog: Catalog, state: Selection, action: Action) -> Selection:
    """Apply one user action to a selection."""
    if isinstance(action, VehicleSelected):
        # Coverage and options belong to the previous vehicle
        return replace(
            state,
            vehicle_id=action.vehicle_id,
            coverage_id=None,
            extra_option_ids=(),
            white_print_requested=False,
        )

    if isinstance(action, CoverageSelected):
        return replace(state, coverage_id=action.coverage_id)

    if isinstance(action, ExtraOptionToggled):
        if action.option_id in state.extra_option_ids:
            remaining = tuple(o for o in state.extra_option_ids if o != action.option_id)
            return replace(state, extra_option_ids=remaining)
        return replace(state, extra_option_ids=state.extra_option_ids + (action.option_id,))

    if isinstance(action, PrintMaterialSelected):
        white_print = state.white_print_requested and _white_print_allowed(catalog, action.material_id)
        return replace(state, print_material_id=action.material_id, white_print_requested=white_print)

    if isinstance(action, LaminationSelected):
        return replace(state, lamination_material_id=action.material_id)

    if isinstance(action, WhitePrintToggled):
        if action.requested and not _white_print_allowed(catalog, state.print_material_id):
            return state
        return replace(state, white_print_requested=action.requested)

    if isinstance(action, CatalogReloaded):
        return _reconcile(catalog, state)

    if isinstance(action, SelectionReset):
        return initial_state(catalog)

    raise TypeError(f"Unknown selection action: {action!r}")


def _reconcile(catalog: Catalog, state: Selection) -> Selection:
    """Drop references the new catalog no longer has."""
    defaults = initial_state(catalog)
    vehicle = catalog.get_vehicle(state.vehicle_id)

    if vehicle is None:
        vehicle_id, coverage_id, option_ids = None, None, ()
    else:
        vehicle_id = vehicle.id
        coverage_id = state.coverage_id if vehicle.get_coverage(state.coverage_id) else None
        option_ids = tuple(o for o in state.extra_option_ids if vehicle.get_extra_option(o))

    print_id = state.print_material_id
    if catalog.get_print_material(print_id) is None:
        print_id = defaults.print_material_id

    lamination_id = state.lamination_material_id
    if lamination_id is not None and catalog.get_lamination_material(lamination_id) is None:
        lamination_id = defaults.lamination_material_id

    return Selection(
        vehicle_id=vehicle_id,
        coverage_id=coverage_id,
        print_material_id=print_id,
        extra_option_ids=option_ids,
        lamination_material_id=lamination_id,
        white_print_requested=state.white_print_requested and _white_print_allowed(catalog, print_id),
    )
