"""
Data models for the pricing engine.

Catalog entities are frozen dataclasses holding tuples, so a catalog handed to
the engine is a read-only snapshot. The breakdown produced by the engine is a
regular dataclass that collects lines and a trace as it is built.
"""
from dataclasses import dataclass, field
from typing import Optional


PERCENTAGE = 'percentage'
FIXED_AMOUNT = 'fixed_amount'

VALID_CALCULATION_MODES = {PERCENTAGE, FIXED_AMOUNT}

# Spellings seen in older data files and spreadsheet exports
_MODE_ALIASES = {
    'percentage': PERCENTAGE,
    'percent': PERCENTAGE,
    'procentual': PERCENTAGE,
    '%': PERCENTAGE,
    'fixed_amount': FIXED_AMOUNT,
    'fixed amount': FIXED_AMOUNT,
    'fixed': FIXED_AMOUNT,
    'suma_fixa': FIXED_AMOUNT,
    'sumă fixă': FIXED_AMOUNT,
    'suma fixa': FIXED_AMOUNT,
}

# Breakdown line kinds, in display order
LINE_BASE = 'base'
LINE_EXTRA_OPTIONS = 'extra_options'
LINE_PRINT = 'print'
LINE_LAMINATION = 'lamination'
LINE_WHITE_PRINT = 'white_print'


def parse_calculation_mode(value) -> str:
    """Normalize a calculation mode, accepting legacy spellings."""
    key = str(value or '').strip().lower()
    if key in _MODE_ALIASES:
        return _MODE_ALIASES[key]
    raise ValueError(f"Unknown calculation mode: {value!r}")


def _price(value) -> float:
    if value is None or value == '':
        return 0.0
    return float(value)


@dataclass(frozen=True)
class Category:
    """A vehicle category (SUV, van, ...)."""
    id: str
    name: str

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_dict(cls, record: dict) -> 'Category':
        return cls(id=str(record['id']), name=str(record.get('name', '')))


@dataclass(frozen=True)
class Coverage:
    """A priceable wrap variant for one vehicle."""
    id: str
    name: str
    price: float

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'price': self.price}

    @classmethod
    def from_dict(cls, record: dict) -> 'Coverage':
        return cls(
            id=str(record['id']),
            name=str(record.get('name', '')),
            price=_price(record.get('price')),
        )


@dataclass(frozen=True)
class ExtraOption:
    """An add-on priced on top of the coverage."""
    id: str
    name: str
    price: float

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'price': self.price}

    @classmethod
    def from_dict(cls, record: dict) -> 'ExtraOption':
        return cls(
            id=str(record['id']),
            name=str(record.get('name', '')),
            price=_price(record.get('price')),
        )


@dataclass(frozen=True)
class Vehicle:
    """A vehicle model with its coverages and extra options."""
    id: str
    manufacturer: str
    model: str
    category_id: str = ''
    production_period: str = ''
    coverages: tuple = ()
    extra_options: tuple = ()

    @property
    def display_name(self) -> str:
        return f"{self.manufacturer} {self.model}".strip()

    def get_coverage(self, coverage_id: Optional[str]) -> Optional[Coverage]:
        for coverage in self.coverages:
            if coverage.id == coverage_id:
                return coverage
        return None

    def get_extra_option(self, option_id: Optional[str]) -> Optional[ExtraOption]:
        for option in self.extra_options:
            if option.id == option_id:
                return option
        return None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'manufacturer': self.manufacturer,
            'model': self.model,
            'category_id': self.category_id,
            'production_period': self.production_period,
            'coverages': [c.to_dict() for c in self.coverages],
            'extra_options': [o.to_dict() for o in self.extra_options],
        }

    @classmethod
    def from_dict(cls, record: dict) -> 'Vehicle':
        return cls(
            id=str(record['id']),
            manufacturer=str(record.get('manufacturer', '')),
            model=str(record.get('model', '')),
            category_id=str(record.get('category_id') or ''),
            production_period=str(record.get('production_period') or ''),
            coverages=tuple(Coverage.from_dict(c) for c in record.get('coverages') or []),
            extra_options=tuple(ExtraOption.from_dict(o) for o in record.get('extra_options') or []),
        )


@dataclass(frozen=True)
class PrintMaterial:
    """Print substrate; priced as a percentage of the vehicle price or a fixed amount."""
    id: str
    name: str
    calculation_mode: str
    value: float
    allows_white_print: bool = False

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'calculation_mode': self.calculation_mode,
            'value': self.value,
            'allows_white_print': self.allows_white_print,
        }

    @classmethod
    def from_dict(cls, record: dict) -> 'PrintMaterial':
        return cls(
            id=str(record['id']),
            name=str(record.get('name', '')),
            calculation_mode=parse_calculation_mode(record.get('calculation_mode')),
            value=_price(record.get('value')),
            allows_white_print=bool(record.get('allows_white_print', False)),
        )


@dataclass(frozen=True)
class LaminationMaterial:
    """Protective overlay, layered on top of base + print."""
    id: str
    name: str
    calculation_mode: str
    value: float

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'calculation_mode': self.calculation_mode,
            'value': self.value,
        }

    @classmethod
    def from_dict(cls, record: dict) -> 'LaminationMaterial':
        return cls(
            id=str(record['id']),
            name=str(record.get('name', '')),
            calculation_mode=parse_calculation_mode(record.get('calculation_mode')),
            value=_price(record.get('value')),
        )


@dataclass(frozen=True)
class WhitePrintSettings:
    """Global surcharge for the white ink pass."""
    calculation_mode: str = PERCENTAGE
    value: float = 0.0

    def to_dict(self) -> dict:
        return {'calculation_mode': self.calculation_mode, 'value': self.value}

    @classmethod
    def from_dict(cls, record: dict) -> 'WhitePrintSettings':
        return cls(
            calculation_mode=parse_calculation_mode(record.get('calculation_mode')),
            value=_price(record.get('value')),
        )


@dataclass(frozen=True)
class Catalog:
    """Read-only snapshot of everything a calculation may reference."""
    categories: tuple = ()
    vehicles: tuple = ()
    print_materials: tuple = ()
    lamination_materials: tuple = ()
    white_print_settings: WhitePrintSettings = field(default_factory=WhitePrintSettings)

    def get_category(self, category_id: Optional[str]) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)

    def get_category_by_name(self, name: Optional[str]) -> Optional[Category]:
        key = str(name or '').strip().lower()
        return next((c for c in self.categories if c.name.strip().lower() == key), None)

    def get_vehicle(self, vehicle_id: Optional[str]) -> Optional[Vehicle]:
        return next((v for v in self.vehicles if v.id == vehicle_id), None)

    def get_print_material(self, material_id: Optional[str]) -> Optional[PrintMaterial]:
        return next((m for m in self.print_materials if m.id == material_id), None)

    def get_lamination_material(self, material_id: Optional[str]) -> Optional[LaminationMaterial]:
        return next((m for m in self.lamination_materials if m.id == material_id), None)

    def category_name(self, category_id: Optional[str]) -> str:
        category = self.get_category(category_id)
        return category.name if category else ''

    def to_dict(self) -> dict:
        return {
            'categories': [c.to_dict() for c in self.categories],
            'vehicles': [v.to_dict() for v in self.vehicles],
            'print_materials': [m.to_dict() for m in self.print_materials],
            'lamination_materials': [m.to_dict() for m in self.lamination_materials],
            'white_print_settings': self.white_print_settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Catalog':
        return cls(
            categories=tuple(Category.from_dict(c) for c in data.get('categories') or []),
            vehicles=tuple(Vehicle.from_dict(v) for v in data.get('vehicles') or []),
            print_materials=tuple(PrintMaterial.from_dict(m) for m in data.get('print_materials') or []),
            lamination_materials=tuple(
                LaminationMaterial.from_dict(m) for m in data.get('lamination_materials') or []
            ),
            white_print_settings=WhitePrintSettings.from_dict(data.get('white_print_settings') or {
                'calculation_mode': PERCENTAGE, 'value': 0
            }),
        )


@dataclass(frozen=True)
class Selection:
    """What the user picked for one calculation."""
    vehicle_id: Optional[str] = None
    coverage_id: Optional[str] = None
    print_material_id: Optional[str] = None
    extra_option_ids: tuple = ()
    lamination_material_id: Optional[str] = None
    white_print_requested: bool = False

    def __post_init__(self):
        # Extra options are a set; keep first-seen order for error reporting
        object.__setattr__(self, 'extra_option_ids', tuple(dict.fromkeys(self.extra_option_ids or ())))


@dataclass(frozen=True)
class BreakdownLine:
    """A single named cost component."""
    label: str
    amount: float
    kind: str


@dataclass
class TraceStep:
    """A single step in the price computation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PriceBreakdown:
    """Ordered cost components and their total."""
    lines: list[BreakdownLine] = field(default_factory=list)
    total: float = 0.0
    trace: list[TraceStep] = field(default_factory=list)

    def add_line(self, label: str, amount: float, kind: str):
        self.lines.append(BreakdownLine(label=label, amount=amount, kind=kind))

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this computation."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def amount_for(self, kind: str) -> float:
        """Sum of lines of one kind (0.0 when the line was not emitted)."""
        return sum(line.amount for line in self.lines if line.kind == kind)

    @property
    def base_price(self) -> float:
        return self.amount_for(LINE_BASE) + self.amount_for(LINE_EXTRA_OPTIONS)

    @property
    def print_cost(self) -> float:
        return self.amount_for(LINE_PRINT)

    @property
    def lamination_cost(self) -> float:
        return self.amount_for(LINE_LAMINATION)

    @property
    def white_print_cost(self) -> float:
        return self.amount_for(LINE_WHITE_PRINT)

    def has_line(self, kind: str) -> bool:
        return any(line.kind == kind for line in self.lines)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            'lines': [
                {'label': line.label, 'amount': line.amount, 'kind': line.kind}
                for line in self.lines
            ],
            'total': self.total,
        }
