"""Errors raised by the pricing engine."""
from typing import Optional


class SelectionError(ValueError):
    """
    A selection references something the catalog does not contain.

    ``field`` names the failed reference: ``vehicle``, ``coverage``,
    ``extraOption[i]``, ``printMaterial`` or ``laminationMaterial``.
    """

    NOT_FOUND = 'not_found'

    def __init__(self, field: str, value: Optional[str] = None, kind: str = NOT_FOUND):
        self.field = field
        self.value = value
        self.kind = kind
        super().__init__(f"{field} not found: {value!r}")

    def to_dict(self) -> dict:
        return {'field': self.field, 'kind': self.kind, 'value': self.value}
