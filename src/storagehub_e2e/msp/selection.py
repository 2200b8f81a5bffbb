"""
Value proposition selection policies.

A selector receives the MSP's offers and returns the one a new bucket should
use. ``first_available`` is the default.
"""

from __future__ import annotations

from typing import Callable, Sequence

from storagehub_e2e.errors import NoValuePropositionsError
from storagehub_e2e.msp.types import ValueProp
from storagehub_e2e.utils.validation import same_hex

ValuePropSelector = Callable[[Sequence[ValueProp]], ValueProp]


def first_available(value_props: Sequence[ValueProp]) -> ValueProp:
    """Pick the first offer flagged available, else the first offer."""
    if not value_props:
        raise NoValuePropositionsError()
    for value_prop in value_props:
        if value_prop.available:
            return value_prop
    return value_props[0]


def by_id(value_prop_id: str) -> ValuePropSelector:
    """Build a selector that insists on one specific offer."""

    def select(value_props: Sequence[ValueProp]) -> ValueProp:
        if not value_props:
            raise NoValuePropositionsError()
        for value_prop in value_props:
            if same_hex(value_prop.id, value_prop_id):
                return value_prop
        raise NoValuePropositionsError(
            details={
                "requested": value_prop_id,
                "offered": [value_prop.id for value_prop in value_props],
            }
        )

    return select
