"""Room left in each property for new units."""

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from ...backends.base import CollectionBackend, PageRequest
from ...core.projection import parse_projection
from .schemas import AvailableProperty, DraftUnit, UnitUsage

logger = logging.getLogger(__name__)

# Area sums are compared with this tolerance
SQM_TOLERANCE = 0.01


def _number(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def compute_usage(units: Iterable[Mapping[str, Any]]) -> dict[Any, UnitUsage]:
    """Units and area already used, per ``property_id``."""
    usage: dict[Any, UnitUsage] = {}
    for unit in units:
        entry = usage.setdefault(unit.get("property_id"), UnitUsage())
        entry.used_units += 1
        entry.used_sqm += _number(unit.get("sqm"))
    return usage


def available_properties(
    properties: Iterable[Mapping[str, Any]],
    units: Iterable[Mapping[str, Any]],
) -> list[AvailableProperty]:
    """
    Properties that can still take at least one more unit.

    Args:
        properties: Property rows with ``number_of_units`` and ``total_sqm``
        units: Every unit row, with ``property_id`` and ``sqm``

    Returns:
        Properties with ``available_units > 0``, in input order
    """
    usage = compute_usage(units)
    available = []
    for prop in properties:
        used = usage.get(prop.get("id"), UnitUsage())
        available_units = int(_number(prop.get("number_of_units"))) - used.used_units
        if available_units <= 0:
            continue
        available_sqm = round(_number(prop.get("total_sqm")) - used.used_sqm, 2)
        available.append(
            AvailableProperty(
                **prop,
                available_units=available_units,
                available_sqm=available_sqm,
            )
        )
    return available


def draft_units(prop: AvailableProperty) -> list[DraftUnit]:
    """One blank unit per free slot, named ``"<property name> Unit <n>"``."""
    return [
        DraftUnit(name=f"{prop.property_name} Unit {i}", property_id=prop.id)
        for i in range(1, prop.available_units + 1)
    ]


def assigned_sqm(units: Iterable[DraftUnit | Mapping[str, Any]]) -> float:
    total = 0.0
    for unit in units:
        sqm = unit.sqm if isinstance(unit, DraftUnit) else unit.get("sqm")
        total += _number(sqm)
    return total


def is_sqm_matched(total_sqm: float, units: Iterable[DraftUnit | Mapping[str, Any]]) -> bool:
    """True when the units split exactly the available area, which must be positive."""
    total = _number(total_sqm)
    return total > 0 and abs(total - assigned_sqm(units)) < SQM_TOLERANCE


async def load_available_properties(backend: CollectionBackend) -> list[AvailableProperty]:
    """Fetch every property and unit and work out which properties have room."""
    properties = await backend.fetch_page(
        PageRequest(
            table="properties",
            projection=parse_projection("*"),
        )
    )
    units = await backend.fetch_page(
        PageRequest(
            table="units",
            projection=parse_projection("property_id, sqm"),
        )
    )
    available = available_properties(properties.rows, units.rows)
    logger.debug(
        "Computed property availability",
        extra={"properties": properties.count, "available": len(available)},
    )
    return available
