"""Display helpers for property rows."""

from collections.abc import Mapping
from typing import Any

NOT_AVAILABLE = "N/A"

_PH_ADDRESS_FIELDS = (
    "address_street",
    "address_barangay",
    "address_city_municipality",
    "address_province",
    "address_zip_code",
    "address_country",
)
_STATE_ADDRESS_FIELDS = (
    "address_street",
    "address_state",
    "address_zip_code",
    "address_country",
)


def format_address(prop: Mapping[str, Any]) -> str:
    """One-line address; Philippine addresses list barangay, city and province."""
    fields = (
        _PH_ADDRESS_FIELDS
        if prop.get("address_country_iso") == "PH"
        else _STATE_ADDRESS_FIELDS
    )
    parts = [str(prop[name]) for name in fields if prop.get(name)]
    return ", ".join(parts) or NOT_AVAILABLE


def creator_display(prop: Mapping[str, Any], profile: Mapping[str, Any] | None) -> str:
    """Who created a row, as seen by the signed-in ``profile``."""
    if not profile:
        return "Loading..."
    created_by = prop.get("created_by")
    if created_by == profile.get("id"):
        return "You"
    if not created_by:
        return NOT_AVAILABLE
    return f"User {str(created_by)[:8]}..."
