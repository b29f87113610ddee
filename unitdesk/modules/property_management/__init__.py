"""Property management module for UnitDesk.

Only the models are exported here; the SQL backend imports this package to
register its tables. Import ``collections``, ``services``, ``availability`` and
``formatting`` from their own modules.
"""

from .models import (
    Facility,
    LeasingType,
    Profile,
    ProfileRole,
    Property,
    Unit,
    UnitCategory,
    UnitCategory2,
    UnitCategory3,
    UnitType,
)

__all__ = [
    # Models
    "Facility",
    "LeasingType",
    "Profile",
    "Property",
    "Unit",
    "UnitCategory",
    "UnitCategory2",
    "UnitCategory3",
    "UnitType",
    # Enums
    "ProfileRole",
]
