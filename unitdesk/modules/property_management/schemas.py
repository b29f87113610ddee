"""Property management schemas for UnitDesk.

Row shapes as the list screens receive them from a collection backend.
"""

from pydantic import BaseModel, Field


class PropertyRow(BaseModel):
    id: int
    property_name: str
    number_of_units: int | None = None
    total_sqm: float | None = None
    overall_sqm: float | None = None
    created_by: str | None = None

    class Config:
        extra = "allow"


class UnitUsage(BaseModel):
    """Units and area already taken out of one property."""

    used_units: int = 0
    used_sqm: float = 0.0


class AvailableProperty(PropertyRow):
    """Property that still has room for at least one unit."""

    available_units: int = Field(..., gt=0)
    available_sqm: float


class DraftUnit(BaseModel):
    """Unit pre-filled for the bulk create form."""

    name: str
    sqm: float = 0
    property_id: int
    unit_type_id: int | None = None
    leasing_type_id: int | None = None
    unit_category_id: int | None = None
    unit_category_2_id: int | None = None
    unit_category_3_id: int | None = None
    facilities: list = Field(default_factory=list)
    utilities: list = Field(default_factory=list)
    unit_images: list = Field(default_factory=list)
