"""Property management models for UnitDesk.

Mirror of the hosted schema the admin console works against:
- Properties and the units carved out of them
- Lookup tables (unit types, leasing types, three unit category levels)
- Facilities shared by units
- Staff profiles referenced as creators
"""

import enum
from typing import Optional

from sqlalchemy import JSON, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ...database import Base, OwnedByProfile, TimestampMixin


class ProfileRole(str, enum.Enum):
    """Staff roles."""

    ADMIN = "Admin"
    STAFF = "Staff"


class Profile(TimestampMixin, Base):
    """Staff profile; ``id`` is the auth user id."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProfileRole.STAFF.value
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role})>"


class Property(TimestampMixin, Base):
    """A building or lot whose area is divided into units."""

    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_name: Mapped[str] = mapped_column(String(255), nullable=False)
    number_of_units: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Area available for units
    total_sqm: Mapped[float | None] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=True
    )
    overall_sqm: Mapped[float | None] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=True
    )
    address_country: Mapped[str | None] = mapped_column(String(120), nullable=True)
    address_country_iso: Mapped[str | None] = mapped_column(String(2), nullable=True)
    address_street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address_state: Mapped[str | None] = mapped_column(String(120), nullable=True)
    address_state_iso: Mapped[str | None] = mapped_column(String(10), nullable=True)
    address_region: Mapped[str | None] = mapped_column(String(120), nullable=True)
    address_province: Mapped[str | None] = mapped_column(String(120), nullable=True)
    address_city_municipality: Mapped[str | None] = mapped_column(
        String(120), nullable=True
    )
    address_barangay: Mapped[str | None] = mapped_column(String(120), nullable=True)
    # {"files": [{"path": ..., "url": ...}]}
    business_licenses: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    certificates_of_registration: Mapped[dict | None] = mapped_column(
        JSON, nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    last_edited_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    units: Mapped[list["Unit"]] = relationship(
        "Unit", back_populates="property", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.property_name})>"


class UnitType(OwnedByProfile, TimestampMixin, Base):
    __tablename__ = "unit_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_type: Mapped[str] = mapped_column(String(120), nullable=False)


class LeasingType(OwnedByProfile, TimestampMixin, Base):
    __tablename__ = "leasing_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    leasing_type: Mapped[str] = mapped_column(String(120), nullable=False)


class UnitCategory(OwnedByProfile, TimestampMixin, Base):
    __tablename__ = "unit_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_category: Mapped[str] = mapped_column(String(120), nullable=False)


class UnitCategory2(OwnedByProfile, TimestampMixin, Base):
    __tablename__ = "unit_categories_2"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_category_2: Mapped[str] = mapped_column(String(120), nullable=False)


class UnitCategory3(OwnedByProfile, TimestampMixin, Base):
    __tablename__ = "unit_categories_3"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_category_3: Mapped[str] = mapped_column(String(120), nullable=False)


class Facility(TimestampMixin, Base):
    """Shared facility (pool, gym, ...) with the units assigned to it."""

    __tablename__ = "facilities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    amenities: Mapped[list | None] = mapped_column(JSON, nullable=True)

    units: Mapped[list["Unit"]] = relationship(
        "Unit", back_populates="facility", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Facility(id={self.id}, name={self.name})>"


class Unit(TimestampMixin, Base):
    """Rentable unit within a property."""

    __tablename__ = "units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    sqm: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0
    )
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    unit_type_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("unit_types.id", ondelete="SET NULL"), nullable=True
    )
    leasing_type_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("leasing_types.id", ondelete="SET NULL"), nullable=True
    )
    unit_category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("unit_categories.id", ondelete="SET NULL"), nullable=True
    )
    unit_category_2_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("unit_categories_2.id", ondelete="SET NULL"), nullable=True
    )
    unit_category_3_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("unit_categories_3.id", ondelete="SET NULL"), nullable=True
    )
    facility_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("facilities.id", ondelete="SET NULL"), nullable=True
    )
    facilities: Mapped[list | None] = mapped_column(JSON, nullable=True)
    utilities: Mapped[list | None] = mapped_column(JSON, nullable=True)
    unit_images: Mapped[list | None] = mapped_column(JSON, nullable=True)

    property: Mapped["Property"] = relationship(
        "Property", back_populates="units", lazy="raise"
    )
    unit_type: Mapped[Optional["UnitType"]] = relationship("UnitType", lazy="raise")
    leasing_type: Mapped[Optional["LeasingType"]] = relationship(
        "LeasingType", lazy="raise"
    )
    facility: Mapped[Optional["Facility"]] = relationship(
        "Facility", back_populates="units", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Unit(id={self.id}, name={self.name})>"
