"""The admin console's list screens.

Each :class:`ListScreen` fixes what one screen lists: the collection, how it
is projected and searched, how many rows a page holds, and what the empty
state says.
"""

from dataclasses import dataclass, field

from pydantic import BaseModel

from ...backends.base import CollectionBackend
from ...query import CollectionQuery, CollectionRef, QueryCache
from ..commons.listing import EmptyStateText

PROPERTY_PROJECTION = (
    "id, property_name, number_of_units, total_sqm, business_licenses, "
    "certificates_of_registration, created_by, address_country, "
    "address_country_iso, address_street, address_zip_code, address_state, "
    "address_state_iso, address_region, address_province, "
    "address_city_municipality, address_barangay, overall_sqm"
)

UNIT_PROJECTION = (
    "id, name, sqm, property_id, unit_type_id, leasing_type_id, "
    "unit_category_id, unit_category_2_id, unit_category_3_id, "
    "properties (property_name, number_of_units, total_sqm), "
    "unit_types (unit_type)"
)


@dataclass(frozen=True)
class ListScreen:
    """Configuration of one paginated, searchable list."""

    key: str
    collection: CollectionRef
    page_size: int = 5
    empty_state: EmptyStateText = field(default_factory=EmptyStateText)
    search_placeholder: str = "Search..."
    row_model: type[BaseModel] | None = None

    @property
    def table(self) -> str:
        return self.collection.name

    def open(
        self, backend: CollectionBackend, cache: QueryCache | None = None
    ) -> CollectionQuery:
        """Create the query driving this screen; call ``start()`` on it."""
        return CollectionQuery(
            backend,
            self.collection,
            self.page_size,
            cache=cache,
            row_model=self.row_model,
        )


def _lookup_screen(table: str, column: str, label: str, plural: str) -> ListScreen:
    return ListScreen(
        key=table,
        collection=CollectionRef(
            name=table,
            projection=f"id, {column}, created_at, profiles (first_name, last_name)",
            search_field=column,
        ),
        page_size=5,
        empty_state=EmptyStateText(
            title=f"No {plural} Yet",
            description='Click "Add New" to get started.',
        ),
        search_placeholder=f"Search by {label.lower()}...",
    )


PROPERTIES = ListScreen(
    key="properties",
    collection=CollectionRef(
        name="properties",
        projection=PROPERTY_PROJECTION,
        search_field="property_name",
    ),
    page_size=5,
    empty_state=EmptyStateText(
        title="No Properties Yet",
        description='Click "Add New Property" to get started.',
    ),
    search_placeholder="Search by property name...",
)

UNITS = ListScreen(
    key="units",
    collection=CollectionRef(
        name="units", projection=UNIT_PROJECTION, search_field="name"
    ),
    page_size=10,
    empty_state=EmptyStateText(
        title="No Units Found",
        description='Click "Add New Units" to get started.',
    ),
    search_placeholder="Search by unit name...",
)

UNIT_TYPES = _lookup_screen("unit_types", "unit_type", "Unit Type", "Unit Types")
LEASING_TYPES = _lookup_screen(
    "leasing_types", "leasing_type", "Leasing Type", "Leasing Types"
)
UNIT_CATEGORIES = _lookup_screen(
    "unit_categories", "unit_category", "Unit Category", "Unit Categories"
)
UNIT_CATEGORIES_2 = _lookup_screen(
    "unit_categories_2", "unit_category_2", "Unit Category 2", "Unit Categories 2"
)
UNIT_CATEGORIES_3 = _lookup_screen(
    "unit_categories_3", "unit_category_3", "Unit Category 3", "Unit Categories 3"
)

FACILITIES = ListScreen(
    key="facilities",
    collection=CollectionRef(
        name="facilities",
        projection="id, name, image_url, units (id, name)",
        search_field="name",
    ),
    page_size=5,
    empty_state=EmptyStateText(
        title="No Facilities Yet",
        description='Click "Add New Facility" to get started.',
    ),
    search_placeholder="Search by facility name...",
)

# Units offered when assigning a facility; effectively all of them
FACILITY_UNIT_PICKER = ListScreen(
    key="facility_unit_picker",
    collection=CollectionRef(
        name="units", projection="id, name, type", search_field="name"
    ),
    page_size=1000,
    search_placeholder="Search units...",
)

# Lookup table -> column holding the display name
LOOKUP_NAME_COLUMNS: dict[str, str] = {
    "unit_types": "unit_type",
    "leasing_types": "leasing_type",
    "unit_categories": "unit_category",
    "unit_categories_2": "unit_category_2",
    "unit_categories_3": "unit_category_3",
}

SCREENS: dict[str, ListScreen] = {
    screen.key: screen
    for screen in (
        PROPERTIES,
        UNITS,
        UNIT_TYPES,
        LEASING_TYPES,
        UNIT_CATEGORIES,
        UNIT_CATEGORIES_2,
        UNIT_CATEGORIES_3,
        FACILITIES,
        FACILITY_UNIT_PICKER,
    )
}


def get_screen(key: str) -> ListScreen:
    """Screen configuration by key.

    Raises:
        KeyError: If no screen has that key
    """
    try:
        return SCREENS[key]
    except KeyError:
        raise KeyError(f"Unknown list screen: {key}") from None
