"""UnitDesk: paginated, searchable collection lists for the property admin console."""

__version__ = "0.1.0"
