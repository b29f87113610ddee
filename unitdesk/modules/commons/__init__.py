"""Pieces shared by every list screen."""

from .listing import (
    EmptyStateText,
    ListingKind,
    ListingView,
    build_listing_view,
    listing_view_for,
)

__all__ = [
    "EmptyStateText",
    "ListingKind",
    "ListingView",
    "build_listing_view",
    "listing_view_for",
]
