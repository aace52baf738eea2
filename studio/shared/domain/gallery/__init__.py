"""Home gallery filtering."""

from studio.shared.domain.gallery.filtering import filter_elements, matches_query

__all__ = ["filter_elements", "matches_query"]
