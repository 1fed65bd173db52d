from __future__ import annotations

"""Ratings collection: `note` in [0, 10], `seasonsRatings` for series."""

from typing import Any, Dict, Optional

from titletrack.repositories.annotations import AnnotationRepository


class RatingRepository(AnnotationRepository):
    collection_name = "ratings"
    value_field = "note"
    seasons_field = "seasonsRatings"
    season_value_field = "rating"

    @staticmethod
    def mean_note(doc: Dict[str, Any]) -> Optional[float]:
        """Mean of the season ratings, rounded to two decimals; `None` without seasons."""
        seasons = doc.get("seasonsRatings") or {}
        values = [float(s["rating"]) for s in seasons.values() if s.get("rating") is not None]
        if not values:
            return None
        return round(sum(values) / len(values), 2)
