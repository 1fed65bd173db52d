from __future__ import annotations

"""Comments collection: free-text `comment`, `seasonsComments` for series."""

from titletrack.repositories.annotations import AnnotationRepository


class CommentRepository(AnnotationRepository):
    collection_name = "comments"
    value_field = "comment"
    seasons_field = "seasonsComments"
    season_value_field = "comment"
