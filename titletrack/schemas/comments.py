from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from titletrack.schemas.common import CamelModel, IdField


class SeasonComment(CamelModel):
    comment: str
    added_at: datetime
    updated_at: datetime


class Comment(CamelModel):
    id: str = IdField()
    title_id: str
    user_id: str
    comment: Optional[str] = None
    seasons_comments: Optional[Dict[str, SeasonComment]] = None
    created_at: datetime
    updated_at: datetime


class NewComment(CamelModel):
    group_id: str
    title_id: str
    comment: str
    season: Optional[int] = None


class UpdateComment(CamelModel):
    comment: str
    season: Optional[int] = None


class CommentsList(CamelModel):
    comments: List[Comment]
