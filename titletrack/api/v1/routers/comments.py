# titletrack/api/v1/routers/comments.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 💬 TitleTrack · Comments API                                             ║
# ║                                                                          ║
# ║  - POST   /comments                 → Comment on a title inside a group  ║
# ║  - GET    /comments/{comment_id}    → Own comment                        ║
# ║  - PATCH  /comments/{comment_id}    → Edit text (per season for series)  ║
# ║  - DELETE /comments/{comment_id}    → Delete comment or one season       ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from titletrack.api.http_utils import sanitize_object_id, sanitize_title_id
from titletrack.core.security import get_current_user
from titletrack.db.mongo import Database, get_database
from titletrack.schemas.comments import Comment, NewComment, UpdateComment
from titletrack.schemas.common import DefaultResponse
from titletrack.services import comments_service

router = APIRouter(
    prefix="/comments",
    tags=["Comments"],
    responses={404: {"description": "Comment not found"}, 409: {"description": "Comment already exists"}},
)


def _comment_id(comment_id: str = Path(...)) -> str:
    return sanitize_object_id(comment_id, field="comment id")


@router.post(
    "",
    response_model=Comment,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    payload: NewComment,
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Comment:
    payload.title_id = sanitize_title_id(payload.title_id)
    return await comments_service.add_comment(db, user["_id"], payload)


@router.get("/{comment_id}", response_model=Comment, response_model_exclude_none=True)
async def get_comment(
    comment_id: str = Depends(_comment_id),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Comment:
    return await comments_service.get_comment_by_id(db, comment_id, user["_id"])


@router.patch("/{comment_id}", response_model=Comment, response_model_exclude_none=True)
async def update_comment(
    payload: UpdateComment,
    comment_id: str = Depends(_comment_id),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Comment:
    return await comments_service.update_comment(db, comment_id, user["_id"], payload)


@router.delete("/{comment_id}", response_model=DefaultResponse)
async def delete_comment(
    comment_id: str = Depends(_comment_id),
    season: Optional[int] = Query(None),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> DefaultResponse:
    await comments_service.delete_comment(db, comment_id, user["_id"], season)
    return DefaultResponse(message="Comment deleted")
