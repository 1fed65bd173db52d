# titletrack/api/v1/routers/titles.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 🎬 TitleTrack · Titles API                                               ║
# ║                                                                          ║
# ║  - GET    /titles                       → Paginated catalog (admin)      ║
# ║  - POST   /titles                       → Import from IMDb URL (admin)   ║
# ║  - GET    /titles/{title_id}            → Title detail                   ║
# ║  - DELETE /titles/{title_id}            → Cascade delete (admin)         ║
# ║  - GET    /titles/{title_id}/ratings    → Group members' ratings         ║
# ║  - GET    /titles/{title_id}/comments   → Group members' comments        ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from titletrack.api.http_utils import parse_tri_state_bool, sanitize_object_id, sanitize_title_id
from titletrack.clients.imdb import ImdbClient, get_imdb_client
from titletrack.core.security import get_current_user, require_admin
from titletrack.db.mongo import Database, get_database
from titletrack.schemas.comments import CommentsList
from titletrack.schemas.common import DefaultResponse, Page
from titletrack.schemas.ratings import RatingsList
from titletrack.schemas.titles import AddTitleRequest, Title
from titletrack.services import comments_service, ratings_service, titles_service

router = APIRouter(
    prefix="/titles",
    tags=["Titles"],
    responses={404: {"description": "Not found"}},
)
logger = logging.getLogger(__name__)


@router.get("", response_model=Page[Title], response_model_exclude_none=True, summary="List titles (admin)")
async def list_titles(
    size: Optional[int] = Query(None),
    page: Optional[int] = Query(None),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    ascending: Optional[str] = Query(None),
    db: Database = Depends(get_database),
    _admin: Dict[str, Any] = Depends(require_admin),
) -> Page[Title]:
    """
    Steps
    -----
    1) Parse the tri-state `ascending` flag.
    2) Delegate; page size is clamped and `orderBy` whitelisted by the service.
    """
    asc = parse_tri_state_bool(ascending, field="ascending")
    return await titles_service.get_page_of_titles(db, size, page, order_by, asc)


@router.post(
    "",
    response_model=Title,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Import a title from its IMDb URL (admin)",
)
async def add_title(
    payload: AddTitleRequest,
    db: Database = Depends(get_database),
    imdb: ImdbClient = Depends(get_imdb_client),
    _admin: Dict[str, Any] = Depends(require_admin),
) -> Title:
    title_id = titles_service.extract_title_id(payload.url)
    return await titles_service.add_new_title(db, imdb, title_id)


@router.get("/{title_id}", response_model=Title, response_model_exclude_none=True, summary="Get a title")
async def get_title(
    title_id: str = Path(...),
    db: Database = Depends(get_database),
    _user: Dict[str, Any] = Depends(get_current_user),
) -> Title:
    return await titles_service.get_title(db, sanitize_title_id(title_id))


@router.delete("/{title_id}", response_model=DefaultResponse, summary="Delete a title and its ratings/comments (admin)")
async def delete_title(
    title_id: str = Path(...),
    db: Database = Depends(get_database),
    _admin: Dict[str, Any] = Depends(require_admin),
) -> DefaultResponse:
    title_id = sanitize_title_id(title_id)
    await titles_service.cascade_delete_title(db, title_id)
    return DefaultResponse(message=f"Title {title_id} deleted")


@router.get("/{title_id}/ratings", response_model=RatingsList, response_model_exclude_none=True)
async def title_ratings(
    title_id: str = Path(...),
    group_id: str = Query(..., alias="groupId"),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> RatingsList:
    return await ratings_service.get_ratings_by_title(
        db, user["_id"], sanitize_object_id(group_id, field="groupId"), sanitize_title_id(title_id)
    )


@router.get("/{title_id}/comments", response_model=CommentsList, response_model_exclude_none=True)
async def title_comments(
    title_id: str = Path(...),
    group_id: str = Query(..., alias="groupId"),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> CommentsList:
    return await comments_service.get_comments_by_title(
        db, user["_id"], sanitize_object_id(group_id, field="groupId"), sanitize_title_id(title_id)
    )
