# titletrack/api/v1/routers/groups.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 👥 TitleTrack · Groups API                                               ║
# ║                                                                          ║
# ║  - POST   /groups                           → Create group               ║
# ║  - GET    /groups/{group_id}                → Group (members only)       ║
# ║  - POST   /groups/{group_id}/users          → Add member (owner only)    ║
# ║  - GET    /groups/{group_id}/users          → Members (id + name)        ║
# ║  - GET    /groups/{group_id}/titles         → Paginated titles + state   ║
# ║  - POST   /groups/{group_id}/titles         → Add title from IMDb URL    ║
# ║  - PATCH  /groups/{group_id}/titles         → Update watched state       ║
# ║  - DELETE /groups/{group_id}/titles/{tid}   → Remove title from group    ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from titletrack.api.http_utils import parse_tri_state_bool, sanitize_object_id, sanitize_title_id
from titletrack.clients.imdb import ImdbClient, get_imdb_client
from titletrack.core.security import get_current_user
from titletrack.db.mongo import Database, get_database
from titletrack.schemas.common import DefaultResponse, Page
from titletrack.schemas.groups import (
    AddTitleToGroupRequest,
    AddUserToGroupRequest,
    CreateGroupRequest,
    Group,
    GroupTitle,
    GroupTitleDetail,
    GroupUsers,
    UpdateGroupTitleRequest,
)
from titletrack.services import groups_service

router = APIRouter(
    prefix="/groups",
    tags=["Groups"],
    responses={404: {"description": "Group not found or not a member"}},
)


def _group_id(group_id: str = Path(...)) -> str:
    return sanitize_object_id(group_id, field="group id")


@router.post(
    "",
    response_model=Group,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group owned by the current user",
)
async def create_group(
    payload: CreateGroupRequest,
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Group:
    return await groups_service.create_group(db, payload.name, user["_id"])


@router.get("/{group_id}", response_model=Group, response_model_exclude_none=True)
async def get_group(
    group_id: str = Depends(_group_id),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Group:
    return await groups_service.get_group(db, group_id, user["_id"])


@router.post("/{group_id}/users", response_model=Group, response_model_exclude_none=True)
async def add_user(
    payload: AddUserToGroupRequest,
    group_id: str = Depends(_group_id),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Group:
    member_id = sanitize_object_id(payload.user_id, field="userId")
    return await groups_service.add_user_to_group(db, group_id, user["_id"], member_id)


@router.get("/{group_id}/users", response_model=GroupUsers)
async def list_users(
    group_id: str = Depends(_group_id),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> GroupUsers:
    return await groups_service.get_users_from_group(db, group_id, user["_id"])


@router.get("/{group_id}/titles", response_model=Page[GroupTitleDetail], response_model_exclude_none=True)
async def list_titles(
    group_id: str = Depends(_group_id),
    size: Optional[int] = Query(None),
    page: Optional[int] = Query(None),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    watched: Optional[str] = Query(None),
    ascending: Optional[str] = Query(None),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Page[GroupTitleDetail]:
    """
    Steps
    -----
    1) Parse tri-state `watched` / `ascending` (absent ≠ false).
    2) Delegate to the groups service (membership-filtered).
    """
    return await groups_service.get_titles_from_group(
        db,
        group_id,
        user["_id"],
        size=size,
        page=page,
        order_by=order_by,
        watched=parse_tri_state_bool(watched, field="watched"),
        ascending=parse_tri_state_bool(ascending, field="ascending"),
    )


@router.post(
    "/{group_id}/titles",
    response_model=GroupTitle,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def add_title(
    payload: AddTitleToGroupRequest,
    group_id: str = Depends(_group_id),
    db: Database = Depends(get_database),
    imdb: ImdbClient = Depends(get_imdb_client),
    user: Dict[str, Any] = Depends(get_current_user),
) -> GroupTitle:
    return await groups_service.add_title_to_group(db, imdb, group_id, user["_id"], payload.url)


@router.patch("/{group_id}/titles", response_model=GroupTitle, response_model_exclude_none=True)
async def update_title(
    payload: UpdateGroupTitleRequest,
    group_id: str = Depends(_group_id),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> GroupTitle:
    payload.title_id = sanitize_title_id(payload.title_id)
    return await groups_service.update_group_title_watched(db, group_id, user["_id"], payload)


@router.delete("/{group_id}/titles/{title_id}", response_model=DefaultResponse)
async def remove_title(
    group_id: str = Depends(_group_id),
    title_id: str = Path(...),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> DefaultResponse:
    title_id = sanitize_title_id(title_id)
    await groups_service.remove_title_from_group(db, group_id, title_id, user["_id"])
    return DefaultResponse(message="Title removed from group")
