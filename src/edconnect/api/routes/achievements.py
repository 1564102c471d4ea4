from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from edconnect.api.dependencies import get_db_service
from edconnect.api.security import get_current_scope, get_current_user
from edconnect.core.access import AccessScope
from edconnect.core.exceptions import ValidationError
from edconnect.core.models import Achievement, User
from edconnect.core.roles import is_educator_or_admin
from edconnect.core.services.database import DatabaseService

router = APIRouter(prefix="/api/achievements", tags=["achievements"])


class AchievementCreate(BaseModel):
    title: str
    user_id: Optional[int] = None
    description: Optional[str] = None
    type: str = "badge"
    subject: Optional[str] = None
    path_node_id: Optional[str] = None
    progress: Optional[int] = None
    max_progress: Optional[int] = None
    level: Optional[int] = None
    icon_type: Optional[str] = None
    shared: bool = False
    visible: bool = True
    is_public: bool = False


class AchievementUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    progress: Optional[int] = None
    max_progress: Optional[int] = None
    level: Optional[int] = None
    icon_type: Optional[str] = None
    shared: Optional[bool] = None
    visible: Optional[bool] = None
    is_public: Optional[bool] = None


class AchievementResponse(AchievementCreate):
    id: int
    user_id: int
    earned_at: datetime
    created_by_educator: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


@router.get("", response_model=List[AchievementResponse])
def list_achievements(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_achievements(scope)


@router.post("", response_model=AchievementResponse, status_code=201)
def create_achievement(
    payload: AchievementCreate,
    current_user: User = Depends(get_current_user),
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    """Record an achievement for yourself, or award one to a user in your scope."""
    data = payload.model_dump()
    target_id = data.pop("user_id") or current_user.id

    if target_id != current_user.id:
        if not is_educator_or_admin(current_user):
            raise HTTPException(
                status_code=403, detail="Only educators can award achievements"
            )
        if db_service.get_scoped(User, "users", target_id, scope) is None:
            raise HTTPException(status_code=404, detail="User not found")
        data["created_by_educator"] = current_user.id

    if data["path_node_id"] and not db_service.get_learning_path_node(
        data["path_node_id"]
    ):
        raise HTTPException(status_code=400, detail="Learning path node not found")

    try:
        return db_service.create_achievement(Achievement(user_id=target_id, **data))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{achievement_id}", response_model=AchievementResponse)
def update_achievement(
    achievement_id: int,
    payload: AchievementUpdate,
    current_user: User = Depends(get_current_user),
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    achievement = db_service.get_scoped(
        Achievement, "achievements", achievement_id, scope
    )
    if achievement is None:
        raise HTTPException(status_code=404, detail="Achievement not found")
    # Public achievements are readable by everyone but editable only by staff
    if achievement.user_id != current_user.id and not is_educator_or_admin(
        current_user
    ):
        raise HTTPException(status_code=403, detail="Not authorized")

    fields = payload.model_dump(exclude_unset=True)
    for required in ("title", "shared", "visible", "is_public"):
        if required in fields and fields[required] is None:
            raise HTTPException(status_code=400, detail=f"{required} cannot be null")
    try:
        return db_service.update_achievement(achievement_id, **fields)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
