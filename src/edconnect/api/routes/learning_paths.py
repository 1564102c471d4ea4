from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from edconnect.api.dependencies import get_db_service, get_learning_path_service
from edconnect.api.routes.achievements import AchievementResponse
from edconnect.api.security import (
    get_current_scope,
    get_current_user,
    require_educator_or_admin,
)
from edconnect.core.access import AccessScope
from edconnect.core.exceptions import DatabaseError, ValidationError
from edconnect.core.models import School, User
from edconnect.core.roles import is_educator, is_educator_or_admin
from edconnect.core.services.database import DatabaseService
from edconnect.core.services.learning_paths import LearningPathService

router = APIRouter(prefix="/api/learning-paths", tags=["learning-paths"])


class NodeCreate(BaseModel):
    key: str
    title: str
    description: Optional[str] = None
    type: str = "concept"
    difficulty: str = "beginner"
    estimated_hours: float = Field(default=1.0, ge=0)
    dependencies: List[str] = []


class LearningPathCreate(BaseModel):
    title: str
    subject: str
    description: Optional[str] = None
    school_id: Optional[int] = None
    nodes: List[NodeCreate]


class NodeResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: str
    type: str
    dependencies: List[str]
    progress: int
    subject: str
    estimated_hours: float
    difficulty: str
    achievements: List[AchievementResponse] = []


class LearningPathResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    subject: str
    school_id: Optional[int] = None
    progress: int
    nodes: List[NodeResponse]


@router.get("", response_model=List[LearningPathResponse])
def list_learning_paths(
    subject: Optional[str] = None,
    user_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
    path_service: LearningPathService = Depends(get_learning_path_service),
):
    """Paths visible to the caller, with progress for themselves or a learner in scope."""
    learner_id = user_id or current_user.id
    if learner_id != current_user.id:
        if not is_educator_or_admin(current_user):
            raise HTTPException(status_code=403, detail="Not authorized")
        if db_service.get_scoped(User, "users", learner_id, scope) is None:
            raise HTTPException(status_code=404, detail="User not found")
    return path_service.paths_for(scope, learner_id, subject)


@router.post("", response_model=LearningPathResponse, status_code=201)
def create_learning_path(
    payload: LearningPathCreate,
    current_user: User = Depends(require_educator_or_admin),
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
    path_service: LearningPathService = Depends(get_learning_path_service),
):
    school_id = payload.school_id
    if is_educator(current_user):
        # Educators publish paths for their own school
        school_id = current_user.school_id
        if school_id is None:
            raise HTTPException(status_code=400, detail="Educator has no school")
    elif school_id is None:
        if scope.kind != "all":
            raise HTTPException(status_code=400, detail="school_id is required")
    elif db_service.get_scoped(School, "schools", school_id, scope) is None:
        raise HTTPException(status_code=404, detail="School not found")

    try:
        path = path_service.create_path(
            title=payload.title,
            subject=payload.subject,
            description=payload.description,
            school_id=school_id,
            created_by=current_user.id,
            nodes=[node.model_dump() for node in payload.nodes],
        )
    except (ValidationError, DatabaseError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return path_service.render(path, {})
