"""
AI Tutor API Routes

Per-subject tutoring sessions: open or resume, chat, close with a summary,
history, and progress insights.
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict

from edconnect.api.dependencies import get_tutoring_service
from edconnect.api.security import get_current_user
from edconnect.core.exceptions import (
    AIServiceError,
    NotFoundError,
    ValidationError,
)
from edconnect.core.models import MessageRole, User
from edconnect.core.services.ai_service import TUTOR_FAILURE_MESSAGE
from edconnect.core.services.tutoring_service import TutoringService

router = APIRouter(prefix="/api/tutor", tags=["tutor"])


# --- Pydantic Models ---


class TutoringSessionResponse(BaseModel):
    id: int
    student_id: int
    subject: str
    topic: Optional[str] = None
    difficulty: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    total_messages: int = 0
    student_questions: int = 0
    concepts_covered: List[str] = []
    session_summary: Optional[str] = None
    performance_score: Optional[int] = None
    improvement_areas: List[str] = []
    strength_areas: List[str] = []

    model_config = ConfigDict(from_attributes=True)


class TutoringMessageResponse(BaseModel):
    id: int
    session_id: int
    role: MessageRole
    content: str
    timestamp: datetime
    concepts_discussed: List[str] = []

    model_config = ConfigDict(from_attributes=True)


class SessionWithMessages(BaseModel):
    session: TutoringSessionResponse
    messages: List[TutoringMessageResponse]


class MessageCreate(BaseModel):
    session_id: int
    message: str


class MessageExchange(BaseModel):
    session: TutoringSessionResponse
    user_message: TutoringMessageResponse
    message: TutoringMessageResponse


class SessionEnd(BaseModel):
    session_id: int


class SubjectBreakdown(BaseModel):
    sessions: int
    time: int
    avg_performance: int


class ProgressInsights(BaseModel):
    total_sessions: int
    total_time: int
    subject_breakdown: Dict[str, SubjectBreakdown]
    strengths: List[str]
    areas_for_improvement: List[str]
    recommendations: List[str]
    weekly_goal: str
    overall_progress: str


# --- Routes ---


@router.get("/session", response_model=SessionWithMessages)
def get_or_start_session(
    subject: str = Query(..., min_length=1),
    topic: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    tutoring_service: TutoringService = Depends(get_tutoring_service),
):
    """Active session for the subject with its messages; opens one when none is active."""
    try:
        return tutoring_service.get_or_start_session(current_user, subject, topic)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/message", response_model=MessageExchange)
def send_message(
    payload: MessageCreate,
    current_user: User = Depends(get_current_user),
    tutoring_service: TutoringService = Depends(get_tutoring_service),
):
    try:
        return tutoring_service.send_message(
            current_user, payload.session_id, payload.message
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AIServiceError:
        raise HTTPException(status_code=502, detail=TUTOR_FAILURE_MESSAGE)


@router.post("/session/end", response_model=TutoringSessionResponse)
def end_session(
    payload: SessionEnd,
    current_user: User = Depends(get_current_user),
    tutoring_service: TutoringService = Depends(get_tutoring_service),
):
    try:
        return tutoring_service.end_session(current_user, payload.session_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/sessions", response_model=List[TutoringSessionResponse])
def list_sessions(
    current_user: User = Depends(get_current_user),
    tutoring_service: TutoringService = Depends(get_tutoring_service),
):
    return tutoring_service.list_sessions(current_user)


@router.get(
    "/sessions/{session_id}/messages", response_model=List[TutoringMessageResponse]
)
def get_session_messages(
    session_id: int,
    current_user: User = Depends(get_current_user),
    tutoring_service: TutoringService = Depends(get_tutoring_service),
):
    try:
        return tutoring_service.get_session_messages(current_user, session_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/progress-insights", response_model=ProgressInsights)
def progress_insights(
    current_user: User = Depends(get_current_user),
    tutoring_service: TutoringService = Depends(get_tutoring_service),
):
    return tutoring_service.progress_insights(current_user)
