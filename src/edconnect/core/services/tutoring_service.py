"""
Tutoring session lifecycle for EdConnect

Opens and reuses per-subject sessions, runs each student message through the
AI tutor pipeline, persists the exchange, closes sessions with an AI summary
and aggregates a student's history into progress insights.
"""

from collections import Counter
from datetime import timedelta
from typing import Any, Dict, List, Optional

from ..exceptions import SessionNotFoundError, ValidationError
from ..models import MessageRole, TutoringMessage, TutoringSession, User, utcnow
from ..security_utils import sanitize_input
from .ai_service import AIService, get_ai_service
from .database import DatabaseService, get_db_service
from .logging import get_logger
from .pii_redaction import StudentContext

TOP_AREAS = 5


def _mean(values: List[int]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def overall_progress_label(average_score: Optional[float]) -> str:
    if average_score is None:
        return "Getting Started"
    if average_score >= 85:
        return "Excellent"
    if average_score >= 70:
        return "Good Progress"
    if average_score >= 50:
        return "Developing"
    return "Needs Support"


class TutoringService:
    """Tutoring sessions for one student at a time."""

    def __init__(
        self,
        db_service: Optional[DatabaseService] = None,
        ai_service: Optional[AIService] = None,
    ):
        self.db_service = db_service or get_db_service()
        self._ai_service = ai_service
        self.logger = get_logger("tutoring")

    @property
    def ai_service(self) -> AIService:
        # Resolved late so configuration changes are picked up after resets
        if self._ai_service is None:
            self._ai_service = get_ai_service()
        return self._ai_service

    def build_student_context(self, student: User) -> StudentContext:
        """Identity values to strip from anything the student writes."""
        profile = self.db_service.get_student_by_user_id(student.id)
        school_id = student.school_id or (profile.school_id if profile else None)
        school = self.db_service.get_school(school_id) if school_id else None
        return StudentContext(
            full_name=student.full_name,
            email=student.email,
            student_id=profile.student_number if profile else None,
            school_name=school.name if school else None,
        )

    def _owned_session(self, student: User, session_id: int) -> TutoringSession:
        tutoring_session = self.db_service.get_tutoring_session(session_id)
        # Other students' sessions look exactly like missing ones
        if tutoring_session is None or tutoring_session.student_id != student.id:
            raise SessionNotFoundError(f"Tutoring session {session_id} not found")
        return tutoring_session

    def get_or_start_session(
        self, student: User, subject: str, topic: Optional[str] = None
    ) -> Dict[str, Any]:
        """Active session for ``subject`` with its messages, opening one if needed."""
        subject = (subject or "").strip()
        if not subject:
            raise ValidationError("Subject is required")
        topic = topic.strip() if topic and topic.strip() else None

        tutoring_session = self.db_service.get_or_create_active_tutoring_session(
            student.id, subject, topic=topic
        )
        messages = self.db_service.get_tutoring_messages_by_session_id(tutoring_session.id)
        return {"session": tutoring_session, "messages": messages}

    def send_message(
        self, student: User, session_id: int, message: str
    ) -> Dict[str, Any]:
        """
        Send one student message and store the exchange.

        Nothing is written when the AI call fails, so a retry starts clean.

        Raises:
            ValidationError: Empty message or ended session
            SessionNotFoundError: Unknown session or one owned by someone else
            AIServiceError: The tutor could not answer
        """
        text = sanitize_input(message or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty")

        tutoring_session = self._owned_session(student, session_id)
        if not tutoring_session.is_active:
            raise ValidationError("Tutoring session has already ended")

        context = self.build_student_context(student)
        redacted = self.ai_service.redactor.redact(text, context)

        history = self.db_service.get_tutoring_messages_by_session_id(session_id)
        turns = [{"role": m.role.value, "content": m.content} for m in history]
        turns.append({"role": MessageRole.USER.value, "content": redacted})

        reply = self.ai_service.get_tutor_response(
            turns, tutoring_session.subject, tutoring_session.topic, context
        )

        now = utcnow()
        user_message = TutoringMessage(
            role=MessageRole.USER, content=redacted, timestamp=now, concepts_discussed=[]
        )
        assistant_message = TutoringMessage(
            role=MessageRole.ASSISTANT,
            content=reply.message,
            timestamp=now + timedelta(microseconds=1),
            concepts_discussed=reply.concepts_discussed,
        )

        updated = self.db_service.add_tutoring_exchange(
            session_id, [user_message, assistant_message], reply.concepts_discussed
        )
        self.logger.info(
            "tutor.message",
            session_id=session_id,
            user_id=student.id,
            concepts=len(reply.concepts_discussed),
        )
        return {
            "session": updated,
            "user_message": user_message,
            "message": assistant_message,
        }

    def end_session(self, student: User, session_id: int) -> TutoringSession:
        """Close a session and store its summary; ending again re-stamps ``ended_at``."""
        tutoring_session = self._owned_session(student, session_id)
        messages = self.db_service.get_tutoring_messages_by_session_id(session_id)

        fields: Dict[str, Any] = {"ended_at": utcnow()}
        if messages:
            turns = [{"role": m.role.value, "content": m.content} for m in messages]
            summary = self.ai_service.generate_session_summary(
                turns,
                tutoring_session.subject,
                tutoring_session.topic,
                self.build_student_context(student),
            )
            concepts = list(tutoring_session.concepts_covered or [])
            concepts.extend(c for c in summary.concepts_covered if c not in concepts)
            fields.update(
                session_summary=summary.summary,
                performance_score=summary.performance_score,
                improvement_areas=summary.improvement_areas,
                strength_areas=summary.strength_areas,
                concepts_covered=concepts,
            )

        updated = self.db_service.update_tutoring_session(session_id, **fields)
        self.logger.info(
            "tutor.session_ended",
            session_id=session_id,
            user_id=student.id,
            summarized=bool(messages),
        )
        return updated

    def list_sessions(self, student: User) -> List[TutoringSession]:
        return self.db_service.get_tutoring_sessions_by_student_id(student.id)

    def get_session_messages(
        self, student: User, session_id: int
    ) -> List[TutoringMessage]:
        self._owned_session(student, session_id)
        return self.db_service.get_tutoring_messages_by_session_id(session_id)

    def progress_insights(self, student: User) -> Dict[str, Any]:
        """Aggregate the student's tutoring history."""
        sessions = self.list_sessions(student)

        breakdown: Dict[str, Dict[str, Any]] = {}
        scores_by_subject: Dict[str, List[int]] = {}
        strengths: Counter = Counter()
        improvements: Counter = Counter()
        total_time = 0

        for s in sessions:
            minutes = s.calculate_duration() or 0
            total_time += minutes
            entry = breakdown.setdefault(s.subject, {"sessions": 0, "time": 0})
            entry["sessions"] += 1
            entry["time"] += minutes
            if s.performance_score is not None:
                scores_by_subject.setdefault(s.subject, []).append(s.performance_score)
            strengths.update(s.strength_areas or [])
            improvements.update(s.improvement_areas or [])

        for subject, entry in breakdown.items():
            average = _mean(scores_by_subject.get(subject, []))
            entry["avg_performance"] = round(average) if average is not None else 0

        all_scores = [score for values in scores_by_subject.values() for score in values]
        top_strengths = [area for area, _ in strengths.most_common(TOP_AREAS)]
        top_improvements = [area for area, _ in improvements.most_common(TOP_AREAS)]

        return {
            "total_sessions": len(sessions),
            "total_time": total_time,
            "subject_breakdown": breakdown,
            "strengths": top_strengths,
            "areas_for_improvement": top_improvements,
            "recommendations": self._recommendations(
                sessions, breakdown, top_improvements
            ),
            "weekly_goal": self._weekly_goal(sessions),
            "overall_progress": overall_progress_label(_mean(all_scores)),
        }

    @staticmethod
    def _recommendations(
        sessions: List[TutoringSession],
        breakdown: Dict[str, Dict[str, Any]],
        improvements: List[str],
    ) -> List[str]:
        if not sessions:
            return ["Start your first tutoring session to get personalized insights"]

        recommendations = [
            f"Review {area} with a short practice session" for area in improvements[:3]
        ]
        for subject, entry in breakdown.items():
            if 0 < entry["avg_performance"] < 70:
                recommendations.append(f"Spend some extra time on {subject}")
        if len(breakdown) == 1:
            recommendations.append("Try a session in another subject to broaden your skills")
        if not recommendations:
            recommendations.append("Keep up the consistent practice across your subjects")
        return recommendations

    @staticmethod
    def _weekly_goal(sessions: List[TutoringSession]) -> str:
        week_ago = utcnow() - timedelta(days=7)
        recent = sum(1 for s in sessions if s.started_at and s.started_at >= week_ago)
        target = max(3, recent + 1)
        return f"Complete {target} tutoring sessions this week ({recent} so far)"


_tutoring_service: Optional[TutoringService] = None


def get_tutoring_service() -> TutoringService:
    global _tutoring_service
    if _tutoring_service is None or _tutoring_service.db_service is not get_db_service():
        _tutoring_service = TutoringService()
    return _tutoring_service


def reset_tutoring_service():
    global _tutoring_service
    _tutoring_service = None
