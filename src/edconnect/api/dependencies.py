from edconnect.core.services.database import DatabaseService
from edconnect.core.services.database import get_db_service as _get_db_service
from edconnect.core.services.learning_paths import LearningPathService
from edconnect.core.services.tutoring_service import (
    TutoringService,
    get_tutoring_service as _get_tutoring_service,
)


def get_db_service() -> DatabaseService:
    # Delegate to the core singleton so tests and the API share one instance
    return _get_db_service()


def get_db():
    service = get_db_service()
    session = service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_tutoring_service() -> TutoringService:
    return _get_tutoring_service()


def get_learning_path_service() -> LearningPathService:
    return LearningPathService(get_db_service())
