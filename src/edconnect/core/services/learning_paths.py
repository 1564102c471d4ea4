"""
Learning paths for EdConnect

A learning path is an ordered set of nodes (concepts, skills, assessments) for
one subject. Student progress is not stored on the path itself: it is derived
from the achievements that point at a node through ``path_node_id``.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import ValidationError
from ..models import Achievement, LearningPath, LearningPathNode
from .database import DatabaseService, UserContext
from .logging import get_logger

NODE_TYPES = ("concept", "skill", "assessment", "educator-assessment")
DIFFICULTIES = ("beginner", "intermediate", "advanced")
MASTERY_TYPE = "mastery"


def achievement_percent(achievement: Achievement) -> int:
    """Completion of one achievement as 0-100."""
    if achievement.max_progress:
        progress = achievement.progress or 0
        return max(0, min(100, round(100 * progress / achievement.max_progress)))
    # No progress tracking means it was earned outright
    if achievement.progress is None:
        return 100
    return max(0, min(100, achievement.progress))


def node_status(progress: int, achievements: Iterable[Achievement]) -> str:
    if progress >= 100:
        if any(a.type == MASTERY_TYPE for a in achievements):
            return "mastered"
        return "completed"
    if progress > 0:
        return "in-progress"
    return "not-started"


def validate_nodes(nodes: List[Dict[str, Any]]) -> None:
    """
    Check node definitions before a path is stored.

    Keys must be unique and every dependency must name an earlier node, which
    keeps the path acyclic.

    Raises:
        ValidationError: On the first invalid node
    """
    if not nodes:
        raise ValidationError("A learning path needs at least one node")

    seen = set()
    for node in nodes:
        key = (node.get("key") or "").strip()
        if not key:
            raise ValidationError("Node key is required")
        if key in seen:
            raise ValidationError(f"Duplicate node key: {key}")
        if not (node.get("title") or "").strip():
            raise ValidationError(f"Node {key} needs a title")
        if node.get("type", "concept") not in NODE_TYPES:
            raise ValidationError(f"Node {key} has an unknown type")
        if node.get("difficulty", "beginner") not in DIFFICULTIES:
            raise ValidationError(f"Node {key} has an unknown difficulty")
        for dependency in node.get("dependencies") or []:
            if dependency not in seen:
                raise ValidationError(
                    f"Node {key} depends on {dependency}, which is not an earlier node"
                )
        seen.add(key)


class LearningPathService:
    """Creates learning paths and renders them with one learner's progress."""

    def __init__(self, db_service: DatabaseService):
        self.db_service = db_service
        self.logger = get_logger("learning_paths")

    def create_path(
        self,
        title: str,
        subject: str,
        nodes: List[Dict[str, Any]],
        description: Optional[str] = None,
        school_id: Optional[int] = None,
        created_by: Optional[int] = None,
    ) -> LearningPath:
        if not (title or "").strip():
            raise ValidationError("Title is required")
        if not (subject or "").strip():
            raise ValidationError("Subject is required")
        validate_nodes(nodes)
        for node in nodes:
            if self.db_service.get_learning_path_node(node["key"].strip()):
                raise ValidationError(f"Node key already in use: {node['key'].strip()}")

        path = LearningPath(
            title=title.strip(),
            description=description,
            subject=subject.strip(),
            school_id=school_id,
            created_by=created_by,
        )
        return self.db_service.create_learning_path(
            path,
            [
                LearningPathNode(
                    node_key=node["key"].strip(),
                    title=node["title"].strip(),
                    description=node.get("description"),
                    node_type=node.get("type", "concept"),
                    difficulty=node.get("difficulty", "beginner"),
                    estimated_hours=node.get("estimated_hours", 1.0),
                    dependencies=list(node.get("dependencies") or []),
                )
                for node in nodes
            ],
        )

    def paths_for(
        self, user_context: UserContext, learner_id: int, subject: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Visible paths with node status and achievements for ``learner_id``."""
        paths = self.db_service.get_all_learning_paths(user_context, subject)
        by_node = defaultdict(list)
        for achievement in self.db_service.get_path_achievements(learner_id):
            by_node[achievement.path_node_id].append(achievement)
        return [self.render(path, by_node) for path in paths]

    @staticmethod
    def render(
        path: LearningPath, achievements_by_node: Dict[str, List[Achievement]]
    ) -> Dict[str, Any]:
        nodes = []
        for node in path.nodes:
            linked = achievements_by_node.get(node.node_key, [])
            progress = max((achievement_percent(a) for a in linked), default=0)
            nodes.append(
                {
                    "id": node.node_key,
                    "title": node.title,
                    "description": node.description,
                    "status": node_status(progress, linked),
                    "type": node.node_type,
                    "dependencies": list(node.dependencies or []),
                    "progress": progress,
                    "subject": path.subject,
                    "estimated_hours": node.estimated_hours,
                    "difficulty": node.difficulty,
                    "achievements": linked,
                }
            )
        overall = round(sum(n["progress"] for n in nodes) / len(nodes)) if nodes else 0
        return {
            "id": path.id,
            "title": path.title,
            "description": path.description,
            "subject": path.subject,
            "school_id": path.school_id,
            "progress": overall,
            "nodes": nodes,
        }
