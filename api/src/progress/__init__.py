"""Lesson progress tracking and the profile dashboard.

Provides:
- Lesson completion per user
- Dashboard analytics (completed and in-progress counts)
"""

from .models import PROGRESS_TABLES_CQL, LessonProgress, LessonProgressStatus


__all__ = [
    "PROGRESS_TABLES_CQL",
    "LessonProgress",
    "LessonProgressStatus",
]
