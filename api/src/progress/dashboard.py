"""Profile dashboard aggregation."""

from collections import defaultdict

from src.progress.models import LessonProgress, LessonProgressStatus
from src.progress.schemas import DashboardAnalytics


def build_analytics(progress: list[LessonProgress]) -> DashboardAnalytics:
    """Summarize a user's progress rows.

    A course counts as completed when every tracked lesson in it is
    completed, otherwise as in progress.
    """
    by_course: dict[object, list[LessonProgress]] = defaultdict(list)
    for row in progress:
        by_course[row.course_id].append(row)

    completed_courses = sum(
        1
        for rows in by_course.values()
        if all(r.status == LessonProgressStatus.COMPLETED for r in rows)
    )
    return DashboardAnalytics(
        total_courses=len(by_course),
        completed_courses=completed_courses,
        in_progress_courses=len(by_course) - completed_courses,
        total_lessons=len(progress),
        completed_lessons=sum(
            1 for r in progress if r.status == LessonProgressStatus.COMPLETED
        ),
    )
