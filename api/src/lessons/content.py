"""Lesson body parsing for the lesson page."""

import json
from typing import Any

from src.lessons.models import Lesson, LessonContentType


def parse_lesson_content(lesson: Lesson) -> Any:
    """Return the renderable content of a lesson.

    Svelte lessons with a component yield a component descriptor; anything
    else is the stored ``content`` parsed as JSON, or None when it is empty
    or not valid JSON.
    """
    if lesson.content_type == LessonContentType.SVELTE and lesson.svelte_component:
        return {
            "type": "svelte",
            "svelteComponent": lesson.svelte_component,
            "componentProps": lesson.component_props or {},
        }
    if not lesson.content:
        return None
    try:
        return json.loads(lesson.content)
    except json.JSONDecodeError:
        return None


def parse_component_props(raw: str | None) -> dict[str, Any] | None:
    """Parse submitted component props.

    Returns None when nothing was submitted and ``{}`` when the text is not a
    JSON object.
    """
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return value if isinstance(value, dict) else {}
