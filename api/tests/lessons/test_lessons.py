"""Tests for lessons, lesson content parsing and per-user visibility."""

from types import SimpleNamespace
from unittest.mock import Mock
from uuid import UUID, uuid4

import pytest

from src.lessons.content import parse_component_props, parse_lesson_content
from src.lessons.models import CourseType, Lesson, LessonContentType
from src.lessons.service import LessonService


class VisibilitySession:
    """Session double that keeps lesson_user_visibility rows in memory."""

    def __init__(self):
        self.hidden: set[tuple[UUID, UUID]] = set()

    def prepare(self, query: str) -> Mock:
        return Mock(query=" ".join(query.split()))

    async def aexecute(self, statement, params=None):
        query = statement.query
        if "lesson_user_visibility" not in query:
            return []
        if query.startswith("INSERT"):
            self.hidden.add((params[0], params[1]))
            return []
        if query.startswith("DELETE"):
            self.hidden.discard((params[0], params[1]))
            return []
        lesson_ids = params[0]
        user_id = params[1] if len(params) > 1 else None
        return [
            SimpleNamespace(lesson_id=lesson_id, user_id=uid, is_visible=False)
            for lesson_id, uid in sorted(self.hidden)
            if lesson_id in lesson_ids and (user_id is None or uid == user_id)
        ]


def make_lesson(**kwargs) -> Lesson:
    return Lesson(
        course_id=uuid4(), course_type=CourseType.OFFICIAL, title="Ohm", **kwargs
    )


class TestVisibility:
    """Tests for LessonService visibility."""

    @pytest.fixture
    def session(self) -> VisibilitySession:
        return VisibilitySession()

    @pytest.fixture
    def service(self, session: VisibilitySession) -> LessonService:
        return LessonService(session, "electrofun_test")

    @pytest.mark.asyncio
    async def test_default_visible(self, service: LessonService) -> None:
        assert await service.hidden_lesson_ids([uuid4()], uuid4()) == set()

    @pytest.mark.asyncio
    async def test_hide_then_show_round_trip(
        self, service: LessonService, session: VisibilitySession
    ) -> None:
        lesson_id, user_id = uuid4(), uuid4()

        await service.set_visibility(lesson_id, user_id, is_visible=False)
        assert await service.hidden_lesson_ids([lesson_id], user_id) == {lesson_id}

        await service.set_visibility(lesson_id, user_id, is_visible=True)
        assert await service.hidden_lesson_ids([lesson_id], user_id) == set()
        assert session.hidden == set()

    @pytest.mark.asyncio
    async def test_hidden_only_for_that_user(self, service: LessonService) -> None:
        lesson_id, hidden_user, other_user = uuid4(), uuid4(), uuid4()
        await service.set_visibility(lesson_id, hidden_user, is_visible=False)

        assert await service.hidden_lesson_ids([lesson_id], other_user) == set()
        pairs = await service.hidden_pairs([lesson_id])
        assert [(p.lesson_id, p.user_id) for p in pairs] == [(lesson_id, hidden_user)]

    @pytest.mark.asyncio
    async def test_empty_lesson_list(self, service: LessonService) -> None:
        assert await service.hidden_lesson_ids([], uuid4()) == set()
        assert await service.hidden_pairs([]) == []


class TestParseLessonContent:
    """Tests for parse_lesson_content."""

    def test_json_content(self) -> None:
        lesson = make_lesson(content='{"blocks": [{"type": "text", "value": "V=IR"}]}')
        assert parse_lesson_content(lesson) == {
            "blocks": [{"type": "text", "value": "V=IR"}]
        }

    def test_invalid_json_is_none(self) -> None:
        assert parse_lesson_content(make_lesson(content="plain words")) is None

    def test_empty_content_is_none(self) -> None:
        assert parse_lesson_content(make_lesson()) is None

    def test_svelte_component(self) -> None:
        lesson = make_lesson(
            content_type=LessonContentType.SVELTE,
            svelte_component="<h1>{title}</h1>",
            component_props={"title": "Resistors"},
        )
        assert parse_lesson_content(lesson) == {
            "type": "svelte",
            "svelteComponent": "<h1>{title}</h1>",
            "componentProps": {"title": "Resistors"},
        }

    def test_svelte_without_component_falls_back_to_content(self) -> None:
        lesson = make_lesson(content_type=LessonContentType.SVELTE, content="[1, 2]")
        assert parse_lesson_content(lesson) == [1, 2]


class TestParseComponentProps:
    """Tests for parse_component_props."""

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing(self, raw: str | None) -> None:
        assert parse_component_props(raw) is None

    def test_object(self) -> None:
        assert parse_component_props('{"voltage": 5}') == {"voltage": 5}

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", "42"])
    def test_invalid_becomes_empty(self, raw: str) -> None:
        assert parse_component_props(raw) == {}
