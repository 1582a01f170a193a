"""Tests for the default confirmation templates and their rendering."""

from datetime import datetime
from decimal import Decimal

import pytest

from src.email.templates import (
    CODE_REDEMPTION,
    PURCHASE_CONFIRMATION,
    default_template,
    format_amount,
    format_date,
    render,
)


class TestDefaultTemplates:
    """Tests for the built-in templates."""

    @pytest.mark.parametrize("name", [PURCHASE_CONFIRMATION, CODE_REDEMPTION])
    def test_every_variable_is_used(self, name: str) -> None:
        template = default_template(name)
        assert template is not None
        body = template.subject + template.html_content + template.text_content
        for variable in template.variables:
            assert "{" + variable + "}" in body

    def test_unknown_template(self) -> None:
        assert default_template("password_reset") is None

    def test_accent_colors(self) -> None:
        assert "#012d58" in default_template(PURCHASE_CONFIRMATION).html_content
        assert "#4CAF50" in default_template(CODE_REDEMPTION).html_content


class TestRender:
    """Tests for variable substitution."""

    def test_substitutes_all_occurrences(self) -> None:
        assert render("{kitName} / {kitName}", {"kitName": "Solar"}) == "Solar / Solar"

    def test_css_braces_untouched(self) -> None:
        template = default_template(CODE_REDEMPTION)
        html = render(
            template.html_content,
            {
                "kitName": "Solar Kit",
                "kitTheme": "energy",
                "kitLevel": "1",
                "userName": "Ada",
                "redemptionDate": "3/7/2025",
                "coursesUrl": "https://electrofun.example/courses",
            },
        )
        assert "body { font-family: Arial" in html
        assert "<strong>Solar Kit</strong>" in html
        assert 'href="https://electrofun.example/courses"' in html
        assert "{" + "kitName" + "}" not in html

    def test_unknown_tokens_left_as_is(self) -> None:
        assert render("Hi {userName}", {}) == "Hi {userName}"


class TestFormatting:
    """Tests for amount and date display."""

    def test_free(self) -> None:
        assert format_amount(Decimal("0")) == "FREE"
        assert format_amount(Decimal("0.00")) == "FREE"

    def test_paid(self) -> None:
        assert format_amount(Decimal("49.99")) == "$49.99"

    def test_date(self) -> None:
        assert format_date(datetime(2025, 3, 7, 15, 30)) == "3/7/2025"
