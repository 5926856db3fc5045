"""Tests for TemplateResolver."""

import pytest

from app.application.services.template_resolver import TemplateResolver


@pytest.fixture
def resolver() -> TemplateResolver:
    return TemplateResolver()


def test_template_without_tokens_is_unchanged(resolver: TemplateResolver) -> None:
    """Plain text and empty strings come back as given."""
    assert resolver.resolve("Welcome aboard", {"name": "Ada"}) == "Welcome aboard"
    assert resolver.resolve("", {"name": "Ada"}) == ""


def test_missing_path_leaves_token_in_place(resolver: TemplateResolver) -> None:
    """Absent paths keep their literal token; present ones are substituted."""
    result = resolver.resolve("Hi {{name}}, re {{job.title}}", {"name": "Ada"})
    assert result == "Hi Ada, re {{job.title}}"


def test_whitespace_inside_token_is_trimmed(resolver: TemplateResolver) -> None:
    assert resolver.resolve("{{ candidate.email }}", {"candidate": {"email": "a@b.com"}}) == (
        "a@b.com"
    )


def test_falsy_values_are_substituted(resolver: TemplateResolver) -> None:
    """0, false and "" are defined values, so they replace their token."""
    data = {"zero": 0, "off": False, "blank": ""}
    assert resolver.resolve("[{{zero}}|{{off}}|{{blank}}]", data) == "[0|false||]"


def test_null_is_rendered_as_null(resolver: TemplateResolver) -> None:
    assert resolver.resolve("x={{value}}", {"value": None}) == "x=null"


def test_resolve_object_recurses(resolver: TemplateResolver) -> None:
    """Strings at any depth resolve; numbers, booleans and None pass through."""
    data = {"candidate": {"id": "c1", "name": "Ada"}, "score": 91}
    obj = {
        "candidateId": "{{candidate.id}}",
        "meta": {"greeting": "Hello {{candidate.name}}", "retries": 3, "urgent": True},
        "tags": ["{{candidate.id}}", 7],
        "note": None,
        "missing": "{{job.id}}",
    }
    assert resolver.resolve_object(obj, data) == {
        "candidateId": "c1",
        "meta": {"greeting": "Hello Ada", "retries": 3, "urgent": True},
        "tags": ["c1", 7],
        "note": None,
        "missing": "{{job.id}}",
    }
    assert obj["candidateId"] == "{{candidate.id}}"


def test_lists_render_comma_joined(resolver: TemplateResolver) -> None:
    """List elements are joined by commas; null elements render as nothing."""
    data = {"tags": ["a", "b"], "mixed": [1, None, True, ["x", "y"]], "none": []}
    assert resolver.resolve("{{tags}}", data) == "a,b"
    assert resolver.resolve("{{mixed}}", data) == "1,,true,x,y"
    assert resolver.resolve("[{{none}}]", data) == "[]"
