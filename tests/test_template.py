"""Tests for the env() template preprocessor."""

import pytest

from vault_sync.errors import TemplateError
from vault_sync.template import env, render


def test_env_set_overrides_default(monkeypatch):
    monkeypatch.setenv("FOO", "bar")
    assert render(b'{{ env("FOO", "baz") }}') == b"bar"


def test_env_unset_uses_default(monkeypatch):
    monkeypatch.delenv("FOO", raising=False)
    assert render(b'{{ env("FOO", "baz") }}') == b"baz"


def test_env_unset_without_default_is_empty(monkeypatch):
    monkeypatch.delenv("FOO", raising=False)
    assert render(b'x{{ env("FOO") }}y') == b"xy"


def test_env_set_to_empty_string_is_kept(monkeypatch):
    """An empty variable is still set, so the default does not apply."""
    monkeypatch.setenv("FOO", "")
    assert env("FOO", "baz") == ""


def test_plain_yaml_passes_through_unchanged():
    content = b"keys:\n  - key: secret/a\n    values:\n      k: v\n"
    assert render(content) == content


def test_expands_inside_yaml(monkeypatch):
    monkeypatch.setenv("DB_PASS", "s3cret")
    content = b'keys:\n  - key: secret/db\n    values:\n      pass: {{ env("DB_PASS") }}\n'
    assert render(content) == b"keys:\n  - key: secret/db\n    values:\n      pass: s3cret\n"


@pytest.mark.parametrize(
    "content",
    [
        b"pass: a{#b#}c\n",
        b"pass: a{%b\n",
        b"pass: {% if x %}y{% endif %}\n",
        b"pass: a{#b\n",
    ],
)
def test_statement_and_comment_markers_are_plain_text(content):
    """Only {{ ... }} is a template expression; other markers are secret text."""
    assert render(content) == content


@pytest.mark.parametrize(
    "content",
    [
        b"{{ env(",
        b"{{ unknown_name }}",
        b'{{ env("A", "b", "c") }}',
        b"{{ range(3) }}",
    ],
)
def test_invalid_templates_raise(content):
    with pytest.raises(TemplateError):
        render(content)


def test_non_utf8_input_raises():
    with pytest.raises(TemplateError):
        render(b"\xff\xfe")
