"""Template preprocessing for import files."""

import os
from typing import Optional

import jinja2

from .errors import TemplateError


def env(name: str, default: Optional[str] = None) -> str:
    """Look up an environment variable, falling back to ``default`` or ''."""
    value = os.environ.get(name)
    if value is not None:
        return value
    return default if default is not None else ""


def _environment() -> jinja2.Environment:
    # Only {{ ... }} is evaluated; {% and {# are left alone in secret values
    environment = jinja2.Environment(
        block_start_string="\x00{%",
        block_end_string="%}\x00",
        comment_start_string="\x00{#",
        comment_end_string="#}\x00",
        autoescape=False,
        keep_trailing_newline=True,
        undefined=jinja2.StrictUndefined,
    )
    # env() is the only name templates can see
    environment.globals.clear()
    environment.globals["env"] = env
    return environment


def render(raw: bytes) -> bytes:
    """
    Expand ``{{ env(...) }}`` expressions in raw file content.

    Args:
        raw: File content as read from disk

    Returns:
        The rendered content, UTF-8 encoded

    Raises:
        TemplateError: If the content is not UTF-8, the template syntax is
            invalid, or rendering fails
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TemplateError(f"Input file is not valid UTF-8: {e}") from e

    try:
        template = _environment().from_string(text)
        return template.render().encode("utf-8")
    except jinja2.TemplateSyntaxError as e:
        raise TemplateError(f"Invalid template syntax on line {e.lineno}: {e.message}") from e
    except (jinja2.TemplateError, TypeError) as e:
        raise TemplateError(f"Unable to render input file: {e}") from e
