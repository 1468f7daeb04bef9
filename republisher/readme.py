"""
readme.py

Responsibility: Render the fork-notice banner and prepend it to the README.

The banner is a Jinja2 template rendered with StrictUndefined, so a missing value
fails loudly instead of publishing a README with empty links.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, StrictUndefined

from republisher.config import ForkConfig

BANNER_TEMPLATE = (
    "> This is a fork of {{ project_name }} to add common-js support. "
    "See [{{ fork_slug }}](https://github.com/{{ fork_slug }}) for the code that builds this package, "
    "or [{{ upstream_slug }}](https://github.com/{{ upstream_slug }}) for the original source."
)

_env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)


def render_banner(config: ForkConfig) -> str:
    return _env.from_string(BANNER_TEMPLATE).render(
        project_name=config.project_name,
        fork_slug=config.fork_slug,
        upstream_slug=config.upstream_slug,
    )


def prepend_banner(readme: str, banner: str) -> str:
    """Return `readme` with `banner` and a blank line in front, unless it is already there."""
    if readme.startswith(banner):
        return readme
    return f"{banner}\n\n{readme}"


def patch_readme(path: Path, config: ForkConfig) -> bool:
    """
    Prepend the banner to the README at `path`. Returns False if it was already present.
    """
    text = path.read_text(encoding="utf-8")
    patched = prepend_banner(text, render_banner(config))
    if patched == text:
        return False
    path.write_text(patched, encoding="utf-8")
    return True
