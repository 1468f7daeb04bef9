"""
republisher package

This package republishes a forked npm package under a new name as a CLI-first utility.

Key responsibilities are split across modules:
- `config.py`: fork configuration (fixed defaults, optional YAML overrides)
- `runner.py`: synchronous command execution with log groups and secret redaction
- `registry.py`: isolated "is this version already published?" checks
- `descriptor.py`: package.json load / rewrite / persist
- `readme.py`: fork-notice banner rendering
- `cli.py`: CLI entrypoint and orchestration (clone -> rewrite -> check -> build -> publish)
"""

from __future__ import annotations

__all__ = ["RepublishError", "__version__"]

__version__ = "0.1.0"


class RepublishError(RuntimeError):
    """Base class for every failure that aborts a republish run."""
