"""Declarative static-asset build pipeline.

Provides Task and Pipeline primitives with staged (barrier) scheduling, an
immutable build config, a polling watch loop and a Typer CLI.
"""

from .config import BuildConfig, ConfigError, load_config
from .core import TaskSpec, Pipeline, task  # re-export for convenience

__all__ = ["BuildConfig", "ConfigError", "load_config", "TaskSpec", "Pipeline", "task"]
