from __future__ import annotations

import importlib
import pkgutil
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import typer

from .config import BuildConfig, ConfigError, DEFAULT_CONFIG_PATH, load_config
from .core import Pipeline, TaskSpec
from .logging import attach_file_log, get_logger
from .watch import WatchLoop


app = typer.Typer(
    add_completion=False,
    help="Build static assets from the developer tree into the public tree.",
)
log = get_logger("assetflow.cli")


@dataclass(frozen=True)
class PipelineDef:
    tasks: Tuple[str, ...]
    edges: Tuple[Tuple[str, str], ...]
    watch: bool = False


def _chain(*names: str) -> Tuple[Tuple[str, str], ...]:
    return tuple(zip(names, names[1:]))


# Deletion always precedes regeneration of the same category; cache-busting
# follows both code steps and precedes the watch loop.
PIPELINES: Dict[str, PipelineDef] = {
    "build": PipelineDef(
        tasks=(
            "clean_code",
            "styles",
            "scripts",
            "cachebust",
            "clean_images",
            "icons",
            "images",
        ),
        edges=(
            ("clean_code", "styles"),
            ("clean_code", "scripts"),
            ("styles", "cachebust"),
            ("scripts", "cachebust"),
            ("cachebust", "clean_images"),
            ("clean_images", "icons"),
            ("icons", "images"),
        ),
        watch=True,
    ),
    "img": PipelineDef(tasks=("icons", "images"), edges=_chain("icons", "images")),
    "clean": PipelineDef(
        tasks=("clean_code", "clean_images", "styles", "scripts", "icons", "images"),
        edges=_chain("clean_code", "clean_images", "styles", "scripts", "icons", "images"),
    ),
    "watch": PipelineDef(
        tasks=("styles", "scripts", "cachebust"),
        edges=(("styles", "cachebust"), ("scripts", "cachebust")),
        watch=True,
    ),
    "init": PipelineDef(tasks=("scaffold",), edges=()),
}

# Re-run on every watched change
REBUILD = "watch"


def discover_tasks() -> Dict[str, TaskSpec]:
    """Import all modules in `tasks` package and collect decorated functions."""
    tasks_pkg = "src.tasks"
    specs: Dict[str, TaskSpec] = {}
    try:
        pkg = importlib.import_module(tasks_pkg)
    except ModuleNotFoundError:
        log.warning("No tasks package found.")
        return specs
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{tasks_pkg}."):
        try:
            mod = importlib.import_module(m.name)
        except Exception as e:  # noqa: BLE001
            log.warning("Failed to import %s: %s", m.name, e)
            continue
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            spec = getattr(obj, "_task_spec", None)
            if isinstance(spec, TaskSpec):
                specs[spec.name] = spec
    return specs


def build_pipeline(name: str, specs: Dict[str, TaskSpec] | None = None) -> Pipeline:
    specs = specs if specs is not None else discover_tasks()
    definition = PIPELINES[name]
    missing = [t for t in definition.tasks if t not in specs]
    if missing:
        raise KeyError(f"Missing required tasks: {', '.join(missing)}")
    return Pipeline(
        tasks={t: specs[t] for t in definition.tasks},
        edges=list(definition.edges),
        name=name,
    )


def run_watch(config: BuildConfig, specs: Dict[str, TaskSpec]) -> None:
    rebuild = build_pipeline(REBUILD, specs)
    loop = WatchLoop(config, config.watch_patterns, lambda: rebuild.run(config))
    loop.run()


def run_named(name: str, config: BuildConfig) -> None:
    specs = discover_tasks()
    pipe = build_pipeline(name, specs)
    pipe.run(config)
    if PIPELINES[name].watch:
        run_watch(config, specs)


def _load(ctx: typer.Context) -> BuildConfig:
    obj = ctx.ensure_object(dict)
    if "build_config" not in obj:
        try:
            config = load_config(obj.get("config_path"))
        except ConfigError as e:
            typer.echo(f"Invalid configuration: {e}", err=True)
            raise typer.Exit(code=1)
        attach_file_log(config.resolve(config.log_file) if config.log_file else None)
        obj["build_config"] = config
    return obj["build_config"]


def _invoke(ctx: typer.Context, name: str) -> None:
    config = _load(ctx)
    try:
        run_named(name, config)
    except KeyboardInterrupt:
        log.info("Interrupted")
    except Exception as e:  # noqa: BLE001
        log.error("Command '%s' failed: %s", name, e)
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help=f"Path to YAML config (default: {DEFAULT_CONFIG_PATH})"
    ),
):
    """Without a command, runs the full build and then watches for changes."""
    ctx.ensure_object(dict)["config_path"] = config
    if ctx.invoked_subcommand is None:
        _invoke(ctx, "build")


@app.command()
def build(ctx: typer.Context):
    """Clean, compile styles and scripts, cache-bust, compress images, then watch."""
    _invoke(ctx, "build")


@app.command()
def img(ctx: typer.Context):
    """Compress icons and images."""
    _invoke(ctx, "img")


@app.command()
def clean(ctx: typer.Context):
    """Delete all generated folders and rebuild them (no watch)."""
    _invoke(ctx, "clean")


@app.command()
def watch(ctx: typer.Context):
    """Compile styles and scripts, cache-bust, then watch for changes."""
    _invoke(ctx, "watch")


@app.command()
def init(ctx: typer.Context):
    """Create the starter directory tree for a new project."""
    _invoke(ctx, "init")


@app.command("list")
def list_tasks():
    """List discovered tasks and the named pipelines."""
    specs = discover_tasks()
    if not specs:
        typer.echo("No tasks discovered.")
        raise typer.Exit(code=0)
    typer.echo("Discovered tasks:")
    for name in sorted(specs.keys()):
        typer.echo(f"- {name}")
    typer.echo("Pipelines:")
    for name in PIPELINES:
        stages = build_pipeline(name, specs).stages
        typer.echo(f"- {name}: " + " → ".join(" + ".join(s) for s in stages))


@app.command()
def run_task(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Task name to run"),
):
    """Run a single task by name."""
    specs = discover_tasks()
    if name not in specs:
        typer.echo(f"Task not found: {name}")
        raise typer.Exit(code=1)
    config = _load(ctx)
    pipe = Pipeline(tasks={name: specs[name]}, edges=[], name=f"task.{name}")
    try:
        pipe.run(config, only_step=name)
    except Exception as e:  # noqa: BLE001
        log.error("Task '%s' failed: %s", name, e)
        raise typer.Exit(code=1)


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
