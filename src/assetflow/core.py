from __future__ import annotations

import json
import os
import shutil
import sys
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Union, List

from .config import BuildConfig
from .logging import get_logger
from .utils import expand_globs


# Allow static lists or callables that build paths from the config
PathSpec = Union[List[str], Callable[[BuildConfig], List[str]]]


@dataclass
class TaskSpec:
    name: str
    inputs: PathSpec
    outputs: PathSpec
    fn: Callable[..., None]
    category: Optional[str] = None
    cleaner: bool = False


def task(
    name: str,
    inputs: PathSpec,
    outputs: PathSpec,
    category: str | None = None,
    cleaner: bool = False,
):
    """Decorator to declare a task on a function.

    The wrapped function receives the immutable `BuildConfig` as `config`.
    `category` groups outputs that are deleted and regenerated together
    ("code" or "images"); a `cleaner` task deletes its category, and every
    other task of that category in the same pipeline must run after it.
    """

    def deco(fn: Callable[..., None]):
        spec = TaskSpec(
            name=name,
            inputs=inputs,
            outputs=outputs,
            fn=fn,
            category=category,
            cleaner=cleaner,
        )
        setattr(fn, "_task_spec", spec)
        return fn

    return deco


def _check_edges(nodes: list[str], edges: Iterable[tuple[str, str]]):
    incoming: dict[str, set[str]] = {n: set() for n in nodes}
    outgoing: dict[str, set[str]] = {n: set() for n in nodes}
    for u, v in edges:
        if u not in incoming or v not in incoming:
            raise ValueError(f"Edge references unknown node: {(u, v)}")
        outgoing[u].add(v)
        incoming[v].add(u)
    return incoming, outgoing


def topo_stages(
    nodes: Iterable[str], edges: Iterable[tuple[str, str]]
) -> list[list[str]]:
    """Group nodes into layers; every node's predecessors sit in earlier layers.

    Nodes inside a layer keep their declaration order.
    """
    nodes = list(nodes)
    incoming, outgoing = _check_edges(nodes, edges)
    stages: list[list[str]] = []
    ready = [n for n in nodes if not incoming[n]]
    done: set[str] = set()
    while ready:
        stages.append(ready)
        done.update(ready)
        nxt: list[str] = []
        for n in ready:
            for m in outgoing[n]:
                incoming[m].discard(n)
        for n in nodes:
            if n not in done and not incoming[n]:
                nxt.append(n)
        ready = nxt
    if len(done) != len(nodes):
        raise ValueError("Cycle detected in DAG")
    return stages


def _ancestors(node: str, edges: Iterable[tuple[str, str]]) -> set[str]:
    parents: dict[str, set[str]] = {}
    for u, v in edges:
        parents.setdefault(v, set()).add(u)
    seen: set[str] = set()
    todo = [node]
    while todo:
        for p in parents.get(todo.pop(), ()):
            if p not in seen:
                seen.add(p)
                todo.append(p)
    return seen


def check_category_order(
    tasks: dict[str, TaskSpec], edges: Iterable[tuple[str, str]]
) -> None:
    """Every task of a category must depend on that category's cleaner."""
    edges = list(edges)
    for cleaner in (s for s in tasks.values() if s.cleaner):
        for spec in tasks.values():
            if spec.cleaner or spec.category != cleaner.category:
                continue
            if cleaner.name not in _ancestors(spec.name, edges):
                raise ValueError(
                    f"Step '{spec.name}' must run after '{cleaner.name}' "
                    f"(both touch '{spec.category}' outputs)"
                )


class Pipeline:
    def __init__(
        self,
        tasks: dict[str, TaskSpec],
        edges: list[tuple[str, str]],
        name: str = "pipeline",
        parallel: bool = True,
    ):
        self.name = name
        self.tasks = tasks
        self.edges = edges
        self.parallel = parallel
        self.stages = topo_stages(tasks.keys(), edges)
        check_category_order(tasks, edges)
        self.order = [n for stage in self.stages for n in stage]
        self.logger = get_logger(f"assetflow.{self.name}")

    def _select_stages(self, only_step: str | None) -> list[list[str]]:
        if only_step:
            if only_step not in self.tasks:
                raise KeyError(f"Unknown step: {only_step}")
            return [[only_step]]
        return self.stages

    def run(self, config: BuildConfig, only_step: str | None = None) -> dict:
        run_id = time.strftime("%Y%m%d-%H%M%S") + f"-{int(time.time() * 1000) % 1000:03d}"
        pipeline_dir = config.resolve(config.runs_dir) / self.name
        run_dir = pipeline_dir / run_id
        os.makedirs(run_dir, exist_ok=True)
        _prune_runs(pipeline_dir, config.keep_runs)

        stages = self._select_stages(only_step)
        self.logger.info(
            "Selected steps: %s",
            " → ".join(" + ".join(stage) for stage in stages),
        )

        state = {
            "pipeline": self.name,
            "run_id": run_id,
            "steps": [],
            "python": sys.version,
        }

        try:
            for stage in stages:
                self._run_stage(stage, config, state)
        finally:
            _write_state(run_dir, state)
        return state

    def _run_stage(self, stage: list[str], config: BuildConfig, state: dict) -> None:
        if len(stage) == 1 or not self.parallel:
            for step_name in stage:
                self._run_step(step_name, config, state)
            return

        # Barrier: every sibling finishes before the next stage may start
        with ThreadPoolExecutor(max_workers=len(stage)) as executor:
            futures = [
                executor.submit(self._run_step, step_name, config, state)
                for step_name in stage
            ]
            wait(futures)
        for fut in futures:
            exc = fut.exception()
            if exc is not None:
                raise exc

    def _run_step(self, step_name: str, config: BuildConfig, state: dict) -> None:
        spec = self.tasks[step_name]
        step_logger = get_logger(f"assetflow.{self.name}.{step_name}")
        inputs = expand_globs(_resolve_paths(spec.inputs, config), config.root)
        started = time.monotonic()
        try:
            step_logger.info("Run: %s (%d input files)", step_name, len(inputs))
            spec.fn(config=config)
        except Exception as e:  # noqa: BLE001
            step_logger.exception("Step failed (%s)", step_name)
            state["steps"].append(
                {
                    "name": step_name,
                    "status": "error",
                    "error": str(e),
                    "seconds": round(time.monotonic() - started, 3),
                }
            )
            raise
        state["steps"].append(
            {
                "name": step_name,
                "status": "ok",
                "inputs": len(inputs),
                "outputs": _resolve_paths(spec.outputs, config),
                "seconds": round(time.monotonic() - started, 3),
            }
        )


def _write_state(run_dir: Path, state: dict) -> None:
    with open(run_dir / "state.json", "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2)


def _prune_runs(pipeline_dir: Path, keep: int) -> None:
    """Drop all but the newest `keep` run records of one pipeline."""
    runs = sorted(p for p in pipeline_dir.iterdir() if p.is_dir())
    for old in runs[: max(len(runs) - keep, 0)]:
        shutil.rmtree(old, ignore_errors=True)


def _resolve_paths(paths_spec: PathSpec, config: BuildConfig) -> list[str]:
    """Resolve a static list of paths or a callable(PathSpec) into a list[str].

    Callables receive the build config and must return a list of path strings.
    """
    if callable(paths_spec):
        paths = paths_spec(config)
    else:
        paths = paths_spec
    if paths is None:
        return []
    # Normalize to strings
    out: list[str] = []
    for p in paths:
        out.append(str(p))
    return out
