"""Delete generated output directories before a clean rebuild."""

import shutil
from pathlib import Path
from typing import Iterable

from ..assetflow import task
from ..assetflow.config import BuildConfig
from ..assetflow.logging import get_logger


def _check_safe(target: Path, root: Path) -> None:
    target = target.resolve()
    root = root.resolve()
    if target == Path(target.anchor) or target == root or target in root.parents:
        raise ValueError(f"Refusing to delete {target}: it contains the project root")


def remove_dirs(targets: Iterable[Path], root: Path) -> list[Path]:
    """Remove every target; a missing target counts as already removed."""
    logger = get_logger("tasks.clean")
    targets = list(targets)
    for target in targets:
        _check_safe(target, root)
    removed: list[Path] = []
    for target in targets:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        else:
            logger.debug("Nothing to remove at %s", target)
            continue
        removed.append(target)
    return removed


@task(
    name="clean_code",
    inputs=[],
    outputs=lambda c: [str(c.css_output), str(c.js_output)],
    category="code",
    cleaner=True,
)
def clean_code(config: BuildConfig):
    logger = get_logger("tasks.clean")
    logger.info("Removing css and js folders")
    remove_dirs([config.css_output, config.js_output], config.root)


@task(
    name="clean_images",
    inputs=[],
    outputs=lambda c: [str(c.image_output), str(c.icon_output)],
    category="images",
    cleaner=True,
)
def clean_images(config: BuildConfig):
    logger = get_logger("tasks.clean")
    logger.info("Removing img and ico folders")
    remove_dirs([config.image_output, config.icon_output], config.root)
