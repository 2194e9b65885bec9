"""Script bundling task.

Concatenates script files in their declared order and minifies the bundle.
"""

from pathlib import Path
from typing import List

import rjsmin

from ..assetflow import task
from ..assetflow.config import BuildConfig
from ..assetflow.logging import get_logger
from ..assetflow.utils import atomic_write_text, expand_globs


def bundle_sources(paths: List[Path], separator: str = "\n") -> str:
    """Join script sources; order is load order and must not change."""
    return separator.join(p.read_text(encoding="utf-8") for p in paths)


@task(
    name="scripts",
    inputs=lambda c: list(c.sources.scripts),
    outputs=lambda c: [str(c.js_output / c.scripts.bundle_name)],
    category="code",
)
def bundle_scripts(config: BuildConfig):
    logger = get_logger("tasks.scripts")
    logger.info("Concatenating and compressing scripts")

    sources = expand_globs(config.sources.scripts, config.root)
    if not sources:
        logger.warning(
            "No script files match %s", ", ".join(config.sources.scripts)
        )
        return
    logger.debug("Bundle order: %s", ", ".join(str(p) for p in sources))

    bundle = bundle_sources(sources, config.scripts.separator)
    if config.scripts.minify:
        bundle = rjsmin.jsmin(bundle)

    out = config.js_output / config.scripts.bundle_name
    atomic_write_text(out, bundle)
    logger.info("Wrote %s from %d files (%d bytes)", out, len(sources), len(bundle))
