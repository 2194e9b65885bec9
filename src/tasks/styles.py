"""Style compilation task.

Compiles the Sass entry point (`main.scss` or `main.sass`) into a single
stylesheet with an adjacent source map.
"""

from pathlib import Path
from typing import Optional

import sass

from ..assetflow import task
from ..assetflow.config import BuildConfig
from ..assetflow.logging import get_logger
from ..assetflow.utils import atomic_write_text, expand_globs


def find_entry(config: BuildConfig) -> Optional[Path]:
    matches = expand_globs([config.sources.style_entry], config.root)
    return matches[0] if matches else None


@task(
    name="styles",
    inputs=lambda c: [c.sources.styles],
    outputs=lambda c: [
        str(c.css_output / "main.css"),
        str(c.css_output / "main.css.map"),
    ],
    category="code",
)
def compile_styles(config: BuildConfig):
    """Compile the Sass entry point into `{output_root}/css/main.css`.

    A missing entry point only warns, matching an empty source glob.
    `sass.CompileError` propagates so the current command aborts.
    """
    logger = get_logger("tasks.styles")
    logger.info("Compiling and compressing styles")

    entry = find_entry(config)
    if entry is None:
        logger.warning("No style entry point matches %s", config.sources.style_entry)
        return

    css_path = config.css_output / "main.css"
    map_path = css_path.with_name(css_path.name + ".map")
    include_paths = [str(config.resolve(p)) for p in config.styles.include_paths]

    if config.styles.source_map:
        css, source_map = sass.compile(
            filename=str(entry),
            output_style=config.styles.output_style,
            include_paths=include_paths,
            source_map_filename=str(map_path),
            output_filename_hint=str(css_path),
            source_map_contents=True,
        )
        atomic_write_text(map_path, source_map)
    else:
        css = sass.compile(
            filename=str(entry),
            output_style=config.styles.output_style,
            include_paths=include_paths,
        )

    atomic_write_text(css_path, css)
    logger.info("Wrote %s (%d bytes)", css_path, len(css))
