"""Starter project tree (`assetflow init`)."""

from pathlib import Path
from typing import Dict, List, Tuple

from ..assetflow import task
from ..assetflow.config import BuildConfig
from ..assetflow.logging import get_logger

STYLE_PARTIALS: Dict[str, List[str]] = {
    "1-setup": ["_typography.sass", "_variables.sass"],
    "2-elements": ["_buttons.sass", "_images.sass"],
    "3-components": ["_header.sass", "_footer.sass", "_nav.scss"],
    "4-pages": ["_main.sass"],
}

SCRIPT_FILES: Dict[str, List[str]] = {
    "1-setup": [],
    "2-elements": [],
    "3-components": ["_nav.js"],
}

INDEX_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title></title>
  <link rel="stylesheet" href="css/main.css?cb=0">
</head>
<body>
  <script src="js/main.js?cb=0"></script>
</body>
</html>
"""


def _main_sass() -> str:
    lines = []
    for folder, files in STYLE_PARTIALS.items():
        for name in files:
            stem = name.lstrip("_").rsplit(".", 1)[0]
            lines.append(f'@import "{folder}/{stem}"')
    return "\n".join(lines) + "\n"


def scaffold_layout(config: BuildConfig) -> Tuple[List[Path], Dict[Path, str]]:
    """Directories and files (with initial content) of a new project."""
    root = config.root
    dirs: List[Path] = [root / "assets" / "icons", root / "assets" / "images"]
    files: Dict[Path, str] = {}

    css = root / "assets" / "css"
    for folder, names in STYLE_PARTIALS.items():
        dirs.append(css / folder)
        for name in names:
            files[css / folder / name] = ""
    files[css / "main.sass"] = _main_sass()

    js = root / "assets" / "js"
    for folder, names in SCRIPT_FILES.items():
        dirs.append(js / folder)
        for name in names:
            files[js / folder / name] = ""

    dirs += [
        config.css_output,
        config.js_output,
        config.image_output,
        config.icon_output,
        config.output_dir / "fonts",
    ]
    files[config.css_output / "main.css"] = ""
    files[config.js_output / "main.js"] = ""
    files[config.index] = INDEX_TEMPLATE
    return dirs, files


@task(
    name="scaffold",
    inputs=[],
    outputs=lambda c: [str(c.resolve("assets")), str(c.output_dir)],
)
def scaffold(config: BuildConfig):
    """Create the starter tree; files that already exist are left alone."""
    logger = get_logger("tasks.scaffold")
    logger.info("Creating project tree under %s", config.root)
    dirs, files = scaffold_layout(config)
    for d in dirs:
        d.mkdir(parents=True, exist_ok=True)
    created = 0
    for path, content in files.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(content)
        except FileExistsError:
            logger.info("Keeping existing %s", path)
            continue
        created += 1
    logger.info("Created %d files", created)
