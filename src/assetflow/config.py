"""Immutable build configuration.

The config is read once at startup from YAML and handed to every task; tasks
never mutate it. Missing keys fall back to the layout below::

    assets/css/main.{scss,sass}  -> _public/css/main.css (+ .map)
    assets/js/**/*.js            -> _public/js/main.js
    assets/icons/**/*            -> _public/ico/
    assets/images/**/*           -> _public/img/
                                    _public/index.html (cache-bust token)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

from .utils import _get

DEFAULT_CONFIG_PATH = "configs/base.yaml"

STYLE_OUTPUT_STYLES = ("nested", "expanded", "compact", "compressed")
KNOWN_SECTIONS = {"project", "paths", "styles", "scripts", "images", "watch", "logging"}


class ConfigError(ValueError):
    """Raised when a configuration file holds an unusable value."""


@dataclass(frozen=True)
class SourcePaths:
    styles: str = "assets/css/**/*.{scss,sass}"
    style_entry: str = "assets/css/main.{scss,sass}"
    scripts: Tuple[str, ...] = ("assets/js/**/*.js",)
    icons: str = "assets/icons/**/*"
    images: str = "assets/images/**/*"


@dataclass(frozen=True)
class StyleOptions:
    output_style: str = "compressed"
    source_map: bool = True
    include_paths: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScriptOptions:
    bundle_name: str = "main.js"
    minify: bool = True
    separator: str = "\n"


@dataclass(frozen=True)
class ImageOptions:
    optimize: bool = True
    # "keep" re-uses the source JPEG quantisation tables (lossless re-encode)
    jpeg_quality: object = "keep"


@dataclass(frozen=True)
class WatchOptions:
    polling: bool = True
    interval: float = 1.0
    debounce: float = 0.2


@dataclass(frozen=True)
class BuildConfig:
    root: Path = field(default_factory=Path.cwd)
    output_root: str = "_public"
    sources: SourcePaths = field(default_factory=SourcePaths)
    styles: StyleOptions = field(default_factory=StyleOptions)
    scripts: ScriptOptions = field(default_factory=ScriptOptions)
    images: ImageOptions = field(default_factory=ImageOptions)
    watch: WatchOptions = field(default_factory=WatchOptions)
    runs_dir: str = ".assetflow/runs"
    keep_runs: int = 20
    log_file: Optional[str] = None

    def resolve(self, rel: str | Path) -> Path:
        p = Path(rel)
        return p if p.is_absolute() else self.root / p

    @property
    def output_dir(self) -> Path:
        return self.resolve(self.output_root)

    @property
    def css_output(self) -> Path:
        return self.output_dir / "css"

    @property
    def js_output(self) -> Path:
        return self.output_dir / "js"

    @property
    def icon_output(self) -> Path:
        return self.output_dir / "ico"

    @property
    def image_output(self) -> Path:
        return self.output_dir / "img"

    @property
    def index(self) -> Path:
        return self.output_dir / "index.html"

    @property
    def watch_patterns(self) -> list[str]:
        return [self.sources.styles, *[s for s in self.sources.scripts if not s.startswith("!")]]


def _as_tuple(value, key: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    raise ConfigError(f"{key} must be a string or a list of strings, got {value!r}")


def config_from_dict(data: dict, root: Path | None = None) -> BuildConfig:
    data = data or {}
    unknown = set(data) - KNOWN_SECTIONS
    if unknown:
        raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown))}")

    d_src, d_sty, d_js, d_img, d_w = (
        SourcePaths(),
        StyleOptions(),
        ScriptOptions(),
        ImageOptions(),
        WatchOptions(),
    )
    sources = SourcePaths(
        styles=_get(data, "paths", "styles", default=d_src.styles),
        style_entry=_get(data, "paths", "style_entry", default=d_src.style_entry),
        scripts=_as_tuple(
            _get(data, "paths", "scripts", default=d_src.scripts), "paths.scripts"
        ),
        icons=_get(data, "paths", "icons", default=d_src.icons),
        images=_get(data, "paths", "images", default=d_src.images),
    )
    if not any(not s.startswith("!") for s in sources.scripts):
        raise ConfigError("paths.scripts needs at least one include pattern")

    styles = StyleOptions(
        output_style=_get(data, "styles", "output_style", default=d_sty.output_style),
        source_map=bool(_get(data, "styles", "source_map", default=d_sty.source_map)),
        include_paths=_as_tuple(
            _get(data, "styles", "include_paths", default=d_sty.include_paths),
            "styles.include_paths",
        ),
    )
    if styles.output_style not in STYLE_OUTPUT_STYLES:
        raise ConfigError(
            f"styles.output_style must be one of {STYLE_OUTPUT_STYLES}, got {styles.output_style!r}"
        )

    scripts = ScriptOptions(
        bundle_name=_get(data, "scripts", "bundle_name", default=d_js.bundle_name),
        minify=bool(_get(data, "scripts", "minify", default=d_js.minify)),
        separator=_get(data, "scripts", "separator", default=d_js.separator),
    )

    quality = _get(data, "images", "jpeg_quality", default=d_img.jpeg_quality)
    if quality != "keep" and not (isinstance(quality, int) and 1 <= quality <= 95):
        raise ConfigError(f"images.jpeg_quality must be 'keep' or 1..95, got {quality!r}")
    images = ImageOptions(
        optimize=bool(_get(data, "images", "optimize", default=d_img.optimize)),
        jpeg_quality=quality,
    )

    try:
        watch = WatchOptions(
            polling=bool(_get(data, "watch", "polling", default=d_w.polling)),
            interval=float(_get(data, "watch", "interval", default=d_w.interval)),
            debounce=float(_get(data, "watch", "debounce", default=d_w.debounce)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid watch settings: {e}") from e
    if watch.interval <= 0:
        raise ConfigError("watch.interval must be positive")
    if watch.debounce < 0:
        raise ConfigError("watch.debounce must not be negative")

    keep_runs = _get(data, "project", "keep_runs", default=20)
    if not isinstance(keep_runs, int) or isinstance(keep_runs, bool) or keep_runs < 1:
        raise ConfigError(f"project.keep_runs must be a positive integer, got {keep_runs!r}")

    return BuildConfig(
        root=Path(root) if root is not None else Path.cwd(),
        output_root=_get(data, "paths", "output_root", default="_public"),
        sources=sources,
        styles=styles,
        scripts=scripts,
        images=images,
        watch=watch,
        runs_dir=_get(data, "project", "runs_dir", default=".assetflow/runs"),
        keep_runs=keep_runs,
        log_file=_get(data, "logging", "file"),
    )


def load_config(path: str | Path | None = None, root: Path | None = None) -> BuildConfig:
    """Load a YAML config; a missing default config yields built-in defaults."""
    root = Path(root) if root is not None else Path.cwd()
    p = Path(path) if path is not None else Path(DEFAULT_CONFIG_PATH)
    if not p.is_absolute():
        p = root / p
    if not p.exists():
        if path is not None and str(path) != DEFAULT_CONFIG_PATH:
            raise ConfigError(f"Config file not found: {p}")
        return config_from_dict({}, root=root)
    with open(p, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {p}")
    return config_from_dict(data, root=root)
