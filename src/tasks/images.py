"""Icon and image compression tasks.

Raster images are re-encoded with Pillow and the smaller of the original and
re-encoded bytes is published. Everything else (SVG, ICO, fonts dropped in by
hand) is copied unchanged.
"""

import io
from pathlib import Path
from typing import Any, Dict

from PIL import Image

from ..assetflow import task
from ..assetflow.config import BuildConfig, ImageOptions
from ..assetflow.logging import get_logger
from ..assetflow.utils import atomic_write_bytes, expand_globs, glob_base

RASTER_FORMATS = {"PNG", "JPEG", "GIF", "WEBP"}


def _save_options(fmt: str, opts: ImageOptions) -> Dict[str, Any]:
    if fmt == "JPEG":
        return {"optimize": opts.optimize, "quality": opts.jpeg_quality}
    if fmt == "WEBP":
        return {"lossless": True, "method": 6}
    return {"optimize": opts.optimize}


def compress_bytes(data: bytes, opts: ImageOptions) -> bytes:
    """Return the smaller of `data` and its Pillow re-encoding.

    Non-raster or animated input is returned unchanged. Unreadable raster data
    raises `PIL.UnidentifiedImageError`.
    """
    with Image.open(io.BytesIO(data)) as img:
        fmt = img.format
        if fmt not in RASTER_FORMATS or getattr(img, "is_animated", False):
            return data
        buf = io.BytesIO()
        # Orientation and colour profile must survive the re-encode
        metadata = {
            k: img.info[k] for k in ("exif", "icc_profile") if img.info.get(k)
        }
        img.save(buf, format=fmt, **_save_options(fmt, opts), **metadata)
    encoded = buf.getvalue()
    return encoded if len(encoded) < len(data) else data


def _is_raster_name(path: Path) -> bool:
    return path.suffix.lower() in {".png", ".jpg", ".jpeg", ".gif", ".webp"}


def compress_tree(pattern: str, out_dir: Path, config: BuildConfig, label: str) -> int:
    logger = get_logger(f"tasks.images.{label}")
    sources = expand_globs([pattern], config.root)
    base = config.resolve(glob_base(pattern))
    saved = 0
    for src in sources:
        rel = src.relative_to(base)
        data = src.read_bytes()
        out = data
        if _is_raster_name(src):
            out = compress_bytes(data, config.images)
            saved += len(data) - len(out)
        atomic_write_bytes(out_dir / rel, out)
    logger.info("%d %s written to %s, %d bytes saved", len(sources), label, out_dir, saved)
    return len(sources)


@task(
    name="icons",
    inputs=lambda c: [c.sources.icons],
    outputs=lambda c: [str(c.icon_output)],
    category="images",
)
def compress_icons(config: BuildConfig):
    get_logger("tasks.images").info("Compressing icons")
    compress_tree(config.sources.icons, config.icon_output, config, "icons")


@task(
    name="images",
    inputs=lambda c: [c.sources.images],
    outputs=lambda c: [str(c.image_output)],
    category="images",
)
def compress_images(config: BuildConfig):
    get_logger("tasks.images").info("Compressing images")
    compress_tree(config.sources.images, config.image_output, config, "images")
