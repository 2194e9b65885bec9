"""Shared fixtures: a throw-away project tree rooted in `tmp_path`."""
from pathlib import Path

import pytest
from PIL import Image

from src.assetflow.config import config_from_dict


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def make_png(path: Path, size=(64, 64), color=(200, 30, 30)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # compress_level=0 leaves plenty for the optimiser to win back
    Image.new("RGB", size, color).save(path, format="PNG", compress_level=0)
    return path


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A minimal developer tree plus a public entry page."""
    monkeypatch.chdir(tmp_path)
    write(tmp_path / "assets/css/main.scss", '@import "partials/colors";\nbody { color: $brand; }\n')
    write(tmp_path / "assets/css/partials/_colors.scss", "$brand: red;\n")
    write(tmp_path / "assets/js/a.js", "var X = 1;\n")
    write(tmp_path / "assets/js/b.js", "console.log(X + 1);\n")
    make_png(tmp_path / "assets/images/photo.png")
    make_png(tmp_path / "assets/icons/logo.png", size=(16, 16))
    write(tmp_path / "assets/icons/arrow.svg", '<svg xmlns="http://www.w3.org/2000/svg"/>\n')
    write(
        tmp_path / "_public/index.html",
        '<link rel="stylesheet" href="css/main.css?cb=100">\n'
        '<script src="js/main.js?cb=100"></script>\n',
    )
    return tmp_path


@pytest.fixture
def config(project):
    return config_from_dict({}, root=project)
