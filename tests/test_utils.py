import os

import pytest

from src.assetflow import utils
from src.assetflow.utils import (
    atomic_write_text,
    expand_braces,
    expand_globs,
    glob_base,
    glob_match,
)
from tests.conftest import write


def test_expand_braces():
    assert expand_braces("assets/css/main.{scss,sass}") == [
        "assets/css/main.scss",
        "assets/css/main.sass",
    ]
    assert expand_braces("{a,b}/{c,d}.js") == ["a/c.js", "a/d.js", "b/c.js", "b/d.js"]
    assert expand_braces("plain.js") == ["plain.js"]


@pytest.mark.parametrize(
    "path,pattern,expected",
    [
        ("assets/css/main.scss", "assets/css/**/*.{scss,sass}", True),
        ("assets/css/1-setup/_vars.sass", "assets/css/**/*.{scss,sass}", True),
        ("assets/css/main.css", "assets/css/**/*.{scss,sass}", False),
        ("assets/js/x/y/z.js", "assets/js/**/*.js", True),
        ("assets/jsx/z.js", "assets/js/**/*.js", False),
        ("assets/js/1-setup/lib.min.js", "assets/js/1-setup/*.min.js", True),
        ("assets/js/1-setup/deep/lib.min.js", "assets/js/1-setup/*.min.js", False),
    ],
)
def test_glob_match(path, pattern, expected):
    assert glob_match(path, pattern) is expected


def test_glob_base():
    assert glob_base("assets/images/**/*") == "assets/images"
    assert glob_base("assets/css/main.{scss,sass}") == "assets/css"
    assert glob_base("*.js") == ""


def test_expand_globs_keeps_declared_pattern_order(tmp_path):
    for name in ("a.js", "b.js", "c.js"):
        write(tmp_path / "js" / name, name)
    found = expand_globs(["js/c.js", "js/*.js"], tmp_path)
    assert [p.name for p in found] == ["c.js", "a.js", "b.js"]


def test_expand_globs_sorts_nested_directories(tmp_path):
    write(tmp_path / "js/3-components/nav.js", "")
    write(tmp_path / "js/1-setup/setup.js", "")
    write(tmp_path / "js/app.js", "")
    found = expand_globs(["js/**/*.js"], tmp_path)
    assert [p.relative_to(tmp_path).as_posix() for p in found] == [
        "js/1-setup/setup.js",
        "js/3-components/nav.js",
        "js/app.js",
    ]


def test_expand_globs_excludes(tmp_path):
    write(tmp_path / "js/1-setup/lib.min.js", "")
    write(tmp_path / "js/1-setup/lib.js", "")
    found = expand_globs(["js/**/*.js", "!js/1-setup/*.min.js"], tmp_path)
    assert [p.name for p in found] == ["lib.js"]


def test_expand_globs_missing_literal_is_empty(tmp_path):
    assert expand_globs(["nope/main.scss"], tmp_path) == []


def test_atomic_write_leaves_no_partial_file(tmp_path, monkeypatch):
    target = tmp_path / "out" / "main.css"
    atomic_write_text(target, "old")

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(utils.os, "replace", boom)
    with pytest.raises(OSError):
        atomic_write_text(target, "new")
    assert target.read_text() == "old"
    assert os.listdir(target.parent) == ["main.css"]
