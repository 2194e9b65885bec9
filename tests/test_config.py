import dataclasses

import pytest

from src.assetflow.config import ConfigError, config_from_dict, load_config


def test_defaults_follow_public_layout(tmp_path):
    config = load_config(root=tmp_path)
    assert config.css_output == tmp_path / "_public/css"
    assert config.js_output == tmp_path / "_public/js"
    assert config.icon_output == tmp_path / "_public/ico"
    assert config.image_output == tmp_path / "_public/img"
    assert config.index == tmp_path / "_public/index.html"
    assert config.sources.scripts == ("assets/js/**/*.js",)
    assert config.watch.polling is True
    assert config.watch.interval == 1.0


def test_yaml_overrides(tmp_path):
    (tmp_path / "site.yaml").write_text(
        "paths:\n"
        "  output_root: ../deploy\n"
        "  scripts: [assets/js/vendor/*.js, assets/js/app/**/*.js]\n"
        "styles:\n"
        "  output_style: expanded\n"
        "watch:\n"
        "  interval: 2.5\n"
        "  polling: false\n",
        encoding="utf-8",
    )
    config = load_config("site.yaml", root=tmp_path)
    assert config.output_dir == tmp_path / "../deploy"
    assert config.sources.scripts == ("assets/js/vendor/*.js", "assets/js/app/**/*.js")
    assert config.styles.output_style == "expanded"
    assert config.watch.interval == 2.5
    assert config.watch.polling is False


def test_config_is_immutable(tmp_path):
    config = load_config(root=tmp_path)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.output_root = "elsewhere"


def test_watch_patterns_skip_excludes(tmp_path):
    config = config_from_dict(
        {"paths": {"scripts": ["assets/js/**/*.js", "!assets/js/*.min.js"]}}, root=tmp_path
    )
    assert config.watch_patterns == ["assets/css/**/*.{scss,sass}", "assets/js/**/*.js"]


@pytest.mark.parametrize(
    "data",
    [
        {"watch": {"interval": 0}},
        {"watch": {"interval": "soon"}},
        {"styles": {"output_style": "tiny"}},
        {"paths": {"scripts": ["!assets/js/*.js"]}},
        {"images": {"jpeg_quality": 120}},
        {"servers": {}},
    ],
)
def test_invalid_values_raise(tmp_path, data):
    with pytest.raises(ConfigError):
        config_from_dict(data, root=tmp_path)


def test_explicit_missing_config_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_config("missing.yaml", root=tmp_path)


def test_keep_runs(tmp_path):
    assert config_from_dict({}, root=tmp_path).keep_runs == 20
    assert config_from_dict({"project": {"keep_runs": 5}}, root=tmp_path).keep_runs == 5
    with pytest.raises(ConfigError):
        config_from_dict({"project": {"keep_runs": 0}}, root=tmp_path)
