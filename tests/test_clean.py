import pytest

from src.tasks.clean import clean_code, clean_images, remove_dirs
from tests.conftest import write


def test_missing_targets_are_fine(config):
    clean_code(config=config)
    clean_images(config=config)
    assert remove_dirs([config.root / "never-existed"], config.root) == []


def test_both_directories_of_a_category_are_removed(config):
    write(config.css_output / "main.css", "x")
    write(config.js_output / "main.js", "y")
    write(config.image_output / "a.png", "")
    write(config.icon_output / "b.svg", "")

    clean_code(config=config)
    assert not config.css_output.exists()
    assert not config.js_output.exists()
    assert config.image_output.exists()

    clean_images(config=config)
    assert not config.image_output.exists()
    assert not config.icon_output.exists()
    # the entry page is not part of either category
    assert config.index.exists()


def test_targets_outside_the_project_are_allowed(tmp_path):
    root = tmp_path / "site"
    outside = tmp_path / "deploy" / "css"
    write(outside / "main.css", "x")
    root.mkdir()
    assert remove_dirs([outside], root) == [outside]
    assert not outside.exists()


@pytest.mark.parametrize("target", [".", "..", "/"])
def test_refuses_to_remove_project_root_or_ancestors(config, target):
    with pytest.raises(ValueError):
        remove_dirs([config.resolve(target)], config.root)
