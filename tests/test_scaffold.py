from src.assetflow.config import config_from_dict
from src.tasks.scaffold import scaffold
from src.tasks.styles import compile_styles


def test_creates_starter_tree(tmp_path):
    config = config_from_dict({}, root=tmp_path)
    scaffold(config=config)

    for rel in (
        "assets/css/1-setup/_typography.sass",
        "assets/css/1-setup/_variables.sass",
        "assets/css/2-elements/_buttons.sass",
        "assets/css/3-components/_nav.scss",
        "assets/css/4-pages/_main.sass",
        "assets/css/main.sass",
        "assets/js/3-components/_nav.js",
        "_public/css/main.css",
        "_public/js/main.js",
        "_public/index.html",
    ):
        assert (tmp_path / rel).is_file(), rel
    for rel in (
        "assets/js/1-setup",
        "assets/js/2-elements",
        "assets/icons",
        "assets/images",
        "_public/img",
        "_public/ico",
        "_public/fonts",
    ):
        assert (tmp_path / rel).is_dir(), rel
    assert "cb=0" in (tmp_path / "_public/index.html").read_text()


def test_existing_files_are_not_overwritten(tmp_path):
    config = config_from_dict({}, root=tmp_path)
    page = tmp_path / "_public/index.html"
    page.parent.mkdir(parents=True)
    page.write_text("mine")
    scaffold(config=config)
    assert page.read_text() == "mine"


def test_starter_styles_compile(tmp_path):
    config = config_from_dict({}, root=tmp_path)
    scaffold(config=config)
    compile_styles(config=config)
    assert (config.css_output / "main.css").is_file()
