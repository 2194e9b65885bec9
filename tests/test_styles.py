import pytest
import sass

from src.assetflow.config import config_from_dict
from src.tasks.styles import compile_styles, find_entry
from tests.conftest import write


def test_compiles_entry_with_source_map(config):
    compile_styles(config=config)
    css = (config.css_output / "main.css").read_text()
    assert "body{color:red}" in css
    assert "sourceMappingURL=main.css.map" in css
    source_map = (config.css_output / "main.css.map").read_text()
    assert '"mappings"' in source_map
    assert "$brand" in source_map  # sources are embedded


def test_indented_syntax_entry(project):
    (project / "assets/css/main.scss").unlink()
    write(project / "assets/css/main.sass", "body\n  margin: 0\n")
    config = config_from_dict({"styles": {"source_map": False}}, root=project)
    assert find_entry(config).name == "main.sass"
    compile_styles(config=config)
    assert (config.css_output / "main.css").read_text().strip() == "body{margin:0}"
    assert not (config.css_output / "main.css.map").exists()


def test_missing_entry_writes_nothing(project):
    (project / "assets/css/main.scss").unlink()
    config = config_from_dict({}, root=project)
    compile_styles(config=config)
    assert not config.css_output.exists()


def test_compile_error_propagates_without_output(config, project):
    write(project / "assets/css/main.scss", "body { color: $undefined; }\n")
    with pytest.raises(sass.CompileError):
        compile_styles(config=config)
    assert not (config.css_output / "main.css").exists()
