"""Tests for configuration loading and validation."""
import json

import pytest
from ship_ticket.config import Config
from ship_ticket.models import DEFAULT_STOPLIST, DEFAULT_TARGET_COLUMNS, TemplateLayout


@pytest.fixture
def no_env(monkeypatch, tmp_path):
    """Point HOME at an empty directory and clear the template override."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("SHIP_TICKET_TEMPLATE", raising=False)
    return tmp_path


class TestConfigLoad:
    def test_defaults_without_file(self, no_env):
        config = Config.load()
        assert config.line_tolerance == 5.0
        assert config.column_padding == 5.0
        assert config.stoplist == DEFAULT_STOPLIST
        assert config.target_columns == DEFAULT_TARGET_COLUMNS
        assert config.layout == TemplateLayout(9, 23, 24)
        assert config.template_path is None
        assert config.validate() == []

    def test_values_from_file(self, no_env):
        path = no_env / "config.json"
        path.write_text(json.dumps({
            "line_tolerance": 3,
            "stoplist": ["Subtotal", "Freight"],
            "data_end_row": 30,
            "signature_row": 32,
            "show_progress": False,
        }))
        config = Config.load(path)
        assert config.line_tolerance == 3.0
        assert config.stoplist == ("Subtotal", "Freight")
        assert config.layout.capacity == 22
        assert config.show_progress is False
        assert config.extra == {}

    def test_default_location(self, no_env):
        config_dir = no_env / ".config" / "ship-ticket"
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text(json.dumps({"column_padding": 2}))
        assert Config.load().column_padding == 2.0

    def test_template_from_environment(self, no_env, monkeypatch):
        template = no_env / "ticket.xlsx"
        template.write_bytes(b"")
        monkeypatch.setenv("SHIP_TICKET_TEMPLATE", str(template))
        config = Config.load()
        assert config.template_path == template
        assert config.validate() == []

    def test_file_template_wins_over_environment(self, no_env, monkeypatch):
        monkeypatch.setenv("SHIP_TICKET_TEMPLATE", "/elsewhere.xlsx")
        path = no_env / "config.json"
        path.write_text(json.dumps({"template_path": str(no_env / "mine.xlsx")}))
        assert Config.load(path).template_path == no_env / "mine.xlsx"

    def test_unknown_keys_kept(self, no_env):
        path = no_env / "config.json"
        path.write_text(json.dumps({"line_tolerence": 4}))
        config = Config.load(path)
        assert config.extra == {"line_tolerence": 4}
        assert config.validate() == ["Unknown config key: line_tolerence"]


class TestConfigValidate:
    def test_bad_thresholds(self):
        errors = Config(line_tolerance=0, column_padding=-1).validate()
        assert any("line_tolerance" in e for e in errors)
        assert any("column_padding" in e for e in errors)

    def test_output_columns_must_be_targets(self):
        errors = Config(output_columns=("Product or service", "SKU")).validate()
        assert errors == ["output_columns not in target_columns: ['SKU']"]

    def test_empty_targets(self):
        errors = Config(target_columns=(), output_columns=()).validate()
        assert errors == ["target_columns must name at least one column title"]

    def test_inconsistent_layout(self):
        config = Config(data_end_row=24, signature_row=24)
        errors = config.validate()
        assert len(errors) == 1
        assert "signature_row" in errors[0]
        with pytest.raises(ValueError):
            config.layout

    def test_missing_template(self, tmp_path):
        errors = Config(template_path=tmp_path / "missing.xlsx").validate()
        assert errors == [f"Template not found: {tmp_path / 'missing.xlsx'}"]
