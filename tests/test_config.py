"""Tests for configuration management."""

import json

import pytest

from schema_explorer.codegen.core.config import (
    EXAMPLE_CONFIG,
    ConfigManager,
    ConfigurationError,
    GeneratorSettings,
    dialect_from_url,
    load_settings,
    resolve_dialect,
)


def write_config(tmp_path, data, name="codegen.config.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestGeneratorSettings:
    def test_default_values(self):
        settings = GeneratorSettings()
        assert settings.language == "python"
        assert settings.namespace == "Models"
        assert settings.generate_models is True
        assert settings.generate_json is False
        assert settings.snapshot_file == "codegen.json"
        assert settings.include_foreign_key_rules is True
        assert settings.primary_key_property_name is None

    def test_single_json_output(self):
        assert GeneratorSettings(output="out/Schema.JSON").is_single_json_output
        assert not GeneratorSettings(output="out").is_single_json_output


class TestConfigManager:
    """Loading and merging settings."""

    def test_load_camel_case_file(self, tmp_path):
        path = write_config(
            tmp_path,
            {
                "connectionString": "sqlite:///shop.db",
                "namespace": "Shop",
                "excludeTables": {"*": ["sysdiagrams"]},
                "classNameOverrides": {"People": "Person"},
            },
        )
        settings = load_settings(path)
        assert settings.connection_string == "sqlite:///shop.db"
        assert settings.namespace == "Shop"
        assert settings.exclude_tables == {"*": ["sysdiagrams"]}
        assert settings.class_name_overrides == {"People": "Person"}

    def test_legacy_keys(self, tmp_path):
        path = write_config(
            tmp_path,
            {
                "TableNameToClassNameOverrides": {"People": "Person"},
                "IncludeForeignKeyDeleteAndUpdateRules": False,
                "OmitSchemaAnnotationIfOnlyOneSchemaExists": False,
            },
        )
        settings = load_settings(path)
        assert settings.class_name_overrides == {"People": "Person"}
        assert settings.include_foreign_key_rules is False
        assert settings.omit_schema_marker_if_single_schema is False

    def test_overrides_win_and_none_ignored(self, tmp_path):
        path = write_config(tmp_path, {"namespace": "FromFile", "language": "csharp"})
        settings = load_settings(path, {"namespace": "FromCli", "language": None})
        assert settings.namespace == "FromCli"
        assert settings.language == "csharp"

    def test_unknown_key(self, tmp_path):
        path = write_config(tmp_path, {"namespace": "x", "colour": "blue"})
        with pytest.raises(ConfigurationError, match="colour"):
            load_settings(path)

    def test_invalid_shape(self, tmp_path):
        path = write_config(tmp_path, {"excludeTables": ["sysdiagrams"]})
        with pytest.raises(ConfigurationError, match="exclude_tables"):
            load_settings(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_settings(path)

    def test_non_object(self, tmp_path):
        path = write_config(tmp_path, ["a"])
        with pytest.raises(ConfigurationError, match="object"):
            load_settings(path)

    def test_save_and_reload(self, tmp_path):
        manager = ConfigManager()
        settings = GeneratorSettings(namespace="Saved", irregular_plurals={"cactus": "cacti"})
        path = tmp_path / "saved.json"
        manager.save_config(settings, path)
        assert manager.load(path) == settings

    def test_create_sample(self, tmp_path):
        manager = ConfigManager()
        path = manager.create_sample(tmp_path / "sample.json")
        assert json.loads(path.read_text(encoding="utf-8")) == EXAMPLE_CONFIG
        # The sample itself must load
        assert manager.load(path).dialect == "sqlite"

        with pytest.raises(ConfigurationError, match="overwrite"):
            manager.create_sample(path)


class TestValidation:
    def test_dialect_inferred_from_url(self):
        settings = GeneratorSettings(connection_string="postgresql+psycopg2://u@h/db")
        ConfigManager().validate(settings)
        assert settings.dialect == "postgresql"

    def test_dialect_alias_resolved(self):
        settings = GeneratorSettings(connection_string="Server=.;Database=Shop", dialect="mssql")
        ConfigManager().validate(settings)
        assert settings.dialect == "sqlserver"

    def test_dialect_required_for_plain_connection_string(self):
        settings = GeneratorSettings(connection_string="Server=.;Database=Shop")
        with pytest.raises(ConfigurationError, match="dialect"):
            ConfigManager().validate(settings)

    def test_unsupported_dialect(self):
        with pytest.raises(ConfigurationError, match="Unsupported dialect"):
            resolve_dialect("db2")

    def test_dialect_from_url(self):
        assert dialect_from_url("mysql+pymysql://u@h/db") == "mysql"
        assert dialect_from_url("Server=.;Database=x") is None
        assert dialect_from_url("db2://h/x") is None

    def test_source_required(self):
        with pytest.raises(ConfigurationError, match="connection string"):
            ConfigManager().validate(GeneratorSettings(), require_source=True)

    @pytest.mark.parametrize("namespace", ["", "Shop Daos", "Shop..Daos", "1Shop"])
    def test_invalid_namespace(self, namespace):
        with pytest.raises(ConfigurationError, match="namespace"):
            ConfigManager().validate(GeneratorSettings(namespace=namespace))

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError, match="Timeout"):
            ConfigManager().validate(GeneratorSettings(timeout=0))

    def test_missing_template_dir(self, tmp_path):
        settings = GeneratorSettings(template_dir=str(tmp_path / "nope"))
        with pytest.raises(ConfigurationError, match="Template directory"):
            ConfigManager().validate(settings)

    def test_warnings(self, tmp_path):
        settings = GeneratorSettings(
            include_schemas=["dbo"],
            exclude_schemas=["dbo"],
            output=str(tmp_path / "model.json"),
            template_dir=str(tmp_path),
        )
        warnings = ConfigManager().validate(settings)
        assert len(warnings) == 2
        assert "dbo" in warnings[0]
