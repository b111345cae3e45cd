"""
Tests for YAML configuration handling.
"""

import pytest
import yaml

from igrpipe.config_parser import (
    apply_env_overrides,
    engine_kwargs,
    get_nested,
    load_config,
    set_nested,
    validate_config,
)


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_yaml(self, temp_dir, sample_config):
        """YAML file round-trips into a dict."""
        path = temp_dir / "config.yaml"
        path.write_text(yaml.safe_dump(sample_config))
        assert load_config(str(path)) == sample_config

    def test_empty_file(self, temp_dir):
        """Empty YAML is an empty config."""
        path = temp_dir / "config.yaml"
        path.write_text("")
        assert load_config(str(path)) == {}

    def test_no_path(self):
        """No path means an empty config."""
        assert load_config(None) == {}

    def test_missing_file(self, temp_dir):
        """Missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(str(temp_dir / "absent.yaml"))

    def test_bad_yaml(self, temp_dir):
        """Malformed YAML raises yaml.YAMLError."""
        path = temp_dir / "config.yaml"
        path.write_text("store: [unclosed")
        with pytest.raises(yaml.YAMLError):
            load_config(str(path))


class TestNestedAccess:
    """Tests for get_nested / set_nested."""

    def test_get_nested(self, sample_config):
        assert get_nested(sample_config, "resources.workers") == 4
        assert get_nested(sample_config, "resources.missing", "default") == "default"

    def test_set_nested_creates_sections(self):
        config = {}
        set_nested(config, "store.path", "/data")
        assert config == {"store": {"path": "/data"}}


class TestValidateConfig:
    """Tests for validate_config."""

    def test_valid(self, sample_config):
        is_valid, errors = validate_config(sample_config)
        assert is_valid, errors

    def test_missing_store(self, sample_config):
        del sample_config["store"]
        is_valid, errors = validate_config(sample_config)
        assert not is_valid
        assert any("store.path" in e for e in errors)

    def test_store_not_a_directory(self, sample_config, temp_dir):
        sample_config["store"]["path"] = str(temp_dir / "absent")
        is_valid, _ = validate_config(sample_config)
        assert not is_valid

    @pytest.mark.parametrize("workers", [0, "many"])
    def test_bad_workers(self, sample_config, workers):
        sample_config["resources"]["workers"] = workers
        is_valid, errors = validate_config(sample_config)
        assert not is_valid
        assert any("resources.workers" in e for e in errors)

    def test_bad_executor(self, sample_config):
        sample_config["resources"]["executor"] = "gpu"
        is_valid, _ = validate_config(sample_config)
        assert not is_valid

    def test_bad_log_level(self, sample_config):
        sample_config["logging"]["level"] = "LOUD"
        is_valid, _ = validate_config(sample_config)
        assert not is_valid


class TestOverrides:
    """Tests for environment overrides and engine settings."""

    def test_env_overrides(self, sample_config):
        apply_env_overrides(sample_config, {"IGR_STORE_PATH": "/data/other", "IGR_WORKERS": "2"})
        assert get_nested(sample_config, "store.path") == "/data/other"
        assert get_nested(sample_config, "resources.workers") == "2"

    def test_blank_env_ignored(self, sample_config):
        apply_env_overrides(sample_config, {"IGR_WORKERS": " "})
        assert get_nested(sample_config, "resources.workers") == 4

    def test_engine_kwargs(self, sample_config):
        kwargs = engine_kwargs(sample_config)
        assert kwargs == {
            "executor": "thread",
            "workers": 4,
            "data_source_name": "LIS post-processor",
            "data_set_name": "LIS intergenic regions",
            "data_set_url": "https://legumeinfo.org",
        }
