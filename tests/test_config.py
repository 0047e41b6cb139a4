"""
Test Suite for Configuration

Tests preset loading, validation, merging and YAML round trips
"""

import pytest

from synthproof.config import (
    Config,
    ConfigLoader,
    ConfigValidator,
    create_demo_preset,
    create_strict_preset,
    get_default_config,
)


@pytest.fixture
def loader():
    return ConfigLoader()


class TestConfigLoader:
    """Test loading presets and files"""

    def test_bundled_presets(self, loader):
        assert set(loader.list_presets()) == {"default", "demo", "strict"}

    def test_strict_preset(self, loader):
        config = loader.load_preset("strict")

        assert config.commitment.digest == "sha256"
        assert config.privacy.privacy_safe_ranges
        assert config.generation.default_quality_mode == "high"

    def test_demo_preset(self, loader):
        config = loader.load_preset("demo")

        assert config.generation.seed == 42
        assert config.generation.default_rows == 10
        assert not config.privacy.hide_sensitive

    def test_presets_match_factories(self, loader):
        assert loader.load_preset("strict").commitment == create_strict_preset().commitment
        assert loader.load_preset("demo").generation == create_demo_preset().generation

    def test_preset_copies_independent(self, loader):
        first = loader.load_preset("default")
        first.generation.default_rows = 1

        assert loader.load_preset("default").generation.default_rows == 100

    def test_unknown_preset(self, loader):
        with pytest.raises(ValueError):
            loader.load_preset("nonexistent")

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(FileNotFoundError):
            loader.load_from_file(tmp_path / "missing.yaml")

    def test_unknown_section(self, loader):
        with pytest.raises(ValueError):
            loader.load_from_dict({"ui": {"theme": "dark"}})

    def test_unknown_key(self, loader):
        with pytest.raises(ValueError):
            loader.load_from_dict({"privacy": {"k_anonymity": 5}})

    def test_load_from_dict(self, loader):
        config = loader.load_from_dict({"quality": {"default_score": 80}})

        assert config.quality.default_score == 80
        assert config.quality.base_scores["high"] == 95

    def test_save_and_reload(self, loader, tmp_path):
        config = get_default_config()
        config.generation.seed = 99
        config.storage.backend = "json"

        path = tmp_path / "nested" / "config.yaml"
        loader.save_config(config, path)
        reloaded = loader.load_from_file(path)

        assert reloaded == config

    def test_merge_with_preset_name(self, loader):
        merged = loader.merge_configs(get_default_config(), "strict")
        assert merged.commitment.digest == "sha256"

    def test_partial_file_keeps_preset(self, loader, tmp_path):
        path = tmp_path / "override.yaml"
        path.write_text("generation:\n  max_rows: 500\n")

        merged = loader.merge_configs(loader.load_preset("strict"), loader.read_file(path))

        assert merged.generation.max_rows == 500
        assert merged.generation.default_quality_mode == "high"
        assert merged.commitment.digest == "sha256"
        assert merged.privacy.privacy_safe_ranges

    def test_partial_dict_keeps_base(self, loader):
        base = loader.load_preset("strict")
        merged = loader.merge_configs(base, {"privacy": {"range_width": 25}})

        assert merged.privacy.range_width == 25
        assert merged.privacy.privacy_safe_ranges
        assert merged.commitment.digest == "sha256"
        assert base.privacy.range_width == 10

    def test_partial_dict_rejects_unknown_keys(self, loader):
        with pytest.raises(ValueError):
            loader.merge_configs(get_default_config(), {"privacy": {"k_anonymity": 5}})

    def test_read_file_returns_only_set_keys(self, loader, tmp_path):
        path = tmp_path / "override.yaml"
        path.write_text("commitment:\n  digest: sha256\n")

        assert loader.read_file(path) == {"commitment": {"digest": "sha256"}}

    def test_merge_keeps_base_where_override_is_none(self):
        base = get_default_config()
        base.generation.seed = 5
        merged = base.merge(Config())

        assert merged.generation.seed == 5

    def test_custom_config_dir(self, tmp_path):
        (tmp_path / "tiny.yaml").write_text("generation:\n  default_rows: 3\n")
        loader = ConfigLoader(tmp_path)

        assert loader.list_presets() == ["tiny"]
        assert loader.load_preset("tiny").generation.default_rows == 3

    def test_broken_preset_skipped(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("nope:\n  x: 1\n")
        (tmp_path / "good.yaml").write_text("{}\n")

        assert ConfigLoader(tmp_path).list_presets() == ["good"]


class TestConfigValidator:
    """Test configuration validation"""

    def test_default_valid(self):
        is_valid, errors = ConfigValidator.validate(get_default_config())

        assert is_valid
        assert errors == []

    def test_presets_valid(self, loader):
        for name in loader.list_presets():
            assert ConfigValidator.validate(loader.load_preset(name))[0], name

    def test_invalid_rows(self):
        config = get_default_config()
        config.generation.default_rows = 0

        is_valid, errors = ConfigValidator.validate(config)
        assert not is_valid
        assert "generation.default_rows must be positive" in errors

    def test_scores_overflow(self):
        config = get_default_config()
        config.quality.base_scores["high"] = 99

        is_valid, errors = ConfigValidator.validate(config)
        assert not is_valid
        assert "quality scores plus jitter must not exceed 100" in errors

    def test_bad_range(self):
        config = get_default_config()
        config.synthesis.age_range = [70, 20]

        assert not ConfigValidator.validate(config)[0]

    def test_bad_digest_and_backend(self):
        config = get_default_config()
        config.commitment.digest = "md5"
        config.storage.backend = "postgres"

        is_valid, errors = ConfigValidator.validate(config)
        assert not is_valid
        assert len(errors) == 2
