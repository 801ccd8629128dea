"""Tests for YAML analysis configuration."""

import pytest

from axion_spectrum.config import (
    AnalysisConfig,
    config_from_mapping,
    load_config,
    validate_config_yaml,
)


class TestLoadConfig:
    """Reading configuration files."""

    def test_load(self, tmp_path) -> None:
        path = tmp_path / "analysis.yaml"
        path.write_text(
            "sift_term: RUN\n"
            "initial_bin_points: 16\n"
            "unsharp_radius: 50\n"
            "unsharp_sigma: null\n"
            "chop_truncate_span: false\n"
            "limit_confidence: 2\n"
        )
        config = load_config(path)
        assert config.sift_term == "RUN"
        assert config.initial_bin_points == 16
        assert config.unsharp_radius == 50
        assert config.unsharp_sigma is None
        assert config.chop_truncate_span is False
        assert config.limit_confidence == 2
        assert config.limit_rebin_window == 600

    def test_empty_file_gives_defaults(self, tmp_path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == AnalysisConfig()

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_config(path)


class TestDefaults:
    """Default parameter values."""

    def test_defaults(self) -> None:
        config = AnalysisConfig()
        assert config.sift_term == "SA_F"
        assert config.initial_bin_points == 32
        assert config.limit_confidence == pytest.approx(1.282)
        assert config.chop_truncate_span is True
        assert config.unsharp_radius is None


class TestValidateConfig:
    """Structural validation."""

    @pytest.mark.parametrize("data, match", [
        ({"bogus": 1}, "unknown keys bogus"),
        ({"chop_start": None}, "may not be null"),
        ({"initial_bin_points": True}, "must be an integer"),
        ({"initial_bin_points": "32"}, "must be an integer"),
        ({"initial_bin_points": 1}, "at least 2"),
        ({"chop_end": -1}, "at least 0"),
        ({"limit_confidence": 0}, "must be positive"),
        ({"unsharp_sigma": "wide"}, "must be a number"),
        ({"lorentzian_weight": "yes"}, "true or false"),
        ({"sift_term": ""}, "non-empty string"),
    ])
    def test_invalid(self, data, match) -> None:
        with pytest.raises(ValueError, match=match):
            validate_config_yaml(data)

    def test_valid_nullables(self) -> None:
        validate_config_yaml({"unsharp_radius": None, "max_workers": None})

    def test_from_mapping(self) -> None:
        config = config_from_mapping({"max_workers": 4, "lorentzian_weight": True})
        assert config.max_workers == 4
        assert config.lorentzian_weight is True
