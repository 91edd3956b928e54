"""
Parameter Tests

Tests for the configuration module and the frozen parameter groups.
"""

import dataclasses

import pytest

import config
from hitsound_audit.params import (
    DEFAULT_CONFIG,
    AnalysisConfig,
    DelayThresholds,
    OnsetParams,
    UsageParams,
    validate_config,
)


class TestDefaults:
    """Defaults mirror config.py."""

    def test_module_config_valid(self):
        """Test config.py validates."""
        assert config.validate_config()

    def test_default_config_valid(self):
        """Test the default config validates."""
        assert validate_config(DEFAULT_CONFIG)

    def test_defaults_from_config(self):
        """Test parameter defaults come from config.py."""
        assert DEFAULT_CONFIG.onset.samples_per_ms == config.SAMPLES_PER_MS == 50
        assert DEFAULT_CONFIG.onset.retention == 0.75
        assert DEFAULT_CONFIG.delay.warning_ms == 5.0
        assert DEFAULT_CONFIG.delay.minor_ms == 0.5
        assert DEFAULT_CONFIG.usage.decay_base == 0.8
        assert DEFAULT_CONFIG.usage.decay_period_ms == 1000.0

    def test_frozen(self):
        """Test parameter groups are immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.usage.score_threshold = 1.0

    def test_samples_to_ms(self):
        """Test the config helper uses the scan resolution."""
        assert config.samples_to_ms(250) == 5.0


class TestOverrides:
    """Tests for AnalysisConfig.with_overrides."""

    def test_overrides_applied(self):
        """Test usage overrides produce a new config."""
        cfg = DEFAULT_CONFIG.with_overrides(score_threshold=3.0, common_usage_threshold_ms=1200.0)
        assert cfg.usage.score_threshold == 3.0
        assert cfg.usage.common_usage_threshold_ms == 1200.0
        assert DEFAULT_CONFIG.usage.score_threshold == config.FREQUENCY_SCORE_THRESHOLD

    def test_none_keeps_defaults(self):
        """Test None overrides leave the config unchanged."""
        assert DEFAULT_CONFIG.with_overrides() == DEFAULT_CONFIG

    def test_to_dict(self):
        """Test flattened parameters."""
        data = DEFAULT_CONFIG.to_dict()
        assert data['samples_per_ms'] == 50
        assert data['common_usage_threshold_ms'] == config.COMMON_USAGE_THRESHOLD_MS
        assert len(data) == 12


class TestValidation:
    """Invalid parameters are rejected."""

    @pytest.mark.parametrize("cfg", [
        AnalysisConfig(onset=OnsetParams(samples_per_ms=0)),
        AnalysisConfig(onset=OnsetParams(retention=1.0)),
        AnalysisConfig(onset=OnsetParams(threshold_ratio=0.0)),
        AnalysisConfig(delay=DelayThresholds(warning_ms=1.0, minor_ms=2.0)),
        AnalysisConfig(delay=DelayThresholds(minor_ms=-1.0)),
        AnalysisConfig(usage=UsageParams(decay_base=1.5)),
        AnalysisConfig(usage=UsageParams(decay_period_ms=0.0)),
        AnalysisConfig(usage=UsageParams(increment=0.0)),
        AnalysisConfig(usage=UsageParams(score_threshold=-1.0)),
        AnalysisConfig(usage=UsageParams(common_usage_threshold_ms=0.0)),
        AnalysisConfig(usage=UsageParams(simultaneous_use_divisor=0.0)),
    ])
    def test_invalid(self, cfg):
        """Test each invalid configuration raises ValueError."""
        with pytest.raises(ValueError):
            validate_config(cfg)
