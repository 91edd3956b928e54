"""
Analysis Parameters Module - All Tunable Constants

Frozen parameter groups consumed by the analysis functions. Defaults are
taken from config.py so a single edit there changes the whole pipeline.

USAGE:
    from hitsound_audit.params import AnalysisConfig, DEFAULT_CONFIG

    # Use default config
    cfg = DEFAULT_CONFIG

    # Create custom config
    custom = AnalysisConfig(
        usage=UsageParams(common_usage_threshold_ms=1200.0)
    )
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional

import config


@dataclass(frozen=True)
class OnsetParams:
    """
    Onset delay estimation parameters.

    Attributes:
        samples_per_ms: Fixed scan resolution (default 50 samples per ms)
        retention: Leaky integrator retention per sample (default 0.75)
        threshold_ratio: Fraction of peak strength marking the onset (default 0.5)
    """
    samples_per_ms: int = config.SAMPLES_PER_MS
    retention: float = config.ONSET_RETENTION
    threshold_ratio: float = config.ONSET_THRESHOLD_RATIO


@dataclass(frozen=True)
class DelayThresholds:
    """
    Delay classification thresholds in milliseconds.

    Attributes:
        warning_ms: Delays at or above this are warnings (default 5.0)
        minor_ms: Delays at or above this (and below warning_ms) are minor (default 0.5)
    """
    warning_ms: float = config.DELAY_WARNING_MS
    minor_ms: float = config.DELAY_MINOR_MS


@dataclass(frozen=True)
class UsageParams:
    """
    Usage frequency tracking and dominant-user selection parameters.

    Attributes:
        decay_base: Score multiplier per decay period (default 0.8)
        decay_period_ms: Milliseconds per full decay factor (default 1000)
        increment: Score added per use (default 1.0)
        simultaneous_increment: Score added per use in mania (default 0.5)
        score_threshold: Minimum score for a peak to be recorded (default 7.0)
        common_usage_threshold_ms: Mean gap below which usage is common (default 5000)
        simultaneous_use_divisor: Use count divisor in mania (default 2.0)
    """
    decay_base: float = config.FREQUENCY_DECAY_BASE
    decay_period_ms: float = config.FREQUENCY_DECAY_PERIOD_MS
    increment: float = config.FREQUENCY_INCREMENT
    simultaneous_increment: float = config.FREQUENCY_SIMULTANEOUS_INCREMENT
    score_threshold: float = config.FREQUENCY_SCORE_THRESHOLD
    common_usage_threshold_ms: float = config.COMMON_USAGE_THRESHOLD_MS
    simultaneous_use_divisor: float = config.SIMULTANEOUS_USE_DIVISOR


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Complete analysis configuration combining all parameter groups.
    """
    onset: OnsetParams = field(default_factory=OnsetParams)
    delay: DelayThresholds = field(default_factory=DelayThresholds)
    usage: UsageParams = field(default_factory=UsageParams)

    def with_overrides(
        self,
        score_threshold: Optional[float] = None,
        common_usage_threshold_ms: Optional[float] = None
    ) -> 'AnalysisConfig':
        """Return a copy with CLI-level usage overrides applied."""
        usage = self.usage
        if score_threshold is not None:
            usage = replace(usage, score_threshold=score_threshold)
        if common_usage_threshold_ms is not None:
            usage = replace(usage, common_usage_threshold_ms=common_usage_threshold_ms)
        return replace(self, usage=usage)

    def to_dict(self) -> Dict:
        """Flatten to a dictionary for report metadata."""
        return {
            'samples_per_ms': self.onset.samples_per_ms,
            'onset_retention': self.onset.retention,
            'onset_threshold_ratio': self.onset.threshold_ratio,

            'delay_warning_ms': self.delay.warning_ms,
            'delay_minor_ms': self.delay.minor_ms,

            'frequency_decay_base': self.usage.decay_base,
            'frequency_decay_period_ms': self.usage.decay_period_ms,
            'frequency_increment': self.usage.increment,
            'frequency_simultaneous_increment': self.usage.simultaneous_increment,
            'frequency_score_threshold': self.usage.score_threshold,
            'common_usage_threshold_ms': self.usage.common_usage_threshold_ms,
            'simultaneous_use_divisor': self.usage.simultaneous_use_divisor,
        }


# Default configuration instance
DEFAULT_CONFIG = AnalysisConfig()


def validate_config(cfg: AnalysisConfig) -> bool:
    """
    Validate configuration parameters for consistency.

    Parameters:
        cfg: AnalysisConfig instance to validate

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    if cfg.onset.samples_per_ms <= 0:
        raise ValueError("samples_per_ms must be positive")
    if not (0.0 <= cfg.onset.retention < 1.0):
        raise ValueError("onset retention must be in [0, 1)")
    if not (0.0 < cfg.onset.threshold_ratio <= 1.0):
        raise ValueError("onset threshold_ratio must be in (0, 1]")

    if cfg.delay.minor_ms < 0:
        raise ValueError("delay minor_ms must be non-negative")
    if cfg.delay.minor_ms > cfg.delay.warning_ms:
        raise ValueError("delay minor_ms must not exceed warning_ms")

    if not (0.0 < cfg.usage.decay_base <= 1.0):
        raise ValueError("decay_base must be in (0, 1]")
    if cfg.usage.decay_period_ms <= 0:
        raise ValueError("decay_period_ms must be positive")
    if cfg.usage.increment <= 0 or cfg.usage.simultaneous_increment <= 0:
        raise ValueError("score increments must be positive")
    if cfg.usage.score_threshold < 0:
        raise ValueError("score_threshold must be non-negative")
    if cfg.usage.common_usage_threshold_ms <= 0:
        raise ValueError("common_usage_threshold_ms must be positive")
    if cfg.usage.simultaneous_use_divisor <= 0:
        raise ValueError("simultaneous_use_divisor must be positive")

    return True


# Validate default config on import
validate_config(DEFAULT_CONFIG)
