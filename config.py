"""
hitsound-audit - Configuration

All tunable parameters, thresholds, and constants with documentation.
Every default value includes rationale.
"""

from typing import Dict, Tuple

# =============================================================================
# TIME RESOLUTION
# =============================================================================

# Samples scanned per millisecond of playback
# Why: Fixed envelope stepping resolution (50 samples ~ 1 ms, i.e. a 50 kHz
#      equivalent grid). Deliberately NOT derived from the file header so that
#      44.1 kHz and 48 kHz hit sounds are judged on the same scale.
SAMPLES_PER_MS: int = 50

# =============================================================================
# ONSET DELAY ESTIMATION
# =============================================================================

# Retention factor of the leaky strength integrator (per sample)
# Why: 0.75 forgets a lone transient within a handful of samples, so clicks
#      and dither near the start do not count as the onset, while sustained
#      rising energy still accumulates past the threshold.
ONSET_RETENTION: float = 0.75

# Fraction of the peak strength the integrator must reach to mark the onset
# Why: Half of the clip's peak amplitude is where a hit sound becomes clearly
#      audible against the silence before it.
ONSET_THRESHOLD_RATIO: float = 0.5

# Delay at or above which a hit sound is a full warning (ms)
# Why: 5 ms of silence is enough for players to perceive feedback as late.
DELAY_WARNING_MS: float = 5.0

# Delay at or above which a hit sound is reported as minor (ms)
# Why: Below 0.5 ms the delay is under the scan resolution noise floor and
#      inaudible; between 0.5 and 5 ms it is worth a look but rarely matters.
DELAY_MINOR_MS: float = 0.5

# =============================================================================
# USAGE FREQUENCY TRACKING
# =============================================================================

# Base of the exponential decay applied to the frequency score
# Why: 0.8 per decay period lets a score built from dense usage fade by half
#      in roughly 3 seconds of silence.
FREQUENCY_DECAY_BASE: float = 0.8

# Elapsed time that applies one full factor of FREQUENCY_DECAY_BASE (ms)
# Why: Scores are reasoned about in seconds, event times are in milliseconds.
FREQUENCY_DECAY_PERIOD_MS: float = 1000.0

# Score added per use of the hit sound
# Why: One use is one unit of "habit".
FREQUENCY_INCREMENT: float = 1.0

# Score added per use in modes with simultaneous objects (mania)
# Why: Chords trigger the same hit sound on several objects at one instant;
#      halving keeps them from reading as independent spikes.
FREQUENCY_SIMULTANEOUS_INCREMENT: float = 0.5

# Minimum score before a moment can be recorded as the peak usage
# Why: Steady use every ~700 ms converges to a score of ~7; anything sparser
#      is incidental and has no meaningful "most frequent" moment.
FREQUENCY_SCORE_THRESHOLD: float = 7.0

# =============================================================================
# DOMINANT-USER SELECTION
# =============================================================================

# Mean gap between uses below which usage is called "common" (ms)
# Why: A hit sound heard at least every 5 seconds on average over the whole
#      active duration is part of the map's soundscape, not an accent.
COMMON_USAGE_THRESHOLD_MS: float = 5000.0

# Divisor applied to use counts in modes with simultaneous objects
# Why: Mirrors FREQUENCY_SIMULTANEOUS_INCREMENT for density normalization.
SIMULTANEOUS_USE_DIVISOR: float = 2.0

# =============================================================================
# ASSET RESOLUTION
# =============================================================================

# Extensions ignored when comparing hit sound names
# Why: Event lists may reference a sample with or without its extension and
#      the game accepts any of these containers for the same stem.
AUDIO_EXTENSIONS: Tuple[str, ...] = ('.wav', '.ogg', '.mp3')

# =============================================================================
# OUTPUT
# =============================================================================

# Report schema version - bump when report layout changes
SCHEMA_VERSION: str = "1.0"

# Plot settings
PLOT_FIGSIZE: Tuple[int, int] = (12, 6)
PLOT_DPI: int = 100

# Colors used for issue levels in plots and summaries
LEVEL_COLORS: Dict[str, str] = {
    'minor': 'gold',
    'warning': 'orange',
    'error': 'red'
}


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def samples_to_ms(n_samples: int) -> float:
    """
    Convert a sample count to milliseconds at the fixed scan resolution.

    Parameters:
        n_samples: Number of samples

    Returns:
        Duration in milliseconds
    """
    return n_samples / float(SAMPLES_PER_MS)


def validate_config() -> bool:
    """
    Validate configuration parameters for consistency.

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    if SAMPLES_PER_MS <= 0:
        raise ValueError("SAMPLES_PER_MS must be positive")

    if not (0.0 <= ONSET_RETENTION < 1.0):
        raise ValueError("ONSET_RETENTION must be in [0, 1)")

    if not (0.0 < ONSET_THRESHOLD_RATIO <= 1.0):
        raise ValueError("ONSET_THRESHOLD_RATIO must be in (0, 1]")

    if not (0.0 <= DELAY_MINOR_MS <= DELAY_WARNING_MS):
        raise ValueError("DELAY_MINOR_MS must be in [0, DELAY_WARNING_MS]")

    if not (0.0 < FREQUENCY_DECAY_BASE <= 1.0):
        raise ValueError("FREQUENCY_DECAY_BASE must be in (0, 1]")

    if FREQUENCY_DECAY_PERIOD_MS <= 0:
        raise ValueError("FREQUENCY_DECAY_PERIOD_MS must be positive")

    if FREQUENCY_INCREMENT <= 0 or FREQUENCY_SIMULTANEOUS_INCREMENT <= 0:
        raise ValueError("Frequency increments must be positive")

    if COMMON_USAGE_THRESHOLD_MS <= 0:
        raise ValueError("COMMON_USAGE_THRESHOLD_MS must be positive")

    if SIMULTANEOUS_USE_DIVISOR <= 0:
        raise ValueError("SIMULTANEOUS_USE_DIVISOR must be positive")

    return True


# Validate on import
validate_config()
