"""
Timebase Module - Sample and Event Time Utilities

Converts between sample indices and milliseconds at the fixed scan
resolution, computes score decay over elapsed event time, and formats
times the way players read them in the editor.

DESIGN CONSTRAINTS:
- The scan resolution is a constant (50 samples per ms), never the header's
  sample rate
- Deterministic: same inputs -> same outputs
- No config imports (explicit parameters keep the helpers reusable)
"""

import math

import numpy as np


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_SAMPLES_PER_MS: int = 50
EPSILON_MS: float = 1e-9  # Floating point tolerance for comparisons


# =============================================================================
# SAMPLE <-> TIME
# =============================================================================

def sample_index_to_ms(index: int, samples_per_ms: int = DEFAULT_SAMPLES_PER_MS) -> float:
    """
    Convert a sample index to milliseconds from the start of the clip.

    Parameters:
        index: Sample index (0-based)
        samples_per_ms: Scan resolution

    Returns:
        Time in milliseconds
    """
    if samples_per_ms <= 0:
        raise ValueError("samples_per_ms must be positive")
    return index / float(samples_per_ms)


def ms_to_sample_count(ms: float, samples_per_ms: int = DEFAULT_SAMPLES_PER_MS) -> int:
    """
    Convert milliseconds to a whole number of samples (rounded to nearest).

    Parameters:
        ms: Duration in milliseconds (negative values clamp to 0)
        samples_per_ms: Scan resolution

    Returns:
        Sample count
    """
    if ms <= 0:
        return 0
    return int(round(ms * samples_per_ms))


def sample_times_ms(n_samples: int, samples_per_ms: int = DEFAULT_SAMPLES_PER_MS) -> np.ndarray:
    """Time axis (ms) for a clip of ``n_samples`` at the scan resolution."""
    if n_samples <= 0:
        return np.array([], dtype=np.float64)
    return np.arange(n_samples, dtype=np.float64) / samples_per_ms


# =============================================================================
# SCORE DECAY
# =============================================================================

def decay_factor(elapsed_ms: float, base: float, period_ms: float) -> float:
    """
    Multiplier applied to a score after ``elapsed_ms`` without uses.

    FORMULA: base ** (elapsed_ms / period_ms)

    Zero elapsed time gives exactly 1.0 (no decay). Negative elapsed time
    (out-of-order events) is treated as zero so scores never grow from decay.
    """
    if elapsed_ms <= 0:
        return 1.0
    return math.pow(base, elapsed_ms / period_ms)


# =============================================================================
# FORMATTING
# =============================================================================

def format_timestamp(time_ms: float) -> str:
    """
    Format an event time as ``mm:ss:mmm``.

    Examples:
        >>> format_timestamp(83456)
        '01:23:456'
        >>> format_timestamp(-250)
        '-00:00:250'
    """
    sign = '-' if time_ms < 0 else ''
    total = int(round(abs(time_ms)))
    minutes, rest = divmod(total, 60000)
    seconds, millis = divmod(rest, 1000)
    return f"{sign}{minutes:02d}:{seconds:02d}:{millis:03d}"


def format_delay(delay_ms: float) -> str:
    """
    Format a delay with up to two decimals, trailing zeros trimmed.

    Examples:
        >>> format_delay(5.0)
        '5'
        >>> format_delay(0.5)
        '0.5'
        >>> format_delay(12.346)
        '12.35'
    """
    text = f"{delay_ms:.2f}".rstrip('0').rstrip('.')
    return text if text not in ('', '-0') else '0'
