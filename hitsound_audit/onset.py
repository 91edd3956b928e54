"""
Onset Delay Module

Estimates how long a hit sound stays (nearly) silent before its sound
becomes perceptible, and classifies that delay.

The envelope is a leaky integrator of the absolute amplitude:

    strength[i] = |x[i]| + retention * strength[i - 1]

and the onset is the first sample where strength reaches a fixed fraction
of the clip's peak amplitude. Lone transients decay away before crossing
the threshold; a sustained rise (including fade-ins) does not.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from scipy import signal as scipy_signal

from hitsound_audit import timebase
from hitsound_audit.params import DEFAULT_CONFIG, DelayThresholds, OnsetParams
from hitsound_audit.wav_io import AudioClip

logger = logging.getLogger(__name__)


class DelaySeverity(Enum):
    MINOR = 'minor'
    WARNING = 'warning'


@dataclass(frozen=True)
class OnsetEstimate:
    """
    Result of onset estimation for one clip.

    Attributes:
        delay_ms: Estimated delay in milliseconds (0 for silent clips)
        onset_index: Sample index of the onset (0 for silent clips)
        max_strength: Peak amplitude used for the threshold
        is_silent: True if the clip has no samples or only zeros
    """
    delay_ms: float
    onset_index: int
    max_strength: float
    is_silent: bool


def channel_magnitude(clip: AudioClip) -> np.ndarray:
    """
    Per-sample absolute amplitude, averaged over channels for stereo.

    Parameters:
        clip: Decoded clip

    Returns:
        float64 array of length clip.n_samples
    """
    magnitude = np.abs(clip.left.astype(np.float64))
    if clip.is_stereo:
        magnitude = (magnitude + np.abs(clip.right.astype(np.float64))) / 2
    return magnitude


def compute_max_strength(clip: AudioClip) -> float:
    """
    Peak absolute amplitude; the mean of both channel peaks for stereo.

    Returns 0.0 for an empty clip.
    """
    if clip.n_samples == 0:
        return 0.0

    max_strength = float(np.max(np.abs(clip.left)))
    if clip.is_stereo:
        max_strength = (max_strength + float(np.max(np.abs(clip.right)))) / 2
    return max_strength


def compute_strength_envelope(magnitude: np.ndarray, retention: float) -> np.ndarray:
    """
    Leaky integration of the magnitude signal.

    Equivalent to accumulating each sample, testing, then multiplying by
    ``retention`` before the next sample.

    Parameters:
        magnitude: Non-negative per-sample amplitude
        retention: Fraction of strength kept per sample, in [0, 1)

    Returns:
        Envelope array, same length as magnitude
    """
    if len(magnitude) == 0:
        return np.array([], dtype=np.float64)
    return scipy_signal.lfilter([1.0], [1.0, -retention], magnitude)


def find_onset_index(envelope: np.ndarray, threshold: float) -> int:
    """
    First index where the envelope reaches ``threshold``.

    If it never does, the last index is returned so the delay stays bounded.
    """
    if len(envelope) == 0:
        return 0
    crossings = np.flatnonzero(envelope >= threshold)
    if crossings.size == 0:
        return len(envelope) - 1
    return int(crossings[0])


def estimate_onset_delay(clip: AudioClip, params: OnsetParams = DEFAULT_CONFIG.onset) -> OnsetEstimate:
    """
    Estimate the onset delay of a hit sound.

    Silent clips (no samples or all zeros) have no delay: silence is the
    absence of sound, not late sound.

    Parameters:
        clip: Decoded clip
        params: Onset parameters

    Returns:
        OnsetEstimate
    """
    max_strength = compute_max_strength(clip)
    if max_strength == 0.0:
        logger.debug("%s is silent, skipping onset scan", clip.identifier)
        return OnsetEstimate(delay_ms=0.0, onset_index=0, max_strength=0.0, is_silent=True)

    envelope = compute_strength_envelope(channel_magnitude(clip), params.retention)
    onset_index = find_onset_index(envelope, max_strength * params.threshold_ratio)
    delay_ms = timebase.sample_index_to_ms(onset_index, params.samples_per_ms)

    logger.debug("%s onset at sample %d (%.2f ms)", clip.identifier, onset_index, delay_ms)

    return OnsetEstimate(
        delay_ms=delay_ms,
        onset_index=onset_index,
        max_strength=max_strength,
        is_silent=False
    )


def classify_delay(
    delay_ms: float,
    thresholds: DelayThresholds = DEFAULT_CONFIG.delay
) -> Optional[DelaySeverity]:
    """
    Map a delay to a severity, or None if it is too small to report.
    """
    if delay_ms >= thresholds.warning_ms:
        return DelaySeverity.WARNING
    if delay_ms >= thresholds.minor_ms:
        return DelaySeverity.MINOR
    return None
