"""
Dominant-User Selection

Decides which event list a hit sound is "commonly used" in: the list where
uses are dense enough (mean gap below a threshold) and most numerous.
"""

from typing import Mapping, Optional

from hitsound_audit.mapset import EventList
from hitsound_audit.params import DEFAULT_CONFIG, UsageParams


def effective_use_count(
    event_list: EventList,
    uses: int,
    params: UsageParams = DEFAULT_CONFIG.usage
) -> float:
    """Use count adjusted for modes with simultaneous objects."""
    if event_list.mode.allows_simultaneous_objects:
        return uses / params.simultaneous_use_divisor
    return float(uses)


def mean_use_gap_ms(
    event_list: EventList,
    uses: int,
    params: UsageParams = DEFAULT_CONFIG.usage
) -> Optional[float]:
    """Active duration per effective use, or None when unused."""
    if uses <= 0:
        return None
    return event_list.active_duration_ms / effective_use_count(event_list, uses, params)


def is_commonly_used(
    event_list: EventList,
    uses: int,
    threshold_ms: float,
    params: UsageParams = DEFAULT_CONFIG.usage
) -> bool:
    """Whether the mean gap between uses is below ``threshold_ms``."""
    mean_gap = mean_use_gap_ms(event_list, uses, params)
    return mean_gap is not None and mean_gap < threshold_ms


def select_commonly_used_in(
    use_counts: Mapping[EventList, int],
    threshold_ms: Optional[float] = None,
    params: UsageParams = DEFAULT_CONFIG.usage
) -> Optional[EventList]:
    """
    Pick the event list a hit sound is most commonly used in.

    Among lists passing the density test, the one with the highest raw use
    count wins. Equal counts keep whichever list came first in
    ``use_counts``; callers should not rely on that order as a rule.

    Parameters:
        use_counts: Uses per event list (iteration order matters for ties)
        threshold_ms: Common usage threshold (None = params value)
        params: Usage parameters

    Returns:
        The selected EventList, or None if no list passes
    """
    if threshold_ms is None:
        threshold_ms = params.common_usage_threshold_ms

    selected = None
    most_uses = 0
    for event_list, uses in use_counts.items():
        if uses > most_uses and is_commonly_used(event_list, uses, threshold_ms, params):
            selected = event_list
            most_uses = uses

    return selected
