"""
Usage Frequency Module

Counts how often a hit sound is used in each event list and finds the
moment where it is used most densely.

Density is measured by a frequency score: every use adds an increment,
and between uses the score decays exponentially with elapsed time. The
score is tracked per list; the peak is tracked across all lists with an
explicit bookmark passed from one list scan to the next.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Sequence, Tuple

from hitsound_audit import timebase
from hitsound_audit.mapset import EventList
from hitsound_audit.params import DEFAULT_CONFIG, UsageParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeakUsage:
    """The most frequent moment of use of a hit sound."""
    time_ms: float
    event_list: EventList
    score: float

    @property
    def timestamp(self) -> str:
        return f"{timebase.format_timestamp(self.time_ms)} in {self.event_list}"


@dataclass
class PeakBookmark:
    """
    Highest frequency score seen so far within one pass over the event lists.

    Only replaced by a strictly higher score, so the earliest moment wins ties.
    """
    score: float = 0.0
    peak: Optional[PeakUsage] = None

    def offer(self, time_ms: float, event_list: EventList, score: float) -> bool:
        """Record the moment if it beats the current best. Returns True if recorded."""
        if score > self.score:
            self.score = score
            self.peak = PeakUsage(time_ms=time_ms, event_list=event_list, score=score)
            return True
        return False


@dataclass
class UsageRecord:
    """Use counts per event list plus the global peak for one hit sound."""
    file_name: str
    use_counts: Dict[EventList, int] = field(default_factory=dict)
    peak: Optional[PeakUsage] = None

    @property
    def total_uses(self) -> int:
        return sum(self.use_counts.values())


def score_increment(event_list: EventList, params: UsageParams = DEFAULT_CONFIG.usage) -> float:
    """Score added per use in this list's mode."""
    if event_list.mode.allows_simultaneous_objects:
        return params.simultaneous_increment
    return params.increment


def frequency_score_timeline(
    event_list: EventList,
    file_name: str,
    params: UsageParams = DEFAULT_CONFIG.usage
) -> Iterator[Tuple[float, float]]:
    """
    Frequency score right after each use of ``file_name`` in one list.

    The decay clock starts at the list's first event, whichever sample it
    uses, so a hit sound first used late in the map starts from a decayed
    (zero) score just the same.

    Parameters:
        event_list: Event list to scan
        file_name: Hit sound name
        params: Usage parameters

    Yields:
        (time_ms, score) for each use, in event order
    """
    events = event_list.events
    if not events:
        return

    increment = score_increment(event_list, params)
    score = 0.0
    prev_time = events[0].time_ms

    for event in events:
        if not event.uses(file_name):
            continue

        score *= timebase.decay_factor(event.time_ms - prev_time, params.decay_base, params.decay_period_ms)
        prev_time = event.time_ms
        score += increment

        yield event.time_ms, score


def track_event_list(
    event_list: EventList,
    file_name: str,
    bookmark: PeakBookmark,
    params: UsageParams = DEFAULT_CONFIG.usage
) -> int:
    """
    Count uses of ``file_name`` in one list and offer its significant
    moments to the bookmark.

    Parameters:
        event_list: Event list to scan
        file_name: Hit sound name
        bookmark: Peak accumulator shared across the lists of one pass
        params: Usage parameters

    Returns:
        Number of uses in this list
    """
    uses = 0
    for time_ms, score in frequency_score_timeline(event_list, file_name, params):
        uses += 1
        if score < params.score_threshold:
            continue
        bookmark.offer(time_ms, event_list, score)
    return uses


def collect_usage(
    event_lists: Sequence[EventList],
    file_name: str,
    params: UsageParams = DEFAULT_CONFIG.usage
) -> UsageRecord:
    """
    Collect use counts and the most frequent moment of one hit sound.

    Lists are scanned left to right with a single bookmark, so the peak is
    the first moment to reach the highest score.

    Parameters:
        event_lists: All event lists sharing the hit sound pool
        file_name: Hit sound name
        params: Usage parameters

    Returns:
        UsageRecord (peak is None if no score reached the threshold)
    """
    bookmark = PeakBookmark()
    record = UsageRecord(file_name=file_name)

    for event_list in event_lists:
        record.use_counts[event_list] = track_event_list(event_list, file_name, bookmark, params)

    record.peak = bookmark.peak

    if record.peak is not None:
        logger.debug("%s peaks at %s (score %.2f)", file_name, record.peak.timestamp, record.peak.score)

    return record
