"""
Checks Module

Turns the analysis results into report records:
- HitSoundDelayCheck: delay issues for every hit sound of a mapset
- summarize_usage: where and how densely each hit sound is used
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Iterator, List, Optional

from hitsound_audit import timebase
from hitsound_audit.errors import ErrorKind
from hitsound_audit.mapset import EventList, MapsetPool
from hitsound_audit.onset import DelaySeverity, OnsetEstimate, classify_delay, estimate_onset_delay
from hitsound_audit.params import DEFAULT_CONFIG, AnalysisConfig, DelayThresholds
from hitsound_audit.selection import mean_use_gap_ms, select_commonly_used_in
from hitsound_audit.usage import PeakUsage, collect_usage
from hitsound_audit.wav_io import AudioClip, Failed, load_hit_sound

logger = logging.getLogger(__name__)


class Level(Enum):
    MINOR = 'minor'
    WARNING = 'warning'
    ERROR = 'error'


@dataclass(frozen=True)
class IssueTemplate:
    level: Level
    message: str
    cause: str


# =============================================================================
# ISSUES
# =============================================================================

@dataclass(frozen=True)
class Issue:
    """Base class for report records; ``path`` is the hit sound name."""
    path: str

    template: ClassVar[IssueTemplate]

    @property
    def level(self) -> Level:
        return self.template.level

    def message_args(self) -> tuple:
        return (self.path,)

    @property
    def message(self) -> str:
        return self.template.message.format(*self.message_args())

    def to_dict(self) -> Dict:
        return {
            'type': type(self).__name__,
            'level': self.level.value,
            'path': self.path,
            'message': self.message,
        }


@dataclass(frozen=True)
class Delay(Issue):
    delay_ms: float

    template: ClassVar[IssueTemplate] = IssueTemplate(
        Level.WARNING,
        '"{0}" has a delay of ~{1} ms.',
        "A hit sound file has very low volume for 5 ms or more."
    )

    def message_args(self) -> tuple:
        return (self.path, timebase.format_delay(self.delay_ms))

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data['delay_ms'] = self.delay_ms
        return data


@dataclass(frozen=True)
class MinorDelay(Delay):
    template: ClassVar[IssueTemplate] = IssueTemplate(
        Level.MINOR,
        '"{0}" has a delay of ~{1} ms.',
        "Same as the regular delay, except anything between 0.5 and 5 ms."
    )


@dataclass(frozen=True)
class UnableToCheck(Issue):
    reason: str
    kind: Optional[ErrorKind] = None

    template: ClassVar[IssueTemplate] = IssueTemplate(
        Level.ERROR,
        '"{0}" {1}, so unable to check that.',
        "There was an error locating or parsing a hit sound file."
    )

    def message_args(self) -> tuple:
        return (self.path, self.reason)

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data['reason'] = self.reason
        data['kind'] = self.kind.value if self.kind is not None else None
        return data


def issue_for_delay(
    path: str,
    delay_ms: float,
    thresholds: DelayThresholds = DEFAULT_CONFIG.delay
) -> Optional[Issue]:
    """Delay/MinorDelay for a reportable delay, None otherwise."""
    severity = classify_delay(delay_ms, thresholds)
    if severity is DelaySeverity.WARNING:
        return Delay(path, delay_ms)
    if severity is DelaySeverity.MINOR:
        return MinorDelay(path, delay_ms)
    return None


# =============================================================================
# DELAY CHECK
# =============================================================================

@dataclass(frozen=True)
class FileAnalysis:
    """
    Everything learned about one hit sound during the delay check.

    ``clip`` is only kept when the caller asked for it (for plotting);
    otherwise the decoded samples are released once the estimate exists.
    """
    file_name: str
    estimate: Optional[OnsetEstimate]
    issue: Optional[Issue]
    clip: Optional[AudioClip] = None


class HitSoundDelayCheck:
    """
    Delayed hit sounds.

    Iterating yields one issue per hit sound whose delay is reportable or
    which could not be checked. Every iteration re-runs the analysis, so the
    check can be iterated any number of times.

    Parameters:
        pool: Mapset whose referenced hit sounds are checked
        cfg: Analysis configuration
    """

    category = "Audio"
    title = "Delayed hit sounds."

    def __init__(self, pool: MapsetPool, cfg: AnalysisConfig = DEFAULT_CONFIG):
        self.pool = pool
        self.cfg = cfg

    def analyze_file(self, file_name: str, keep_clip: bool = False) -> FileAnalysis:
        result = load_hit_sound(self.pool, file_name)

        if isinstance(result, Failed):
            logger.warning("Unable to check %s: %s", file_name, result.reason)
            issue = UnableToCheck(file_name, result.reason, result.kind)
            return FileAnalysis(file_name, None, issue)

        estimate = estimate_onset_delay(result.clip, self.cfg.onset)
        issue = issue_for_delay(file_name, estimate.delay_ms, self.cfg.delay)
        return FileAnalysis(file_name, estimate, issue, result.clip if keep_clip else None)

    def analyses(self, keep_clips: bool = False) -> Iterator[FileAnalysis]:
        for file_name in self.pool.list_referenced_effect_files():
            yield self.analyze_file(file_name, keep_clips)

    def __iter__(self) -> Iterator[Issue]:
        for analysis in self.analyses():
            if analysis.issue is not None:
                yield analysis.issue


# =============================================================================
# USAGE SUMMARY
# =============================================================================

@dataclass
class UsageSummary:
    """How one hit sound is used across the mapset."""
    file_name: str
    use_counts: Dict[EventList, int]
    peak: Optional[PeakUsage]
    commonly_used_in: Optional[EventList]
    mean_gaps_ms: Dict[EventList, Optional[float]]

    def to_dict(self) -> Dict:
        return {
            'file_name': self.file_name,
            'uses': [
                {
                    'event_list': event_list.name,
                    'mode': event_list.mode.value,
                    'count': count,
                    'mean_gap_ms': self.mean_gaps_ms.get(event_list),
                }
                for event_list, count in self.use_counts.items()
            ],
            'peak': None if self.peak is None else {
                'event_list': self.peak.event_list.name,
                'time_ms': self.peak.time_ms,
                'timestamp': self.peak.timestamp,
                'score': self.peak.score,
            },
            'commonly_used_in': None if self.commonly_used_in is None else self.commonly_used_in.name,
        }


def summarize_usage(pool: MapsetPool, file_name: str, cfg: AnalysisConfig = DEFAULT_CONFIG) -> UsageSummary:
    """Collect use counts, peak moment and dominant list for one hit sound."""
    record = collect_usage(pool.list_event_lists(), file_name, cfg.usage)
    commonly_used_in = select_commonly_used_in(record.use_counts, params=cfg.usage)

    return UsageSummary(
        file_name=file_name,
        use_counts=record.use_counts,
        peak=record.peak,
        commonly_used_in=commonly_used_in,
        mean_gaps_ms={
            event_list: mean_use_gap_ms(event_list, uses, cfg.usage)
            for event_list, uses in record.use_counts.items()
        }
    )


def summarize_all_usage(pool: MapsetPool, cfg: AnalysisConfig = DEFAULT_CONFIG) -> List[UsageSummary]:
    """Usage summaries for every hit sound referenced by the mapset."""
    return [summarize_usage(pool, name, cfg) for name in pool.list_referenced_effect_files()]
