"""
Mapset Module

Event lists (one per map) sharing a song folder, and the lookups the
analysis needs from them: which hit sounds are referenced, and where a
referenced hit sound lives on disk.

Maps are supplied as a JSON manifest; parsing the game's own map format
is out of scope.
"""

import glob
import json
import math
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PureWindowsPath
from typing import Dict, List, Sequence, Tuple, Union

import config
from hitsound_audit.errors import AssetNotFoundError, ManifestError

logger = logging.getLogger(__name__)


def normalize_sample_name(name: str) -> str:
    """
    Canonical form used to compare hit sound references.

    Case-insensitive, path separators unified, and a known audio extension
    stripped, so "Soft-HitClap.wav" and "soft-hitclap" refer to one file.
    """
    normalized = name.replace('\\', '/').strip().lower()
    for ext in config.AUDIO_EXTENSIONS:
        if normalized.endswith(ext):
            return normalized[:-len(ext)]
    return normalized


class PlayMode(Enum):
    STANDARD = 'standard'
    TAIKO = 'taiko'
    CATCH = 'catch'
    MANIA = 'mania'

    @property
    def allows_simultaneous_objects(self) -> bool:
        # Mania chords put several objects on one moment in time
        return self is PlayMode.MANIA


@dataclass(frozen=True)
class TriggerEvent:
    time_ms: float
    samples: Tuple[str, ...] = ()

    def uses(self, file_name: str) -> bool:
        """Whether any sample of this event refers to ``file_name``."""
        target = normalize_sample_name(file_name)
        return any(normalize_sample_name(sample) == target for sample in self.samples)


@dataclass(eq=False)
class EventList:
    """
    The trigger events of one map, in time order.

    Compared and hashed by identity so that it can key usage maps even when
    two maps share a name.
    """
    name: str
    events: List[TriggerEvent] = field(default_factory=list)
    active_duration_ms: float = 0.0
    mode: PlayMode = PlayMode.STANDARD

    def __str__(self) -> str:
        return f"[{self.name}]"

    def referenced_files(self) -> List[str]:
        """Sample names in first-seen order, without duplicates."""
        seen: Dict[str, str] = {}
        for event in self.events:
            for sample in event.samples:
                seen.setdefault(normalize_sample_name(sample), sample)
        return list(seen.values())


class MapsetPool:
    """
    A set of event lists sharing one song folder of audio assets.

    Parameters:
        song_path: Folder holding the audio assets
        event_lists: Event lists, in the order they should be analyzed
    """

    def __init__(self, song_path: Union[str, Path], event_lists: Sequence[EventList] = ()):
        self.song_path = Path(song_path)
        self.event_lists = list(event_lists)

    def list_event_lists(self) -> List[EventList]:
        return list(self.event_lists)

    def list_referenced_effect_files(self) -> List[str]:
        """Every hit sound referenced by any event list, first-seen order."""
        seen: Dict[str, str] = {}
        for event_list in self.event_lists:
            for name in event_list.referenced_files():
                seen.setdefault(normalize_sample_name(name), name)
        return list(seen.values())

    def resolve(self, file_name: str) -> Path:
        """
        Locate a hit sound in the song folder.

        A name without an extension matches any extension. Names are
        relative to the song folder: anchored names (root, drive or share)
        and names with a ".." component are refused.

        Raises:
            AssetNotFoundError: If the name leaves the song folder or no
                matching file exists
        """
        # PureWindowsPath splits on both separators and knows drive and share anchors
        relative = PureWindowsPath(file_name)
        if relative.anchor or '..' in relative.parts:
            raise AssetNotFoundError("leaves the song folder")
        if not relative.parts:
            raise AssetNotFoundError("could not be found")

        pattern = glob.escape('/'.join(relative.parts))
        if '.' not in relative.name:
            pattern += '.*'

        matches = sorted(p for p in self.song_path.glob(pattern) if p.is_file())
        if not matches:
            raise AssetNotFoundError("could not be found")

        if len(matches) > 1:
            logger.debug("%s matches %d files, using %s", file_name, len(matches), matches[0].name)
        return matches[0]


# =============================================================================
# MANIFEST LOADING
# =============================================================================

def _parse_number(value, what: str) -> float:
    if isinstance(value, bool):
        raise ManifestError(f"{what} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ManifestError(f"{what} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise ManifestError(f"{what} must be finite, got {value!r}")
    return number


def _parse_samples(raw_samples, list_name: str) -> Tuple[str, ...]:
    if isinstance(raw_samples, str):
        return (raw_samples,)
    if not isinstance(raw_samples, list) or not all(isinstance(s, str) for s in raw_samples):
        raise ManifestError(
            f"Event in {list_name} has invalid 'samples' (expected a name or list of names): {raw_samples!r}"
        )
    return tuple(raw_samples)


def _parse_events(raw_events, list_name: str) -> List[TriggerEvent]:
    if not isinstance(raw_events, list):
        raise ManifestError(f"'events' of {list_name} must be a list")

    events = []
    for raw in raw_events:
        if not isinstance(raw, dict):
            raise ManifestError(f"Event in {list_name} must be an object: {raw!r}")
        if 'time' not in raw:
            raise ManifestError(f"Event in {list_name} has no 'time': {raw!r}")
        time_ms = _parse_number(raw['time'], f"Event time in {list_name}")
        samples = _parse_samples(raw.get('samples', []), list_name)
        events.append(TriggerEvent(time_ms=time_ms, samples=samples))

    # Event times must be non-decreasing within a list
    events.sort(key=lambda e: e.time_ms)
    return events


def _parse_event_list(raw) -> EventList:
    if not isinstance(raw, dict):
        raise ManifestError(f"Event list must be an object: {raw!r}")

    name = str(raw.get('name', 'unnamed'))

    try:
        mode = PlayMode(str(raw.get('mode', 'standard')).lower())
    except ValueError:
        raise ManifestError(f"Unknown mode for {name}: {raw.get('mode')!r}")

    events = _parse_events(raw.get('events', []), name)

    if 'active_duration_ms' in raw:
        active_duration = _parse_number(raw['active_duration_ms'], f"active_duration_ms of {name}")
    elif events:
        active_duration = events[-1].time_ms - events[0].time_ms
    else:
        active_duration = 0.0

    if active_duration < 0:
        raise ManifestError(f"Negative active_duration_ms for {name}")

    return EventList(name=name, events=events, active_duration_ms=active_duration, mode=mode)


def load_mapset(manifest_path: Union[str, Path]) -> MapsetPool:
    """
    Load a mapset from a JSON manifest.

    Manifest layout:
        {
          "song_path": "audio",
          "event_lists": [
            {"name": "Hard", "mode": "standard", "active_duration_ms": 120000,
             "events": [{"time": 1000, "samples": ["soft-hitclap"]}]}
          ]
        }

    ``song_path`` is relative to the manifest's folder (default: that folder).
    ``active_duration_ms`` defaults to the span between first and last event.

    Raises:
        ManifestError: If the manifest is missing or malformed
    """
    manifest_path = Path(manifest_path)
    try:
        with open(manifest_path) as f:
            raw = json.load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {manifest_path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestError(f"Invalid JSON in {manifest_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ManifestError(f"Manifest {manifest_path} must be a JSON object")

    song_path = raw.get('song_path', '.')
    if not isinstance(song_path, str):
        raise ManifestError(f"'song_path' in {manifest_path} must be a string")

    raw_lists = raw.get('event_lists', [])
    if not isinstance(raw_lists, list):
        raise ManifestError(f"'event_lists' in {manifest_path} must be a list")
    event_lists = [_parse_event_list(entry) for entry in raw_lists]

    logger.info("Loaded %d event list(s) from %s", len(event_lists), manifest_path)
    return MapsetPool(manifest_path.parent / song_path, event_lists)
