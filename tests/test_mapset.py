"""
Mapset Module Tests

Tests for hit sound name matching, asset resolution and manifest loading.
"""

import json

import pytest

from hitsound_audit import mapset
from hitsound_audit.errors import AssetNotFoundError, ManifestError
from hitsound_audit.mapset import EventList, MapsetPool, PlayMode, TriggerEvent


class TestNormalizeSampleName:
    """Tests for normalize_sample_name."""

    def test_strips_audio_extension(self):
        """Test known extensions are ignored."""
        assert mapset.normalize_sample_name("soft-hitclap.wav") == "soft-hitclap"
        assert mapset.normalize_sample_name("soft-hitclap.OGG") == "soft-hitclap"

    def test_case_insensitive(self):
        """Test names compare case-insensitively."""
        assert mapset.normalize_sample_name("Soft-HitClap") == "soft-hitclap"

    def test_other_extension_kept(self):
        """Test unrelated dots are preserved."""
        assert mapset.normalize_sample_name("kick.v2") == "kick.v2"


class TestTriggerEvent:
    """Tests for TriggerEvent.uses."""

    def test_uses_matching_sample(self):
        """Test an event referencing the file."""
        event = TriggerEvent(1000, ("normal-hitnormal", "soft-hitclap.wav"))
        assert event.uses("soft-hitclap")
        assert event.uses("SOFT-HITCLAP.wav")

    def test_does_not_use_other_sample(self):
        """Test an event without the file."""
        assert not TriggerEvent(1000, ("normal-hitnormal",)).uses("soft-hitclap")

    def test_no_samples(self):
        """Test an event with no samples."""
        assert not TriggerEvent(1000).uses("soft-hitclap")


class TestEventList:
    """Tests for EventList."""

    def test_str(self):
        """Test lists print as their bracketed name."""
        assert str(EventList("Insane")) == "[Insane]"

    def test_identity_hashing(self):
        """Test two lists with equal content are distinct keys."""
        a = EventList("Hard")
        b = EventList("Hard")
        assert a != b
        assert len({a: 1, b: 2}) == 2

    def test_referenced_files_deduplicated(self):
        """Test referenced files keep first-seen spelling and order."""
        events = [
            TriggerEvent(0, ("b.wav",)),
            TriggerEvent(10, ("a", "B")),
            TriggerEvent(20, ("a.wav",)),
        ]
        assert EventList("x", events).referenced_files() == ["b.wav", "a"]


class TestPlayMode:
    """Tests for PlayMode."""

    def test_only_mania_allows_simultaneous_objects(self):
        """Test the halving mode flag."""
        assert PlayMode.MANIA.allows_simultaneous_objects
        for mode in (PlayMode.STANDARD, PlayMode.TAIKO, PlayMode.CATCH):
            assert not mode.allows_simultaneous_objects


class TestResolve:
    """Tests for MapsetPool.resolve."""

    def test_exact_name(self, tmp_path):
        """Test a name with extension."""
        (tmp_path / "soft-hitclap.wav").write_bytes(b"x")
        pool = MapsetPool(tmp_path)
        assert pool.resolve("soft-hitclap.wav") == tmp_path / "soft-hitclap.wav"

    def test_missing_extension(self, tmp_path):
        """Test a name without extension matches any extension."""
        (tmp_path / "soft-hitclap.ogg").write_bytes(b"x")
        pool = MapsetPool(tmp_path)
        assert pool.resolve("soft-hitclap") == tmp_path / "soft-hitclap.ogg"

    def test_missing_file(self, tmp_path):
        """Test an absent asset."""
        with pytest.raises(AssetNotFoundError) as exc:
            MapsetPool(tmp_path).resolve("soft-hitclap")
        assert exc.value.reason == "could not be found"

    def test_missing_song_folder(self, tmp_path):
        """Test a song folder that does not exist."""
        with pytest.raises(AssetNotFoundError):
            MapsetPool(tmp_path / "gone").resolve("soft-hitclap")

    def test_leaves_folder(self, tmp_path):
        """Test names escaping the song folder are refused."""
        with pytest.raises(AssetNotFoundError) as exc:
            MapsetPool(tmp_path).resolve("../secret.wav")
        assert exc.value.reason == "leaves the song folder"

    @pytest.mark.parametrize("name", [
        "/etc/passwd",
        "\\\\server\\share\\hit.wav",
        "C:/hits/soft-hitclap.wav",
        "sub/../../secret.wav",
        "..\\secret.wav",
    ])
    def test_anchored_or_escaping_names(self, tmp_path, name):
        """Test absolute, drive, share and parent references are refused."""
        with pytest.raises(AssetNotFoundError) as exc:
            MapsetPool(tmp_path).resolve(name)
        assert exc.value.reason == "leaves the song folder"

    def test_subfolder_name(self, tmp_path):
        """Test a relative name inside a subfolder, with either separator."""
        (tmp_path / "drums").mkdir()
        (tmp_path / "drums" / "kick.wav").write_bytes(b"x")
        pool = MapsetPool(tmp_path)
        assert pool.resolve("drums/kick") == tmp_path / "drums" / "kick.wav"
        assert pool.resolve("drums\\kick.wav") == tmp_path / "drums" / "kick.wav"

    def test_empty_name(self, tmp_path):
        """Test an empty reference is not found."""
        with pytest.raises(AssetNotFoundError) as exc:
            MapsetPool(tmp_path).resolve("")
        assert exc.value.reason == "could not be found"

    def test_directories_ignored(self, tmp_path):
        """Test a directory with a matching name is not an asset."""
        (tmp_path / "soft-hitclap.d").mkdir()
        with pytest.raises(AssetNotFoundError):
            MapsetPool(tmp_path).resolve("soft-hitclap")


class TestPool:
    """Tests for MapsetPool listings."""

    def test_referenced_effect_files_across_lists(self):
        """Test files from all lists, deduplicated, first-seen order."""
        easy = EventList("Easy", [TriggerEvent(0, ("soft-hitnormal",))])
        hard = EventList("Hard", [TriggerEvent(0, ("soft-hitclap", "soft-hitnormal.wav"))])
        pool = MapsetPool(".", [easy, hard])

        assert pool.list_referenced_effect_files() == ["soft-hitnormal", "soft-hitclap"]
        assert pool.list_event_lists() == [easy, hard]

    def test_empty_pool(self):
        """Test an empty pool gives empty listings."""
        pool = MapsetPool(".")
        assert pool.list_event_lists() == []
        assert pool.list_referenced_effect_files() == []


class TestLoadMapset:
    """Tests for load_mapset."""

    def write_manifest(self, tmp_path, data):
        path = tmp_path / "mapset.json"
        path.write_text(json.dumps(data))
        return path

    def test_basic_manifest(self, tmp_path):
        """Test a complete manifest."""
        path = self.write_manifest(tmp_path, {
            "song_path": "audio",
            "event_lists": [{
                "name": "Hard",
                "mode": "mania",
                "active_duration_ms": 90000,
                "events": [
                    {"time": 2000, "samples": ["b"]},
                    {"time": 1000, "samples": "a"},
                ]
            }]
        })

        pool = mapset.load_mapset(path)

        assert pool.song_path == tmp_path / "audio"
        [event_list] = pool.list_event_lists()
        assert event_list.name == "Hard"
        assert event_list.mode is PlayMode.MANIA
        assert event_list.active_duration_ms == 90000
        # Events are put in time order
        assert [e.time_ms for e in event_list.events] == [1000, 2000]
        assert event_list.events[0].samples == ("a",)

    def test_default_active_duration(self, tmp_path):
        """Test active duration defaults to the event span."""
        path = self.write_manifest(tmp_path, {
            "event_lists": [{"name": "x", "events": [{"time": 500}, {"time": 4500}]}]
        })
        [event_list] = mapset.load_mapset(path).list_event_lists()
        assert event_list.active_duration_ms == 4000
        assert event_list.mode is PlayMode.STANDARD

    def test_default_song_path(self, tmp_path):
        """Test the song folder defaults to the manifest's folder."""
        path = self.write_manifest(tmp_path, {"event_lists": []})
        assert mapset.load_mapset(path).song_path == tmp_path

    def test_unknown_mode(self, tmp_path):
        """Test an unknown mode is rejected."""
        path = self.write_manifest(tmp_path, {"event_lists": [{"name": "x", "mode": "drums"}]})
        with pytest.raises(ManifestError):
            mapset.load_mapset(path)

    def test_event_without_time(self, tmp_path):
        """Test events must have a time."""
        path = self.write_manifest(tmp_path, {"event_lists": [{"name": "x", "events": [{"samples": []}]}]})
        with pytest.raises(ManifestError):
            mapset.load_mapset(path)

    def test_invalid_json(self, tmp_path):
        """Test invalid JSON."""
        path = tmp_path / "mapset.json"
        path.write_text("{not json")
        with pytest.raises(ManifestError):
            mapset.load_mapset(path)

    def test_missing_manifest(self, tmp_path):
        """Test a missing manifest."""
        with pytest.raises(ManifestError):
            mapset.load_mapset(tmp_path / "missing.json")

    def test_not_an_object(self, tmp_path):
        """Test a manifest that is not a JSON object."""
        path = self.write_manifest(tmp_path, [1, 2, 3])
        with pytest.raises(ManifestError):
            mapset.load_mapset(path)

    @pytest.mark.parametrize("event_list", [
        {"name": "x", "events": [{"time": 0, "samples": None}]},
        {"name": "x", "events": [{"time": 0, "samples": [1, 2]}]},
        {"name": "x", "events": [{"time": 0, "samples": {"a": 1}}]},
        {"name": "x", "events": ["soft-hitclap"]},
        {"name": "x", "events": {"time": 0}},
        {"name": "x", "events": [{"time": "soon"}]},
        {"name": "x", "events": [{"time": None}]},
        {"name": "x", "events": [{"time": True}]},
        {"name": "x", "active_duration_ms": "long"},
        {"name": "x", "active_duration_ms": None},
        {"name": "x", "active_duration_ms": -1},
        "Hard",
    ])
    def test_malformed_fields(self, tmp_path, event_list):
        """Test malformed list and event fields raise ManifestError."""
        path = self.write_manifest(tmp_path, {"event_lists": [event_list]})
        with pytest.raises(ManifestError):
            mapset.load_mapset(path)

    def test_non_finite_time(self, tmp_path):
        """Test NaN event times are rejected."""
        path = tmp_path / "mapset.json"
        path.write_text('{"event_lists": [{"name": "x", "events": [{"time": NaN}]}]}')
        with pytest.raises(ManifestError):
            mapset.load_mapset(path)

    @pytest.mark.parametrize("manifest", [
        {"song_path": 5},
        {"event_lists": {"name": "x"}},
    ])
    def test_malformed_top_level(self, tmp_path, manifest):
        """Test malformed top-level fields raise ManifestError."""
        path = self.write_manifest(tmp_path, manifest)
        with pytest.raises(ManifestError):
            mapset.load_mapset(path)

    def test_not_utf8(self, tmp_path):
        """Test undecodable bytes are a manifest error."""
        path = tmp_path / "mapset.json"
        path.write_bytes(b'\xff\xfe\x00{')
        with pytest.raises(ManifestError):
            mapset.load_mapset(path)
