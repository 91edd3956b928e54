#!/usr/bin/env python3
"""Generate a deterministic synthetic mapset.

Writes a handful of hit sounds with known onset delays plus a manifest with
two event lists, so the CLI can be run end to end:

    python fixtures/generate_fixtures.py
    hitsound-audit fixtures/demo_mapset/mapset.json --output demo_results/

Format: WAV PCM 16-bit, 44100 Hz, 200 ms per hit sound
"""

import hashlib
import json
from pathlib import Path

import numpy as np
from scipy.io import wavfile

SAMPLE_RATE = 44100
DURATION_MS = 200.0
SAMPLES_PER_MS = 50  # scan resolution used by the onset estimator
OUTPUT_DIR = Path(__file__).parent / "demo_mapset"


def generate_hit(delay_ms: float, stereo: bool = False) -> np.ndarray:
    """Decaying 1 kHz click preceded by ``delay_ms`` of silence.

    Silence is measured at the scan resolution so the expected delay reads
    back exactly.
    """
    samples = int(DURATION_MS * SAMPLES_PER_MS)
    silence = int(round(delay_ms * SAMPLES_PER_MS))
    audio = np.zeros(samples, dtype=np.float32)

    t = np.arange(samples - silence) / SAMPLE_RATE
    audio[silence:] = 0.9 * np.exp(-t * 30) * np.sign(np.sin(2 * np.pi * 1000 * t) + 1e-9)

    if stereo:
        return np.column_stack([audio, audio * 0.8])
    return audio


def to_pcm16(audio: np.ndarray) -> np.ndarray:
    return np.round(np.clip(audio, -1.0, 1.0) * 32767).astype(np.int16)


def write_wav(filepath: Path, audio: np.ndarray) -> str:
    """Write WAV (PCM 16-bit) and return SHA256 of file bytes."""
    wavfile.write(filepath, SAMPLE_RATE, to_pcm16(audio))
    with open(filepath, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()


def build_events(start_ms: float, end_ms: float, gap_ms: float, samples) -> list:
    return [
        {"time": float(t), "samples": list(samples)}
        for t in np.arange(start_ms, end_ms, gap_ms)
    ]


def main():
    audio_dir = OUTPUT_DIR / "audio"
    audio_dir.mkdir(parents=True, exist_ok=True)

    fixtures = [
        ("soft-hitnormal.wav", generate_hit(0.0)),
        ("soft-hitclap.wav", generate_hit(2.0)),
        ("drum-hitwhistle.wav", generate_hit(12.0, stereo=True)),
        ("silent.wav", np.zeros(int(DURATION_MS * SAMPLES_PER_MS), dtype=np.float32)),
    ]

    for filename, audio in fixtures:
        sha256 = write_wav(audio_dir / filename, audio)
        print(f"{filename}: {sha256}")

    # Clap every beat in the normal map, every half beat in the hard map
    normal_events = build_events(1000, 61000, 500, ["soft-hitnormal"])
    normal_events += build_events(1000, 61000, 2000, ["soft-hitclap"])
    hard_events = build_events(1000, 61000, 250, ["soft-hitnormal", "soft-hitclap"])
    hard_events += build_events(30000, 31000, 100, ["drum-hitwhistle", "silent"])
    hard_events += build_events(40000, 40001, 1, ["missing-sample"])

    manifest = {
        "song_path": "audio",
        "event_lists": [
            {"name": "Normal", "mode": "standard", "active_duration_ms": 60000, "events": normal_events},
            {"name": "Hard", "mode": "standard", "active_duration_ms": 60000, "events": hard_events},
        ],
    }

    manifest_path = OUTPUT_DIR / "mapset.json"
    with open(manifest_path, 'w') as f:
        json.dump(manifest, f, indent=2)

    print(f"\nManifest written to: {manifest_path}")


if __name__ == "__main__":
    main()
