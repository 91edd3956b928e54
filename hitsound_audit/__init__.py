"""
hitsound-audit - Source Modules

This package contains the core modules for hit sound analysis:
- wav_io: WAV decoding into normalized per-channel samples
- onset: Onset delay estimation and classification
- mapset: Event lists, play modes and hit sound resolution
- usage: Usage counts and decaying frequency score peaks
- selection: Dominant-user (commonly used in) selection
- checks: Issue records, delay check and usage summaries
- export: JSON report and plot generation
"""

__version__ = "1.0.0"
