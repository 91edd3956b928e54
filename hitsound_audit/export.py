"""
Export Module

Generate JSON reports and diagnostic plots for check results.
All outputs follow a versioned schema for consistency.
"""

import numpy as np
import hashlib
import json
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

import config
from hitsound_audit import timebase
from hitsound_audit.checks import FileAnalysis, Issue, UsageSummary
from hitsound_audit.mapset import EventList
from hitsound_audit.onset import OnsetEstimate, channel_magnitude, compute_strength_envelope
from hitsound_audit.params import AnalysisConfig, DEFAULT_CONFIG, OnsetParams, UsageParams
from hitsound_audit.usage import PeakUsage, frequency_score_timeline
from hitsound_audit.wav_io import AudioClip


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.bool_):
            return bool(obj)
        return super().default(obj)


def safe_file_stem(name: str) -> str:
    """File-system friendly stem for per-hit-sound outputs."""
    return re.sub(r'[^A-Za-z0-9._-]+', '_', name).strip('_') or 'unnamed'


def assign_file_stems(names: Iterable[str]) -> Dict[str, str]:
    """
    Map each hit sound name to a distinct file stem.

    Names that sanitize to the same stem (e.g. "soft hitclap" and
    "soft_hitclap") keep the first stem; later ones get a short hash of
    the original name appended.
    """
    stems: Dict[str, str] = {}
    used = set()
    for name in names:
        if name in stems:
            continue
        stem = safe_file_stem(name)
        if stem in used:
            stem = f"{stem}_{hashlib.sha256(name.encode('utf-8')).hexdigest()[:8]}"
        suffix = 2
        base = stem
        while stem in used:
            stem = f"{base}_{suffix}"
            suffix += 1
        used.add(stem)
        stems[name] = stem
    return stems


def create_report_json(
    issues: Iterable[Issue],
    usage_summaries: Sequence[UsageSummary],
    cfg: AnalysisConfig = DEFAULT_CONFIG,
    mapset_name: str = ''
) -> Dict:
    """
    Create the complete report JSON.

    Parameters:
        issues: Issues from HitSoundDelayCheck
        usage_summaries: Results of summarize_all_usage
        cfg: Configuration used for the run
        mapset_name: Label for the mapset (usually the manifest stem)

    Returns:
        Report dict ready for JSON serialization
    """
    issue_dicts = [issue.to_dict() for issue in issues]

    level_counts = {level: 0 for level in config.LEVEL_COLORS}
    for issue in issue_dicts:
        level_counts[issue['level']] = level_counts.get(issue['level'], 0) + 1

    return {
        'schema_version': config.SCHEMA_VERSION,
        'mapset': mapset_name,
        'params': cfg.to_dict(),
        'issues': issue_dicts,
        'issue_counts': level_counts,
        'usage': [summary.to_dict() for summary in usage_summaries],
    }


def save_json(data: Dict, output_path: Path) -> None:
    """
    Save data as JSON with pretty printing.

    Parameters:
        data: Dictionary to save
        output_path: Path to output file
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder)


def plot_onset_envelope(
    clip: AudioClip,
    estimate: OnsetEstimate,
    output_path: Path,
    params: OnsetParams = DEFAULT_CONFIG.onset,
    title: Optional[str] = None
) -> None:
    """
    Plot a hit sound's magnitude, strength envelope and detected onset.

    Parameters:
        clip: Decoded clip
        estimate: Onset estimate for the clip
        output_path: Path to save plot
        params: Onset parameters used for the estimate
        title: Plot title (None = clip identifier)
    """
    magnitude = channel_magnitude(clip)
    envelope = compute_strength_envelope(magnitude, params.retention)
    times = timebase.sample_times_ms(len(magnitude), params.samples_per_ms)

    fig, ax = plt.subplots(figsize=config.PLOT_FIGSIZE)

    ax.plot(times, magnitude, label='|amplitude|', color='gray', alpha=0.5, linewidth=1)
    ax.plot(times, envelope, label='Strength', color='blue', linewidth=1.5)

    if not estimate.is_silent:
        ax.axhline(estimate.max_strength * params.threshold_ratio, color='green',
                   alpha=0.6, linestyle=':', linewidth=1, label='Onset threshold')
        ax.axvline(estimate.delay_ms, color='red', alpha=0.7,
                   linestyle='--', linewidth=1.5,
                   label=f'Onset (~{timebase.format_delay(estimate.delay_ms)} ms)')

    ax.set_xlabel('Time (ms)', fontsize=10)
    ax.set_ylabel('Amplitude', fontsize=10)
    ax.set_title(title or clip.identifier, fontsize=12, fontweight='bold')
    ax.legend(loc='upper right', fontsize=8)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close(fig)


def plot_frequency_timeline(
    event_lists: Sequence[EventList],
    file_name: str,
    output_path: Path,
    params: UsageParams = DEFAULT_CONFIG.usage,
    peak: Optional[PeakUsage] = None
) -> None:
    """
    Plot the frequency score of a hit sound over time, one line per list.

    Parameters:
        event_lists: Event lists to plot
        file_name: Hit sound name
        output_path: Path to save plot
        params: Usage parameters
        peak: Peak moment to mark (optional)
    """
    fig, ax = plt.subplots(figsize=config.PLOT_FIGSIZE)

    for event_list in event_lists:
        points = list(frequency_score_timeline(event_list, file_name, params))
        if not points:
            continue
        times, scores = zip(*points)
        ax.step(np.array(times) / 1000.0, scores, where='post',
                label=str(event_list), linewidth=1.5, alpha=0.8)

    ax.axhline(params.score_threshold, color='green', alpha=0.6,
               linestyle=':', linewidth=1, label='Score threshold')

    if peak is not None:
        ax.axvline(peak.time_ms / 1000.0, color='purple', alpha=0.6,
                   linestyle='--', linewidth=1, label=f'Peak ({peak.timestamp})')

    ax.set_xlabel('Time (seconds)', fontsize=10)
    ax.set_ylabel('Frequency score', fontsize=10)
    ax.set_title(f"Usage of {file_name}", fontsize=12, fontweight='bold')
    ax.legend(loc='upper right', fontsize=8)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close(fig)


def export_all_outputs(
    report: Dict,
    analyses: Sequence[FileAnalysis],
    usage_summaries: Sequence[UsageSummary],
    event_lists: Sequence[EventList],
    output_dir: Path,
    cfg: AnalysisConfig = DEFAULT_CONFIG,
    generate_plots: bool = True
) -> List[Path]:
    """
    Write the report and (optionally) per-hit-sound plots.

    Parameters:
        report: Dict from create_report_json
        analyses: Delay check analyses (source of clips for envelope plots)
        usage_summaries: Usage summaries (source of peaks for timeline plots)
        event_lists: Event lists of the mapset
        output_dir: Output directory
        cfg: Configuration used for the run
        generate_plots: Whether to generate plots

    Returns:
        List of created file paths
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    created_files = []

    report_path = output_dir / 'report.json'
    save_json(report, report_path)
    created_files.append(report_path)

    if generate_plots:
        stems = assign_file_stems(
            [a.file_name for a in analyses] + [s.file_name for s in usage_summaries]
        )

        for analysis in analyses:
            if analysis.clip is None or analysis.estimate is None:
                continue
            plot_path = output_dir / 'plots' / f"{stems[analysis.file_name]}_onset.png"
            plot_onset_envelope(analysis.clip, analysis.estimate, plot_path, cfg.onset)
            created_files.append(plot_path)

        for summary in usage_summaries:
            if summary.peak is None:
                continue
            plot_path = output_dir / 'plots' / f"{stems[summary.file_name]}_usage.png"
            plot_frequency_timeline(event_lists, summary.file_name, plot_path, cfg.usage, summary.peak)
            created_files.append(plot_path)

    return created_files


def print_report_summary(report: Dict) -> None:
    """
    Print concise report summary to console.

    Parameters:
        report: Report dict from create_report_json
    """
    print(f"\n{'='*60}")
    print(f"Hit Sound Report: {report['mapset'] or 'mapset'}")
    print(f"{'='*60}")

    counts = report['issue_counts']
    print(f"Issues: {counts.get('warning', 0)} warning, "
          f"{counts.get('minor', 0)} minor, {counts.get('error', 0)} error")

    for issue in report['issues']:
        print(f"  [{issue['level']}] {issue['message']}")

    frequent = [u for u in report['usage'] if u['peak'] is not None or u['commonly_used_in']]
    if frequent:
        print("\nFrequent hit sounds:")
        for usage in frequent:
            line = f"  {usage['file_name']}"
            if usage['commonly_used_in']:
                line += f", commonly used in [{usage['commonly_used_in']}]"
            if usage['peak'] is not None:
                line += f", most frequent at {usage['peak']['timestamp']}"
            print(line)

    print(f"{'='*60}\n")
