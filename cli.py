#!/usr/bin/env python3
"""
hitsound-audit - Command Line Interface

Main entry point for checking the hit sounds of a mapset manifest.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import config
from hitsound_audit import export
from hitsound_audit.checks import HitSoundDelayCheck, summarize_all_usage
from hitsound_audit.errors import ManifestError
from hitsound_audit.mapset import load_mapset
from hitsound_audit.params import DEFAULT_CONFIG, AnalysisConfig, validate_config


def run_checks(
    manifest_path: Path,
    output_dir: Optional[Path],
    cfg: AnalysisConfig,
    generate_plots: bool = True,
    verbose: bool = False
) -> bool:
    """
    Run the delay check and usage summary on one mapset.

    Parameters:
        manifest_path: Path to the mapset manifest (JSON)
        output_dir: Output directory for results (None = print only)
        cfg: Analysis configuration
        generate_plots: Whether to write plots
        verbose: Print verbose progress messages

    Returns:
        True if the mapset could be analyzed, False otherwise
    """
    try:
        pool = load_mapset(manifest_path)
    except ManifestError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return False

    hit_sounds = pool.list_referenced_effect_files()
    if verbose:
        print(f"\nProcessing: {manifest_path.name}")
        print("-" * 60)
        print(f"   Event lists: {len(pool.list_event_lists())}, hit sounds: {len(hit_sounds)}")

    # Step 1: Delay check (one decode per hit sound)
    if verbose:
        print("1. Checking hit sound delays...")
    # Decoded clips are only kept when they will be plotted
    keep_clips = output_dir is not None and generate_plots
    check = HitSoundDelayCheck(pool, cfg)
    analyses = list(check.analyses(keep_clips=keep_clips))
    issues = [a.issue for a in analyses if a.issue is not None]

    # Step 2: Usage frequency and dominant list
    if verbose:
        print("2. Collecting hit sound usage...")
    usage_summaries = summarize_all_usage(pool, cfg)

    report = export.create_report_json(issues, usage_summaries, cfg, mapset_name=manifest_path.stem)

    if output_dir is not None:
        if verbose:
            print("3. Exporting results...")
        created_files = export.export_all_outputs(
            report,
            analyses,
            usage_summaries,
            pool.list_event_lists(),
            output_dir,
            cfg,
            generate_plots=generate_plots
        )
        print(f"Created {len(created_files)} output files in {output_dir}")

    export.print_report_summary(report)
    return True


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='hitsound-audit - Hit sound delay and usage analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check a mapset and print the issues
  %(prog)s mapset.json

  # Write report.json and plots
  %(prog)s mapset.json --output results/

  # Stricter notion of "commonly used"
  %(prog)s mapset.json --common-usage-threshold 1200
        """
    )

    parser.add_argument(
        'manifest',
        type=str,
        help='Mapset manifest (JSON)'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Output directory for report.json and plots'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print verbose progress messages'
    )

    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Skip plot generation'
    )

    # Parameter overrides
    parser.add_argument(
        '--score-threshold',
        type=float,
        help=f'Minimum frequency score for a peak (default: {config.FREQUENCY_SCORE_THRESHOLD})'
    )

    parser.add_argument(
        '--common-usage-threshold',
        type=float,
        help=f'Mean gap between uses for "commonly used", in ms '
             f'(default: {config.COMMON_USAGE_THRESHOLD_MS})'
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    cfg = DEFAULT_CONFIG.with_overrides(
        score_threshold=args.score_threshold,
        common_usage_threshold_ms=args.common_usage_threshold
    )
    try:
        validate_config(cfg)
    except ValueError as e:
        parser.error(str(e))

    manifest_path = Path(args.manifest)
    if not manifest_path.is_file():
        print(f"ERROR: Manifest does not exist: {manifest_path}", file=sys.stderr)
        sys.exit(1)

    output_dir = Path(args.output) if args.output else None
    success = run_checks(manifest_path, output_dir, cfg, not args.no_plots, args.verbose)
    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
