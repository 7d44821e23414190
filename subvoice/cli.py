"""CLI interface with subcommand routing and pipeline orchestration."""

import argparse
import logging
import os
import sys

from subvoice.cache import ClipCache
from subvoice.config import load_config
from subvoice.constants import DEFAULT_CONFIG_PATH, VERSION
from subvoice.errors import OverlapError, SubvoiceError
from subvoice.exporter import build_manifest, export, output_path_for
from subvoice.fetcher import fetch_missing, plan_lines
from subvoice.merger import merge_cues
from subvoice.mixer import mix_entries
from subvoice.subtitles import load_cues
from subvoice.timeline import (
    build_timeline,
    check_overlaps,
    format_overlap_report,
    format_report,
    render_clips,
)
from subvoice.tts import SpeechClient

logger = logging.getLogger(__name__)


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    raise SystemExit(1)


def cmd_run(args):
    """Render a subtitle file to a multi-channel WAV."""
    path = args.file
    if not os.path.exists(path):
        _fail(f"File not found: {path}")

    try:
        config = load_config(args.config)

        threshold = config.merge_lines_threshold_ms
        if args.merge_lines_threshold_ms and args.merge_lines_threshold_ms > 0:
            threshold = args.merge_lines_threshold_ms
        if threshold > 0:
            logger.info("Using merge threshold: %d ms", threshold)
        else:
            logger.info("No merge threshold set, not merging lines")

        cues = load_cues(path)
        if not cues:
            _fail(f"No subtitles found in: {path}")
        merged = merge_cues(cues, threshold)

        cache = ClipCache(os.path.dirname(os.path.abspath(path)))
        lines = plan_lines(merged, config, cache)
        if any(not line.identity.is_rendered for line in lines):
            client = SpeechClient(config.api_key())
            lines = fetch_missing(lines, client, cache)

        entries = build_timeline(render_clips(lines))
        print(format_report(entries))
        print()

        try:
            check_overlaps(entries)
        except OverlapError as e:
            print(format_overlap_report(e.overlaps))
            raise SystemExit(1)

        mix = mix_entries(entries)
        output_path = output_path_for(path)
        manifest = build_manifest(entries, mix, config.channel_map(), path)
        export(mix, output_path, manifest)
    except SubvoiceError as e:
        _fail(str(e))

    print(f"Done: {output_path}")


def cmd_voices(args):
    """Show the voice table and the channel each voice is mixed into."""
    try:
        config = load_config(args.config)
    except SubvoiceError as e:
        _fail(str(e))

    speakers = {}
    for identity, voice in config.voices.items():
        speakers.setdefault(voice.name, []).append(identity)

    print("Channels:")
    for name, channel in config.channel_map().items():
        if channel == 0:
            voice = config.default
            label = "(default)"
        else:
            voice = config.resolve_voice(speakers[name][0])
            label = ", ".join(speakers[name])
        print(f"  {channel:>2}  {name:<15} {voice.model}  speed {voice.speed:.2f}  {label}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="subvoice",
        description="Render subtitle files to multi-channel speech audio, one channel per speaker",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run
    run_parser = subparsers.add_parser("run", help="Render a subtitle file (.srt or .vtt) to WAV")
    run_parser.add_argument("file", help="Path to the subtitle file")
    run_parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Path to config YAML file")
    run_parser.add_argument(
        "-m", "--merge-lines-threshold-ms", type=int, default=0,
        help="Merge lines if same speaker and gap is below this threshold (ms)",
    )
    run_parser.add_argument("-v", "--verbose", action="store_true", help="Log synthesis progress")
    run_parser.set_defaults(func=cmd_run)

    # voices
    voices_parser = subparsers.add_parser("voices", help="Show configured voices and their channels")
    voices_parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Path to config YAML file")
    voices_parser.set_defaults(func=cmd_voices)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.INFO if getattr(args, "verbose", False) else logging.WARNING,
        format="%(message)s",
    )
    args.func(args)
