"""
CLI entry point for roadmap-report. Wires the pipeline: settings -> retrieve (cache or GraphQL) -> score -> render
"""

import argparse
import json
import logging
import os
from datetime import datetime, timezone
from errors import ConfigurationError, RoadmapReportError
from report.assembler import RoadmapReport
from report.renderer import render
from settings import Settings, load_settings
from storage.cache import SnapshotCache

OUTPUT_FORMATS = ("json", "csv", "md", "html")


def _print_json(obj):
    print(json.dumps(obj, indent=2, default=str))


def _print_cache_info(cache: SnapshotCache, settings: Settings):
    _print_json(cache.stats(ttl_seconds=settings.ttl_seconds))


def _clear_cache(cache: SnapshotCache, force: bool):
    if not force:
        confirm = input(f"Are you sure you want to clear the cache at {cache.path}? [y/N]: ")
        if confirm.strip().lower() not in ("y", "yes"):
            print("Aborted cache clear.")
            return
    if cache.clear():
        print(f"Cleared cache at {cache.path}")
    else:
        print(f"No cache file at {cache.path}")


def _handle_cache_actions(args, settings: Settings) -> bool:
    """Run cache inspection/management flags. Returns True if one was performed and the CLI should exit."""
    if not (args.cache_info or args.cache_clear):
        return False
    cache = SnapshotCache(settings.cache_path)
    if args.cache_info:
        _print_cache_info(cache, settings)
    if args.cache_clear:
        _clear_cache(cache, args.force)
    return True


def run_pipeline(args, settings: Settings):
    """Retrieve issues, compute metrics and render. Returns (fmt, rendered, result)."""
    report = RoadmapReport(settings, skip_invalid=args.skip_invalid)
    result = report.get_report_result()
    fmt = (args.output or "json").lower()
    rendered = render(
        result.records,
        fmt=fmt,
        generated_at=datetime.now(timezone.utc).isoformat(),
        scope=settings.project_id,
        errors=result.errors,
    )
    return fmt, rendered, result


def write_output(rendered: str, args):
    """Write output to --out-file when given, otherwise to stdout."""
    out_path = (args.out_file or "").strip()
    if not out_path:
        print(rendered)
        return
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' keeps csv line endings intact on Windows
    with open(out_path, "w", encoding="utf-8", newline="") as f:
        f.write(rendered)
    print(f"Wrote report to {out_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Roadmap schedule-health report for a GitHub project board")
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML settings file (or env ROADMAP_CONFIG)")
    parser.add_argument("--token", type=str, default=None, help="GitHub token (or env GITHUB_TOKEN)")
    parser.add_argument("--project-id", type=str, default=None, help="ProjectV2 node id (or env GITHUB_PROJECT_ID)")
    parser.add_argument("--ttl", type=str, default=None, help="Cache TTL, seconds or HH:MM:SS (or env GITHUB_CACHE_DURATION; default 01:00:00)")
    parser.add_argument("--cache", type=str, default=None, help="Path to the snapshot cache file (or env ROADMAP_CACHE_PATH)")
    parser.add_argument("--label", type=str, default=None, help="Only include issues carrying this exact label")
    parser.add_argument("--output", type=str, choices=OUTPUT_FORMATS, default="json", help="Output format (default: json)")
    parser.add_argument("--out-file", type=str, default="", help="Output file path. If omitted the report is printed")
    parser.add_argument("--skip-invalid", action="store_true", help="Skip issues without a product label instead of failing the report")
    parser.add_argument("--cache-info", action="store_true", help="Show snapshot cache status and exit")
    parser.add_argument("--cache-clear", action="store_true", help="Delete the snapshot cache and exit")
    parser.add_argument("--force", action="store_true", help="Do not ask for confirmation (use with --cache-clear)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(
            args.config,
            token=args.token,
            project_id=args.project_id,
            ttl_seconds=args.ttl,
            cache_path=args.cache,
            required_label=args.label,
        )
    except ConfigurationError as ex:
        parser.error(ex.message)

    if _handle_cache_actions(args, settings):
        return 0

    try:
        settings.require_credentials()
    except ConfigurationError as ex:
        parser.error(ex.message)

    try:
        _, rendered, _ = run_pipeline(args, settings)
    except RoadmapReportError as ex:
        print(f"Error: {ex.message}")
        return 1

    write_output(rendered, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
