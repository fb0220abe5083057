#!/usr/bin/env python3
"""
Command line entry point.

    geofuse analyze  a.geojson [b.geojson]
    geofuse fuse     a.geojson b.geojson [--settings s.json] [--id-property iso_a3] [--precision 6] [--out merged.geojson] [--compact]
    geofuse translations a.geojson b.geojson [--filter text] [--hide-dependent] [--cldr] [--save-settings dir]

Exit status is 1 when loading, validation or fusion fails.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .core.constants import DEFAULT_OUTPUT_PREFIX
from .core.models import InvalidGeoJSONError, MergeConfigError, SettingsError
from .core.pipeline import FusionSession, SLOT_A, SLOT_B
from .support.settings import load_settings_file, save_settings_file
from .adapters.cldr_api import fetch_cldr_dictionary
from .utils.files import save_json
from .utils.log import log_line, setup_logging
from .utils.time import file_stamp

CLI_ERRORS = (InvalidGeoJSONError, MergeConfigError, SettingsError, OSError)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geofuse", description="Analyze and fuse two country GeoJSON datasets")
    parser.add_argument("--log-dir", default=None, help="also append log lines to <dir>/geofuse.log")
    sub = parser.add_subparsers(dest="command", required=True)

    p_an = sub.add_parser("analyze", help="print dataset analysis as JSON")
    p_an.add_argument("file_a")
    p_an.add_argument("file_b", nargs="?")

    def add_pair(p):
        p.add_argument("file_a")
        p.add_argument("file_b")
        p.add_argument("--settings", default=None, help="settings artifact to apply")
        p.add_argument("--id-property", default=None)

    p_fu = sub.add_parser("fuse", help="fuse two datasets into one GeoJSON file")
    add_pair(p_fu)
    p_fu.add_argument("--precision", type=int, default=None)
    p_fu.add_argument("--out", default=None, help="output path (default: <out-dir>/<prefix>_<timestamp>.geojson)")
    p_fu.add_argument("--out-dir", default=".")
    p_fu.add_argument("--prefix", default=DEFAULT_OUTPUT_PREFIX)
    p_fu.add_argument("--compact", action="store_true", help="write the GeoJSON on a single line")

    p_tr = sub.add_parser("translations", help="list entities for manual translation")
    add_pair(p_tr)
    p_tr.add_argument("--filter", default="")
    p_tr.add_argument("--hide-dependent", action="store_true")
    p_tr.add_argument("--cldr", action="store_true", help="backfill missing translations from CLDR")
    p_tr.add_argument("--save-settings", default=None, help="write resulting settings (file or directory)")
    return parser


def _open_session(args) -> FusionSession:
    session = FusionSession()
    session.load_file(SLOT_A, args.file_a)
    session.load_file(SLOT_B, args.file_b)
    if args.settings:
        session.apply_settings(load_settings_file(args.settings))
    if args.id_property:
        session.set_id_property(args.id_property)
    return session


def cmd_analyze(args) -> int:
    session = FusionSession()
    session.load_file(SLOT_A, args.file_a)
    out = {"a": session.analysis_a.to_dict()}
    if args.file_b:
        session.load_file(SLOT_B, args.file_b)
        out["b"] = session.analysis_b.to_dict()
        out["idProperty"] = session.config.id_property
        out["comparison"] = {
            entity_class.value: vars(stats) for entity_class, stats in session.comparison_stats().items()
        }
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


def cmd_fuse(args) -> int:
    session = _open_session(args)
    if args.precision is not None:
        session.set_geometry_precision(args.precision)
    if not session.can_fuse():
        log_line("FUSE SKIPPED | nothing selected to merge", "WARN")
        return 1
    fused, _ = session.fuse()
    out = Path(args.out) if args.out else Path(args.out_dir) / f"{args.prefix}_{file_stamp()}.geojson"
    save_json(out, fused, indent=None if args.compact else 2)
    log_line(f"WROTE | path={out} features={len(fused['features'])}")
    return 0


def cmd_translations(args) -> int:
    session = _open_session(args)
    if args.cldr:
        session.apply_dictionary(fetch_cldr_dictionary())

    rows = session.missing_translations(args.filter, show_dependent=not args.hide_dependent)
    keys = session.translation_keys
    for row in rows:
        manual = session.manual_translations.get(row.id_value) or {}
        filled = ", ".join(f"{k}={v}" for k, v in sorted(manual.items()))
        marker = "dep" if row.is_dependency else "rec"
        print(f"{row.id_value}\t{marker}\t{row.display_name}\t{filled}")
    log_line(f"TRANSLATIONS | rows={len(rows)} keys={len(keys)}")

    if args.save_settings:
        path = save_settings_file(
            args.save_settings, session.config, session.country_selections, session.manual_translations,
        )
        log_line(f"WROTE | settings={path}")
    return 0


COMMANDS = {"analyze": cmd_analyze, "fuse": cmd_fuse, "translations": cmd_translations}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_dir:
        setup_logging(Path(args.log_dir))
    try:
        return COMMANDS[args.command](args)
    except CLI_ERRORS as e:
        topic = "FUSION FAILED" if args.command == "fuse" else f"{args.command.upper()} FAILED"
        log_line(f"{topic} | err={e}", "ERROR")
        return 1


if __name__ == "__main__":
    sys.exit(main())
