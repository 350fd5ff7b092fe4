#!/usr/bin/env python3
"""
Settlement ledger command line: sample workbook, import, export, listing
and instructor fee payment confirmations.

Usage:
    python3 scripts/settlement_cli.py [--config PATH] [--db-url URL] [-v] <command> ...

Examples:
    # Write a pre-filled sample workbook to edit and import
    python3 scripts/settlement_cli.py sample out/

    # Preview a workbook, then register it without prompting
    python3 scripts/settlement_cli.py import 정산.xlsx --yes

    # Every stored settlement as an importable workbook
    python3 scripts/settlement_cli.py export all.xlsx

    # CSV of instructor fees with selected columns
    python3 scripts/settlement_cli.py csv out/ --category 강사비 --columns date name fee net_pay

    # Ledger listing of one month
    python3 scripts/settlement_cli.py list --date 2025-01

    # Payment confirmation for the second additional instructor
    python3 scripts/settlement_cli.py confirmation EVT-1 --instructor 1

Exit status is 0 on success and 1 when an operation fails.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 72


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Settlement ledger: import, export, list and confirm payments.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration YAML (default: settlement_config/sets/default.yaml).",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="Database URL overriding store.database_url from the config.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Emit structured logs at the configured level instead of warnings only.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("sample", help="Write the sample workbook.")
    p.add_argument("out", type=Path, help="Output file, or a directory for the default name.")

    p = sub.add_parser("import", help="Preview a workbook and register its settlements.")
    p.add_argument("file", type=Path, help="Workbook (.xlsx / .xlsm).")
    p.add_argument("--yes", action="store_true", help="Register without prompting.")

    p = sub.add_parser("export", help="Write every stored settlement to a workbook.")
    p.add_argument("out", type=Path, help="Output .xlsx file.")

    p = sub.add_parser("csv", help="Write the selected settlements as CSV.")
    p.add_argument("out_dir", type=Path, help="Directory for settlements_YYYY-MM-DD.csv.")
    p.add_argument("--columns", nargs="+", default=None, help="Column keys (default: visible columns).")
    _add_selection_args(p)

    p = sub.add_parser("list", help="Print the settlement listing.")
    _add_selection_args(p)

    p = sub.add_parser("confirmation", help="Print an instructor fee payment confirmation.")
    p.add_argument("event_id", help="Event document id.")
    p.add_argument(
        "--instructor",
        type=int,
        default=-1,
        help="-1 for the main instructor (default), N for additional instructor N.",
    )
    p.add_argument("--fee", type=int, default=None, help="Main instructor fee override.")

    return parser


def _add_selection_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--date", nargs="+", default=(), help="Date prefixes (2025 or 2025-01).")
    p.add_argument("--name", nargs="+", default=(), help="Name substrings.")
    p.add_argument("--category", nargs="+", default=(), help="직원 / 거래처 / 활동비 / 강사비.")
    p.add_argument("--type", nargs="+", default=(), help="근로소득 / 부가세 / 사업소득 / 기타소득.")
    p.add_argument("--sort", default="date", help="Sort column key (default: date).")
    p.add_argument("--asc", action="store_true", help="Sort ascending (default: descending).")


def _criteria(args: argparse.Namespace) -> Any:
    from settlement_engines.selection import SelectionCriteria

    return SelectionCriteria(
        dates=tuple(args.date),
        names=tuple(args.name),
        categories=tuple(args.category),
        settlement_types=tuple(args.type),
        sort_key=args.sort,
        descending=not args.asc,
    )


def _fmt(value: Any, is_currency: bool) -> str:
    if is_currency and isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, Enum):
        return str(value.value)
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_sample(args: argparse.Namespace, config: Any, clock: Any) -> int:
    from settlement_config.bridges import build_sheet_names, build_withholding_rates
    from settlement_ingestion.exporters import build_sample_workbook, sample_filename

    out: Path = args.out
    if out.is_dir():
        out = out / sample_filename(clock.today())
    out.write_bytes(
        build_sample_workbook(build_sheet_names(config), build_withholding_rates(config))
    )
    print(f"Sample workbook written: {out}")
    return 0


def cmd_import(args: argparse.Namespace, app: Any) -> int:
    preview = app.imports.preview_file(args.file)

    print()
    print("=" * W)
    print(f"  IMPORT PREVIEW: {preview.source_filename}".center(W))
    print("=" * W)
    for summary in preview.sheets:
        print(
            f"  {summary.sheet_name:<16} read {summary.rows_read:>4}"
            f"  imported {summary.rows_imported:>4}  skipped {summary.rows_skipped:>4}"
        )
    print("-" * W)
    for category, count in preview.count_by_category().items():
        print(f"  {category.value:<16} {count:>4}건")
    print(f"  {'합계':<16} {preview.total:>4}건")
    print()

    if not args.yes:
        try:
            answer = input(f"  {preview.total}건을 등록하시겠습니까? [y/N] ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            answer = ""
        if answer not in ("y", "yes"):
            print("  Import cancelled.")
            return 0

    outcome = app.imports.confirm(preview)
    print(f"  {outcome.message}")
    return 0


def cmd_export(args: argparse.Namespace, app: Any) -> int:
    args.out.write_bytes(app.settlements.export_workbook())
    print(f"Workbook written: {args.out}")
    return 0


def cmd_csv(args: argparse.Namespace, app: Any) -> int:
    filename, content = app.settlements.export_csv(args.columns, _criteria(args))
    args.out_dir.mkdir(parents=True, exist_ok=True)
    out = args.out_dir / filename
    out.write_bytes(content)
    print(f"CSV written: {out}")
    return 0


def cmd_list(args: argparse.Namespace, app: Any) -> int:
    from settlement_ingestion.exporters import column_spec, default_visible_columns

    views = app.settlements.list_views(_criteria(args))
    specs = [column_spec(k) for k in default_visible_columns()]

    print("  ".join(f"{s.label:>12}" if s.is_currency else f"{s.label:<12}" for s in specs))
    print("-" * W)
    for view in views:
        cells = []
        for s in specs:
            text = _fmt(view.value(s.key), s.is_currency)
            cells.append(f"{text:>12}" if s.is_currency else f"{text:<12}")
        print("  ".join(cells))
    print("-" * W)
    print(f"  {len(views)}건")
    return 0


def cmd_confirmation(args: argparse.Namespace, app: Any) -> int:
    confirmation = app.confirmations.prepare(
        args.event_id, instructor_index=args.instructor, fee_override=args.fee
    )
    print()
    print("=" * W)
    print("  강사비 지급 확인서".center(W))
    print("=" * W)
    for label, value in confirmation.as_rows():
        print(f"  {label:<14} {value}")
    print("=" * W)
    print(f"  File: {confirmation.suggested_filename}")
    return 0


_COMMANDS = {
    "import": cmd_import,
    "export": cmd_export,
    "csv": cmd_csv,
    "list": cmd_list,
    "confirmation": cmd_confirmation,
}


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    # Lazy imports so we fail fast on args first
    from settlement_config import get_active_config
    from settlement_kernel.domain.clock import SystemClock
    from settlement_kernel.exceptions import RecordStoreError, SettlementKernelError
    from settlement_kernel.logging_config import configure_logging
    from settlement_services import build_application, describe_store_error

    try:
        config = get_active_config(args.config)
    except (OSError, ValueError, KeyError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1
    if args.db_url:
        config = replace(config, store=replace(config.store, database_url=args.db_url))

    # Later configure_logging calls are no-ops, so this level wins.
    configure_logging(level=config.logging.level if args.verbose else "WARNING")

    clock = SystemClock()
    try:
        if args.command == "sample":
            return cmd_sample(args, config, clock)
        app = build_application(config, clock)
        return _COMMANDS[args.command](args, app)
    except RecordStoreError as e:
        print(f"ERROR: {describe_store_error(e)}", file=sys.stderr)
        return 1
    except SettlementKernelError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except (KeyError, ValueError) as e:
        print(f"ERROR: Invalid option: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
