"""Command line front end for recording and managing daily updates."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional, Sequence

from daily_updates.errors import RecordValidationError
from daily_updates.logging_config import configure_logging, enable_console_logging
from daily_updates.models import DailyUpdate, new_update
from daily_updates.sheets_service import DailyUpdateService
from daily_updates.write_strategies import ManualInstructions, WriteResult
from settings import SETTINGS_PATH, load_settings

_WRITE_OUTCOMES = {
    WriteResult.CONFIRMED: "saved to Google Sheets",
    WriteResult.UNKNOWN: "sent to Google Sheets (unconfirmed)",
    WriteResult.DENIED: "kept locally",
}


def print_instructions(instructions: ManualInstructions) -> None:
    print(instructions.render())


def _build_service(args: argparse.Namespace) -> DailyUpdateService:
    settings = load_settings(args.settings)
    return DailyUpdateService.from_settings(settings, instruction_sink=print_instructions)


def _format_table(records: Sequence[DailyUpdate]) -> str:
    headers = ("SN", "Date", "Account", "Project", "Remarks", "ID")
    rows: List[Sequence[str]] = [
        (str(record.sn), record.date, record.account_name, record.project_name, record.remarks, record.id or "")
        for record in records
    ]
    widths = [len(header) for header in headers]
    for row in rows:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row)]
    lines = ["  ".join(header.ljust(width) for header, width in zip(headers, widths))]
    lines.append("  ".join("-" * width for width in widths))
    for row in rows:
        lines.append("  ".join(cell.ljust(width) for cell, width in zip(row, widths)))
    return "\n".join(lines)


def _print_record(record: DailyUpdate) -> None:
    print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))


def command_list(args: argparse.Namespace) -> int:
    service = _build_service(args)
    records = service.list_records()
    if args.json:
        print(json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2))
        return 0
    if not records:
        print("No daily updates recorded yet.")
        return 0
    print(_format_table(list(reversed(records))))
    return 0


def command_add(args: argparse.Namespace) -> int:
    try:
        partial = new_update(args.account, args.project, args.remarks or "")
    except RecordValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    service = _build_service(args)
    record = service.add_record(partial)
    _print_record(record)
    outcome = _WRITE_OUTCOMES.get(service.last_write_result, "not stored")
    print(f"Record {record.id}: {outcome}.")
    return 0


def command_update(args: argparse.Namespace) -> int:
    changes: Dict[str, str] = {}
    for attribute in ("account_name", "project_name", "remarks", "date"):
        value = getattr(args, attribute)
        if value is not None:
            changes[attribute] = value.strip()
    for attribute in ("account_name", "project_name"):
        if attribute in changes and not changes[attribute]:
            print(f"Error: {attribute.replace('_', ' ')} cannot be empty", file=sys.stderr)
            return 1
    if not changes:
        print("Error: nothing to update", file=sys.stderr)
        return 1

    service = _build_service(args)
    record = service.update_record(args.id, changes)
    _print_record(record)
    return 0


def command_delete(args: argparse.Namespace) -> int:
    service = _build_service(args)
    service.delete_record(args.id)
    print(f"Delete requested for {args.id}.")
    return 0


def command_probe(args: argparse.Namespace) -> int:
    service = _build_service(args)
    if service.test_sheet_access():
        print(f"Sheet access OK: {service.sheet_title or '(untitled)'}")
        return 0
    print("Sheet access failed. See the log for details.", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Daily update tracker backed by Google Sheets")
    parser.add_argument("--settings", default=SETTINGS_PATH, help="Path to the settings JSON file")
    parser.add_argument("--verbose", action="store_true", help="Echo debug logging to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="Show all daily updates, newest first")
    list_parser.add_argument("--json", action="store_true", help="Print records as JSON")
    list_parser.set_defaults(func=command_list)

    add_parser = subparsers.add_parser("add", help="Record a new daily update")
    add_parser.add_argument("--account", required=True, help="Account name")
    add_parser.add_argument("--project", required=True, help="Project name")
    add_parser.add_argument("--remarks", default="", help="Free-text remarks")
    add_parser.set_defaults(func=command_add)

    update_parser = subparsers.add_parser("update", help="Edit an existing daily update")
    update_parser.add_argument("id", help="Record identifier")
    update_parser.add_argument("--account", dest="account_name", help="New account name")
    update_parser.add_argument("--project", dest="project_name", help="New project name")
    update_parser.add_argument("--remarks", help="New remarks")
    update_parser.add_argument("--date", help="New ISO-8601 date")
    update_parser.set_defaults(func=command_update)

    delete_parser = subparsers.add_parser("delete", help="Delete a daily update")
    delete_parser.add_argument("id", help="Record identifier")
    delete_parser.set_defaults(func=command_delete)

    probe_parser = subparsers.add_parser("probe", help="Check that the spreadsheet is reachable")
    probe_parser.set_defaults(func=command_probe)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    if args.verbose:
        enable_console_logging(logging.DEBUG)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
