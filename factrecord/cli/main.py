"""
factrecord CLI — Read-only audit of stored Fact bindings.

Commands:
    factrecord audit <dump>            — Resolve every Fact, report corruption
    factrecord show <dump> <fact_id>   — Show one reconciled Fact

This CLI never writes back to the dump.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional
from uuid import UUID

from ..conversion.fact_converter import (
    BatchConversionResult,
    FactRecordConverter,
    convert_entities,
)
from ..domain import FactRecord, ObjectRecord
from ..resolution.binding_resolver import ObjectLookupError
from .dump import DumpFormatError, LoadedDump, load_dump

logger = logging.getLogger(__name__)


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_object(obj: Optional[ObjectRecord]) -> str:
    if obj is None:
        return "-"
    if obj.value:
        return f"{obj.value} ({obj.id})"
    return str(obj.id)


def format_endpoints(record: FactRecord) -> str:
    """Format the resolved endpoints of a Fact on one line."""
    arrow = "<->" if record.bidirectional_binding else "->"
    return f"{format_object(record.source_object)} {arrow} {format_object(record.destination_object)}"


def format_fact_row(record: FactRecord) -> str:
    retracted = " [RETRACTED]" if record.is_retracted() else ""
    return f"{record.id} | {record.value or ''} | {format_endpoints(record)}{retracted}"


def format_record(record: FactRecord) -> str:
    """Format the full reconciled record."""
    lines = [
        f"Fact: {record.id}",
        "=" * 50,
        f"  Type:          {record.type_id}",
        f"  Value:         {record.value}",
        f"  Organization:  {record.organization_id}",
        f"  Origin:        {record.origin_id}",
        f"  Access mode:   {record.access_mode.value if record.access_mode else '-'}",
        f"  Confidence:    {record.confidence}",
        f"  Trust:         {record.trust}",
        f"  Source:        {format_object(record.source_object)}",
        f"  Destination:   {format_object(record.destination_object)}",
        f"  Bidirectional: {record.bidirectional_binding}",
        f"  Flags:         {', '.join(sorted(f.value for f in record.flags)) or '-'}",
    ]

    if record.acl:
        lines.append("")
        lines.append("ACL:")
        for entry in record.acl:
            lines.append(f"  • {entry.subject_id}")

    if record.comments:
        lines.append("")
        lines.append("COMMENTS:")
        for comment in record.comments:
            lines.append(f"  • [{comment.timestamp}] {comment.comment}")

    return "\n".join(lines)


def _converter(dump: LoadedDump) -> FactRecordConverter:
    return FactRecordConverter(
        dump.object_manager,
        dump.fact_manager,
        dump.fact_search_manager,
    )


def _load(path: str) -> Optional[LoadedDump]:
    try:
        return load_dump(path)
    except (OSError, DumpFormatError) as e:
        print("ERROR: Could not load dump")
        print(f"Reason: {e}")
        return None


# =============================================================================
# CLI COMMANDS
# =============================================================================

def print_audit(result: BatchConversionResult) -> None:
    print("factrecord — Binding Audit")
    print("=" * 70)
    print()

    for record in result.records:
        print(format_fact_row(record))

    print()
    print("STATISTICS:")
    print(f"  Facts processed: {result.total}")
    print(f"  Converted:       {len(result.records)}")
    print(f"  Corrupt:         {len(result.corrupt)}")
    print(f"  Failed:          {len(result.failures)}")

    if result.corrupt:
        print()
        print("CORRUPT BINDINGS:")
        for diagnostic in result.corrupt:
            print(f"  • [{diagnostic.problem.value}] {diagnostic.message}")

    if result.failures:
        print()
        print("FAILURES:")
        for failure in result.failures:
            print(f"  • {failure.fact_id}: {failure.reason}")


def cmd_audit(args: argparse.Namespace) -> int:
    """Resolve every Fact in the dump."""
    dump = _load(args.dump)
    if dump is None:
        return 1

    result = convert_entities(_converter(dump), dump.fact_manager.list_facts())
    print_audit(result)

    return 0 if result.is_clean else 1


def cmd_show(args: argparse.Namespace) -> int:
    """Show one reconciled Fact."""
    dump = _load(args.dump)
    if dump is None:
        return 1

    try:
        fact_id = UUID(args.fact_id)
    except ValueError:
        print(f"Invalid Fact id: {args.fact_id}")
        return 1

    entity = dump.fact_manager.get_fact(fact_id)
    if entity is None:
        print(f"Fact not found: {fact_id}")
        return 1

    try:
        record = _converter(dump).from_entity(entity)
    except ObjectLookupError as e:
        print(f"ERROR: {e}")
        return 1

    print(format_record(record))
    return 0


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="factrecord",
        description="factrecord — Fact binding reconciliation",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    audit_parser = subparsers.add_parser(
        "audit",
        help="Resolve every Fact in a dump and report corrupt bindings",
    )
    audit_parser.add_argument("dump", help="Path to a JSON dump")
    audit_parser.set_defaults(func=cmd_audit)

    show_parser = subparsers.add_parser(
        "show",
        help="Show one reconciled Fact",
    )
    show_parser.add_argument("dump", help="Path to a JSON dump")
    show_parser.add_argument("fact_id", help="Fact ID to show")
    show_parser.set_defaults(func=cmd_show)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    logger.debug("Running command %s", args.command)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
