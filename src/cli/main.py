"""Tabstore CLI entry points.
This module exposes commands for import, statistics, charts, and export.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.chart_command import CHART_COMMANDS, add_chart_commands, run_chart_command
from core.config import TabstoreConfig
from core.errors import TabstoreError
from core.types import ImportOptions
from stats.cancellation import CancellationToken
from stats.summary import ColumnSummary
from store.dataset_sdk import TabstoreClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="tabstore", description="Columnar CSV store CLI")
    parser.add_argument("--data-root", help="Override TABSTORE_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_infer_command(subparsers)
    _add_import_command(subparsers)
    _add_export_command(subparsers)
    _add_describe_command(subparsers)
    _add_row_command(subparsers)
    _add_verify_command(subparsers)
    _add_list_command(subparsers)
    _add_delete_command(subparsers)
    add_chart_commands(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tabstore CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        return _dispatch(client, args)
    except TabstoreError as error:
        print(f"error={error}", file=sys.stderr)
        return 1


def _dispatch(client: TabstoreClient, args: argparse.Namespace) -> int:
    if args.command == "infer":
        return _run_infer_command(client, args)
    if args.command == "import":
        return _run_import_command(client, args)
    if args.command == "export":
        return _run_export_command(client, args)
    if args.command == "describe":
        return _run_describe_command(client, args)
    if args.command == "row":
        return _run_row_command(client, args)
    if args.command == "verify":
        return _run_verify_command(client, args)
    if args.command == "list":
        return _run_list_command(client)
    if args.command == "delete":
        return _run_delete_command(client, args)
    if args.command in CHART_COMMANDS:
        return run_chart_command(client, args)
    raise TabstoreError(f"Unsupported command: {args.command}")


def _build_client(data_root: str | None) -> TabstoreClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = TabstoreConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return TabstoreClient(config)


def _run_infer_command(client: TabstoreClient, args: argparse.Namespace) -> int:
    """Handle infer command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    output_path = Path(args.output).expanduser()
    _, report = client.infer(args.source, args.dataset, output_path, args.has_header)
    for column in report.columns:
        marker = "ambiguous" if column.ambiguous else "ok"
        note = f"\t{column.note}" if column.note else ""
        print(f"{column.name}\t{column.column_type.value}\t{marker}{note}")
    print(f"sample_rows={report.sample_rows}")
    print(f"metadata_path={output_path}")
    return 0


def _run_import_command(client: TabstoreClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = ImportOptions(
        dataset_name=args.dataset,
        source_path=args.source,
        metadata_path=args.metadata,
        replace=args.replace,
        has_header=args.has_header,
    )
    result = client.import_csv(options)
    if result.inference is not None:
        for column in result.inference.ambiguous_columns:
            print(f"ambiguous_column={column.name}\t{column.column_type.value}\t{column.note}")
    print(f"dataset={result.dataset_name}")
    print(f"rows={result.row_count}")
    print(f"columns={result.column_count}")
    print(f"path={result.dataset_root}")
    return 0


def _run_export_command(client: TabstoreClient, args: argparse.Namespace) -> int:
    """Handle export command."""
    rows = client.dataset(args.dataset).export_csv(Path(args.output))
    print(f"rows={rows}")
    print(f"path={args.output}")
    return 0


def _run_describe_command(client: TabstoreClient, args: argparse.Namespace) -> int:
    """Handle describe command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    dataset = client.dataset(args.dataset)
    token = CancellationToken(args.deadline) if args.deadline else None
    summaries = dataset.describe_all(args.column or None, token)
    for index, summary in enumerate(summaries):
        if index:
            print()
        _print_summary(summary)
    if args.report:
        report_path = Path(args.report).expanduser()
        dataset.write_report(report_path, summaries)
        print()
        print(f"report_path={report_path}")
    return 0


def _run_row_command(client: TabstoreClient, args: argparse.Namespace) -> int:
    """Handle row command."""
    dataset = client.dataset(args.dataset)
    row = dataset.read_row(args.index)
    for name, raw_text in zip(dataset.metadata.column_names, row.raw_values):
        print(f"{name}={raw_text}")
    return 0


def _run_verify_command(client: TabstoreClient, args: argparse.Namespace) -> int:
    """Handle verify command."""
    rows = client.dataset(args.dataset).verify()
    print(f"rows={rows}")
    print("status=ok")
    return 0


def _run_list_command(client: TabstoreClient) -> int:
    """Handle list command."""
    for dataset_name in client.list_datasets():
        print(dataset_name)
    return 0


def _run_delete_command(client: TabstoreClient, args: argparse.Namespace) -> int:
    """Handle delete command."""
    removed = client.delete_dataset(args.dataset)
    print(f"deleted={removed}")
    return 0


def _print_summary(summary: ColumnSummary) -> None:
    payload = summary.to_payload()
    frequencies: Any = payload.pop("frequencies", [])
    for key, value in payload.items():
        if isinstance(value, list):
            value = ",".join(str(item) for item in value) or "-"
        elif value is None:
            value = "-"
        print(f"{key}={value}")
    for row in frequencies:
        print(f"frequency={row['value']}\t{row['count']}\t{row['percentage']}%")


def _add_infer_command(subparsers: Any) -> None:
    """Register infer subcommand."""
    parser = subparsers.add_parser("infer", help="Infer a metadata file from a CSV sample")
    parser.add_argument("source", help="CSV file to sample")
    parser.add_argument("--dataset", required=True, help="Dataset name recorded in metadata")
    parser.add_argument("--output", required=True, help="Metadata YAML file to write")
    _add_header_arguments(parser)


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Import a CSV file into a column store")
    parser.add_argument("source", help="CSV file to import")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument("--metadata", help="Metadata YAML; types are inferred when omitted")
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Replace an existing dataset once the new import completes",
    )
    _add_header_arguments(parser)


def _add_header_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the header directive shared by infer and import."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--header",
        dest="has_header",
        action="store_true",
        default=None,
        help="Treat the first row as column names",
    )
    group.add_argument(
        "--no-header",
        dest="has_header",
        action="store_false",
        default=None,
        help="Treat the first row as data and name columns column_1, column_2, ...",
    )


def _add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser("export", help="Export a dataset back to CSV")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument("--output", required=True, help="Destination CSV file")


def _add_describe_command(subparsers: Any) -> None:
    """Register describe subcommand."""
    parser = subparsers.add_parser("describe", help="Print descriptive statistics")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument(
        "--column",
        action="append",
        help="Column to describe; repeat for several, all columns when omitted",
    )
    parser.add_argument("--report", help="Also write all summaries to this YAML file")
    parser.add_argument(
        "--deadline",
        type=float,
        help="Give up after this many seconds, checked between passes",
    )


def _add_row_command(subparsers: Any) -> None:
    """Register row subcommand."""
    parser = subparsers.add_parser("row", help="Print one row across all columns")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument("index", type=int, help="Zero-based row index")


def _add_verify_command(subparsers: Any) -> None:
    """Register verify subcommand."""
    parser = subparsers.add_parser("verify", help="Check row alignment and the recorded row count")
    parser.add_argument("--dataset", required=True, help="Dataset name")


def _add_list_command(subparsers: Any) -> None:
    """Register list subcommand."""
    subparsers.add_parser("list", help="List imported datasets")


def _add_delete_command(subparsers: Any) -> None:
    """Register delete subcommand."""
    parser = subparsers.add_parser("delete", help="Delete a dataset directory")
    parser.add_argument("--dataset", required=True, help="Dataset name")
