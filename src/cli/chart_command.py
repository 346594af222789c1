"""Chart command wiring for tabstore CLI."""

from __future__ import annotations

import argparse
import sys
from typing import Any

from charts.glyphs import resolve_style
from charts.renderer import CharGrid
from core.constants import (
    CHART_STYLES,
    DEFAULT_CHART_STYLE,
    DEFAULT_HISTOGRAM_BUCKETS,
    DEFAULT_SCATTER_SAMPLE_SIZE,
    DEFAULT_TOP_FREQUENCIES,
)
from stats.cancellation import CancellationToken
from store.dataset_sdk import TabstoreClient

CHART_COMMANDS = ("histogram", "scatter", "boxplot", "frequency")


def add_chart_commands(subparsers: Any) -> None:
    """Register chart subcommands."""
    histogram = subparsers.add_parser("histogram", help="Render a histogram of a numeric column")
    _add_common_arguments(histogram)
    histogram.add_argument("--column", required=True, help="Numeric column")
    histogram.add_argument(
        "--buckets",
        type=int,
        default=DEFAULT_HISTOGRAM_BUCKETS,
        help="Fixed bucket count over [min, max]",
    )
    histogram.add_argument("--height", type=int, help="Grid height in rows")

    scatter = subparsers.add_parser("scatter", help="Render a scatter plot of two numeric columns")
    _add_common_arguments(scatter)
    scatter.add_argument("--x", required=True, dest="x_column", help="Horizontal column")
    scatter.add_argument("--y", required=True, dest="y_column", help="Vertical column")
    scatter.add_argument(
        "--sample-size",
        type=int,
        default=DEFAULT_SCATTER_SAMPLE_SIZE,
        help="Reservoir sample size",
    )
    scatter.add_argument("--height", type=int, help="Grid height in rows")

    boxplot = subparsers.add_parser("boxplot", help="Render a box-and-whiskers plot")
    _add_common_arguments(boxplot)
    boxplot.add_argument("--column", required=True, help="Numeric column")
    boxplot.add_argument("--height", type=int, help="Grid height in rows")
    boxplot.add_argument(
        "--deadline",
        type=float,
        help="Give up after this many seconds, checked between passes",
    )

    frequency = subparsers.add_parser("frequency", help="Render value frequencies as bars")
    _add_common_arguments(frequency)
    frequency.add_argument("--column", required=True, help="Boolean or short_string column")
    frequency.add_argument(
        "--top",
        type=int,
        default=DEFAULT_TOP_FREQUENCIES,
        help="Number of most frequent values",
    )


def run_chart_command(client: TabstoreClient, args: argparse.Namespace) -> int:
    """Render the requested chart to stdout."""
    dataset = client.dataset(args.dataset)
    style = resolve_style(args.style or client.config.chart_style, sys.stdout.encoding)
    grid: CharGrid
    if args.command == "histogram":
        grid = dataset.histogram(args.column, style, args.buckets, args.width, args.height)
    elif args.command == "scatter":
        grid = dataset.scatter(
            args.x_column, args.y_column, style, args.sample_size, args.width, args.height
        )
    elif args.command == "boxplot":
        token = CancellationToken(args.deadline) if args.deadline else None
        grid = dataset.box_plot(args.column, style, args.width, args.height, token)
    else:
        grid = dataset.frequency(args.column, style, args.top, args.width)
    print(grid.to_text())
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument(
        "--style",
        choices=(DEFAULT_CHART_STYLE,) + CHART_STYLES,
        help="Glyph style; defaults to TABSTORE_CHART_STYLE",
    )
    parser.add_argument("--width", type=int, help="Grid width in characters")
