#!/usr/bin/env python3
"""
stackscope command line interface.

Inspect profiles from the terminal: detect their format, print either view
of the call tree, or list the heaviest frames.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import polars as pl

from stackscope.conf import ScopeConfig
from stackscope.detect import detect_format
from stackscope.errors import ProfileImportError
from stackscope.flamechart import Flamechart
from stackscope.session import ProfileSession, SortOrder
from stackscope.stats import top_frames


def render_tree(view: Flamechart, max_depth: Optional[int] = None) -> List[str]:
    """
    Render a view as indented text, one line per node.

    Args:
        view (Flamechart): The view to render.
        max_depth (Optional[int]): Deepest layer to print, counting from 1.

    Returns:
        List[str]: The rendered lines.
    """
    total = view.total_weight
    lines = []
    pending = list(reversed(view.root.children))
    while pending:
        node = pending.pop()
        depth = node.depth - 1
        share = (node.weight / total * 100.0) if total else 0.0
        lines.append(
            f"{'  ' * depth}{node.frame.name}  {view.format_value(node.weight)} ({share:.1f}%)"
        )
        if max_depth is None or node.depth < max_depth:
            pending.extend(reversed(node.children))
    return lines


class StackscopeCLI:
    """Command-line interface for inspecting profiles."""

    def __init__(self):
        self.config = ScopeConfig()
        self.logger = logging.getLogger(__name__)

    def setup_logging(self, level: str = "WARNING"):
        """Setup logging configuration."""
        log_level = getattr(logging, level.upper(), logging.WARNING)
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    def load_config(self, path: Optional[str]):
        if path:
            self.config = ScopeConfig.from_file(path)

    def _load(self, file: str) -> Optional[ProfileSession]:
        session = ProfileSession(self.config)
        if session.load_file(file) is None:
            print(f"Unrecognized format: {file}", file=sys.stderr)
            return None
        return session

    def cmd_detect(self, args) -> int:
        """Print the detected format of a file."""
        path = Path(args.file)
        try:
            profile_format = detect_format(path.read_bytes(), path.name)
        except ProfileImportError as e:
            self.logger.debug(f"Detection failed: {e}")
            print(f"Unrecognized format: {args.file}", file=sys.stderr)
            return 1
        print(profile_format.value)
        return 0

    def cmd_tree(self, args) -> int:
        """Print a view of the call tree."""
        session = self._load(args.file)
        if session is None:
            return 1
        if args.order is not None:
            session.set_sort_order(args.order)
        view = session.active_view
        profile = session.profile
        print(f"{profile.name}  total {view.format_value(view.total_weight)}  [{session.sort_order.value}]")
        for line in render_tree(view, args.max_depth):
            print(line)
        return 0

    def cmd_top(self, args) -> int:
        """Print the heaviest frames."""
        session = self._load(args.file)
        if session is None:
            return 1
        profile = session.profile
        table = top_frames(profile, limit=args.limit, by=args.by)
        table = table.with_columns(
            pl.col("self_weight").map_elements(profile.format_value, return_dtype=pl.Utf8).alias("self"),
            pl.col("total_weight").map_elements(profile.format_value, return_dtype=pl.Utf8).alias("total"),
        ).select(["name", "file", "line", "self", "total"])
        with pl.Config(tbl_rows=args.limit, fmt_str_lengths=80):
            print(table)
        return 0

    def create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="stackscope",
            description="Import profiles from sampling profilers and inspect their call trees.",
        )
        parser.add_argument("--log-level", default="WARNING", help="Logging level")
        parser.add_argument("--config", help="Path to a JSON configuration file")

        subparsers = parser.add_subparsers(dest="command", required=True)

        detect_parser = subparsers.add_parser("detect", help="Print the detected format")
        detect_parser.add_argument("file", help="Profile to inspect")
        detect_parser.set_defaults(handler=self.cmd_detect)

        tree_parser = subparsers.add_parser("tree", help="Print the call tree")
        tree_parser.add_argument("file", help="Profile to inspect")
        tree_parser.add_argument(
            "--order",
            default=None,
            type=SortOrder.parse,
            help="chronological or left_heavy, defaults to the configured initial order",
        )
        tree_parser.add_argument("--max-depth", type=int, default=None, help="Deepest layer to print")
        tree_parser.set_defaults(handler=self.cmd_tree)

        top_parser = subparsers.add_parser("top", help="Print the heaviest frames")
        top_parser.add_argument("file", help="Profile to inspect")
        top_parser.add_argument("-n", "--limit", type=int, default=20, help="Number of frames")
        top_parser.add_argument(
            "--by",
            choices=["self_weight", "total_weight"],
            default="self_weight",
            help="Column to rank by",
        )
        top_parser.set_defaults(handler=self.cmd_top)
        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        parser = self.create_parser()
        args = parser.parse_args(argv)
        self.setup_logging(args.log_level)
        self.load_config(args.config)
        return args.handler(args)


def main():
    sys.exit(StackscopeCLI().run())


if __name__ == "__main__":
    main()
