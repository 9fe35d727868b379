#!/usr/bin/env python3
"""
undup CLI: replace duplicate files in target trees with symlinks to the
authoritative copies in source trees.
Dry run prints the plan; otherwise the duplicates are swapped for symlinks.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, NoReturn, Optional, Tuple

from undup.aliases import (
    CACHE_ALIASES, CACHE_CHOICES, CACHE_HELP_TEXT,
    TIE_BREAK_ALIASES, TIE_BREAK_CHOICES, TIE_BREAK_HELP_TEXT,
    EPILOG_TEXT
)
from undup.commands import LinkCommand
from undup.core.errors import CacheError, TraversalError
from undup.core.models import Diagnostic, LinkParams, MatchingFile, MatchResult
from undup.services.link_service import LinkService

LOG_FORMAT = "%(levelname)-8s | %(name)-25s | %(message)s"
LOG_ENV_VAR = "UNDUP_LOG"


def configure_logging(verbose: bool = False) -> None:
    """Sets up root logging. UNDUP_LOG overrides the level chosen by flags."""
    level_name = os.environ.get(LOG_ENV_VAR, "").strip().upper()
    level = logging.getLevelName(level_name) if level_name else None
    if not isinstance(level, int):
        level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="undup",
            description="undup: replace duplicate files with symlinks to their originals",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        # Required arguments
        parser.add_argument(
            "--source-paths", "-s",
            nargs="+",
            required=True,
            type=str,
            metavar="PATH",
            dest="source_paths",
            help="Files or directories holding the authoritative copies"
        )
        parser.add_argument(
            "--target-paths", "-t",
            nargs="+",
            required=True,
            type=str,
            metavar="PATH",
            dest="target_paths",
            help="Files or directories whose duplicates become symlinks"
        )

        # Matching options
        parser.add_argument(
            "--cache",
            choices=CACHE_CHOICES,
            default="none",
            type=str,
            help=CACHE_HELP_TEXT
        )
        parser.add_argument(
            "--cache-path",
            default=None,
            type=str,
            metavar="PATH",
            help="Location of the persistent hash cache. Default: ~/.cache/undup/hashes.db"
        )
        parser.add_argument(
            "--cache-size",
            default=None,
            type=int,
            metavar="N",
            help="Keep at most N hashes in the memory cache (least recently used are dropped)"
        )
        parser.add_argument(
            "--tie-break",
            choices=TIE_BREAK_CHOICES,
            default="discovery",
            type=str,
            help=TIE_BREAK_HELP_TEXT
        )
        parser.add_argument(
            "--verify-symlinks",
            action="store_true",
            help="Re-hash the targets of existing symlinks before linking more files to them"
        )

        # Actions
        parser.add_argument(
            "--dry-run", "-d",
            action="store_true",
            help="Only print which files would be replaced"
        )
        parser.add_argument(
            "--trash",
            action="store_true",
            help="Move duplicates to the system trash instead of deleting them"
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Skip the confirmation prompt (for automation/scripts)"
        )

        # Output options
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show statistics and informational log messages"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.force and args.dry_run:
            self.error_exit("--force cannot be used with --dry-run")

        if args.cache_path and args.cache != "persistent":
            self.warning("--cache-path is ignored unless --cache persistent is used")

        if args.cache_size is not None and args.cache != "memory":
            self.warning("--cache-size is ignored unless --cache memory is used")

        # Prevent interactive confirmation in non-TTY environments
        if not args.dry_run and not args.force:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Cannot request interactive confirmation in non-interactive session.\n"
                    "Use --force to proceed without confirmation, or --dry-run to only show the plan."
                )

        for path in args.source_paths + args.target_paths:
            if not Path(path).exists():
                self.error_exit(f"Path not found: {path}")

    def create_params(self, args: argparse.Namespace) -> LinkParams:
        """Create LinkParams from CLI arguments."""
        try:
            return LinkParams(
                source_roots=[Path(p) for p in args.source_paths],
                target_roots=[Path(p) for p in args.target_paths],
                dry_run=args.dry_run,
                cache_mode=CACHE_ALIASES[args.cache],
                cache_path=Path(args.cache_path) if args.cache_path else None,
                cache_max_entries=args.cache_size if args.cache == "memory" else None,
                tie_break=TIE_BREAK_ALIASES[args.tie_break],
                verify_symlinks=args.verify_symlinks,
                use_trash=args.trash,
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def report_diagnostic(self, diagnostic: Diagnostic) -> None:
        if not self.quiet:
            print(f"note: {diagnostic}", file=sys.stderr)

    def run_matching(self, params: LinkParams) -> MatchResult:
        """Build both indexes and compute the matches."""
        try:
            with LinkCommand.from_params(params) as command:
                result, stats = command.execute(
                    params.source_roots,
                    params.target_roots,
                    on_diagnostic=self.report_diagnostic,
                )
        except CacheError as e:
            self.error_exit(str(e))
        except TraversalError as e:
            self.error_exit(f"{e}\nNo files were changed.")

        if self.verbose:
            print(stats.print_summary())
        return result

    def output_plan(self, matches: List[MatchingFile]) -> None:
        """Print the dry-run plan."""
        if not matches:
            if not self.quiet:
                print("No duplicates found.")
            return

        for line in LinkService.dry_run(matches):
            print(line)
        if not self.quiet:
            print(f"\n{len(matches)} file(s) would be replaced with symlinks.")

    def execute_apply(self, matches: List[MatchingFile], use_trash: bool = False, force: bool = False) -> bool:
        """Replace duplicates with symlinks. Returns False if any match failed."""
        if not matches:
            if not self.quiet:
                print("No duplicates found.")
            return True

        if not force:
            self.output_plan(matches)
            action = "move to trash and replace" if use_trash else "replace"
            response = input(f"Are you sure you want to {action} {len(matches)} files with symlinks? [y/N]: ")
            if response.strip().lower() not in ("y", "yes"):
                print("Cancelled by user.")
                return True

        report = LinkService.apply(
            matches,
            use_trash=use_trash,
            progress_callback=self.progress_callback if self.verbose else None,
        )

        if report.failed:
            print(f"\n⚠️  Partial success: {len(report.linked)}/{len(matches)} files replaced.")
            self._print_failures(report.failed)
            return False

        if not self.quiet:
            print(f"✅ Replaced {len(report.linked)} files with symlinks"
                  f" ({len(report.unchanged)} already linked).")
        return True

    @staticmethod
    def progress_callback(current: int, total: int, match: MatchingFile) -> None:
        print(f"  [{current}/{total}] {match.dest_path}")

    @staticmethod
    def _print_failures(failed: List[Tuple[MatchingFile, str]]) -> None:
        print(f"Failed to replace {len(failed)} file(s):")
        for match, error in failed[:5]:  # Show first 5 errors
            print(f"  • {match.dest_path}: {error}")
        if len(failed) > 5:
            print(f"  ...and {len(failed) - 5} more files")

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Main entry point. Returns the process exit code."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        configure_logging(self.verbose)

        self.validate_args(args)
        params = self.create_params(args)

        result = self.run_matching(params)

        if params.dry_run:
            self.output_plan(result.matches)
            ok = True
        else:
            ok = self.execute_apply(result.matches, use_trash=params.use_trash, force=args.force)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\nCompleted in {elapsed:.2f} seconds")
        return 0 if ok else 1


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        sys.exit(app.run())
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
