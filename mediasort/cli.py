"""
Command-line interface for mediasort.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from .config import Config, SortSettings
from .constants import PROGRAM, QUOTA_SCOPES, get_console, get_logger
from .core import MediaSorter
from .errors import MediaSortError


def positive_int(value: str) -> int:
    """argparse type for strictly positive integers."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a number: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"Must be at least 1: {value}")
    return number


def create_parser(config: Config) -> argparse.ArgumentParser:
    """Create argument parser with dynamic defaults from config."""
    last_input = config.get_last_input()
    last_output = config.get_last_output()
    timezone = config.get_timezone()

    input_help = "Input directory. Where to read the unsorted files from"
    output_help = "Output directory. This is where the folders named YEAR/MONTH go"
    timezone_help = "Zone for metadata dates without an offset"

    if last_input:
        input_help += f" (default: {last_input})"
    if last_output:
        output_help += f" (default: {last_output})"
    timezone_help += f" (default: {timezone or 'system zone'})"

    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="Sort photos and videos into YEAR/MONTH folders by their metadata date",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  {PROGRAM} -i ~/Uploads -o ~/Pictures
  {PROGRAM} -i ~/Uploads -o ~/Pictures --dry-run --verbose
  {PROGRAM} -i ~/Uploads -o ~/Pictures -m 100 -p ~/bin/rescan.sh
        """
    )

    parser.add_argument(
        "--input", "-i", dest="input_dir",
        help=input_help
    )
    parser.add_argument(
        "--output", "-o", dest="output_dir",
        help=output_help
    )
    parser.add_argument(
        "--max", "-m", dest="max_files", type=positive_int, default=config.get_max_files(),
        help=f"Maximum number of files to process; with --quota-scope valid only "
             f"dated files count (default: {config.get_max_files()})"
    )
    parser.add_argument(
        "--postscript", "-p", type=Path, metavar="SCRIPT",
        help="Script to execute when this tool is finished"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Print actions"
    )
    parser.add_argument(
        "--dry-run", "-d", action="store_true",
        help="Do not perform any file operations"
    )
    parser.add_argument(
        "--workers", "-w", type=positive_int, default=config.get_workers(),
        help="Number of parallel workers (default: CPU count minus one)"
    )
    parser.add_argument(
        "--timezone", "--tz", type=str, metavar="TIMEZONE",
        help=timezone_help
    )
    parser.add_argument(
        "--quota-scope", choices=QUOTA_SCOPES, default="total",
        help="Count all files ('total') or only dated files ('valid') against --max"
    )
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=f"Display the version number of {PROGRAM} and exit"
    )

    return parser


def show_processing_plan(settings: SortSettings, console: Console) -> None:
    """Display the processing plan before execution."""
    mode = "DRY RUN" if settings.dry_run else "MOVE"

    console.print("\n[bold]Processing Plan:[/bold]")
    console.print(f"  Input:           [blue]{settings.input_dir}[/blue]")
    console.print(f"  Output:          [blue]{settings.output_dir}[/blue]")
    console.print(f"  Unsorted:        [blue]{settings.unsorted_dir}[/blue]")
    console.print(f"  Processing Mode: [cyan]{mode}[/cyan]")
    console.print(f"  Max Files:       [cyan]{settings.max_files} ({settings.quota_scope})[/cyan]")
    console.print(f"  Workers:         [cyan]{settings.worker_count}[/cyan]")
    console.print(f"  Timezone:        [cyan]{settings.timezone or 'system'}[/cyan]")
    if settings.postscript:
        console.print(f"  Postscript:      [cyan]{settings.postscript}[/cyan]")
    console.print()


def main(argv: Optional[Sequence[str]] = None, config_path: Optional[Path] = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        config_path: Optional path to config file (for testing)
    """
    config = Config(config_path=config_path)
    parser = create_parser(config)
    args = parser.parse_args(argv)
    console = get_console()

    if args.version:
        from . import __version__
        console.print(f"{PROGRAM} {__version__}")
        return 0

    input_path = args.input_dir or config.get_last_input()
    output_path = args.output_dir or config.get_last_output()
    if not input_path or not output_path:
        parser.error("Input and output directories are required")

    input_dir = Path(input_path).expanduser().resolve()
    output_dir = Path(output_path).expanduser().resolve()

    if not input_dir.is_dir():
        console.print(f"[red]Error: Input directory does not exist: {input_dir}[/red]")
        return 1

    timezone = args.timezone if args.timezone is not None else config.get_timezone()
    try:
        settings = SortSettings(
            input_dir=input_dir,
            output_dir=output_dir,
            max_files=args.max_files,
            postscript=args.postscript.expanduser().resolve() if args.postscript else None,
            verbose=args.verbose,
            dry_run=args.dry_run,
            workers=args.workers,
            timezone=timezone,
            quota_scope=args.quota_scope,
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    config.update_paths(str(input_dir), str(output_dir))
    if args.timezone:
        config.update_timezone(args.timezone)

    show_processing_plan(settings, console)

    try:
        sorter = MediaSorter(settings, console=console)
        sorter.run()
        sorter.print_summary()
    except KeyboardInterrupt:
        console.print("\n[red]Operation cancelled by user[/red]")
        return 1
    except MediaSortError as e:
        console.print(f"\n[red]Fatal error: {e}[/red]")
        return 1
    except Exception as e:
        get_logger().debug("Unexpected failure", exc_info=True)
        console.print(f"\n[red]Unexpected error: {e}[/red]")
        return 1

    if not sorter.postscript_ok:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
