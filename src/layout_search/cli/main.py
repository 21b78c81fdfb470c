"""Main CLI entry point for layout-search."""

import sys
import argparse
import logging
from typing import List, Optional, Tuple

from . import commands
from .utils import setup_logging

STRATEGY_CHOICES = ['uniform_cost', 'heuristic', 'ucs', 'dijkstra', 'astar', 'a_star']
POLICY_CHOICES = ['closed_set_only', 'open_and_closed', 'closed', 'dedup', 'open_closed']

# Subcommand name -> handler attribute on the commands module
COMMAND_HANDLERS = {
    'solve': 'solve_command',
    'batch': 'batch_command',
    'config': 'config_command',
}

EPILOG = """
Examples:
  layout-search solve tiles 123456708 123456780
  layout-search solve containers "A1 B2" "B2A1" -s astar
  printf 'A C\\nCA\\n' | layout-search solve containers
  layout-search -o results.json batch problems.json --max-nodes 100000
  layout-search -c search.strategy=heuristic config show
"""


def _add_search_options(subparser: argparse.ArgumentParser) -> None:
    group = subparser.add_argument_group('search limits and strategy')
    group.add_argument('--strategy', '-s', choices=STRATEGY_CHOICES,
                       help='Node ordering: g alone (uniform_cost) or g + h (heuristic)')
    group.add_argument('--policy', '-p', choices=POLICY_CHOICES,
                       help='How successors already waiting in the frontier are treated')
    group.add_argument('--max-nodes', type=int, metavar='N',
                       help='Give up after N expansions')
    group.add_argument('--max-depth', type=int, metavar='D',
                       help='Never expand nodes D or more moves from the start')
    group.add_argument('--timeout', '-t', type=float, metavar='SECONDS',
                       help='Wall-clock budget for one search')


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog='layout-search',
        description='Find the cheapest sequence of moves between two layouts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )

    parser.add_argument('--config', '-c', action='append', metavar='OVERRIDE',
                        help='Hydra-style override such as search.max_depth=20; may be repeated')
    parser.add_argument('--verbose', '-v', action='count', default=0,
                        help='-v for progress, -vv for debug output')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Only errors on stderr, no per-problem lines')
    parser.add_argument('--output', '-o', type=str, metavar='FILE',
                        help='Also write results to FILE as JSON')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')

    solve_parser = subparsers.add_parser(
        'solve',
        help='Solve one problem',
        description='Search from START to GOAL. '
                    'When both are omitted they are read as two lines from stdin.'
    )
    solve_parser.add_argument('domain', help='tiles (sliding puzzle) or containers (stacks)')
    solve_parser.add_argument('start', nargs='?', help='Start layout')
    solve_parser.add_argument('goal', nargs='?', help='Goal layout')
    solve_parser.add_argument('--json', action='store_true',
                              help='Print the outcome and statistics as JSON')
    _add_search_options(solve_parser)

    batch_parser = subparsers.add_parser(
        'batch',
        help='Solve every problem in a JSON file',
        description='Each entry needs domain, start and goal; name and strategy are optional.'
    )
    batch_parser.add_argument('problem_file', help='JSON list of problems')
    _add_search_options(batch_parser)

    config_parser = subparsers.add_parser('config', help='Inspect the configuration')
    actions = config_parser.add_subparsers(dest='config_action', metavar='ACTION')
    actions.add_parser('show', help='Print the composed configuration as YAML')
    actions.add_parser('validate', help='Check the composed configuration')

    return parser


def _log_level(parsed_args: argparse.Namespace) -> Tuple[int, bool]:
    """Map -q/-v flags to a level; the bool says whether config may override it."""
    if parsed_args.quiet:
        return logging.ERROR, False
    if parsed_args.verbose == 0:
        return logging.WARNING, True
    if parsed_args.verbose == 1:
        return logging.INFO, False
    return logging.DEBUG, False


def main_cli(args: Optional[List[str]] = None) -> int:
    """Parse arguments and run a subcommand.

    Returns:
        Exit code for the process
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    level, parsed_args.log_level_from_config = _log_level(parsed_args)
    setup_logging(level)
    logger = logging.getLogger(__name__)

    if not parsed_args.command:
        parser.print_help()
        return 1

    handler = getattr(commands, COMMAND_HANDLERS[parsed_args.command])
    try:
        return handler(parsed_args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error in {parsed_args.command}: {e}")
        return 1


def main() -> None:
    """Entry point for console script."""
    sys.exit(main_cli())


if __name__ == '__main__':
    main()
