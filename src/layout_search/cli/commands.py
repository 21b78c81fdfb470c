"""CLI command implementations."""

import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from omegaconf import OmegaConf
from hydra.errors import HydraException

from layout_search.config import (
    ConfigManager, load_config, validate_config, check_config_consistency,
    as_override_list, ConfigValidationError
)
from layout_search.core.data_models import SearchOutcome
from layout_search.core.exceptions import LayoutSearchError
from layout_search.domains import parse_layout, resolve_domain
from layout_search.search import BestFirstSearcher, DuplicatePolicy, EvaluationStrategy

from .utils import (
    read_problem_lines, load_problems_from_file, save_results, render_outcome,
    create_result_summary, print_summary, format_cost, format_duration
)

logger = logging.getLogger(__name__)

SOLVER_VERSION = '0.1.0'

# Errors reported as a failed command rather than a crash
COMMAND_ERRORS = (LayoutSearchError, ConfigValidationError, HydraException, FileNotFoundError, ValueError)


class LayoutSolver:
    """Ties configuration, domain parsers and the search engine together."""

    def __init__(self, config_overrides: Optional[List[str]] = None,
                 config_dir: Optional[Union[str, Path]] = None):
        """Initialize solver.

        Args:
            config_overrides: List of configuration overrides
            config_dir: Configuration directory (packaged default when None)
        """
        self.config_manager = ConfigManager(config_dir)
        self.config = self.config_manager.load_config(overrides=config_overrides)
        self.search_config = self.config_manager.search_config()
        self.searcher = BestFirstSearcher(self.search_config)

    def parse(self, domain: str, text: str) -> Any:
        domain = resolve_domain(domain)
        return parse_layout(domain, text, **self.config_manager.domain_options(domain))

    def solve_problem(self, domain: str, start_text: str, goal_text: str,
                      strategy: Optional[str] = None) -> SearchOutcome:
        """Parse both layouts and search from one to the other.

        Raises:
            LayoutParseError: If either layout is malformed
        """
        start = self.parse(domain, start_text)
        goal = self.parse(domain, goal_text)
        return self.searcher.solve(start, goal, strategy=strategy)


def _search_overrides(args) -> List[str]:
    """Translate command line search options into configuration overrides."""
    options: Dict[str, Any] = {}
    if getattr(args, 'strategy', None):
        options['search.strategy'] = EvaluationStrategy.parse(args.strategy).value
    if getattr(args, 'policy', None):
        options['search.duplicate_policy'] = DuplicatePolicy.parse(args.policy).value
    if getattr(args, 'max_nodes', None) is not None:
        options['search.max_nodes_expanded'] = args.max_nodes
    if getattr(args, 'max_depth', None) is not None:
        options['search.max_depth'] = args.max_depth
    if getattr(args, 'timeout', None) is not None:
        options['search.max_computation_time'] = args.timeout

    # Global -c overrides come last so they win
    return as_override_list(options) + list(getattr(args, 'config', None) or [])


def _apply_config_log_level(args, config) -> None:
    if getattr(args, 'log_level_from_config', False):
        level = str(OmegaConf.select(config, 'logging.level', default='WARNING')).upper()
        logging.getLogger().setLevel(level)


def solve_command(args) -> int:
    """Handle solve command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 solved, 1 no solution, 2 invalid input or configuration)
    """
    try:
        domain = resolve_domain(args.domain)
        if args.start is None or args.goal is None:
            if args.start is not None:
                raise LayoutSearchError("Give both START and GOAL, or neither to read them from stdin")
            start_text, goal_text = read_problem_lines(sys.stdin)
        else:
            start_text, goal_text = args.start, args.goal

        solver = LayoutSolver(_search_overrides(args))
        _apply_config_log_level(args, solver.config)

        logger.info(f"Solving {domain} problem: '{start_text}' -> '{goal_text}'")
        start_time = time.perf_counter()
        outcome = solver.solve_problem(domain, start_text, goal_text)
        total_time = time.perf_counter() - start_time

    except COMMAND_ERRORS as e:
        logger.error(f"Solve command failed: {e}")
        return 2

    if args.json or args.output:
        result = outcome.to_dict()
        result.update({
            'domain': domain,
            'start': start_text,
            'goal': goal_text,
            'solver_version': SOLVER_VERSION,
            'total_time': total_time,
        })
        if args.output:
            save_results(result, args.output)
            logger.info(f"Results saved to {args.output}")
        if args.json:
            print(json.dumps(result, indent=2, default=str))

    if not args.json:
        print(render_outcome(domain, outcome))

    return 0 if outcome else 1


def batch_command(args) -> int:
    """Handle batch command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 when every problem was solved)
    """
    try:
        problems = load_problems_from_file(args.problem_file)
        solver = LayoutSolver(_search_overrides(args))
        _apply_config_log_level(args, solver.config)
    except COMMAND_ERRORS as e:
        logger.error(f"Batch command failed: {e}")
        return 2

    logger.info(f"Solving {len(problems)} problems from {args.problem_file}")
    results = []
    start_time = time.perf_counter()

    for problem in problems:
        record = {
            'name': problem['name'],
            'domain': problem['domain'],
            'start': problem['start'],
            'goal': problem['goal'],
        }
        try:
            outcome = solver.solve_problem(problem['domain'], problem['start'], problem['goal'],
                                           strategy=problem.get('strategy'))
        except (LayoutSearchError, ValueError) as e:
            logger.error(f"Failed to solve {problem['name']}: {e}")
            record.update({'success': False, 'error': str(e), 'computation_time': 0.0})
        else:
            record.update(outcome.to_dict())
        results.append(record)

        if not args.quiet:
            status = (f"cost {format_cost(record['total_cost'])}" if record['success']
                      else record.get('error', record.get('termination_reason')))
            print(f"{record['name']}: {status}")

    summary = create_result_summary(results)
    summary.update({
        'problem_file': str(args.problem_file),
        'solver_version': SOLVER_VERSION,
        'wall_clock_time': time.perf_counter() - start_time,
    })

    if args.output:
        save_results({'summary': summary, 'results': results}, args.output)
        logger.info(f"Results saved to {args.output}")

    if not args.quiet:
        print_summary(summary)
        print(f"{'Wall clock:':<18}{format_duration(summary['wall_clock_time'])}")

    return 0 if summary['failed_problems'] == 0 else 1


def config_command(args) -> int:
    """Handle config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    overrides = list(getattr(args, 'config', None) or [])

    if args.config_action == 'show':
        try:
            config = load_config(overrides=overrides, validate=False)
        except COMMAND_ERRORS as e:
            logger.error(f"Config command failed: {e}")
            return 1
        print("Current Configuration:")
        print("=" * 50)
        print(OmegaConf.to_yaml(config, resolve=True))
        return 0

    if args.config_action == 'validate':
        try:
            config = load_config(overrides=overrides, validate=False)
            validate_config(config)
        except ConfigValidationError as e:
            print(f"Configuration validation failed: {e}")
            return 1
        except COMMAND_ERRORS as e:
            logger.error(f"Config command failed: {e}")
            return 1
        for issue in check_config_consistency(config):
            print(f"Warning: {issue}")
        print("Configuration is valid")
        return 0

    print("Unknown config action")
    return 1
