"""Helpers shared by the CLI commands: logging, problem files, output."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Tuple, Union

from layout_search.core.data_models import SearchOutcome
from layout_search.core.exceptions import LayoutParseError

DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
PLAIN_FORMAT = "%(levelname)s: %(message)s"

# (upper bound in seconds, scale, unit, decimals) for sub-minute durations
_DURATION_UNITS = ((0.001, 1e6, "µs", 1), (1.0, 1e3, "ms", 1), (60.0, 1.0, "s", 2))


def setup_logging(level: int = logging.INFO,
                  format_string: Optional[str] = None) -> None:
    """Configure the root logger on stderr.

    Debug runs get timestamps and logger names; otherwise only the level
    and message are shown.
    """
    logging.basicConfig(
        level=level,
        format=format_string or (DEBUG_FORMAT if level <= logging.DEBUG else PLAIN_FORMAT),
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    # Hydra is chatty at DEBUG
    logging.getLogger('hydra').setLevel(max(level, logging.INFO))


def read_problem_lines(stream: TextIO) -> Tuple[str, str]:
    """Read the start and goal layouts as the first two non-empty lines.

    Raises:
        LayoutParseError: If fewer than two layouts are given
    """
    lines = [line.strip() for line in stream.read().splitlines() if line.strip()]
    if len(lines) < 2:
        raise LayoutParseError(
            f"Expected a start and a goal layout on two lines, got {len(lines)} line(s)"
        )
    return lines[0], lines[1]


def load_problems_from_file(file_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load a batch of problems from a JSON file.

    The file holds a list of objects with ``domain``, ``start`` and ``goal``
    keys, optionally ``name`` and ``strategy``. A top-level object with a
    ``problems`` list is accepted too.

    Raises:
        FileNotFoundError: If the file is missing
        ValueError: If the JSON is malformed or an entry lacks a required key
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Problem file not found: {path}")

    try:
        problems = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if isinstance(problems, dict):
        problems = problems.get('problems', [])
    if not isinstance(problems, list):
        raise ValueError(f"Expected a list of problems in {path}")

    for index, problem in enumerate(problems):
        if not isinstance(problem, dict):
            raise ValueError(f"Problem {index} in {path} is not an object: {problem!r}")
        missing = [key for key in ('domain', 'start', 'goal') if key not in problem]
        if missing:
            raise ValueError(f"Problem {index} in {path} is missing {', '.join(missing)}")
        problem.setdefault('name', f"problem_{index}")

    return problems


def save_results(results: Dict[str, Any],
                 output_path: Union[str, Path],
                 pretty: bool = True) -> None:
    """Write results as JSON, creating parent directories as needed."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    dump_options = {'indent': 2, 'sort_keys': True} if pretty else {}
    path.write_text(json.dumps(results, default=str, **dump_options))


def format_cost(cost: float) -> str:
    """Integer costs print without a decimal point."""
    if float(cost).is_integer():
        return str(int(cost))
    return f"{cost:g}"


def format_duration(seconds: float) -> str:
    """Short human-readable duration: µs, ms, seconds, or minutes and seconds."""
    for bound, scale, unit, digits in _DURATION_UNITS:
        if seconds < bound:
            return f"{seconds * scale:.{digits}f}{unit}"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m {rest:.1f}s"


def render_outcome(domain: str, outcome: SearchOutcome) -> str:
    """Render an outcome as plain text.

    Sliding-tile solutions list every board on the path followed by the
    total cost; container solutions show the final layout, a blank line and
    the total cost.
    """
    if not outcome:
        return "no solution found"

    if domain == 'tiles':
        # Boards end with a newline; each is followed by a blank line
        boards = ''.join(f"{state}\n" for state in outcome.states)
        return boards + format_cost(outcome.total_cost)

    return f"{str(outcome.final_state).strip()}\n\n{format_cost(outcome.total_cost)}"


def create_result_summary(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Aggregate per-problem batch records into totals and rates."""
    count = len(results)
    solved = sum(1 for record in results if record.get('success', False))
    total_time = sum(record.get('computation_time', 0.0) for record in results)
    expanded = sum(record.get('search_stats', {}).get('nodes_expanded', 0) for record in results)

    return {
        'total_problems': count,
        'solved_problems': solved,
        'failed_problems': count - solved,
        'success_rate': solved / count if count else 0.0,
        'total_time': total_time,
        'average_time': total_time / count if count else 0.0,
        'total_nodes_expanded': expanded,
    }


def print_summary(summary: Dict[str, Any]) -> None:
    """Print batch totals as an aligned block."""
    rows = [
        ("Problems", summary['total_problems']),
        ("Solved", f"{summary['solved_problems']} ({summary['success_rate']:.1%})"),
        ("Unsolved/failed", summary['failed_problems']),
        ("Nodes expanded", summary['total_nodes_expanded']),
        ("Search time", format_duration(summary['total_time'])),
        ("Mean per problem", format_duration(summary['average_time'])),
    ]
    print("\n-- batch summary --")
    for label, value in rows:
        print(f"{label + ':':<18}{value}")
