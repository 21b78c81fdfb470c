"""Search domains shipped with layout_search.

Each domain provides a ``Layout`` implementation and a parser turning one
line of text into a layout.
"""

from typing import Any, Callable, Dict

from layout_search.core.exceptions import LayoutParseError

from .containers import ContainerLayout, parse_containers
from .sliding_tile import SlidingTileBoard, parse_board

DOMAIN_PARSERS: Dict[str, Callable[..., Any]] = {
    'tiles': parse_board,
    'containers': parse_containers,
}

DOMAIN_ALIASES = {
    'tiles': 'tiles',
    'tile': 'tiles',
    'board': 'tiles',
    'sliding_tile': 'tiles',
    'puzzle': 'tiles',
    'containers': 'containers',
    'container': 'containers',
    'stacks': 'containers',
}


def resolve_domain(name: str) -> str:
    """Map a domain name or alias to its canonical name.

    Raises:
        LayoutParseError: If the domain is unknown
    """
    key = str(name).strip().lower().replace('-', '_')
    if key not in DOMAIN_ALIASES:
        raise LayoutParseError(
            f"Unknown domain '{name}' (expected one of: {', '.join(sorted(DOMAIN_PARSERS))})"
        )
    return DOMAIN_ALIASES[key]


def parse_layout(domain: str, text: str, **options) -> Any:
    """Parse ``text`` as a layout of ``domain``.

    Args:
        domain: Domain name or alias
        text: Layout encoding
        **options: Parser options (``size`` for tiles, ``default_cost`` for containers)

    Returns:
        Parsed layout
    """
    return DOMAIN_PARSERS[resolve_domain(domain)](text, **options)


__all__ = [
    'ContainerLayout',
    'SlidingTileBoard',
    'parse_containers',
    'parse_board',
    'parse_layout',
    'resolve_domain',
    'DOMAIN_PARSERS',
]
