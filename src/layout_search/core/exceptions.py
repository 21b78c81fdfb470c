"""Exception hierarchy for the layout search engine."""


class LayoutSearchError(Exception):
    """Base class for all errors raised by layout_search."""
    pass


class LayoutParseError(LayoutSearchError, ValueError):
    """Raised when a domain layout cannot be built from its text encoding.

    Always raised before a search starts; the engine never raises it.
    """
    pass


class DomainContractError(LayoutSearchError):
    """Raised when a layout breaks the contract the engine relies on.

    Examples are a negative or non-finite transition cost, a successor equal
    to the layout that produced it, or a negative heuristic estimate.
    """

    def __init__(self, message: str, layout=None):
        super().__init__(message)
        self.layout = layout
