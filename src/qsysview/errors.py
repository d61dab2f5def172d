"""Exception types raised by qsysview."""


class QsysViewError(Exception):
    """Base class for every error qsysview reports to the user."""

    pass


class ParseError(QsysViewError):
    """Raised when an input document cannot be parsed."""

    pass


class LayoutError(QsysViewError):
    """Raised when the automatic layout collaborator fails."""

    pass
