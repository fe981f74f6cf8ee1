"""Exceptions raised by the texture model and the collapse engine."""


class CollapseError(ValueError):
    """Base class for model and synthesis failures."""


class InvalidModel(CollapseError):
    """The learned model cannot drive synthesis (e.g. an empty palette)."""


class InvalidKernelShape(CollapseError):
    """The neighbourhood window has no unambiguous centre cell."""


class CellAlreadyCollapsed(CollapseError):
    """A collapsed cell was asked to collapse again."""
