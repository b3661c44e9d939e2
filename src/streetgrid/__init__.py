"""streetgrid — grid positioning and drag-interaction engine for venue maps."""

__version__ = "0.4.0"
