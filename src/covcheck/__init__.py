"""covcheck: CI coverage gate backed by a git storage branch."""

__version__ = "0.1.0"
