"""ghprojects - terminal client for GitHub Projects."""

__version__ = "0.3.0"
