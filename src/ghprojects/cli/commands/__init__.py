# ghprojects/cli/commands: Command modules for the ghprojects CLI.
#
# Each module in this package provides one or more CLI commands.

from .classify import classify
from .defaults import defaults_app
from .demo import demo

__all__ = [
    "classify",
    "defaults_app",
    "demo",
]
