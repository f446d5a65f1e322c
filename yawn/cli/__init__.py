"""Command-Line Interface Package"""

from yawn.cli.main import main

__all__ = ["main"]
