"""Reporters for randomized run results and failures."""

from randqa.reporters.console import ConsoleReporter

__all__ = ["ConsoleReporter"]
