"""Command line interface for RandQA."""

from randqa.cli.main import cli, main

__all__ = ["cli", "main"]
