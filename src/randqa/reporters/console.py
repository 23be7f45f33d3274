"""Console reporter for terminal output."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from randqa.core.outcome import ViolationKind
from randqa.core.result import RunResult
from randqa.errors import TestFailedError


class ConsoleReporter:
    """Formats RunResult and TestFailedError for the terminal.

    Example::

        reporter = ConsoleReporter()
        try:
            reporter.report(test.run())
        except TestFailedError as e:
            reporter.report_failure(e)

        # Plain text, e.g. for a file
        reporter = ConsoleReporter(Console(file=f, color_system=None))
    """

    KIND_STYLES = {
        ViolationKind.POSTCONDITION: "red",
        ViolationKind.INVARIANT: "magenta",
        ViolationKind.UNEXPECTED: "bold red",
    }

    def __init__(self, console: Console | None = None, max_dump_chars: int = 2000) -> None:
        self.console = console or Console()
        self.max_dump_chars = max_dump_chars

    def report(self, result: RunResult) -> None:
        """Print a summary of a successful run."""
        self.console.print("\n[bold blue]Randomized Run[/bold blue]")

        table = Table(show_header=False, box=None)
        table.add_column("Key", width=18)
        table.add_column("Value")
        table.add_row("Steps", str(result.steps))
        table.add_row("Abandoned", str(result.abandoned))
        table.add_row("Seed", str(result.seed))
        table.add_row("Final phase", str(result.final_phase))
        table.add_row("Duration", f"{result.duration_ms:.0f}ms")
        self.console.print(table)

        if result.action_counts:
            actions = Table(title="Actions", box=None)
            actions.add_column("Action")
            actions.add_column("Count", justify="right")
            for name, count in result.action_counts.most_common():
                actions.add_row(escape(name), str(count))
            self.console.print(actions)

        if result.pool_sizes:
            pools = Table(title="Pools", box=None)
            pools.add_column("Pool")
            pools.add_column("Size", justify="right")
            for name, size in sorted(result.pool_sizes.items()):
                pools.add_row(escape(name), str(size))
            self.console.print(pools)

        self.console.print("[bold green]PASSED[/bold green]")

    def report_failure(self, failure: TestFailedError) -> None:
        """Print a failure with its cause and the invocation history."""
        style = self.KIND_STYLES.get(failure.kind, "red")
        lines = [
            f"[{style}]{failure.kind.value.upper()}[/{style}]: {escape(failure.message)}",
            "",
            f"Step: {failure.step}",
            f"Location: {escape(failure.context.format_location())}",
            f"Attempted: {escape(str(failure.attempted))}",
            f"Cause: {escape(repr(failure.cause))}",
            "",
            "[bold]History:[/bold]",
            escape(self._truncate(failure.log_dump)),
        ]
        self.console.print(Panel("\n".join(lines), title="Randomized test failed", border_style=style))
        self.console.print("[bold red]FAILED[/bold red]")

    def _truncate(self, text: str) -> str:
        if len(text) <= self.max_dump_chars:
            return text
        return text[: self.max_dump_chars] + f"  … (+{len(text) - self.max_dump_chars} chars)"
