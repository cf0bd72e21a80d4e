import logging
from typing import Any, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from issuerelay.domain.interfaces.user_interface import UserInterface
from issuerelay.domain.models.submission import BatchPayload, SubmissionOutcome, SubmissionResult

logger = logging.getLogger(__name__)

OUTCOME_STYLES = {
    SubmissionOutcome.SUCCEEDED: "green",
    SubmissionOutcome.VALIDATION_ERROR: "yellow",
    SubmissionOutcome.TERMINAL_DELIVERY_ERROR: "red",
    SubmissionOutcome.RETRY_BUDGET_EXHAUSTED: "red",
    SubmissionOutcome.CANCELLED: "yellow",
}

# label -> (colour, box) for the message panels
MESSAGE_STYLES = {
    "Error": ("red", HEAVY),
    "Warning": ("yellow", HEAVY),
    "Info": ("blue", SIMPLE),
}


class ConsoleDisplay(UserInterface):
    """UserInterface backed by a rich Console: message panels and result tables."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def _print_message(self, label: str, message: str) -> None:
        colour, box = MESSAGE_STYLES[label]
        self.console.print(Panel(
            Text(message),
            title=f"[bold {colour}]{label}[/bold {colour}]",
            border_style=colour,
            box=box,
            padding=(0, 1),
        ))

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        self._print_message("Error", error_message)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self._print_message("Info", info_message)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        self._print_message("Warning", warning_message)

    def display_payload_summary(self, payload: BatchPayload) -> None:
        """Shows the batch size and the first few issue titles."""
        table = Table(title=f"Batch: {payload.issue_count} issue(s)", box=ROUNDED, border_style="cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Title")
        table.add_column("Source", style="cyan")
        for index, issue in enumerate(payload.issues[:5], start=1):
            source = f"{issue.source_ref.type}:{issue.source_ref.id[:10]}" if issue.source_ref else "-"
            table.add_row(str(index), Text(issue.title), Text(source))
        if payload.issue_count > 5:
            table.add_row("", f"... and {payload.issue_count - 5} more", "")
        self.console.print(table)

    def display_validation_problems(self, problems: List[str]) -> None:
        body = "\n".join(f"- {problem}" for problem in problems)
        self.display_error(f"The batch was not submitted:\n{body}")

    def display_submission_result(self, result: SubmissionResult) -> None:
        style = OUTCOME_STYLES.get(result.outcome, "white")
        table = Table(show_header=False, box=ROUNDED, border_style=style, padding=(0, 1))
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Outcome", f"[{style}]{result.outcome.value}[/{style}]")
        table.add_row("Attempts", str(result.attempt_number))
        if result.error:
            table.add_row("Error", Text(result.error))
        self.console.print(table)
