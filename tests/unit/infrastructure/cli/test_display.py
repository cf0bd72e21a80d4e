import pytest
from unittest.mock import MagicMock

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from issuerelay.domain.models.submission import BatchPayload, SubmissionOutcome, SubmissionResult
from issuerelay.infrastructure.cli.display import ConsoleDisplay


@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()


@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    return ConsoleDisplay(console=mock_console)


def printed(mock_console: MagicMock):
    args, _ = mock_console.print.call_args
    return args[0]


@pytest.mark.parametrize("method, title", [
    ("display_error", "Error"),
    ("display_info", "Info"),
    ("display_warning", "Warning"),
])
def test_messages_are_panels(console_display: ConsoleDisplay, mock_console: MagicMock, method, title):
    getattr(console_display, method)("Something happened")

    panel = printed(mock_console)
    assert isinstance(panel, Panel)
    assert title in panel.title
    assert panel.renderable.plain == "Something happened"


def test_payload_summary_lists_first_issues(console_display: ConsoleDisplay, mock_console, issue_factory):
    payload = BatchPayload(issues=[issue_factory(i) for i in range(1, 8)])

    console_display.display_payload_summary(payload)

    table = printed(mock_console)
    assert isinstance(table, Table)
    assert table.title == "Batch: 7 issue(s)"
    assert table.row_count == 6  # five issues plus the "... and 2 more" row


def test_validation_problems_are_one_error(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_validation_problems(["issue[0]: missing title", "issue[3]: missing description"])

    panel = printed(mock_console)
    assert panel.renderable.plain == (
        "The batch was not submitted:\n- issue[0]: missing title\n- issue[3]: missing description"
    )


def test_submission_result_table_renders_error():
    console = Console(record=True, width=120)
    display = ConsoleDisplay(console=console)
    result = SubmissionResult(
        success=False, attempt_number=4, outcome=SubmissionOutcome.RETRY_BUDGET_EXHAUSTED,
        error="retry budget exhausted after 4 attempt(s); last error: timeout",
    )

    display.display_submission_result(result)

    output = console.export_text()
    assert "retry_budget_exhausted" in output
    assert "Attempts" in output
    assert "last error: timeout" in output


def test_payload_summary_prints_brackets_verbatim(issue_factory):
    console = Console(record=True, width=120)
    display = ConsoleDisplay(console=console)
    payload = BatchPayload(issues=[
        issue_factory(1, title="Handle paths like [/etc] correctly"),
        issue_factory(2, title="[bug] crash on [bold]empty[/bold] input"),
    ])

    display.display_payload_summary(payload)

    output = console.export_text()
    assert "Handle paths like [/etc] correctly" in output
    assert "[bug] crash on [bold]empty[/bold] input" in output


def test_submission_result_error_with_brackets():
    console = Console(record=True, width=120)
    display = ConsoleDisplay(console=console)
    result = SubmissionResult(
        success=False, attempt_number=1, outcome=SubmissionOutcome.TERMINAL_DELIVERY_ERROR,
        error="HTTP 400: field [/issues/0/title] is invalid",
    )

    display.display_submission_result(result)

    assert "HTTP 400: field [/issues/0/title] is invalid" in console.export_text()
