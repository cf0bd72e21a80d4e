"""Interface for interacting with the user (output only).

Defines the contract for displaying information, errors and warnings
plus submission summaries, allowing different UI implementations (e.g. console,
quiet/scripted output).
"""

import abc
from typing import Any, List

from issuerelay.domain.models.submission import BatchPayload, SubmissionResult


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    def display_payload_summary(self, payload: BatchPayload) -> None:
        """Displays a short summary of the batch about to be submitted.

        Args:
            payload: The batch payload.
        """
        pass

    def display_validation_problems(self, problems: List[str]) -> None:
        """Displays the problems that prevented a batch from being submitted."""
        pass

    def display_submission_result(self, result: SubmissionResult) -> None:
        """Displays the final outcome of a submission.

        Args:
            result: The result returned by the orchestrator.
        """
        pass
