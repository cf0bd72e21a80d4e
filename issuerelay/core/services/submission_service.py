"""Core service for submitting issue batches.

Loads a batch, validates it semantically, hands it to the
SubmissionOrchestrator and reports the outcome through the UserInterface.
"""

import asyncio
import logging
from typing import Callable, Optional

from issuerelay.domain.interfaces.user_interface import UserInterface
from issuerelay.domain.models.common import FilePath, ProjectId
from issuerelay.domain.models.submission import (
    BatchPayload, SubmissionOutcome, SubmissionResult, validate_payload,
)
from issuerelay.infrastructure.payload.loader import load_payload
from issuerelay.infrastructure.resilience.orchestrator import SubmissionOrchestrator

logger = logging.getLogger(__name__)

PayloadLoader = Callable[..., BatchPayload]


class SubmissionService:
    """Orchestrates the submit use case."""

    def __init__(
        self,
        orchestrator: SubmissionOrchestrator,
        ui: UserInterface,
        payload_loader: PayloadLoader = load_payload,
    ):
        """Initializes the SubmissionService with its dependencies."""
        self.orchestrator = orchestrator
        self.ui = ui
        self.payload_loader = payload_loader

    async def submit_payload(
        self,
        payload: BatchPayload,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> SubmissionResult:
        """Validates and submits an in-memory payload.

        Semantic problems are reported as a VALIDATION_ERROR result without
        contacting the endpoint.
        """
        problems = validate_payload(payload)
        if problems:
            logger.error(f"Batch failed validation with {len(problems)} problem(s).")
            self.ui.display_validation_problems(problems)
            result = SubmissionResult(
                success=False,
                attempt_number=1,
                outcome=SubmissionOutcome.VALIDATION_ERROR,
                error=f"Invalid payload format: {'; '.join(problems)}",
            )
            self.ui.display_submission_result(result)
            return result

        self.ui.display_payload_summary(payload)
        self.ui.display_info(f"Submitting {payload.issue_count} issue(s)...")
        result = await self.orchestrator.submit(payload, cancel_event=cancel_event, deadline=deadline)
        self.ui.display_submission_result(result)
        return result

    async def submit_file(
        self,
        file_path: FilePath,
        project_id: Optional[ProjectId] = None,
        timeout: Optional[float] = None,
    ) -> SubmissionResult:
        """Loads a batch file and submits it.

        Args:
            file_path: JSON batch file.
            project_id: Overrides the file's project id.
            timeout: Optional overall deadline in seconds for the submission.

        Raises:
            PayloadFormatError: If the file cannot be parsed.
        """
        self.ui.display_info(f"Reading batch file: {file_path}...")
        payload = self.payload_loader(file_path, project_id=project_id)
        deadline = None
        if timeout is not None:
            deadline = self.orchestrator.clock.now() + timeout
        return await self.submit_payload(payload, deadline=deadline)

    async def check_connection(self) -> bool:
        self.ui.display_info("Testing connection to the endpoint...")
        reachable = await self.orchestrator.transport.test_connection()
        if reachable:
            self.ui.display_info("Endpoint is reachable.")
        else:
            self.ui.display_error("Endpoint is not reachable.")
        return reachable
