"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates
the work to the SubmissionService, converting failures into user-facing
errors and process exit codes.
"""

import logging
from pathlib import Path
from typing import Optional

from issuerelay.core.exceptions import ConfigurationError, PayloadFormatError
from issuerelay.core.services.submission_service import SubmissionService
from issuerelay.domain.interfaces.user_interface import UserInterface
from issuerelay.domain.models.common import FilePath, ProjectId
from issuerelay.infrastructure.config.settings import write_default_config

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(self, submission_service: Optional[SubmissionService], ui: UserInterface):
        self.submission_service = submission_service
        self.ui = ui

    async def handle_submit(
        self,
        file_path_str: str,
        project_id: Optional[str] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> int:
        """Handles the 'submit' command. Returns the process exit code."""
        logger.info(f"Handling 'submit' command for file: {file_path_str}")
        try:
            if max_retries is not None:
                self.submission_service.orchestrator.update_retry_config(max_retries=max_retries)
            result = await self.submission_service.submit_file(
                FilePath(file_path_str),
                project_id=ProjectId(project_id) if project_id else None,
                timeout=timeout,
            )
        except (PayloadFormatError, ConfigurationError) as e:
            logger.error(f"Submit command failed: {e}")
            self.ui.display_error(str(e))
            return EXIT_FAILURE

        if result.success:
            self.ui.display_info(f"Batch delivered after {result.attempt_number} attempt(s).")
            return EXIT_OK
        return EXIT_FAILURE

    async def handle_check_connection(self) -> int:
        logger.info("Handling 'check-connection' command.")
        reachable = await self.submission_service.check_connection()
        return EXIT_OK if reachable else EXIT_FAILURE

    def handle_init(self, config_path: Optional[Path] = None, overwrite: bool = False) -> int:
        """Handles the 'init' command: writes a default configuration file."""
        try:
            written = write_default_config(config_path, overwrite=overwrite)
        except (FileExistsError, OSError) as e:
            logger.error(f"Failed to write configuration file {config_path}: {e}")
            self.ui.display_error(f"Could not create configuration file: {e}")
            return EXIT_FAILURE
        self.ui.display_info(f"Configuration file created at: {written}")
        return EXIT_OK
