from pathlib import Path
from unittest.mock import MagicMock

import pytest

from issuerelay.core.exceptions import PayloadFormatError
from issuerelay.core.services.submission_service import SubmissionService
from issuerelay.domain.interfaces.user_interface import UserInterface
from issuerelay.domain.models.common import FilePath, ProjectId
from issuerelay.domain.models.config import RetryPolicyConfig
from issuerelay.domain.models.submission import BatchPayload, SubmissionOutcome, TransportResponse
from issuerelay.infrastructure.resilience.orchestrator import SubmissionOrchestrator


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def transport(scripted_transport):
    return scripted_transport(TransportResponse(success=True))


@pytest.fixture
def orchestrator(transport, clock):
    return SubmissionOrchestrator(transport=transport, retry_config=RetryPolicyConfig(max_retries=1), clock=clock)


@pytest.fixture
def service(orchestrator, mock_ui):
    return SubmissionService(orchestrator=orchestrator, ui=mock_ui)


@pytest.mark.asyncio
async def test_submit_payload_success(service: SubmissionService, payload, transport, mock_ui: MagicMock):
    result = await service.submit_payload(payload)

    assert result.success is True
    assert transport.sent == [payload]
    mock_ui.display_payload_summary.assert_called_once_with(payload)
    mock_ui.display_info.assert_any_call("Submitting 2 issue(s)...")
    mock_ui.display_submission_result.assert_called_once_with(result)


@pytest.mark.asyncio
async def test_invalid_payload_is_not_submitted(service: SubmissionService, issue_factory, transport, mock_ui):
    payload = BatchPayload(issues=[issue_factory(description="")])

    result = await service.submit_payload(payload)

    assert result.success is False
    assert result.outcome is SubmissionOutcome.VALIDATION_ERROR
    assert result.attempt_number == 1
    assert result.error == "Invalid payload format: issue[0]: missing description"
    assert transport.calls == 0
    mock_ui.display_validation_problems.assert_called_once_with(["issue[0]: missing description"])
    mock_ui.display_payload_summary.assert_not_called()


@pytest.mark.asyncio
async def test_empty_payload_is_a_validation_error(service: SubmissionService, transport):
    result = await service.submit_payload(BatchPayload())

    assert result.outcome is SubmissionOutcome.VALIDATION_ERROR
    assert "batch contains no issues" in result.error
    assert transport.calls == 0


@pytest.mark.asyncio
async def test_submit_file_uses_loader_and_project_override(orchestrator, mock_ui, payload):
    loader = MagicMock(return_value=payload)
    service = SubmissionService(orchestrator=orchestrator, ui=mock_ui, payload_loader=loader)

    result = await service.submit_file(FilePath("/data/batch.json"), project_id=ProjectId("proj-9"))

    assert result.success is True
    loader.assert_called_once_with("/data/batch.json", project_id="proj-9")
    mock_ui.display_info.assert_any_call("Reading batch file: /data/batch.json...")


@pytest.mark.asyncio
async def test_submit_file_reads_real_file(service: SubmissionService, batch_file: Path, transport):
    result = await service.submit_file(FilePath(str(batch_file)))

    assert result.success is True
    assert transport.sent[0].to_dict()["projectId"] == "proj-42"


@pytest.mark.asyncio
async def test_submit_file_propagates_format_errors(service: SubmissionService, tmp_path: Path):
    broken = tmp_path / "broken.json"
    broken.write_text("[", encoding="utf-8")
    with pytest.raises(PayloadFormatError):
        await service.submit_file(FilePath(str(broken)))


@pytest.mark.asyncio
async def test_submit_file_timeout_sets_deadline(scripted_transport, clock, mock_ui, batch_file: Path):
    transport = scripted_transport(TransportResponse(success=False, error="timeout"))
    orchestrator = SubmissionOrchestrator(transport=transport, clock=clock)
    service = SubmissionService(orchestrator=orchestrator, ui=mock_ui)

    result = await service.submit_file(FilePath(str(batch_file)), timeout=0.5)

    assert result.outcome is SubmissionOutcome.CANCELLED
    assert transport.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("reachable", [True, False])
async def test_check_connection(orchestrator, mock_ui, transport, reachable):
    transport.reachable = reachable
    service = SubmissionService(orchestrator=orchestrator, ui=mock_ui)

    assert await service.check_connection() is reachable
    if reachable:
        mock_ui.display_info.assert_any_call("Endpoint is reachable.")
    else:
        mock_ui.display_error.assert_called_once_with("Endpoint is not reachable.")
