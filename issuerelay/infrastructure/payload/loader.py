"""Loads batch payloads from local JSON files.

Accepted shapes:
    - a list of issue objects, or
    - a batch object ``{"issues": [...], "projectId": ..., "source": ..., "metadata": {...}}``.

Issue objects use the wire field names (``createdAt``, ``updatedAt``,
``source: {type, id, repository}``).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from issuerelay.core.exceptions import PayloadFormatError
from issuerelay.domain.models.submission import (
    DEFAULT_SOURCE, BatchPayload, IssueRecord, PayloadMetadata, SourceRef, utc_now_iso,
)
from issuerelay import __version__

logger = logging.getLogger(__name__)


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def parse_issue(data: Any, index: int = 0) -> IssueRecord:
    if not isinstance(data, dict):
        raise PayloadFormatError(f"issue[{index}] must be an object, got {type(data).__name__}")
    source = data.get("source")
    source_ref = None
    if isinstance(source, dict):
        source_ref = SourceRef(
            type=str(source.get("type", "")),
            id=str(source.get("id", "")),
            repository=str(source.get("repository", "")),
        )
    labels = data.get("labels") or []
    if not isinstance(labels, list):
        raise PayloadFormatError(f"issue[{index}].labels must be a list")
    return IssueRecord(
        title=str(data.get("title", "")),
        description=str(data.get("description", "")),
        created_at=str(data.get("createdAt", "")),
        updated_at=str(data.get("updatedAt", "")),
        source_ref=source_ref,
        id=_optional_str(data.get("id")),
        assignee=_optional_str(data.get("assignee")),
        status=_optional_str(data.get("status")),
        labels=[str(label) for label in labels],
    )


def parse_payload(data: Any, project_id: Optional[str] = None) -> BatchPayload:
    """Builds a BatchPayload from decoded JSON.

    Args:
        data: A list of issues or a batch object.
        project_id: Overrides any ``projectId`` in the data.

    Raises:
        PayloadFormatError: If the structure is not recognized.
    """
    metadata_data: Dict[str, Any] = {}
    source = DEFAULT_SOURCE
    if isinstance(data, list):
        raw_issues: List[Any] = data
    elif isinstance(data, dict):
        raw_issues = data.get("issues")
        if not isinstance(raw_issues, list):
            raise PayloadFormatError("batch object must contain an 'issues' list")
        project_id = project_id or _optional_str(data.get("projectId"))
        source = str(data.get("source") or DEFAULT_SOURCE)
        metadata_data = data.get("metadata") or {}
        if not isinstance(metadata_data, dict):
            raise PayloadFormatError("'metadata' must be an object")
    else:
        raise PayloadFormatError(f"expected a list or an object, got {type(data).__name__}")

    metadata = PayloadMetadata(
        tool_version=str(metadata_data.get("toolVersion") or __version__),
        import_timestamp=str(metadata_data.get("importTimestamp") or utc_now_iso()),
        repo_url=_optional_str(metadata_data.get("gitRepoUrl")),
    )
    issues = [parse_issue(item, index) for index, item in enumerate(raw_issues)]
    return BatchPayload(issues=issues, project_id=project_id, source=source, metadata=metadata)


def load_payload(path: Union[str, Path], project_id: Optional[str] = None) -> BatchPayload:
    """Reads and parses a batch file.

    Raises:
        PayloadFormatError: If the file is missing, not UTF-8 JSON, or malformed.
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise PayloadFormatError(f"cannot read file: {e}", path=str(file_path)) from e
    except UnicodeDecodeError as e:
        raise PayloadFormatError(f"invalid UTF-8: {e}", path=str(file_path)) from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadFormatError(f"invalid JSON: {e}", path=str(file_path)) from e

    try:
        payload = parse_payload(data, project_id=project_id)
    except PayloadFormatError as e:
        raise PayloadFormatError(str(e), path=str(file_path)) from e
    logger.info(f"Loaded {payload.issue_count} issue(s) from {file_path}")
    return payload
