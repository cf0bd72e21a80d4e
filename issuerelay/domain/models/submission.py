"""Domain models for batch submission.

Includes the batch payload handed to the transport, the per-attempt transport
response, and the single result returned for each submission.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from issuerelay import __version__

DEFAULT_SOURCE = "issuerelay"
SOURCE_REF_TYPES = ("commit", "branch", "tag")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_iso(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        # fromisoformat does not accept a trailing 'Z' before Python 3.11
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


# --- Payload Structures ---

@dataclass
class SourceRef:
    """Where an issue record came from (e.g. a commit hash in a repository)."""
    type: str  # 'commit', 'branch' or 'tag'
    id: str
    repository: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "id": self.id, "repository": self.repository}


@dataclass
class IssueRecord:
    """A single issue as delivered to the remote endpoint."""
    title: str
    description: str
    created_at: str  # ISO 8601
    updated_at: str  # ISO 8601
    source_ref: Optional[SourceRef] = None
    id: Optional[str] = None
    assignee: Optional[str] = None
    status: Optional[str] = None
    labels: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "labels": list(self.labels),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "source": self.source_ref.to_dict() if self.source_ref else None,
        }
        for key, value in (("id", self.id), ("assignee", self.assignee), ("status", self.status)):
            if value is not None:
                data[key] = value
        return data


@dataclass
class PayloadMetadata:
    """Provenance information attached to every batch."""
    tool_version: str = __version__
    import_timestamp: str = field(default_factory=utc_now_iso)
    repo_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "toolVersion": self.tool_version,
            "importTimestamp": self.import_timestamp,
        }
        if self.repo_url is not None:
            data["gitRepoUrl"] = self.repo_url
        return data


@dataclass
class BatchPayload:
    """An opaque bundle of issue records submitted as one delivery unit.

    The resilience core only ever calls ``is_empty``; everything else is for
    the transport (serialization) and the validator.
    """
    issues: List[IssueRecord] = field(default_factory=list)
    project_id: Optional[str] = None
    source: str = DEFAULT_SOURCE
    metadata: PayloadMetadata = field(default_factory=PayloadMetadata)

    @property
    def issue_count(self) -> int:
        return len(self.issues)

    def is_empty(self) -> bool:
        return self.issue_count == 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "issues": [issue.to_dict() for issue in self.issues],
            "source": self.source,
            "metadata": self.metadata.to_dict(),
        }
        if self.project_id is not None:
            data["projectId"] = self.project_id
        return data


def validate_issue(issue: IssueRecord) -> List[str]:
    """Returns the problems found in a single issue record (empty if valid)."""
    problems: List[str] = []
    if not isinstance(issue.title, str) or not issue.title.strip():
        problems.append("missing title")
    if not isinstance(issue.description, str) or not issue.description.strip():
        problems.append("missing description")
    if _parse_iso(issue.created_at) is None:
        problems.append(f"invalid createdAt {issue.created_at!r}")
    if _parse_iso(issue.updated_at) is None:
        problems.append(f"invalid updatedAt {issue.updated_at!r}")
    ref = issue.source_ref
    if ref is None or not ref.type or not ref.id or not ref.repository:
        problems.append("missing source reference")
    elif ref.type not in SOURCE_REF_TYPES:
        problems.append(f"unknown source type {ref.type!r}")
    return problems


def validate_payload(payload: BatchPayload) -> List[str]:
    """Semantic validation of a batch before submission.

    Returns:
        A list of human-readable problems, prefixed with the issue index where
        applicable. An empty list means the payload is valid.
    """
    if payload.is_empty():
        return ["batch contains no issues"]

    problems: List[str] = []
    for index, issue in enumerate(payload.issues):
        problems.extend(f"issue[{index}]: {problem}" for problem in validate_issue(issue))

    metadata = payload.metadata
    if metadata is None or not metadata.tool_version:
        problems.append("metadata: missing toolVersion")
    elif _parse_iso(metadata.import_timestamp) is None:
        problems.append(f"metadata: invalid importTimestamp {metadata.import_timestamp!r}")
    return problems


# --- Transport / Result Structures ---

@dataclass(frozen=True)
class TransportResponse:
    """Outcome of a single delivery attempt as reported by the transport."""
    success: bool
    error: Optional[str] = None
    data: Any = None


class SubmissionOutcome(str, enum.Enum):
    """How a submission ended."""
    SUCCEEDED = "succeeded"
    VALIDATION_ERROR = "validation_error"
    TERMINAL_DELIVERY_ERROR = "terminal_delivery_error"
    RETRY_BUDGET_EXHAUSTED = "retry_budget_exhausted"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SubmissionResult:
    """The single result returned by one call to ``SubmissionOrchestrator.submit``.

    ``attempt_number`` counts delivery attempts actually made; waiting on the
    rate limiter does not count. ``error`` is always populated on failure.
    """
    success: bool
    attempt_number: int
    outcome: SubmissionOutcome
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.success and not self.error:
            raise ValueError("A failed SubmissionResult must carry an error message.")
