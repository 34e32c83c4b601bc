"""Per-item scan issues (non-fatal, collected instead of raised)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IssueKind(Enum):
    """이슈 유형. 어느 것도 배치 전체를 중단시키지 않음."""

    MALFORMED_INPUT = "malformed_input"        # 빈 마켓, over/under 누락, point 누락
    ARITY_MISMATCH = "arity_mismatch"          # 아웃컴 수 ≠ 종목 요구치
    INSUFFICIENT_DATA = "insufficient_data"    # 북메이커 수 부족
    NUMERIC_DEGENERATE = "numeric_degenerate"  # price ≤ 1.0
    DETECTOR_FAILURE = "detector_failure"      # 예상치 못한 예외


@dataclass(frozen=True)
class ScanIssue:
    """A single skipped market, outcome or detector run."""

    event_id: str
    detector: str
    kind: IssueKind
    message: str = ""


def note_issue(
    issues: list[ScanIssue] | None,
    event_id: str,
    detector: str,
    kind: IssueKind,
    message: str = "",
) -> None:
    """Append to the collector if one was given."""
    if issues is not None:
        issues.append(ScanIssue(event_id=event_id, detector=detector, kind=kind, message=message))
