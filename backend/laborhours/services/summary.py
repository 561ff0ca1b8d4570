"""Aggregate counts for bulk operation results"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Sequence


@dataclass(frozen=True)
class CreateSummary:
    total: int
    created: int
    duplicates: int
    errors: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class DeleteSummary:
    total: int
    deleted: int
    failed: int
    blocked: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ResendSummary:
    total: int
    sent: int
    failed: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def summarize_create(created: Sequence, duplicates: Sequence, errors: Sequence) -> CreateSummary:
    return CreateSummary(
        total=len(created) + len(duplicates) + len(errors),
        created=len(created),
        duplicates=len(duplicates),
        errors=len(errors),
    )


def summarize_delete(
    requested: Sequence[str],
    deleted: Sequence,
    failed: Sequence,
    blocked_admins: Sequence[str],
) -> DeleteSummary:
    return DeleteSummary(
        total=len(requested),
        deleted=len(deleted),
        failed=len(failed),
        blocked=len(blocked_admins),
    )


def summarize_resend(sent: Sequence, failed: Sequence) -> ResendSummary:
    return ResendSummary(total=len(sent) + len(failed), sent=len(sent), failed=len(failed))


def build_create_response(
    created: List[dict],
    duplicates: List[dict],
    errors: List[dict],
) -> dict:
    return {
        "success": True,
        "results": {
            "created": created,
            "duplicates": duplicates,
            "errors": errors,
        },
        "summary": summarize_create(created, duplicates, errors).to_dict(),
    }


def build_delete_response(
    requested: Sequence[str],
    deleted: List[str],
    failed: List[dict],
    blocked_admins: List[str],
    success: bool = True,
) -> dict:
    return {
        "success": success,
        "results": {
            "deleted": deleted,
            "failed": failed,
            "blocked_admins": blocked_admins,
        },
        "summary": summarize_delete(requested, deleted, failed, blocked_admins).to_dict(),
    }
