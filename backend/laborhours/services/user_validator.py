"""
Bulk user input validation.

Classifies candidate rows as valid, duplicate or invalid against two
snapshots taken at batch start: the active category identifiers and the
set of existing lowercased emails. Nothing here touches the database.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

INVALID_EMAIL_MESSAGE = "Invalid email format"
DUPLICATE_EMAIL_REASON = "Email already exists"
NO_PROCESSES_MESSAGE = "No processes specified"


@dataclass
class BatchItem:
    """One candidate row of a bulk request"""
    email: Optional[str]
    full_name: Optional[str] = None
    categories: List[str] = field(default_factory=list)


class RowStatus(str, Enum):
    VALID = "valid"
    DUPLICATE = "duplicate"
    INVALID = "invalid"


@dataclass
class RowClassification:
    status: RowStatus
    item: BatchItem
    email: str  # normalized
    message: Optional[str] = None  # duplicate reason or error text


@dataclass
class ValidationResult:
    valid: List[BatchItem] = field(default_factory=list)
    duplicates: List[dict] = field(default_factory=list)  # [{email, reason}]
    errors: List[dict] = field(default_factory=list)  # [{email, error}]

    @property
    def total(self) -> int:
        return len(self.valid) + len(self.duplicates) + len(self.errors)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def parse_categories(raw) -> List[str]:
    """Accept a list or a comma-separated string; drop blanks, keep order"""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    categories = []
    for value in raw:
        value = str(value).strip()
        if value and value not in categories:
            categories.append(value)
    return categories


def classify_row(
    item: BatchItem,
    valid_categories: Set[str],
    existing_emails: Set[str],
) -> RowClassification:
    """
    Classify one row.

    Order: email format, then duplicate, then categories. A duplicate row
    is never reported as a category error.
    """
    email = normalize_email(item.email)

    if not is_valid_email(email):
        # Report the address as submitted so the offending cell can be found
        return RowClassification(RowStatus.INVALID, item, item.email or "", INVALID_EMAIL_MESSAGE)

    if email in existing_emails:
        return RowClassification(RowStatus.DUPLICATE, item, email, DUPLICATE_EMAIL_REASON)

    categories = parse_categories(item.categories)
    if not categories:
        return RowClassification(RowStatus.INVALID, item, email, NO_PROCESSES_MESSAGE)

    unknown = [category for category in categories if category not in valid_categories]
    if unknown:
        return RowClassification(
            RowStatus.INVALID, item, email, f"Invalid processes: {', '.join(unknown)}"
        )

    normalized = BatchItem(
        email=email,
        full_name=(item.full_name or "").strip() or None,
        categories=categories,
    )
    return RowClassification(RowStatus.VALID, normalized, email)


def classify_batch(
    items: Iterable[BatchItem],
    valid_categories: Set[str],
    existing_emails: Set[str],
) -> ValidationResult:
    """
    Preview classification of a whole batch.

    A repeat of an email already accepted earlier in the batch is a
    duplicate. The caller's snapshot is not modified.
    """
    seen = set(existing_emails)
    result = ValidationResult()

    for item in items:
        row = classify_row(item, valid_categories, seen)
        if row.status == RowStatus.VALID:
            result.valid.append(row.item)
            seen.add(row.email)
        elif row.status == RowStatus.DUPLICATE:
            result.duplicates.append({"email": row.email, "reason": row.message})
        else:
            result.errors.append({"email": row.email, "error": row.message})

    return result
