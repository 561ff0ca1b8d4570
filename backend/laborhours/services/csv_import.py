"""
CSV codec for bulk user files.

Format::

    email,full_name,processes
    jane@example.com,Jane Doe,"1.1,1.2"
"""

import csv
import io
from typing import List, Sequence

from laborhours.core.exceptions import CsvFormatError
from laborhours.services.user_validator import BatchItem, parse_categories

CSV_HEADER = ["email", "full_name", "processes"]

_EXAMPLE_ROWS = [
    ("john.doe@example.com", "John Doe"),
    ("jane.smith@example.com", "Jane Smith"),
    ("bob.wilson@example.com", "Bob Wilson"),
]


def parse_users_csv(text: str) -> List[BatchItem]:
    """
    Parse an uploaded CSV into batch items.

    Blank lines are skipped. Header names are matched case-insensitively.

    Raises:
        CsvFormatError: no header row, or no ``email`` column
    """
    text = text.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text))

    header = None
    for row in reader:
        if any(cell.strip() for cell in row):
            header = [cell.strip().lower() for cell in row]
            break

    if header is None:
        raise CsvFormatError("CSV file is empty")
    if "email" not in header:
        raise CsvFormatError("CSV must contain an 'email' column", line=1)

    email_col = header.index("email")
    name_col = header.index("full_name") if "full_name" in header else None
    processes_col = header.index("processes") if "processes" in header else None

    def cell(row: List[str], col) -> str:
        if col is None or col >= len(row):
            return ""
        return row[col].strip()

    items = []
    for row in reader:
        if not any(value.strip() for value in row):
            continue
        items.append(BatchItem(
            email=cell(row, email_col),
            full_name=cell(row, name_col) or None,
            categories=parse_categories(cell(row, processes_col)),
        ))
    return items


def build_template_csv(categories: Sequence[str]) -> str:
    """
    Downloadable template: the header plus example rows granting the first
    one, two and three categories. Combinations that repeat (fewer than three
    categories known) are emitted once.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    combinations: List[List[str]] = []
    for size in (1, 2, 3):
        combo = list(categories[:size])
        if combo and combo not in combinations:
            combinations.append(combo)

    for (email, full_name), combo in zip(_EXAMPLE_ROWS, combinations):
        writer.writerow([email, full_name, ",".join(combo)])

    return output.getvalue()
