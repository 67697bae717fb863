"""
app/parsers/csv_tokenizer.py

Splits raw CSV text into a header list and string-keyed rows.

Rules
-----
- ``\\n``, ``\\r\\n`` and ``\\r`` all end a line; quoted fields cannot span
  lines.
- Commas inside double quotes do not split; ``""`` inside quotes is a
  literal quote. Surrounding quotes are stripped and fields are trimmed.
- Blank lines are skipped silently.
- A line whose field count differs from the header count is dropped and
  reported as an error-level :class:`RowIssue`; parsing continues.

Only a missing header line is fatal (:class:`CSVHeaderError`).
"""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass, field

from app.domain.insurance_record import RowIssue

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_BOM = "\ufeff"


class CSVHeaderError(ValueError):
    """
    Raised when the CSV text is empty or carries no header line.
    """


@dataclass(frozen=True)
class TokenizedCSV:
    """
    Header list, valid data rows, and the row-level issues found on the way.
    """

    headers: tuple[str, ...]
    header_row: int = 1
    rows: list[dict[str, str]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    issues: list[RowIssue] = field(default_factory=list)


def split_line(line: str) -> list[str]:
    """
    Split one CSV line into trimmed, unquoted fields.
    """

    reader = csv.reader([line], skipinitialspace=True)
    cells = next(reader, [])
    return [cell.strip() for cell in cells]


def tokenize_csv(text: str) -> TokenizedCSV:
    """
    Tokenize *text* into rows keyed by header name.

    ``row_numbers[i]`` is the 1-based line number of ``rows[i]`` in the
    source text (the header is line 1 when the text starts with it).
    """

    if text.startswith(_BOM):
        text = text[len(_BOM):]

    lines = _LINE_BREAK.split(text)
    header_index = next((i for i, line in enumerate(lines) if line.strip()), None)
    if header_index is None:
        raise CSVHeaderError("CSV text is empty; a header row is required.")

    headers = tuple(split_line(lines[header_index]))
    if not any(headers):
        raise CSVHeaderError("CSV header row is missing.")

    rows: list[dict[str, str]] = []
    row_numbers: list[int] = []
    issues: list[RowIssue] = []

    for index in range(header_index + 1, len(lines)):
        line = lines[index]
        row_number = index + 1
        if not line.strip():
            continue

        try:
            cells = split_line(line)
        except csv.Error as exc:
            issues.append(
                RowIssue(
                    row_number=row_number,
                    message=f"Row could not be tokenized: {exc}",
                )
            )
            continue

        if len(cells) != len(headers):
            issues.append(
                RowIssue(
                    row_number=row_number,
                    message=(
                        f"Field count mismatch: expected {len(headers)} columns, "
                        f"got {len(cells)}."
                    ),
                )
            )
            continue

        rows.append(dict(zip(headers, cells)))
        row_numbers.append(row_number)

    return TokenizedCSV(
        headers=headers,
        header_row=header_index + 1,
        rows=rows,
        row_numbers=row_numbers,
        issues=issues,
    )
