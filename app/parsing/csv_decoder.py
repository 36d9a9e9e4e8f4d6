"""
app/parsing/csv_decoder.py

Whole-file CSV decoding with header normalization.

The file is read fully into memory before tokenizing, which limits uploads
to small and medium files; the size cap is enforced by the orchestrator.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

from app.domain.transactions import RawRow
from app.domain.upload_errors import (
    DuplicateColumnsError,
    EmptyFileError,
    FileDecodeError,
    MissingRequiredColumnsError,
)
from app.validators.transaction_validator import REQUIRED_COLUMNS, normalize_column_name

_UTF8_BOM = "\ufeff"


@dataclass(frozen=True)
class DecodedFile:
    """
    Ordered raw rows plus the normalized headers actually present.
    """

    file_name: str
    headers: list[str]
    rows: list[RawRow] = field(default_factory=list)


class CSVDecoder:
    """
    Turns uploaded CSV content into ``RawRow`` mappings keyed by normalized header.
    """

    def __init__(self, *, required_columns: tuple[str, ...] = REQUIRED_COLUMNS) -> None:
        self._required_columns = tuple(required_columns)

    def decode(self, content: bytes | str, file_name: str) -> DecodedFile:
        """
        Decode one file.

        Raises:
            FileDecodeError: content is not UTF-8 or is not well-formed CSV.
            MissingRequiredColumnsError: header lacks a required column.
            DuplicateColumnsError: two headers normalize to the same name.
            EmptyFileError: no header, or no data rows after blank lines are skipped.
        """

        text = self._decode_text(content)
        reader = csv.reader(io.StringIO(text, newline=""), strict=True)

        try:
            header_cells = self._read_header(reader)
            if header_cells is None:
                raise EmptyFileError("CSV file is empty.")

            headers = [normalize_column_name(cell) for cell in header_cells]
            self._check_headers(headers)

            rows: list[RawRow] = []
            for cells in reader:
                if self._is_blank_line(cells):
                    continue
                if len(cells) != len(headers):
                    raise FileDecodeError(
                        f"Line {reader.line_num}: expected {len(headers)} fields, found {len(cells)}.",
                        details={"line": reader.line_num},
                    )
                rows.append(dict(zip(headers, cells)))
        except csv.Error as exc:
            raise FileDecodeError(
                f"Invalid CSV format at line {reader.line_num}: {exc}",
                details={"line": reader.line_num},
            ) from exc

        if not rows:
            raise EmptyFileError("CSV file contains a header row but no data rows.")

        return DecodedFile(file_name=file_name, headers=headers, rows=rows)

    def _decode_text(self, content: bytes | str) -> str:
        if isinstance(content, str):
            text = content
        else:
            try:
                text = bytes(content).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise FileDecodeError("CSV must be UTF-8 encoded.") from exc
        if text.startswith(_UTF8_BOM):
            text = text[len(_UTF8_BOM):]
        return text

    def _read_header(self, reader) -> list[str] | None:
        for cells in reader:
            if self._is_blank_line(cells):
                continue
            return cells
        return None

    def _check_headers(self, headers: list[str]) -> None:
        named = [header for header in headers if header]
        duplicates = sorted({header for header in named if named.count(header) > 1})
        if duplicates:
            raise DuplicateColumnsError(duplicates=duplicates)

        missing = [column for column in self._required_columns if column not in headers]
        if missing:
            raise MissingRequiredColumnsError(missing=missing, found=named)

    @staticmethod
    def _is_blank_line(cells: list[str]) -> bool:
        # A line with a delimiter is a row, even when every cell is empty.
        return len(cells) <= 1 and all(cell.strip() == "" for cell in cells)
