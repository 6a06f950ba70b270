"""File reader for CSV and Excel files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import pandas as pd


@dataclass
class ReadResult:
    """Result from reading a file."""

    filename: str
    sheet_name: str | None
    records: list[dict[str, str]]
    columns: list[str]

    @property
    def row_count(self) -> int:
        return len(self.records)

    @property
    def column_count(self) -> int:
        return len(self.columns)


class FileReader:
    """
    Reads CSV and Excel files into string records.

    Every cell is read as text and empty cells become "", so the records
    can be handed to the merge engine unchanged.

    Handles:
    - CSV files (encoding fallback)
    - Excel files (all sheets or specific sheet)
    - File-like objects for upload handling
    """

    SUPPORTED_EXTENSIONS = {".csv", ".xlsx", ".xls"}
    CSV_ENCODINGS = ("utf-8", "latin-1", "cp1252")

    def read_file(
        self,
        file_path: str | Path | BinaryIO,
        filename: str | None = None,
        sheet_name: str | int | None = None,
    ) -> list[ReadResult]:
        """
        Read a file and return its records.

        Args:
            file_path: Path to file or file-like object
            filename: Original filename (required for file-like objects)
            sheet_name: Specific sheet to read (Excel only), None for all

        Returns:
            List of ReadResult objects (one per sheet for Excel)
        """
        if isinstance(file_path, (str, Path)):
            path = Path(file_path)
            filename = filename or path.name
            extension = path.suffix.lower()
        else:
            if not filename:
                raise ValueError("filename required for file-like objects")
            extension = Path(filename).suffix.lower()

        if extension not in self.SUPPORTED_EXTENSIONS:
            raise ValueError(f"Unsupported file type: {extension}")

        if extension == ".csv":
            return self._read_csv(file_path, filename)
        return self._read_excel(file_path, filename, sheet_name)

    def _read_csv(
        self, file_path: str | Path | BinaryIO, filename: str
    ) -> list[ReadResult]:
        """Read a CSV file."""
        df = None
        for encoding in self.CSV_ENCODINGS:
            try:
                if not isinstance(file_path, (str, Path)):
                    file_path.seek(0)
                df = pd.read_csv(
                    file_path,
                    encoding=encoding,
                    dtype=str,
                    keep_default_na=False,
                )
                break
            except UnicodeDecodeError:
                continue
            except pd.errors.EmptyDataError:
                df = pd.DataFrame()
                break
            except (pd.errors.ParserError, OSError) as e:
                raise ValueError(f"Failed to read CSV: {e}") from e

        if df is None:
            raise ValueError("Could not decode CSV file")

        return [self._to_result(df, filename, None)]

    def _read_excel(
        self,
        file_path: str | Path | BinaryIO,
        filename: str,
        sheet_name: str | int | None = None,
    ) -> list[ReadResult]:
        """Read an Excel file."""
        try:
            if not isinstance(file_path, (str, Path)):
                file_path.seek(0)
            excel_file = pd.ExcelFile(file_path)

            if sheet_name is not None:
                sheets_to_read = [sheet_name]
            else:
                sheets_to_read = excel_file.sheet_names

            results = []
            for sheet in sheets_to_read:
                df = pd.read_excel(
                    excel_file, sheet_name=sheet, dtype=str, keep_default_na=False
                )

                # Skip empty sheets
                if len(df) == 0:
                    continue

                results.append(self._to_result(df, filename, str(sheet)))

            return results

        except (ValueError, OSError, ImportError) as e:
            raise ValueError(f"Failed to read Excel: {e}") from e

    @staticmethod
    def _to_result(df: pd.DataFrame, filename: str, sheet_name: str | None) -> ReadResult:
        columns = [str(c) for c in df.columns]
        df = df.fillna("")
        df.columns = columns
        return ReadResult(
            filename=filename,
            sheet_name=sheet_name,
            records=df.to_dict(orient="records"),
            columns=columns,
        )

    def preview_file(
        self,
        file_path: str | Path | BinaryIO,
        filename: str | None = None,
        max_rows: int = 10,
    ) -> dict:
        """
        Preview a file without merging.

        Returns metadata and first few rows.
        """
        results = self.read_file(file_path, filename)

        previews = []
        for result in results:
            previews.append({
                "filename": result.filename,
                "sheet_name": result.sheet_name,
                "row_count": result.row_count,
                "column_count": result.column_count,
                "columns": result.columns,
                "preview_rows": result.records[:max_rows],
            })

        return {
            "file_count": len(results),
            "total_rows": sum(r.row_count for r in results),
            "previews": previews,
        }
