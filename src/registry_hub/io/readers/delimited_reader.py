"""
Chunked reader for the KBO open-data CSV extracts.

Files are read with pandas in fixed-size chunks so that multi-gigabyte inputs
never sit in memory as a whole. Every cell is read as a string (no NA
inference, leading zeros preserved) and yielded row by row as a dict.
"""

from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

import pandas as pd

from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)


class DelimitedReaderError(Exception):
    """Raised when a source file is missing or lacks required columns."""


def _validate_columns(path: Path, required: List[str], sep: str) -> None:
    header = pd.read_csv(path, sep=sep, nrows=0, dtype=str, encoding="utf-8-sig")
    missing = [column for column in required if column not in header.columns]
    if missing:
        raise DelimitedReaderError(
            f"{path.name} is missing required columns: {', '.join(missing)}"
        )


def iter_rows(
    path: Union[str, Path],
    columns: Optional[List[str]] = None,
    chunksize: int = 50_000,
    sep: str = ",",
) -> Iterator[Dict[str, str]]:
    """
    Yield each row of a delimited file as ``{column: stripped string}``.

    Args:
        path: Source file
        columns: Columns to load; all of them must exist in the header
        chunksize: Rows per pandas chunk
        sep: Field delimiter

    Raises:
        DelimitedReaderError: If the file does not exist or a column is missing
    """
    source = Path(path)
    if not source.is_file():
        raise DelimitedReaderError(f"Source file not found: {source}")
    if columns:
        _validate_columns(source, columns, sep)

    logger.debug("delimited_reader.open", path=str(source), chunksize=chunksize)

    with pd.read_csv(
        source,
        sep=sep,
        usecols=columns,
        dtype=str,
        keep_default_na=False,
        na_filter=False,
        skip_blank_lines=True,
        encoding="utf-8-sig",
        chunksize=chunksize,
    ) as reader:
        for chunk in reader:
            for column in chunk.columns:
                chunk[column] = chunk[column].str.strip()
            yield from chunk.to_dict(orient="records")
