"""Parser for material line-item CSV uploads."""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from backend.core.schema import Material
from backend.core.validation import ValidationError, validate_csv_upload

logger = logging.getLogger(__name__)

DEFAULT_CERTIFICATION = "FSSAI"

NAME_COLUMNS = ["material", "material name", "name"]
QUANTITY_COLUMNS = ["quantity in kgs", "quantity", "qty"]
RATE_COLUMNS = ["rate", "price"]
COST_COLUMNS = ["cost", "total cost", "totalcost"]
CERTIFICATION_COLUMNS = ["certification if any", "certification", "certifications"]

_NUMBER_PREFIX = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


@dataclass
class MaterialImportResult:
    materials: list[Material] = field(default_factory=list)
    certification: str = DEFAULT_CERTIFICATION


def _normalise_header(value: Any) -> str:
    return " ".join(str(value).split()).lower()


def _find_column(dataframe: pd.DataFrame, keywords: list[str]) -> str | None:
    headers = {_normalise_header(column): column for column in dataframe.columns}
    for keyword in keywords:
        if keyword in headers:
            return headers[keyword]
    return None


def _parse_number(value: Any) -> float:
    """Read the leading numeric part of a cell; blanks and junk become 0."""

    if value is None:
        return 0.0
    match = _NUMBER_PREFIX.match(str(value))
    if not match:
        return 0.0
    number = float(match.group(0))
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number


def _cell(row: dict[str, Any], column: str | None) -> Any:
    if column is None:
        return None
    value = row.get(column)
    # short rows are padded with NaN
    return None if pd.isna(value) else value


def parse(content: bytes) -> MaterialImportResult:
    # Columns map by header only: surplus trailing fields are dropped rather
    # than promoted to an index, and undecodable bytes become U+FFFD.
    try:
        dataframe = pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            index_col=False,
            engine="python",
            encoding="utf-8-sig",
            encoding_errors="replace",
        )
    except pd.errors.EmptyDataError:
        return MaterialImportResult()
    except pd.errors.ParserError as exc:
        raise ValidationError("Could not read the CSV file.", error=str(exc)) from exc

    name_column = _find_column(dataframe, NAME_COLUMNS)
    quantity_column = _find_column(dataframe, QUANTITY_COLUMNS)
    rate_column = _find_column(dataframe, RATE_COLUMNS)
    cost_column = _find_column(dataframe, COST_COLUMNS)
    certification_column = _find_column(dataframe, CERTIFICATION_COLUMNS)

    result = MaterialImportResult()
    for index, row in enumerate(dataframe.to_dict(orient="records")):
        if index == 0:
            certification = str(_cell(row, certification_column) or "").strip()
            if certification:
                result.certification = certification

        quantity = _parse_number(_cell(row, quantity_column))
        rate = _parse_number(_cell(row, rate_column))
        # a zero or blank cost falls back to the derived value
        total_cost = _parse_number(_cell(row, cost_column)) or quantity * rate

        result.materials.append(
            Material(
                id=index + 1,
                name=str(_cell(row, name_column) or "").strip(),
                quantity=quantity,
                rate=rate,
                total_cost=total_cost,
            )
        )
    return result


def import_materials(content: bytes, filename: str | None, content_type: str | None) -> MaterialImportResult:
    """Validate the upload type then parse it into material line-items."""

    validate_csv_upload(filename, content_type)
    result = parse(content)
    logger.info("Imported %d materials from %s", len(result.materials), filename)
    return result
