import logging
import re
import zipfile
from collections import Counter
from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, List

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from stockaudit.core.config import settings
from stockaudit.core.exceptions import ValidationError
from stockaudit.schemas.audit.plan_item import PlanItemCreate

logger = logging.getLogger(__name__)

PLAN_COLUMNS = ["code", "display_name", "expected_quantity"]


def clean_balance(value: Any) -> int:
    """Parse the balance column: numbers are truncated, other text keeps its digits, fallback 0."""
    if value is None:
        return 0
    text = str(value).strip()
    if text == "" or text.lower() == "nan":
        return 0
    try:
        return max(0, int(float(text.replace(",", ""))))
    except (ValueError, OverflowError):
        digits = re.sub(r"\D", "", text)
        return int(digits) if digits else 0


def _read_frame(filename: str, content: bytes) -> pd.DataFrame:
    extension = Path(filename or "").suffix.lower()
    if extension not in settings.ALLOWED_PLAN_EXTENSIONS:
        raise ValidationError(
            f"Unsupported file type '{extension or filename}'. "
            f"Allowed: {', '.join(settings.ALLOWED_PLAN_EXTENSIONS)}"
        )

    try:
        if extension == ".csv":
            return pd.read_csv(BytesIO(content), header=None, dtype=str, keep_default_na=False)
        return pd.read_excel(BytesIO(content), header=None, dtype=str, engine="openpyxl")
    except pd.errors.EmptyDataError:
        raise ValidationError(f"Spreadsheet '{filename}' is empty")
    except (ValueError, zipfile.BadZipFile) as e:
        logger.warning(f"Could not read plan file {filename}: {e}")
        raise ValidationError(f"Could not read spreadsheet '{filename}'")


def rows_to_plan_items(rows: Iterable[List[Any]]) -> List[PlanItemCreate]:
    """Turn raw sheet rows (header already removed) into plan items.

    Rows shorter than three columns or with an empty code are skipped.
    """
    items: List[PlanItemCreate] = []
    for line_number, row in enumerate(rows, start=2):
        if row is None or len(row) < 3:
            continue
        code = "" if row[0] is None else str(row[0]).strip()
        if not code or code.lower() == "nan":
            continue
        name = "" if row[1] is None else str(row[1]).strip()
        if name.lower() == "nan":
            name = ""
        try:
            items.append(PlanItemCreate(
                code=code,
                display_name=name,
                expected_quantity=clean_balance(row[2]),
            ))
        except PydanticValidationError as e:
            message = e.errors()[0].get("msg", "invalid row")
            raise ValidationError(f"Row {line_number}: {message}")
    return items


def parse_plan_file(filename: str, content: bytes) -> List[PlanItemCreate]:
    """Parse an uploaded plan sheet: code | name | balance, first row is the header."""
    if not content:
        raise ValidationError("Uploaded file is empty")

    frame = _read_frame(filename, content).fillna("")
    if len(frame.columns) < 3:
        raise ValidationError("Spreadsheet must have three columns: code | name | balance")

    rows = frame.iloc[1:, :3].values.tolist()
    items = rows_to_plan_items(rows)
    if not items:
        raise ValidationError("Spreadsheet has no rows with a product code")

    logger.info(f"Parsed {len(items)} plan rows from {filename}")
    return items


def find_duplicate_codes(items: Iterable) -> List[str]:
    counts = Counter(item.code for item in items)
    return sorted(code for code, seen in counts.items() if seen > 1)
