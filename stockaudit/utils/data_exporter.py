import logging
import re
from datetime import datetime
from enum import Enum
from io import BytesIO
from typing import Any, Dict, List

import pandas as pd
from fastapi.responses import StreamingResponse
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from stockaudit.core.exceptions import ValidationError
from stockaudit.models.shared.enums import ExportFormat

logger = logging.getLogger(__name__)

RESULT_FIELDS = {
    "code": "Code",
    "display_name": "Product",
    "status": "Status",
    "observed_quantity": "Observed",
    "expected_quantity": "Expected",
}

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def safe_filename(name: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", name or "").strip("-").lower()
    return slug or "count"


class DataExportService:
    def prepare_data_for_export(self, data: List[Any], fields_mapping: Dict[str, str]) -> List[Dict[str, Any]]:
        """Map objects (or dicts) to rows keyed by display column names"""
        exported_data = []

        for item in data:
            row = {}
            for field_key, display_name in fields_mapping.items():
                value = item.get(field_key) if isinstance(item, dict) else getattr(item, field_key, None)

                if value is None:
                    value = ""
                elif isinstance(value, Enum):
                    value = value.value
                elif isinstance(value, datetime):
                    value = value.strftime("%Y-%m-%d %H:%M:%S")

                row[display_name] = value
            exported_data.append(row)

        return exported_data

    def render_csv(self, data: List[Dict[str, Any]], columns: List[str]) -> bytes:
        df = pd.DataFrame(data, columns=columns)
        return df.to_csv(index=False).encode("utf-8")

    def render_excel(self, data: List[Dict[str, Any]], columns: List[str], sheet_name: str = "Data") -> bytes:
        """Excel workbook with a styled header row and fitted column widths"""
        output = BytesIO()
        df = pd.DataFrame(data, columns=columns)

        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            worksheet = writer.sheets[sheet_name]

            header_font = Font(bold=True, color="FFFFFF")
            header_fill = PatternFill("solid", fgColor="366092")
            thin_border = Border(
                left=Side(style='thin'),
                right=Side(style='thin'),
                top=Side(style='thin'),
                bottom=Side(style='thin')
            )

            for col in range(1, len(columns) + 1):
                cell = worksheet.cell(row=1, column=col)
                cell.font = header_font
                cell.fill = header_fill
                cell.border = thin_border
                cell.alignment = Alignment(horizontal="center")

            for col_idx, column_name in enumerate(columns, 1):
                values = [str(column_name)] + [str(v) for v in df[column_name].tolist()]
                worksheet.column_dimensions[get_column_letter(col_idx)].width = min(max(len(v) for v in values) + 2, 60)

        return output.getvalue()

    def render_results(self, results: List[Any], fmt: ExportFormat) -> bytes:
        data = self.prepare_data_for_export(results, RESULT_FIELDS)
        columns = list(RESULT_FIELDS.values())
        if fmt == ExportFormat.CSV:
            return self.render_csv(data, columns)
        if fmt == ExportFormat.XLSX:
            return self.render_excel(data, columns, sheet_name="Results")
        raise ValidationError(f"Unsupported export format: {fmt}")

    def export_results(self, results: List[Any], count_name: str, fmt: ExportFormat) -> StreamingResponse:
        content = self.render_results(results, fmt)
        filename = f"report-{safe_filename(count_name)}.{fmt.value}"
        logger.info(f"Exported {len(results)} result rows to {filename}")
        return StreamingResponse(
            iter([content]),
            media_type=MEDIA_TYPES[fmt],
            headers={"Content-Disposition": f"attachment; filename={filename}"}
        )
