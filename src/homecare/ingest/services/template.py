"""
Case import template.

Generates the workbook users fill in (or export from Google Sheets) before
running the case import. Header labels are the first-priority aliases of the
case field table, so a filled-in template imports without any mapping.
"""

from pathlib import Path

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.datavalidation import DataValidation

from homecare.ingest.services.sources import save_workbook_with_retry

TEMPLATE_SHEET_NAME = "個案資料"

# (header, column width)
TEMPLATE_COLUMNS = (
    ("姓名", 10),
    ("性別", 6),
    ("年齡", 6),
    ("電話", 15),
    ("地址", 30),
    ("狀態", 10),
    ("照顧等級", 12),
    ("居服員", 10),
    ("上次訪視", 15),
    ("類別", 12),
)

SAMPLE_ROWS = (
    ("林阿嬤", "女", 82, "0912-345-678", "台北市士林區中正路123號", "活躍", "CMS 4級", "張大美", "2025/12/15", "居家照顧"),
    ("王伯伯", "男", 78, "0922-333-444", "台北市北投區大業路456號", "服務中", "CMS 6級", "李小明", "2025/12/10", "居家照顧"),
    ("陳張女士", "女", 88, "0933-555-666", "台北市中山區北安路789號", "待評估", "CMS 5級", "王美麗", "2025/12/01", "居家照顧"),
)

STATUS_OPTIONS = ("服務中", "活躍", "待評估", "暫停", "已結案")

# Rows covered by the status dropdown
VALIDATION_ROWS = 1000


def build_case_template() -> Workbook:
    """Build the case template workbook in memory."""
    wb = Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET_NAME

    header_font = Font(bold=True)
    header_fill = PatternFill("solid", fgColor="DDDDDD")
    for col_idx, (header, width) in enumerate(TEMPLATE_COLUMNS, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = header_font
        cell.fill = header_fill
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    for row_idx, row in enumerate(SAMPLE_ROWS, start=2):
        for col_idx, value in enumerate(row, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)

    status_col = get_column_letter([header for header, _ in TEMPLATE_COLUMNS].index("狀態") + 1)
    dv = DataValidation(
        type="list",
        formula1=f'"{",".join(STATUS_OPTIONS)}"',
        allow_blank=True,
        showErrorMessage=False,
    )
    ws.add_data_validation(dv)
    dv.add(f"{status_col}2:{status_col}{VALIDATION_ROWS + 1}")

    ws.freeze_panes = "A2"
    return wb


def write_case_template(path: Path | str) -> Path:
    """
    Write the case template to disk, creating parent directories.

    Raises:
        RetriesExhaustedError: If the file stays locked (e.g. open in Excel)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    save_workbook_with_retry(build_case_template(), path)
    logger.info(f"Case template written to {path}")
    return path
