from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from wage_engine.core.exceptions import ValidationError

from .summaries import TransferRow

PURPOSE = "Salary"


def _bsp_row(row: TransferRow) -> list[str]:
    return [row.bank_code, row.bank_account_number, f"{row.net_pay:.2f}", PURPOSE, row.employee_name]


def _bred_row(row: TransferRow) -> list[str]:
    # BIC, beneficiary, second beneficiary line, account, amount, purpose
    return [row.bank_code, row.employee_name, "", row.bank_account_number, f"{row.net_pay:.2f}", PURPOSE]


BANK_FORMATS = {
    "BSP": _bsp_row,
    "BRED": _bred_row,
}


def export_bank_transfers(path: Path, rows: Iterable[TransferRow], bank_format: str) -> int:
    """Write a headerless bank upload file. Returns the number of lines written."""
    formatter = BANK_FORMATS.get(bank_format.upper())
    if formatter is None:
        raise ValidationError(f"Unknown bank format: {bank_format}", field="bank_format")

    count = 0
    with path.open("w", newline="") as handle:
        writer = csv.writer(handle)
        for row in rows:
            writer.writerow(formatter(row))
            count += 1
    return count


def export_file_name(date_from, date_to, bank_format: str) -> str:
    return f"wage_records_{date_from:%Y%m%d}_{date_to:%Y%m%d}_{bank_format.upper()}.csv"
