# Overview: Spreadsheet export of the financial report (openpyxl).

"""
Financial report workbook

One sheet, "Laporan Keuangan":

    LAPORAN KEUANGAN
    Periode:         <label>
    Tanggal Export:  <dd/mm/yyyy>
    (blank)
    RINGKASAN        five summary rows
    (blank)
    RIWAYAT PENJUALAN
    Tanggal | Kasir | Metode Pembayaran | Total
    ...
    (blank)
    RIWAYAT PEMBELIAN
    Tanggal | Supplier | Status Pembayaran | Total
    ...
"""

from datetime import datetime
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font

from ..money import format_rupiah
from ..time_utils import parse_iso_datetime, utcnow
from .checkout_service import PAYMENT_METHOD_LABELS
from .reporting_service import PERIOD_LABELS

SHEET_TITLE = "Laporan Keuangan"
COLUMN_WIDTHS = {"A": 20, "B": 20, "C": 20, "D": 15}

SALES_HEADER = ("Tanggal", "Kasir", "Metode Pembayaran", "Total")
PURCHASES_HEADER = ("Tanggal", "Supplier", "Status Pembayaran", "Total")

PURCHASE_STATUS_LABELS = {
    "lunas": "Lunas",
    "belum_lunas": "Belum Lunas",
    "sebagian": "Cicilan",
}


def export_filename(period: str, now: datetime | None = None) -> str:
    now = now or utcnow()
    label = PERIOD_LABELS.get(period, period).replace(" ", "_")
    return f"Laporan_Keuangan_{label}_{now.date().isoformat()}.xlsx"


def _format_date(value) -> str:
    dt = parse_iso_datetime(value) if isinstance(value, str) else value
    if dt is None:
        return "-"
    return dt.strftime("%d/%m/%Y %H:%M")


def _amount(value) -> Decimal:
    return Decimal(value) if value is not None else Decimal("0")


def build_financial_workbook(report: dict, period: str, now: datetime | None = None) -> bytes:
    """Render ``report`` (as returned by financial_report) into xlsx bytes."""
    now = now or utcnow()
    stats = report["stats"]

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append(["LAPORAN KEUANGAN"])
    ws.append(["Periode:", PERIOD_LABELS.get(period, period)])
    ws.append(["Tanggal Export:", now.strftime("%d/%m/%Y")])
    ws.append([])

    ws.append(["RINGKASAN"])
    ws.append(["Total Penjualan", format_rupiah(_amount(stats["total_sales"]))])
    ws.append(["Total Pembelian", format_rupiah(_amount(stats["total_purchases"]))])
    ws.append(["Laba Kotor", format_rupiah(_amount(stats["profit"]))])
    ws.append(["Jumlah Transaksi", stats["transaction_count"]])
    ws.append(["Rata-rata Transaksi", format_rupiah(_amount(stats["average_transaction"]))])
    ws.append([])

    ws.append(["RIWAYAT PENJUALAN"])
    ws.append(list(SALES_HEADER))
    for sale in report["sales"]:
        ws.append([
            _format_date(sale["created_at"]),
            sale.get("cashier_name") or "-",
            PAYMENT_METHOD_LABELS.get(sale["payment_method"], sale["payment_method"]),
            float(_amount(sale["total"])),
        ])
    ws.append([])

    ws.append(["RIWAYAT PEMBELIAN"])
    ws.append(list(PURCHASES_HEADER))
    for purchase in report["purchases"]:
        ws.append([
            _format_date(purchase["created_at"]),
            purchase.get("supplier_name") or "-",
            PURCHASE_STATUS_LABELS.get(purchase["payment_status"], purchase["payment_status"]),
            float(_amount(purchase["total"])),
        ])

    bold = Font(bold=True)
    for row in ws.iter_rows():
        if row[0].value in ("LAPORAN KEUANGAN", "RINGKASAN", "RIWAYAT PENJUALAN", "RIWAYAT PEMBELIAN", "Tanggal"):
            for c in row:
                c.font = bold

    for column, width in COLUMN_WIDTHS.items():
        ws.column_dimensions[column].width = width

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
