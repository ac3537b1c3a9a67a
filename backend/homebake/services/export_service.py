# Overview: Report and batch export renderers (CSV, JSON, text, XLSX).

"""
Exports

Reports are rendered from the dicts built by report_service. Money columns
are written in major currency units with two decimals.

Formats:
- csv:  one row per (shift, bread type)
- json: {"metadata": {...}, "data": report}
- text: human-readable summary
- xlsx: same rows as csv in a "Report" sheet (openpyxl)
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from datetime import date

from openpyxl import Workbook
from openpyxl.styles import Font

from homebake.time_utils import to_utc_z, utcnow


REPORT_CSV_COLUMNS = [
    "Date",
    "Shift",
    "Bread Type",
    "Unit Price",
    "Produced",
    "Sold",
    "Revenue",
    "Leftover",
    "Discounts",
]

BATCH_CSV_COLUMNS = ["Batch ID", "Bread Type", "Quantity", "Status", "Manager", "Created Date", "Notes"]

EXPORT_FORMATS = ("csv", "json", "text", "xlsx")

EXPORT_VERSION = "2.0.0"


class ExportError(ValueError):
    pass


@dataclass
class ExportFile:
    content: bytes
    mimetype: str
    filename: str


def format_money(cents: int) -> str:
    return f"{cents / 100:.2f}"


def _shifts_of(report: dict) -> list[dict]:
    """A range report carries "shifts"; a single shift summary is its own only shift."""
    return report["shifts"] if "shifts" in report else [report]


def report_rows(report: dict) -> list[list]:
    rows = []
    for summary in _shifts_of(report):
        for bread in summary["bread_type_breakdown"]:
            rows.append([
                summary["date"],
                summary["shift"],
                bread["bread_type_name"],
                format_money(bread["unit_price_cents"]),
                bread["produced"],
                bread["sold"],
                format_money(bread["revenue_cents"]),
                bread["leftover"],
                format_money(bread["discounts_cents"]),
            ])
    return rows


def render_csv(report: dict) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(REPORT_CSV_COLUMNS)
    writer.writerows(report_rows(report))
    return buf.getvalue()


def render_json(report: dict, title: str = "HomeBake Report", subtitle: str = "") -> str:
    return json.dumps(
        {
            "metadata": {
                "title": title,
                "subtitle": subtitle,
                "generated_at": to_utc_z(utcnow()),
                "version": EXPORT_VERSION,
            },
            "data": report,
        },
        indent=2,
    )


def _text_shift_block(summary: dict, currency: str) -> list[str]:
    lines = [
        f"{summary['shift'].upper()} SHIFT - {summary['date']}",
        "-" * 30,
        f"Revenue: {currency} {format_money(summary['total_revenue_cents'])}",
        f"Production: {summary['total_produced']} items",
        f"Sold: {summary['total_sold']} items",
        "",
        "Bread Type Breakdown:",
    ]
    for bread in summary["bread_type_breakdown"]:
        lines.append(
            f"  {bread['bread_type_name']}: Produced: {bread['produced']}, "
            f"Sold: {bread['sold']}, Revenue: {currency} {format_money(bread['revenue_cents'])}"
        )
    lines.append("")
    return lines


def render_text(report: dict, title: str = "HomeBake Report", subtitle: str = "", currency: str = "NGN") -> str:
    lines = [title, "=" * len(title), ""]
    if subtitle:
        lines += [subtitle, ""]
    lines += [f"Generated: {to_utc_z(utcnow())}", ""]

    if "shifts" in report:
        lines += [
            f"Total Revenue: {currency} {format_money(report['total_revenue_cents'])}",
            f"Total Production: {report['total_produced']} items",
            f"Total Sold: {report['total_sold']} items",
            "",
        ]
    for summary in _shifts_of(report):
        lines += _text_shift_block(summary, currency)

    lines += ["---", "Generated by HomeBake Management System", ""]
    return "\n".join(lines)


def render_xlsx(report: dict, title: str = "HomeBake Report") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Report"

    ws.append([title])
    ws["A1"].font = Font(bold=True, size=14)
    ws.append([])
    ws.append(REPORT_CSV_COLUMNS)
    for cell in ws[3]:
        cell.font = Font(bold=True)

    for row in report_rows(report):
        # Numbers stay numeric in the workbook
        row[3] = float(row[3])
        row[6] = float(row[6])
        row[8] = float(row[8])
        ws.append(row)

    for column, width in zip("ABCDEFGHI", (12, 10, 24, 12, 10, 10, 14, 10, 12)):
        ws.column_dimensions[column].width = width

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_report(report: dict, fmt: str, title: str = "HomeBake Report", currency: str = "NGN") -> ExportFile:
    fmt = (fmt or "csv").lower()
    if fmt not in EXPORT_FORMATS:
        raise ExportError(f"format must be one of: {', '.join(EXPORT_FORMATS)}")

    stamp = utcnow().date().isoformat()
    if fmt == "csv":
        return ExportFile(render_csv(report).encode("utf-8"), "text/csv", f"homebake-report-{stamp}.csv")
    if fmt == "json":
        return ExportFile(render_json(report, title).encode("utf-8"), "application/json", f"homebake-report-{stamp}.json")
    if fmt == "text":
        return ExportFile(
            render_text(report, title, currency=currency).encode("utf-8"),
            "text/plain",
            f"homebake-report-{stamp}.txt",
        )
    return ExportFile(
        render_xlsx(report, title),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        f"homebake-report-{stamp}.xlsx",
    )


def render_batches_csv(batches: list, shift: str, on_date: date) -> str:
    """
    Production report: a header block followed by one row per batch.

    Quantity is the batch's actual quantity.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    total = sum(batch.actual_quantity or 0 for batch in batches)

    writer.writerow(["HomeBake Production Report"])
    writer.writerow(["Date", on_date.isoformat()])
    writer.writerow(["Shift", shift.capitalize()])
    writer.writerow(["Total Production", total, "units"])
    writer.writerow(["Batch Count", len(batches)])
    writer.writerow([])
    writer.writerow(BATCH_CSV_COLUMNS)
    for batch in batches:
        writer.writerow([
            batch.batch_number,
            batch.bread_type.name if batch.bread_type else "Unknown",
            batch.actual_quantity or 0,
            batch.status,
            batch.created_by.name if batch.created_by else "Unknown",
            batch.created_at.date().isoformat(),
            batch.notes or "",
        ])
    return buf.getvalue()
