"""Payslip document rendering."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Protocol, runtime_checkable
from uuid import UUID

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from attendance_payroll.calculators.types import PayslipFigures


@dataclass(frozen=True)
class PayslipDocument:
    """Everything printed on a payslip."""

    payslip_id: UUID
    employee_id: UUID
    display_name: str
    username: str
    period_start: date
    period_end: date
    monthly_base_salary: Decimal
    overtime_multiplier: Decimal
    figures: PayslipFigures
    generated_at: datetime


@dataclass(frozen=True)
class RenderedDocument:
    locator: str
    path: Path


@runtime_checkable
class PayslipRenderer(Protocol):
    """Turns a payslip into a retrievable document."""

    def render(self, document: PayslipDocument) -> RenderedDocument:
        ...


def payslip_lines(document: PayslipDocument) -> list[str]:
    """Plain-text body of a payslip, one entry per printed line."""
    f = document.figures
    multiplied_rate = f.hourly_rate * document.overtime_multiplier
    rule = "-" * 76

    def row(section: str, detail: str, amount: str) -> str:
        return f"{section:<22} | {detail:<35} | {amount}"

    return [
        f"Employee        : {document.display_name} ({document.username})",
        f"Payroll Period  : {document.period_start} to {document.period_end}",
        f"Generated At    : {document.generated_at:%Y-%m-%d %H:%M:%S}",
        "",
        rule,
        row("Section", "Detail", "Amount"),
        rule,
        row("Salary", "* Base Salary (bs)", f"{document.monthly_base_salary:.2f}"),
        row("", "* Working Days (wd)", str(f.working_days)),
        row("", "* Attendance Days (ad)", str(f.attendance_days)),
        row("", "Pro-rated Salary = (ad/wd) * bs", f"{f.prorated_base_salary:.2f}"),
        rule,
        row("Overtime", "* Total Hours (hr)", f"{f.overtime_hours:.2f} hrs"),
        row("", "* Hourly Rate", f"{f.hourly_rate:.2f}"),
        row("", f"* Hourly Rate x{document.overtime_multiplier} (mp)", f"{multiplied_rate:.2f}"),
        row("", "Overtime Pay = hr * mp", f"{f.overtime_pay:.2f}"),
        rule,
        row("Reimbursements", "Claimed Amounts", f"{f.reimbursement_total:.2f}"),
        rule,
        row("TOTAL TAKE-HOME PAY", "", f"{f.total_pay:.2f}"),
        rule,
        "",
        "This is a system-generated payslip. Please contact HR for any discrepancies.",
    ]


class ReportlabPayslipRenderer:
    """Draws payslips as PDF files under ``output_dir``."""

    def __init__(self, output_dir: str | Path, url_prefix: str = "/payslips"):
        self.output_dir = Path(output_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def render(self, document: PayslipDocument) -> RenderedDocument:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = f"payslip_{document.employee_id}_{document.payslip_id}.pdf"
        path = self.output_dir / filename

        pdf = canvas.Canvas(str(path), pagesize=A4)
        y = 800
        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawString(40, y, "PAYSLIP")
        y -= 24
        pdf.setFont("Courier", 9)
        for line in payslip_lines(document):
            pdf.drawString(40, y, line)
            y -= 14
            if y < 40:
                pdf.showPage()
                pdf.setFont("Courier", 9)
                y = 800
        pdf.showPage()
        pdf.save()

        return RenderedDocument(locator=f"{self.url_prefix}/{filename}", path=path)
