"""
Profit & Loss Statement (PDF)

Builds the A4 statement the admin downloads from the dashboard:
1. Title and company / report details header
2. Summary table (revenue, operating expenses, net profit)
3. Detailed transaction log, one row per report, with a TOTAL row
4. Footer on every page with "Page i of n"

The PDF is rendered in memory and returned as bytes; nothing is
written to disk.
"""

import io
import time
from datetime import date
from typing import Iterable, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from cabledger.config import CompanySettings
from cabledger.formatting import (
    format_inr,
    format_prepared_date,
    format_short_date,
    format_time_12h,
    group_indian,
)
from cabledger.models.ledger import DailyReport, Driver
from cabledger.queries import ALL_DRIVERS, PeriodSummary, summarize


LIGHT_GRAY = colors.Color(245 / 255, 245 / 255, 245 / 255)
HEADER_GRAY = colors.Color(240 / 255, 240 / 255, 240 / 255)
RULE_GRAY = colors.Color(200 / 255, 200 / 255, 200 / 255)
TEXT_COLOR = colors.Color(40 / 255, 40 / 255, 40 / 255)

LOG_COLUMNS = ["DATE", "DRIVER", "LOGS", "REVENUE", "EXPENSE", "SALARY", "PROFIT"]


class StatementError(Exception):
    """The statement could not be rendered."""
    pass


def statement_filename(period: str, now_ms: Optional[int] = None) -> str:
    """
    Download name for a statement.

    Whitespace runs in the period label become single underscores:
    "Last 7 Days" -> "PL_Statement_Last_7_Days_<epoch ms>.pdf".
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"PL_Statement_{'_'.join(period.split())}_{now_ms}.pdf"


def driver_label(drivers: Iterable[Driver], driver_id: Optional[str]) -> str:
    """Name printed in the "Driver:" line of the header."""
    if driver_id in (None, ALL_DRIVERS):
        return "All Drivers"
    for driver in drivers:
        if driver.id == driver_id:
            return driver.name
    return "Unknown"


class _NumberedCanvas(canvas.Canvas):
    """Canvas that knows the page count before drawing footers."""

    footer_text = ""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count)
            super().showPage()
        super().save()

    def _draw_footer(self, page_count: int):
        width, _ = self._pagesize
        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillGray(0.6)
        self.drawString(14 * mm, 12 * mm, self.footer_text)
        self.drawRightString(
            width - 14 * mm,
            12 * mm,
            f"Page {self._pageNumber} of {page_count}",
        )
        self.restoreState()


class StatementBuilder:
    """
    Renders a profit & loss statement for a set of reports.

    Usage:
        builder = StatementBuilder(get_settings().company)
        pdf_bytes = builder.build(reports, "All Drivers", "This Month")
    """

    def __init__(self, company: CompanySettings):
        self._company = company
        self._styles = getSampleStyleSheet()
        self._styles.add(ParagraphStyle(
            name="StatementTitle",
            parent=self._styles["Title"],
            fontSize=16,
            alignment=TA_CENTER,
            textColor=TEXT_COLOR,
        ))
        self._styles.add(ParagraphStyle(
            name="BlockLeft", fontSize=10, leading=13, alignment=TA_LEFT,
        ))
        self._styles.add(ParagraphStyle(
            name="BlockRight", fontSize=10, leading=13, alignment=TA_RIGHT,
        ))
        self._styles.add(ParagraphStyle(
            name="SectionHeading",
            parent=self._styles["Heading3"],
            fontName="Helvetica-Bold",
            fontSize=12,
        ))
        self._styles.add(ParagraphStyle(
            name="LogCell", fontSize=8, leading=10,
        ))

    def _money(self, value: float) -> str:
        return format_inr(value, self._company.currency_prefix)

    def _header(self, driver: str, period: str, prepared_on: date) -> list:
        # Paragraph text is parsed as markup
        company = self._company
        left = Paragraph(
            "<b>COMPANY:</b><br/>"
            f"{escape(company.legal_name)}<br/>"
            f"{escape(company.address_line)}<br/>"
            f"{escape(company.postal_code)}",
            self._styles["BlockLeft"],
        )
        right = Paragraph(
            "<b>REPORT DETAILS:</b><br/>"
            f"Driver: {escape(driver)}<br/>"
            f"Period: {escape(period)}<br/>"
            f"Date Prepared: {format_prepared_date(prepared_on)}",
            self._styles["BlockRight"],
        )
        table = Table([[left, right]], colWidths=[91 * mm, 91 * mm])
        table.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LEFTPADDING', (0, 0), (-1, -1), 0),
            ('RIGHTPADDING', (0, 0), (-1, -1), 0),
            ('LINEBELOW', (0, 0), (-1, -1), 0.5, RULE_GRAY),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ]))
        return [
            Paragraph(escape(company.statement_title), self._styles["StatementTitle"]),
            Spacer(1, 6),
            table,
            Spacer(1, 12),
        ]

    def _summary_table(self, summary: PeriodSummary) -> Table:
        money = self._money
        rows = [
            ["REVENUE", ""],
            ["Local Trip Income", money(summary.income_local)],
            ["Outstation Trip Income", money(summary.income_outstation)],
            ["Other Income", money(summary.income_other)],
            ["TOTAL REVENUE", money(summary.total_income)],
            ["OPERATING EXPENSES", ""],
            ["Fuel Costs", money(summary.fuel)],
            ["Maintenance & Repairs", money(summary.maintenance)],
            ["Tolls & Other", money(summary.tolls_and_other)],
            ["Driver Salary/Commission", money(summary.driver_salary)],
            ["TOTAL EXPENSES", money(summary.total_expenses)],
            ["NET PROFIT", money(summary.net_profit)],
        ]
        table = Table(rows, colWidths=[140 * mm, 42 * mm])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TEXTCOLOR', (0, 0), (-1, -1), TEXT_COLOR),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.1, RULE_GRAY),
            # Section headings
            ('SPAN', (0, 0), (1, 0)),
            ('SPAN', (0, 5), (1, 5)),
            ('BACKGROUND', (0, 0), (-1, 0), LIGHT_GRAY),
            ('BACKGROUND', (0, 5), (-1, 5), LIGHT_GRAY),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTNAME', (0, 5), (-1, 5), 'Helvetica-Bold'),
            # Totals
            ('FONTNAME', (0, 4), (-1, 4), 'Helvetica-Bold'),
            ('FONTNAME', (0, 10), (-1, 10), 'Helvetica-Bold'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, -1), (-1, -1), 11),
            ('BACKGROUND', (0, -1), (-1, -1), HEADER_GRAY),
        ]))
        return table

    def _log_table(
        self,
        reports: Sequence[DailyReport],
        summary: PeriodSummary,
    ) -> Table:
        rows = [LOG_COLUMNS]
        for report in reports:
            logs = Paragraph(
                f"{group_indian(report.kms_driven)}km<br/>"
                f"{escape(format_time_12h(report.login_time))} - "
                f"{escape(format_time_12h(report.logout_time))}",
                self._styles["LogCell"],
            )
            first_name = report.driver_name.split(" ")[0] if report.driver_name else ""
            rows.append([
                format_short_date(report.report_date),
                first_name,
                logs,
                group_indian(report.total_income),
                group_indian(report.trip_expenses),
                group_indian(report.driver_salary),
                group_indian(report.net_profit),
            ])
        rows.append([
            "TOTAL", "", "",
            group_indian(summary.total_income),
            group_indian(summary.trip_expenses),
            group_indian(summary.driver_salary),
            group_indian(summary.net_profit),
        ])

        widths = [18, 24, 44, 24, 24, 22, 26]
        table = Table(rows, colWidths=[w * mm for w in widths], repeatRows=1)
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('TEXTCOLOR', (0, 0), (-1, -1), TEXT_COLOR),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('ALIGN', (0, 0), (2, -1), 'LEFT'),
            ('ALIGN', (3, 0), (-1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.1, RULE_GRAY),
            ('FONTNAME', (-1, 1), (-1, -1), 'Helvetica-Bold'),
            # Header and footer rows
            ('BACKGROUND', (0, 0), (-1, 0), HEADER_GRAY),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.black),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('BACKGROUND', (0, -1), (-1, -1), HEADER_GRAY),
            ('TEXTCOLOR', (0, -1), (-1, -1), colors.black),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ]))
        return table

    def build(
        self,
        reports: Sequence[DailyReport],
        driver: str,
        period: str,
        prepared_on: Optional[date] = None,
    ) -> bytes:
        """
        Render the statement.

        Args:
            reports: Reports to include, in the order they should be listed
            driver: Driver line of the header ("All Drivers" or a name)
            period: Period label, e.g. "This Month"
            prepared_on: Date printed as "Date Prepared" (defaults to today)

        Returns:
            The PDF document as bytes

        Raises:
            StatementError: If reportlab fails to render the document
        """
        prepared_on = prepared_on or date.today()
        summary = summarize(reports)

        story = self._header(driver, period, prepared_on)
        story.append(self._summary_table(summary))
        story.append(Spacer(1, 15))
        story.append(Paragraph("DETAILED TRANSACTION LOG", self._styles["SectionHeading"]))
        story.append(Spacer(1, 5))
        story.append(self._log_table(reports, summary))

        footer = f"{self._company.display_name} - Internal Financial Document"
        canvas_class = type(
            "StatementCanvas", (_NumberedCanvas,), {"footer_text": footer}
        )

        buf = io.BytesIO()
        try:
            doc = SimpleDocTemplate(
                buf,
                pagesize=A4,
                leftMargin=14 * mm,
                rightMargin=14 * mm,
                topMargin=14 * mm,
                bottomMargin=20 * mm,
                title=self._company.statement_title,
            )
            doc.build(story, canvasmaker=canvas_class)
        except Exception as e:
            raise StatementError(f"Failed to render statement: {e}")

        return buf.getvalue()
