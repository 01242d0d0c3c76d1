import io
import logging
from datetime import datetime
from typing import Optional

from flask import current_app, has_app_context
from reportlab.graphics.shapes import Drawing, Rect, String
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    Image, KeepTogether, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
)
from xml.sax.saxutils import escape

from src.domain.schemas import Branding, CultureScoreReport

logger = logging.getLogger(__name__)

MARGIN = 50
LOGO_WIDTH = 200
MAX_SCORE = 5.0

INTRODUCTION = (
    "This report provides an AI-powered analysis of your organization's cultural health based on "
    "employee survey responses. The insights and recommendations are generated using advanced analytics "
    "and machine learning algorithms to identify patterns and trends in employee feedback."
)

EXECUTIVE_SUMMARY = (
    "This analysis is based on employee survey responses and provides insights into company culture, "
    "team dynamics, and recommended actions for improvement. The scores are calculated on a scale of 1-5, "
    "where 5 represents the highest level of satisfaction."
)

DISCLAIMER = (
    "This report is generated using AI analysis of survey responses. Recommendations should be reviewed "
    "in context of your organization's specific needs and circumstances."
)

PRIORITY_MARKERS = {
    'high': '[!]',
    'medium': '[*]',
    'low': '[.]',
}

PRIORITY_COLORS = {
    'high': '#c0392b',
    'medium': '#d68910',
    'low': '#27ae60',
}


def report_filename(today: Optional[datetime] = None) -> str:
    """Download filename embedding the current date."""
    today = today or datetime.utcnow()
    return f"culture-score-{today.strftime('%Y-%m-%d')}.pdf"


def capitalize_first(value: str) -> str:
    return value[:1].upper() + value[1:] if value else value


class FooterCanvas(canvas.Canvas):
    """
    Buffers every finished page and draws the footers only on save(),
    once the total page count is known.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_footer(total_pages)
            super().showPage()
        super().save()

    def draw_footer(self, total_pages: int):
        width, _ = self._pagesize
        self.saveState()
        self.setFont('Helvetica', 10)
        self.drawCentredString(width / 2, MARGIN - 10, f"Page {self._pageNumber} of {total_pages}")
        self.setFont('Helvetica-Oblique', 7)
        self._draw_wrapped_centered(DISCLAIMER, width, MARGIN - 24, font='Helvetica-Oblique', size=7)
        self.restoreState()

    def _draw_wrapped_centered(self, text: str, width: float, y: float, font: str, size: int):
        max_width = width - 2 * MARGIN
        line = ''
        lines = []
        for word in text.split():
            candidate = f"{line} {word}".strip()
            if self.stringWidth(candidate, font, size) > max_width and line:
                lines.append(line)
                line = word
            else:
                line = candidate
        if line:
            lines.append(line)

        for offset, text_line in enumerate(lines):
            self.drawCentredString(width / 2, y - offset * (size + 2), text_line)


class ReportRenderer:
    """
    Lays out a culture score report as a paginated A4 PDF.

    Content is laid out first as flowables; footers ('Page N of TOTAL' and the
    AI disclaimer) are retrofitted by FooterCanvas after pagination is final.
    """

    def __init__(self, default_logo_path: Optional[str] = None, page_compression: bool = True):
        if default_logo_path is None and has_app_context():
            default_logo_path = current_app.config.get('DEFAULT_LOGO_PATH')
        self.default_logo_path = default_logo_path
        self.page_compression = page_compression
        self.styles = self._build_styles()

    def render(self, report: CultureScoreReport, branding: Branding) -> bytes:
        logger.info(f"[Report] Rendering culture score report for '{branding.organization_name}'...")
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=MARGIN, rightMargin=MARGIN,
            topMargin=MARGIN, bottomMargin=MARGIN + 30,
            title='Culture Score Report',
            author=branding.organization_name,
            pageCompression=1 if self.page_compression else 0,
        )

        story = []
        story.extend(self._title_page(report, branding))
        story.extend(self._executive_summary())
        story.extend(self._company_overview(report))
        story.extend(self._team_metrics(report))
        story.extend(self._action_items(report))

        doc.build(story, canvasmaker=FooterCanvas)
        logger.info("[Report] Rendering complete.")
        return buffer.getvalue()

    # Sections

    def _title_page(self, report: CultureScoreReport, branding: Branding) -> list:
        flowables = []
        logo = self._load_logo(branding.logo_path)
        if logo is not None:
            flowables.append(logo)

        flowables.extend([
            Spacer(1, 0.4 * inch),
            Paragraph(escape(branding.organization_name), self.styles['OrgName']),
            Paragraph('Culture Score Report', self.styles['ReportTitle']),
            Spacer(1, 0.3 * inch),
            Paragraph(escape(INTRODUCTION), self.styles['Body']),
            Spacer(1, 0.2 * inch),
            Paragraph(
                f"Generated on: {report.lastUpdated.strftime('%Y-%m-%d %H:%M:%S')}",
                self.styles['RightAligned'],
            ),
            PageBreak(),
        ])
        return flowables

    def _executive_summary(self) -> list:
        return [
            self._section_header('Executive Summary', '>>'),
            Paragraph(escape(EXECUTIVE_SUMMARY), self.styles['Body']),
            Spacer(1, 0.3 * inch),
        ]

    def _company_overview(self, report: CultureScoreReport) -> list:
        overview = report.companyOverview
        rows = [
            ['Employee Coverage', f"{overview.employeesWithResponses}/{overview.totalEmployees}"],
            ['Response Rate', f"{overview.responseRate}%"],
            ['Average Satisfaction', f"{overview.averageSatisfaction:.1f}/5"],
            ['Work-Life Balance', f"{overview.averageWorkLifeBalance:.1f}/5"],
        ]
        table = Table(rows, colWidths=[170, 200], hAlign='LEFT')
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 11),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('LINEBELOW', (0, 0), (-1, -2), 0.25, colors.lightgrey),
        ]))
        return [self._section_header('Company Overview', '##'), table, Spacer(1, 0.3 * inch)]

    def _team_metrics(self, report: CultureScoreReport) -> list:
        if not report.teamMetrics:
            return []

        flowables = [self._section_header('Team Metrics', '**')]
        for team in report.teamMetrics:
            block = [
                Paragraph(escape(f">> {capitalize_first(team.team)} Team"), self.styles['TeamHeader']),
                Paragraph(f"* Team Size: {team.totalCount} members", self.styles['Body']),
                Paragraph(
                    f"* Response Rate: {team.responseRate}% ({team.respondedCount}/{team.totalCount} responded)",
                    self.styles['Body'],
                ),
                self._score_bar('Satisfaction', team.satisfaction),
                self._score_bar('Work-Life Balance', team.workLifeBalance),
                Spacer(1, 0.2 * inch),
            ]
            flowables.append(KeepTogether(block))
        return flowables

    def _action_items(self, report: CultureScoreReport) -> list:
        if not report.actionItems:
            return []

        flowables = [self._section_header('Recommended Actions', '>>')]
        for index, item in enumerate(report.actionItems, start=1):
            marker = PRIORITY_MARKERS.get(item.priority, '-')
            color = PRIORITY_COLORS.get(item.priority, '#000000')
            block = [
                Paragraph(
                    f"<font color='{color}'>{index}. {escape(marker)} "
                    f"Priority: {escape(capitalize_first(item.priority))}</font>",
                    self.styles['ActionHeader'],
                ),
                Paragraph(escape(item.text), self.styles['Indented']),
                Paragraph(f"Tags: {escape(', '.join(item.tags))}", self.styles['Tags']),
                Spacer(1, 0.15 * inch),
            ]
            flowables.append(KeepTogether(block))
        return flowables

    # Building blocks

    def _section_header(self, text: str, marker: str) -> Paragraph:
        return Paragraph(f"<u>{escape(marker)} {escape(text)}</u>", self.styles['SectionHeader'])

    def _score_bar(self, label: str, score: float) -> Drawing:
        """Horizontal bar scaled proportionally to a 1-5 maximum."""
        bar_width = 250
        height = 18
        drawing = Drawing(460, height)
        drawing.add(String(0, 5, f"{label}:", fontName='Helvetica', fontSize=10))
        drawing.add(Rect(120, 3, bar_width, 10, fillColor=colors.HexColor('#ecf0f1'), strokeColor=None))

        fill = max(0.0, min(float(score), MAX_SCORE)) / MAX_SCORE * bar_width
        if fill > 0:
            drawing.add(Rect(120, 3, fill, 10, fillColor=colors.HexColor('#2e86c1'), strokeColor=None))
        drawing.add(String(120 + bar_width + 10, 5, f"{score:.1f}/5", fontName='Helvetica-Bold', fontSize=10))
        return drawing

    def _load_logo(self, logo_path: Optional[str]) -> Optional[Image]:
        """Custom logo, falling back to the bundled default when it is missing or unreadable."""
        for candidate in (logo_path, self.default_logo_path):
            if not candidate:
                continue
            try:
                reader = ImageReader(candidate)
                width, height = reader.getSize()
                logo = Image(candidate, width=LOGO_WIDTH, height=LOGO_WIDTH * height / width)
                logo.hAlign = 'LEFT'
                return logo
            except Exception as e:
                logger.warning(f"[Report] Could not load logo '{candidate}': {e}. Trying fallback.")
        logger.warning("[Report] No usable logo found. Rendering without logo.")
        return None

    @staticmethod
    def _build_styles() -> dict:
        base = getSampleStyleSheet()
        return {
            'OrgName': ParagraphStyle('OrgName', parent=base['Normal'], fontName='Helvetica',
                                      fontSize=14, alignment=TA_CENTER, spaceAfter=6),
            'ReportTitle': ParagraphStyle('ReportTitle', parent=base['Title'], fontName='Helvetica-Bold',
                                          fontSize=24, alignment=TA_CENTER, spaceAfter=12),
            'SectionHeader': ParagraphStyle('SectionHeader', parent=base['Heading2'], fontName='Helvetica-Bold',
                                            fontSize=16, spaceBefore=12, spaceAfter=10),
            'TeamHeader': ParagraphStyle('TeamHeader', parent=base['Heading3'], fontName='Helvetica-Bold',
                                         fontSize=14, spaceAfter=4),
            'ActionHeader': ParagraphStyle('ActionHeader', parent=base['Normal'], fontName='Helvetica-Bold',
                                           fontSize=12, spaceAfter=3),
            'Body': ParagraphStyle('Body', parent=base['Normal'], fontName='Helvetica', fontSize=11,
                                   leading=15, alignment=TA_JUSTIFY),
            'RightAligned': ParagraphStyle('RightAligned', parent=base['Normal'], fontName='Helvetica',
                                           fontSize=11, alignment=TA_RIGHT),
            'Indented': ParagraphStyle('Indented', parent=base['Normal'], fontName='Helvetica', fontSize=11,
                                       leading=14, leftIndent=20),
            'Tags': ParagraphStyle('Tags', parent=base['Normal'], fontName='Helvetica-Oblique', fontSize=10,
                                   leftIndent=20, textColor=colors.HexColor('#555555')),
        }


def render_culture_score_report(report: CultureScoreReport, branding: Branding, **renderer_options) -> bytes:
    """Renderer entry point."""
    return ReportRenderer(**renderer_options).render(report, branding)
