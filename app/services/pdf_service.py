# /app/services/pdf_service.py

import io
import os
import re
import html
import logging
from typing import List

from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image as PdfImage
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from ..models.report_model import ArchivedReport
from .chart_service import grammar_score
from .image_service import decode_data_url, load_image

logger = logging.getLogger(__name__)

PAGE_MARGIN = 20 * mm
MAX_IMAGE_WIDTH = A4[0] - 2 * PAGE_MARGIN
MAX_IMAGE_HEIGHT = 120 * mm

# Base-14 Helvetica has no glyphs for Turkish letters such as "ş" or "İ";
# DejaVu Sans ships with matplotlib and covers Latin Extended-A.
FONT_REGULAR = "DejaVuSans"
FONT_BOLD = "DejaVuSans-Bold"
_fonts_registered = False


def _register_fonts():
    """Registers the DejaVu TTFs with reportlab once per process."""
    global _fonts_registered
    if _fonts_registered:
        return
    import matplotlib
    font_dir = os.path.join(matplotlib.get_data_path(), "fonts", "ttf")
    pdfmetrics.registerFont(TTFont(FONT_REGULAR, os.path.join(font_dir, "DejaVuSans.ttf")))
    pdfmetrics.registerFont(TTFont(FONT_BOLD, os.path.join(font_dir, "DejaVuSans-Bold.ttf")))
    _fonts_registered = True


def sanitize_text(text) -> str:
    """Cleans free text from the AI so it is safe inside a reportlab Paragraph."""
    if not text:
        return ""
    text = str(text)
    replacements = {
        '‘': "'", '’': "'",  # Smart single quotes
        '“': '"', '”': '"',  # Smart double quotes
        '–': '-', '—': '--',
        '…': '...',
    }
    for old, new in replacements.items():
        text = text.replace(old, new)
    text = re.sub(r'[ \t]+', ' ', text).strip()
    # Paragraph parses a small XML dialect; escape everything, then keep line breaks.
    return html.escape(text, quote=False).replace("\n", "<br/>")


def safe_filename(report: ArchivedReport) -> str:
    name = re.sub(r'[^\w-]+', '_', report.studentName).strip('_') or "student"
    return f"{name}_Report_{report.id}.pdf"


def _bullets(items: List[str], style) -> List[Paragraph]:
    if not items:
        return [Paragraph("None recorded.", style)]
    return [Paragraph(sanitize_text(item), style, bulletText='•') for item in items]


def _work_image(data_url: str):
    image = load_image(data_url)
    width, height = image.size
    scale = min(MAX_IMAGE_WIDTH / width, MAX_IMAGE_HEIGHT / height, 1)
    return PdfImage(io.BytesIO(decode_data_url(data_url)), width=width * scale, height=height * scale)


def build_report_pdf(report: ArchivedReport) -> bytes:
    """Renders an archived report as an A4 PDF and returns its bytes."""
    _register_fonts()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title=f"{report.studentName} - Story Evaluation",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontName=FONT_BOLD,
        fontSize=22,
        textColor=colors.HexColor('#4F46E5'),
        spaceAfter=6,
        alignment=TA_LEFT
    )
    subtitle_style = ParagraphStyle(
        'ReportSubtitle',
        parent=styles['Normal'],
        fontName=FONT_REGULAR,
        fontSize=10,
        textColor=colors.grey,
        spaceAfter=16,
    )
    heading_style = ParagraphStyle(
        'ReportHeading',
        parent=styles['Heading2'],
        fontName=FONT_BOLD,
        fontSize=13,
        textColor=colors.HexColor('#312E81'),
        spaceBefore=14,
        spaceAfter=8,
    )
    normal_style = ParagraphStyle(
        'ReportBody',
        parent=styles['Normal'],
        fontName=FONT_REGULAR,
        fontSize=10,
        leading=14,
        spaceAfter=6,
    )
    bullet_style = ParagraphStyle(
        'ReportBullet',
        parent=normal_style,
        bulletFontName=FONT_REGULAR,
        leftIndent=15,
        bulletIndent=5,
        spaceAfter=4,
    )

    evaluation = report.evaluation
    story = [
        Paragraph(sanitize_text(report.studentName), title_style),
        Paragraph(f"{sanitize_text(report.gradeName)} | {sanitize_text(report.timestamp)}", subtitle_style),
    ]

    score_table = Table(
        [
            ["Handwriting", "Originality", "Creativity", "Grammar", "Overall"],
            [f"{evaluation.handwritingScore:g}", f"{evaluation.originalityScore:g}",
             f"{evaluation.creativityScore:g}", f"{grammar_score(evaluation):g}",
             f"{evaluation.overallScore:g}"],
        ],
        hAlign='LEFT',
    )
    score_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, -1), FONT_REGULAR),
        ('FONTNAME', (0, 0), (-1, 0), FONT_BOLD),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('FONTSIZE', (0, 1), (-1, 1), 16),
        ('TEXTCOLOR', (0, 1), (-1, 1), colors.HexColor('#4F46E5')),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#E2E8F0')),
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#EEF2FF')),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    story.append(score_table)

    story.append(Paragraph("Transcribed Text", heading_style))
    story.append(Paragraph(sanitize_text(evaluation.transcribedText) or "None recorded.", normal_style))

    story.append(Paragraph("Punctuation Errors", heading_style))
    story.extend(_bullets(evaluation.punctuationErrors, bullet_style))

    story.append(Paragraph("Concept Knowledge", heading_style))
    story.append(Paragraph(sanitize_text(evaluation.conceptKnowledge) or "None recorded.", normal_style))

    story.append(Paragraph("Originality Check", heading_style))
    story.append(Paragraph(sanitize_text(evaluation.plagiarismNote) or "None recorded.", normal_style))

    story.append(Paragraph("Areas to Improve", heading_style))
    story.extend(_bullets(evaluation.weaknesses, bullet_style))

    story.append(Paragraph("Suggestions", heading_style))
    story.extend(_bullets([f"{s.topic}: {s.action}" for s in evaluation.suggestions], bullet_style))

    if report.workImage:
        try:
            image_flowable = _work_image(report.workImage)
            story.append(Paragraph("Work Sample", heading_style))
            story.append(Spacer(1, 4))
            story.append(image_flowable)
        except Exception as e:
            # The report is still useful without the picture.
            logger.warning("Skipping unreadable work image in report %s: %s", report.id, e)

    doc.build(story)
    return buffer.getvalue()
