import io
import logging
from datetime import datetime
from xml.sax.saxutils import escape

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image

from config import LIKERT_MAX, QUESTION_TYPE_CHOICE, QUESTION_TYPE_TEXT

logger = logging.getLogger(__name__)

def _question_rows(summary):
    """Number every question Q1..Qn in display order."""
    rows = []
    number = 1
    for category in summary['categories']:
        for question in category['questions']:
            rows.append((f"Q{number}", category['title'], question))
            number += 1
    return rows

def _result_cell(question):
    if question['type'] == QUESTION_TYPE_CHOICE:
        if not question['counts']:
            return '-'
        top = max(question['counts'].items(), key=lambda item: item[1])
        return f"{top[0]} ({top[1]})"
    if question['type'] == QUESTION_TYPE_TEXT:
        return f"{question['totalResponses']} notes"
    return f"{question['mean']:.2f}"

def create_score_graph(summary):
    """
    Create a bar graph image of the mean score of every Likert question.
    """
    references = []
    means = []
    for reference, _, question in _question_rows(summary):
        if question['type'] in (QUESTION_TYPE_CHOICE, QUESTION_TYPE_TEXT):
            continue
        references.append(reference)
        means.append(question['mean'])

    plt.rcParams['figure.dpi'] = 300
    fig, ax = plt.subplots(figsize=(10, 4))
    bars = ax.bar(references, means, color='#002060')

    ax.set_xlabel('')
    ax.set_ylabel('')
    ax.set_title('')
    ax.set_ylim(0, LIKERT_MAX)

    plt.xticks(fontsize=9)
    plt.yticks(fontsize=9)

    # Add value labels on top of each bar
    for bar, value in zip(bars, means):
        height = bar.get_height()
        ax.text(bar.get_x() + bar.get_width()/2.0, height,
               f'{value:.2f}',
               ha='center', va='bottom',
               fontsize=9)

    ax.grid(True, axis='y', linestyle='--', alpha=0.7)
    plt.tight_layout()

    buf = io.BytesIO()
    plt.savefig(buf, format='png', bbox_inches='tight', dpi=300)
    plt.close(fig)
    buf.seek(0)
    return buf

class FooterCanvas:
    def __init__(self, canvas, doc):
        self.canvas = canvas
        self.doc = doc

    def draw_footer(self):
        self.canvas.saveState()
        left_text = "Monev PDB - Lecturer Self Evaluation"
        right_text = f"Generated {datetime.now().strftime('%d/%m/%Y %H:%M')}"
        self.canvas.setFont("Helvetica", 7)
        self.canvas.setFillColor(colors.gray)

        self.canvas.drawString(25, 20, left_text)
        self.canvas.drawCentredString(self.doc.pagesize[0]/2, 20, f"Page {self.doc.page}")
        right_text_width = self.canvas.stringWidth(right_text, "Helvetica", 7)
        self.canvas.drawString(self.doc.pagesize[0] - right_text_width - 25, 20, right_text)

        self.canvas.restoreState()


def generate_analytics_report(summary, semester=''):
    """Build the analytics PDF from ``summarize_schema`` output and return it as a buffer."""
    buf = io.BytesIO()
    logger.info(f"Generating analytics report for {summary['totalSubmissions']} submissions")

    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        rightMargin=20,
        leftMargin=20,
        topMargin=20,
        bottomMargin=40  # room for the footer
    )

    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=12,
        alignment=1,
        spaceAfter=2
    )

    subtitle_style = ParagraphStyle(
        'CustomSubTitle',
        parent=styles['Normal'],
        fontSize=10,
        alignment=1,
        spaceAfter=2
    )

    cell_style = ParagraphStyle(
        'CellStyle',
        parent=styles['Normal'],
        fontSize=8,
        leading=9
    )

    section_style = ParagraphStyle(
        'SectionTitle',
        parent=styles['Normal'],
        fontSize=9,
        leading=10,
        fontName='Helvetica-Bold'
    )

    table_style = TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#002060')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('TOPPADDING', (0, 0), (-1, -1), 1),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 1),
        ('LEFTPADDING', (0, 0), (-1, -1), 2),
        ('RIGHTPADDING', (0, 0), (-1, -1), 2),
    ])

    elements = []

    elements.append(Paragraph("MONITORING &amp; EVALUASI PDB", title_style))
    elements.append(Paragraph("Lecturer Self Evaluation Report", subtitle_style))
    info = f"Submissions: {summary['totalSubmissions']}"
    if semester:
        info += f"    Semester: {semester}"
    elements.append(Paragraph(info, subtitle_style))
    elements.append(Spacer(1, 6))

    # Category means
    category_data = [['Category', 'Questions', 'Mean']]
    for category in summary['categories']:
        category_data.append([
            Paragraph(escape(category['title']), cell_style),
            str(len(category['questions'])),
            f"{category['mean']:.2f}",
        ])
    category_table = Table(category_data, colWidths=[doc.width * 0.7, doc.width * 0.15, doc.width * 0.15])
    category_table.setStyle(table_style)
    elements.append(category_table)
    elements.append(Spacer(1, 8))

    # Per question results
    question_rows = _question_rows(summary)
    question_data = [['Ref', 'Question', 'Type', 'Responses', 'Result']]
    for reference, category_title, question in question_rows:
        question_data.append([
            reference,
            Paragraph(escape(f"[{category_title}] {question['text']}"), cell_style),
            question['type'],
            str(question['totalResponses']),
            _result_cell(question),
        ])
    question_table = Table(
        question_data,
        colWidths=[doc.width * 0.07, doc.width * 0.55, doc.width * 0.1, doc.width * 0.1, doc.width * 0.18]
    )
    question_table.setStyle(table_style)
    elements.append(question_table)
    elements.append(Spacer(1, 8))

    if any(q['type'] not in (QUESTION_TYPE_CHOICE, QUESTION_TYPE_TEXT) for _, _, q in question_rows):
        elements.append(Paragraph("Mean score per Likert question:", section_style))
        img = Image(create_score_graph(summary))
        img.drawWidth = A4[0] - 50
        img.drawHeight = 2.5 * inch
        elements.append(img)

    def footer_func(canvas, doc):
        FooterCanvas(canvas, doc).draw_footer()

    try:
        doc.build(elements, onFirstPage=footer_func, onLaterPages=footer_func)
    except Exception as e:
        logger.error(f"PDF generation failed: {str(e)}")
        raise

    buf.seek(0)
    logger.info("Analytics report generated")
    return buf
