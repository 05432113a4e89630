"""
PDF report rendering.

Both reports are laid out with reportlab platypus: a centred header
(title, generation time, optional period and specialty lines), one table
per section and a "Page X of N" footer drawn by :class:`NumberedCanvas`.
A section without rows prints a "No ... found." line instead of an empty
table.
"""
from __future__ import annotations

import datetime
import logging
from io import BytesIO
from xml.sax.saxutils import escape
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from django.conf import settings
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ward.exceptions import ReportExportError
from ward.services.patients import PatientSummary

logger = logging.getLogger(__name__)

REPORT_TYPES = ('all', 'admissions', 'consultations', 'appointments')
HEADER_FILL = colors.Color(79 / 255, 70 / 255, 229 / 255)


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so each footer can print the total."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_page_number(total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def draw_page_number(self, total: int) -> None:
        width, _ = self._pagesize
        self.setFont('Helvetica', 9)
        self.drawCentredString(width / 2, 10 * mm, f'Page {self._pageNumber} of {total}')


def _fmt_date(value) -> str:
    if not value:
        return 'N/A'
    if isinstance(value, datetime.datetime):
        value = timezone.localtime(value) if timezone.is_aware(value) else value
    return value.strftime('%d/%m/%Y')


def _styles():
    styles = getSampleStyleSheet()
    title = ParagraphStyle('ward_title', parent=styles['Title'], fontSize=20, leading=24)
    centred = ParagraphStyle('ward_centred', parent=styles['Normal'], fontSize=11, alignment=1)
    section = ParagraphStyle('ward_section', parent=styles['Heading2'], fontSize=14, spaceBefore=8)
    empty = ParagraphStyle('ward_empty', parent=styles['Normal'], fontSize=10)
    return title, centred, section, empty


def _table(head: Sequence[str], rows: List[Sequence[str]]) -> Table:
    table = Table([list(head), *[list(r) for r in rows]], repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_FILL),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.25, colors.HexColor('#cbd5e1')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f8fafc')]),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ]))
    return table


def _header(story: list, title: str, now: datetime.datetime, lines: Iterable[str]) -> None:
    title_style, centred, _, _ = _styles()
    story.append(Paragraph(escape(title), title_style))
    story.append(Paragraph(f'Generated on: {timezone.localtime(now):%d/%m/%Y %H:%M}', centred))
    for line in lines:
        story.append(Paragraph(escape(line), centred))
    story.append(Spacer(1, 10 * mm))


def _section(story: list, heading: str, head: Sequence[str], rows: List[Sequence[str]], empty_text: str) -> None:
    _, _, section, empty = _styles()
    story.append(Paragraph(heading, section))
    if rows:
        story.append(_table(head, rows))
    else:
        story.append(Paragraph(empty_text, empty))
    story.append(Spacer(1, 6 * mm))


def _render(story: list, title: str) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=14 * mm, rightMargin=14 * mm,
                            topMargin=15 * mm, bottomMargin=18 * mm, title=title)
    doc.build(story, canvasmaker=NumberedCanvas)
    return buf.getvalue()


def _period_line(date_from, date_to) -> List[str]:
    if date_from and date_to:
        return [f'Period: {_fmt_date(date_from)} to {_fmt_date(date_to)}']
    return []


def _local_date(value) -> Optional[datetime.date]:
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return timezone.localdate(value) if timezone.is_aware(value) else value.date()
    return value


def _in_range(value, date_from, date_to) -> bool:
    d = _local_date(value)
    if d is None:
        return not (date_from or date_to)
    if date_from and d < date_from:
        return False
    if date_to and d > date_to:
        return False
    return True


def filter_report_data(patients: Iterable[PatientSummary], consultations: Iterable, appointments: Iterable, *,
                       date_from: Optional[datetime.date] = None, date_to: Optional[datetime.date] = None,
                       specialty: Optional[str] = None, search: str = '') -> Tuple[list, list, list]:
    """Narrow the three daily-report collections to a date range, specialty and search text.

    Patients are limited to those with an active admission.
    """
    term = (search or '').strip().lower()
    wanted = specialty if specialty and specialty != 'all' else None

    def matches(name: str, mrn: str) -> bool:
        return not term or term in (name or '').lower() or term in (mrn or '').lower()

    pts = [
        p for p in patients
        if p.active_admission is not None
        and (wanted is None or p.department == wanted)
        and _in_range(p.admission_date, date_from, date_to)
        and matches(p.name, p.mrn)
    ]
    cons = [
        c for c in consultations
        if (wanted is None or c.consultation_specialty == wanted)
        and _in_range(c.created_at, date_from, date_to)
        and matches(c.patient_name, c.mrn)
    ]
    apps = [
        a for a in appointments
        if (wanted is None or a.specialty == wanted)
        and _in_range(a.created_at, date_from, date_to)
        and matches(a.patient_name, a.mrn)
    ]
    return pts, cons, apps


def build_ward_report_pdf(patients: Sequence[PatientSummary], consultations: Sequence, appointments: Sequence, *,
                          report_type: str = 'all', date_from=None, date_to=None, specialty: Optional[str] = None,
                          now: Optional[datetime.datetime] = None) -> bytes:
    if report_type not in REPORT_TYPES:
        raise ReportExportError(f'unknown report type: {report_type}')
    now = now or timezone.now()
    lines = _period_line(date_from, date_to)
    if specialty and specialty != 'all':
        lines.append(f'Specialty: {specialty}')
    story: List[Any] = []
    try:
        _header(story, getattr(settings, 'WARD_REPORT_TITLE', 'IMD-Care Report'), now, lines)
        if report_type in ('all', 'admissions'):
            _section(story, 'Active Admissions',
                     ['Name', 'MRN', 'Department', 'Admission Date', 'Doctor', 'Safety Type'],
                     [[p.name, p.mrn, p.department or 'N/A', _fmt_date(p.admission_date),
                       p.doctor_name or 'Not assigned',
                       (p.latest_admission.safety_type if p.latest_admission else None) or 'N/A']
                      for p in patients],
                     'No active admissions found.')
        if report_type in ('all', 'consultations'):
            _section(story, 'Medical Consultations',
                     ['Patient', 'MRN', 'Specialty', 'Created', 'Doctor', 'Urgency'],
                     [[c.patient_name, c.mrn, c.consultation_specialty, _fmt_date(c.created_at),
                       c.doctor_name or 'Pending Assignment', c.urgency] for c in consultations],
                     'No active consultations found.')
        if report_type in ('all', 'appointments'):
            _section(story, 'Clinic Appointments',
                     ['Patient', 'MRN', 'Specialty', 'Date', 'Type', 'Status'],
                     [[a.patient_name, a.mrn, a.specialty, _fmt_date(a.created_at), a.appointment_type, a.status]
                      for a in appointments],
                     'No appointments found.')
        pdf = _render(story, 'Ward Report')
    except Exception as exc:
        logger.exception('ward report rendering failed')
        raise ReportExportError('Failed to generate report') from exc
    logger.info('ward report rendered (%s, %d bytes)', report_type, len(pdf))
    return pdf


def build_long_stay_report_pdf(rows: Sequence[Tuple[PatientSummary, int]], *, specialty: Optional[str] = None,
                               date_from=None, date_to=None,
                               now: Optional[datetime.datetime] = None) -> bytes:
    """Render ``(patient, stay_days)`` pairs from ``long_stay_patients``."""
    now = now or timezone.now()
    lines = []
    if specialty and specialty != 'all':
        lines.append(f'Specialty: {specialty}')
    lines.extend(_period_line(date_from, date_to))
    story: List[Any] = []
    try:
        _header(story, 'Long Stay Patient Report', now, lines)
        body = []
        for patient, days in rows:
            adm = patient.latest_admission
            body.append([
                patient.name, patient.mrn, adm.department,
                adm.admitting_doctor.name if adm.admitting_doctor else 'Not assigned',
                _fmt_date(adm.admission_date), f'{days} days',
            ])
        _section(story, 'Long Stay Patients',
                 ['Patient Name', 'MRN', 'Department', 'Attending Doctor', 'Admission Date', 'Stay Duration'],
                 body, 'No long stay patients found.')
        pdf = _render(story, 'Long Stay Patient Report')
    except Exception as exc:
        logger.exception('long stay report rendering failed')
        raise ReportExportError('Failed to generate long stay report') from exc
    return pdf


def report_filename(prefix: str, now: Optional[datetime.datetime] = None) -> str:
    now = timezone.localtime(now or timezone.now())
    return f'{prefix}-{now:%d-%m-%Y-%H%M}.pdf'


def long_stay_rows_to_dicts(rows: Sequence[Tuple[PatientSummary, int]]) -> List[Dict[str, Any]]:
    return [{**p.to_dict(), 'stay_days': days} for p, days in rows]
