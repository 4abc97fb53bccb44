"""Tabular attendance exports (CSV, XLSX, PDF)."""
import csv
import io
import logging
from xml.sax.saxutils import escape

from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {
	'csv': ('text/csv', 'csv'),
	'xlsx': ('application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', 'xlsx'),
	'pdf': ('application/pdf', 'pdf'),
}


class Column:
	def __init__(self, label, key):
		self.label = label
		self.key = key

	def value(self, row):
		value = self.key(row) if callable(self.key) else row.get(self.key)
		return '' if value is None else value


def _format_datetime(value):
	if not value:
		return 'N/A'
	return timezone.localtime(value).strftime('%Y-%m-%d %H:%M:%S')


def _yes_no(value):
	return 'Yes' if value else 'No'


ADMIN_COLUMNS = [
	Column('User ID', 'userId'),
	Column('User Name', 'userName'),
	Column('Roll No.', 'rollNo'),
	Column('Enrollment No.', 'enrollmentNo'),
	Column('Date', 'date'),
	Column('Meal Type', 'mealType'),
	Column('Marked At', lambda row: _format_datetime(row.get('markedAt'))),
	Column('Marked By', 'markedByUserName'),
	Column('Manual Entry', lambda row: _yes_no(row.get('isManualEntry'))),
	Column('Notes', 'notes'),
]

STAFF_COLUMNS = ADMIN_COLUMNS[1:]

STUDENT_COLUMNS = [
	Column('Date', 'date'),
	Column('Meal Type', 'mealType'),
	Column('Marked At', lambda row: _format_datetime(row.get('markedAt'))),
]


def is_supported_format(format_type):
	return format_type in EXPORT_FORMATS


def build_filename(scope, format_type):
	stamp = timezone.localtime().strftime('%Y%m%d_%H%M%S')
	return f"{scope}_attendance_report_{stamp}.{EXPORT_FORMATS[format_type][1]}"


def content_type_for(format_type):
	return EXPORT_FORMATS[format_type][0]


def export_rows(rows, columns, format_type, title, subtitle=None):
	"""Render rows to bytes in the requested format."""
	if format_type == 'csv':
		return _to_csv(rows, columns)
	if format_type == 'xlsx':
		return _to_xlsx(rows, columns, title)
	if format_type == 'pdf':
		return _to_pdf(rows, columns, title, subtitle)
	raise ValueError(f"Unsupported export format: {format_type}")


def _to_csv(rows, columns):
	buffer = io.StringIO()
	writer = csv.writer(buffer)
	writer.writerow([c.label for c in columns])
	for row in rows:
		writer.writerow([c.value(row) for c in columns])
	return buffer.getvalue().encode('utf-8')


def _to_xlsx(rows, columns, title):
	workbook = Workbook()
	sheet = workbook.active
	# sheet titles are capped at 31 chars
	sheet.title = title[:31]
	sheet.append([c.label for c in columns])
	for cell in sheet[1]:
		cell.font = Font(bold=True)
	for row in rows:
		sheet.append([str(c.value(row)) for c in columns])
	for index in range(1, len(columns) + 1):
		sheet.column_dimensions[sheet.cell(row=1, column=index).column_letter].width = 15

	buffer = io.BytesIO()
	workbook.save(buffer)
	return buffer.getvalue()


def _to_pdf(rows, columns, title, subtitle=None):
	buffer = io.BytesIO()
	doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), leftMargin=30, rightMargin=30,
		topMargin=30, bottomMargin=30)
	styles = getSampleStyleSheet()
	cell_style = styles['BodyText']
	cell_style.fontSize = 7
	cell_style.leading = 9

	story = [Paragraph(title, styles['Title'])]
	if subtitle:
		story.append(Paragraph(subtitle, styles['Normal']))
	story.append(Paragraph(f"Generated: {timezone.localtime().strftime('%Y-%m-%d %H:%M:%S')}", styles['Normal']))
	story.append(Spacer(1, 12))

	if not rows:
		story.append(Paragraph('No attendance records found for the selected criteria.', styles['Normal']))
	else:
		data = [[c.label for c in columns]]
		for row in rows:
			data.append([Paragraph(escape(str(c.value(row))), cell_style) for c in columns])
		table = Table(data, repeatRows=1)
		table.setStyle(TableStyle([
			('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
			('FONTSIZE', (0, 0), (-1, 0), 8),
			('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
			('GRID', (0, 0), (-1, -1), 0.25, colors.grey),
			('VALIGN', (0, 0), (-1, -1), 'TOP'),
		]))
		story.append(table)

	doc.build(story)
	logger.info(f"Built PDF export '{title}' with {len(rows)} rows")
	return buffer.getvalue()
