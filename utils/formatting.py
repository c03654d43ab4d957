"""
Formatting utilities shared by the spreadsheet and document exports.
Both serializers must render cells, averages and filenames identically,
so every such rule lives here.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from config import Config

SENTINEL = Config.REPORT_SENTINEL

# Excel rejects these in sheet titles and caps titles at 31 characters
SHEET_TITLE_MAX_LENGTH = 31
_INVALID_SHEET_CHARS = re.compile(r'[\[\]:*?/\\]')
_SLUG_PATTERN = re.compile(r'[^a-z0-9]+')
_NUMERIC_TEXT = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)$')
_HTML_TAG = re.compile(r'<[^>]*>')
_LIST_NUMBER = re.compile(r'\b\d+\.')


def is_number(value):
    """True for real numbers; booleans and NaN do not count."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, Decimal):
        return not value.is_nan()
    try:
        return not math.isnan(value)
    except (TypeError, ValueError):
        return False


def parse_number(value):
    """Return value as int/float when it is numeric (including numeric text), else None."""
    if is_number(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text and _NUMERIC_TEXT.match(text):
            number = float(text)
            return int(number) if number.is_integer() and '.' not in text else number
    return None


def format_cell(value):
    """Missing values become the sentinel; everything else passes through."""
    if value is None:
        return SENTINEL
    if isinstance(value, (float, Decimal)) and not is_number(value):
        return SENTINEL
    if isinstance(value, str) and value.strip() == '':
        return SENTINEL
    return value


def format_text_cell(value):
    """Same as format_cell but always a string, for document cells."""
    return str(format_cell(value))


def format_average(value):
    """Two decimal places, rounding half up on the decimal text of the value.

    76.555 -> '76.56', 80 -> '80.00'. Non-numeric values go through format_cell.
    """
    if not is_number(value):
        return format_cell(value)
    try:
        quantized = Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return SENTINEL
    return f"{quantized:.2f}"


def get_mark_grade(mark):
    """Letter grade for a mark: A >= 75, B >= 65, C >= 55, S >= 40, else F."""
    number = parse_number(mark)
    if number is None:
        return SENTINEL
    if number >= 75:
        return 'A'
    if number >= 65:
        return 'B'
    if number >= 55:
        return 'C'
    if number >= 40:
        return 'S'
    return 'F'


def slugify(value):
    """'Grade 10 A Report!' -> 'grade-10-a-report'. Returns '' for blank input."""
    if value is None:
        return ''
    text = str(value).strip().lower()
    return _SLUG_PATTERN.sub('-', text).strip('-')


def build_filename(title, extension, fallback, scope_parts=(), generated_at=None, suffix_parts=()):
    """Derive an export filename.

    [slug(title) or fallback] + sanitized scope parts + suffix parts + date,
    joined by '-'. Parts that sanitize to nothing are dropped.
    """
    base = slugify(title) or fallback
    parts = [base]
    for part in list(scope_parts) + list(suffix_parts):
        slug = slugify(part)
        if slug:
            parts.append(slug)
    if generated_at is not None:
        parts.append(generated_at.strftime('%Y-%m-%d'))
    return f"{'-'.join(parts)}.{extension}"


def sheet_title(label, fallback, used_titles):
    """Sanitize a sheet label; empty or duplicate labels fall back to `fallback`."""
    text = _INVALID_SHEET_CHARS.sub('', str(label or '')).strip()
    text = text[:SHEET_TITLE_MAX_LENGTH].strip()
    taken = {t.lower() for t in used_titles}
    if text and text.lower() not in taken:
        return text
    if fallback.lower() not in taken:
        return fallback
    counter = 2
    while f"{fallback} {counter}".lower() in taken:
        counter += 1
    return f"{fallback} {counter}"


def format_long_date(moment=None):
    """'October 19, 2026' style date used in the page header."""
    moment = moment or datetime.now()
    return f"{moment.strftime('%B')} {moment.day}, {moment.year}"


def format_date(value):
    """ISO style 'YYYY-MM-DD' for dates, datetimes and ISO text; '-' when unusable."""
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d')
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        return SENTINEL
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text).strftime('%Y-%m-%d')
    except ValueError:
        return SENTINEL


def plain_address(value):
    """Address as plain text: markup, asterisks and '1.' list numbers removed."""
    if not value:
        return None
    text = _HTML_TAG.sub('', str(value))
    text = text.replace('*', '')
    return _LIST_NUMBER.sub('', text).strip() or None


def status_label(availability):
    return 'Active' if availability else 'Inactive'


def yes_no(value):
    return 'Yes' if value else 'No'
