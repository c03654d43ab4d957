"""
Unit tests for the shared formatting rules
"""

import unittest
from datetime import date, datetime
from decimal import Decimal
from utils.formatting import (
    format_cell, format_average, get_mark_grade, parse_number, slugify,
    build_filename, sheet_title, format_long_date, is_number, format_date, plain_address
)


class TestFormatting(unittest.TestCase):

    def test_format_cell_sentinel(self):
        """Missing and blank values become '-'"""
        self.assertEqual(format_cell(None), '-')
        self.assertEqual(format_cell('   '), '-')
        self.assertEqual(format_cell(0), 0)
        self.assertEqual(format_cell('A001'), 'A001')

    def test_format_average_rounds_half_up(self):
        """Two decimals, half up on the decimal text"""
        self.assertEqual(format_average(76.555), '76.56')
        self.assertEqual(format_average(80), '80.00')
        self.assertEqual(format_average(2.675), '2.68')
        self.assertEqual(format_average(None), '-')
        self.assertEqual(format_average('-'), '-')

    def test_numbers(self):
        self.assertTrue(is_number(3))
        self.assertFalse(is_number(True))
        self.assertFalse(is_number(float('nan')))
        self.assertFalse(is_number(Decimal('sNaN')))
        self.assertFalse(is_number(Decimal('NaN')))
        self.assertTrue(is_number(Decimal('1.5')))
        self.assertEqual(parse_number(' 42 '), 42)
        self.assertEqual(parse_number('42.5'), 42.5)
        self.assertIsNone(parse_number('abc'))
        self.assertIsNone(parse_number(''))

    def test_not_a_number_is_missing(self):
        """NaN in any numeric type renders as the sentinel instead of failing"""
        self.assertEqual(format_cell(float('nan')), '-')
        self.assertEqual(format_cell(Decimal('sNaN')), '-')
        self.assertEqual(format_average(Decimal('sNaN')), '-')
        self.assertEqual(format_average(Decimal('Infinity')), '-')
        self.assertEqual(format_average(Decimal('12.345')), '12.35')
        self.assertIsNone(parse_number(Decimal('NaN')))

    def test_mark_grades(self):
        self.assertEqual(get_mark_grade(75), 'A')
        self.assertEqual(get_mark_grade(74.9), 'B')
        self.assertEqual(get_mark_grade('55'), 'C')
        self.assertEqual(get_mark_grade(40), 'S')
        self.assertEqual(get_mark_grade(39), 'F')
        self.assertEqual(get_mark_grade(None), '-')

    def test_slugify(self):
        self.assertEqual(slugify('Grade 10 A Report!'), 'grade-10-a-report')
        self.assertEqual(slugify('  --Term 1--  '), 'term-1')
        self.assertEqual(slugify('!!!'), '')
        self.assertEqual(slugify(None), '')

    def test_build_filename(self):
        """Same policy for both extensions; unusable parts are dropped"""
        moment = datetime(2026, 10, 19, 9, 30)
        self.assertEqual(
            build_filename('Grade 10 A Report', 'xlsx', 'class-report', ('2024', 'Term 1'), moment),
            'grade-10-a-report-2024-term-1-2026-10-19.xlsx',
        )
        self.assertEqual(
            build_filename('', 'pdf', 'class-report', (None, '***'), moment, ('all-terms',)),
            'class-report-all-terms-2026-10-19.pdf',
        )

    def test_sheet_title(self):
        """Forbidden characters removed, 31 character limit, fallbacks for empty/duplicate"""
        self.assertEqual(sheet_title('Term 1/2: [Final]', 'Term', []), 'Term 12 Final')
        self.assertEqual(len(sheet_title('x' * 40, 'Term', [])), 31)
        self.assertEqual(sheet_title('', 'Report', []), 'Report')
        self.assertEqual(sheet_title('Term 1', 'Term', ['Term 1']), 'Term')
        self.assertEqual(sheet_title('Term 1', 'Term', ['Term 1', 'Term']), 'Term 2')

    def test_format_long_date(self):
        self.assertEqual(format_long_date(datetime(2026, 10, 19)), 'October 19, 2026')
        self.assertEqual(format_long_date(datetime(2026, 3, 5)), 'March 5, 2026')

    def test_format_date(self):
        self.assertEqual(format_date('1980-03-15T00:00:00.000Z'), '1980-03-15')
        self.assertEqual(format_date('2009-01-10'), '2009-01-10')
        self.assertEqual(format_date(date(2024, 2, 29)), '2024-02-29')
        self.assertEqual(format_date(datetime(2024, 2, 29, 23, 59)), '2024-02-29')
        self.assertEqual(format_date('yesterday'), '-')
        self.assertEqual(format_date(None), '-')

    def test_plain_address(self):
        self.assertEqual(plain_address('<p>12. Temple Road, <b>Kandy</b>*</p>'), 'Temple Road, Kandy')
        self.assertEqual(plain_address('221B Baker Street'), '221B Baker Street')
        self.assertIsNone(plain_address('<br/>'))
        self.assertIsNone(plain_address(None))


if __name__ == '__main__':
    unittest.main()
