"""
Unit tests for the shared report table shapes
"""

import unittest
from datetime import datetime
import sample_data
from models.report import ReportMetadata, ReportSection
from services.normalizer_service import RowNormalizer
from services.report_table_service import ReportTableBuilder
from utils.exceptions import EmptyDatasetError

EXAMPLE_SUBJECTS = [{'subjectName': 'Math'}, {'subjectName': 'Science'}]
EXAMPLE_RECORD = {
    'admissionNumber': 'A001',
    'nameWithInitials': 'J.Doe',
    'averageOfMarks': 76.555,
    'position': 1,
    'marks': [{'Math': 80}],
}
GENERATED_AT = datetime(2026, 10, 19, 8, 0)


class TestClassReportShape(unittest.TestCase):

    def setUp(self):
        self.rows = RowNormalizer.normalize([EXAMPLE_RECORD], EXAMPLE_SUBJECTS)
        self.metadata = ReportMetadata(title='Grade 10 A', year_label='2024', term_label='Term 1',
                                       generated_at=GENERATED_AT)

    def test_example_row_cells(self):
        shape = ReportTableBuilder.class_report_shape(self.rows, EXAMPLE_SUBJECTS, include_groups=False)
        self.assertEqual(shape.headers, ('Admission Number', 'Student', 'Average', 'Position', 'Math', 'Science'))
        self.assertEqual(list(shape.rows[0]), ['A001', 'J.Doe', '76.56', 1, 80, '-'])

    def test_header_count_with_groups(self):
        shape = ReportTableBuilder.class_report_shape(self.rows, EXAMPLE_SUBJECTS)
        self.assertEqual(shape.column_count, 4 + 2 + 3)
        self.assertEqual(shape.headers[-3:], ('Group 1', 'Group 2', 'Group 3'))
        self.assertEqual(shape.rows[0][-3:], ('-', '-', '-'))
        self.assertEqual(len(shape.col_fracs), shape.column_count)

    def test_plan_class_report(self):
        plan = ReportTableBuilder.plan_class_report(self.rows, EXAMPLE_SUBJECTS, None, self.metadata,
                                                    group_filter={'Group 1': 'Biology'})
        self.assertTrue(plan.landscape)
        self.assertFalse(plan.multi_section)
        section = plan.sections[0]
        self.assertEqual(section.title, 'Grade 10 A')
        self.assertIn('Term: Term 1', section.summary.left)
        self.assertIn('Total Students: 1', section.summary.right)
        self.assertIn('Group 1: Biology', section.summary.right)
        self.assertEqual(plan.filename.render('xlsx', GENERATED_AT), 'grade-10-a-2024-term-1-2026-10-19.xlsx')

    def test_empty_rows_raise(self):
        with self.assertRaises(EmptyDatasetError):
            ReportTableBuilder.plan_class_report([], EXAMPLE_SUBJECTS, None, self.metadata)

    def test_sections_skip_empty(self):
        sections = [
            ReportSection('Term 1', self.rows),
            ReportSection('Term 2', []),
            {'label': 'Term 3', 'rows': self.rows},
        ]
        plan = ReportTableBuilder.plan_class_report_sections(sections, EXAMPLE_SUBJECTS, None, self.metadata)
        self.assertTrue(plan.multi_section)
        self.assertEqual([s.label for s in plan.sections], ['Term 1', 'Term 3'])
        self.assertEqual(plan.sections[1].title, 'Grade 10 A - Term 3')
        self.assertEqual(plan.filename.render('pdf', GENERATED_AT), 'grade-10-a-2024-all-terms-2026-10-19.pdf')

    def test_all_sections_empty_raise(self):
        with self.assertRaises(EmptyDatasetError):
            ReportTableBuilder.plan_class_report_sections([ReportSection('Term 1', [])],
                                                          EXAMPLE_SUBJECTS, None, self.metadata)


class TestStudentMarksShape(unittest.TestCase):

    def setUp(self):
        self.rows = sample_data.student_marks_rows()
        self.metadata = ReportMetadata(subject_label='Mathematics', year_label='2024', term_label='Term 1')

    def test_absent_student_cells(self):
        plan = ReportTableBuilder.plan_student_marks(self.rows, self.metadata)
        shape = plan.sections[0].shape
        self.assertEqual(shape.headers, ('Admission No.', 'Student', 'Grade', 'Class', 'Mark', 'Mark Grade'))
        absent = shape.rows[4]
        self.assertEqual(absent[4], '-')
        self.assertEqual(absent[5], 'Absent')
        self.assertEqual(shape.rows[0][2], 'Grade 10')
        self.assertEqual(shape.rows[0][4], 38)
        self.assertEqual(shape.rows[0][5], 'F')
        self.assertIn('Absent: 1', plan.sections[0].summary.right)

    def test_visibility_map(self):
        plan = ReportTableBuilder.plan_student_marks(
            self.rows, self.metadata, visibility={'admissionNumber': True, 'studentMark': True})
        self.assertEqual(plan.sections[0].shape.headers, ('Admission No.', 'Mark'))

    def test_no_visible_columns(self):
        with self.assertRaises(EmptyDatasetError):
            ReportTableBuilder.plan_student_marks(self.rows, self.metadata, visibility={})

    def test_filename(self):
        plan = ReportTableBuilder.plan_student_marks(self.rows, self.metadata)
        self.assertEqual(plan.filename.render('xlsx', GENERATED_AT),
                         'student-marks-mathematics-2024-term-1-2026-10-19.xlsx')


class TestMonitoringShape(unittest.TestCase):

    def test_term_override_and_counts(self):
        rows = sample_data.marks_entry_rows('Term 1')
        rows[0]['pendingStudentsCount'] = None
        plan = ReportTableBuilder.plan_marks_entry_monitoring(rows, ReportMetadata(term_label='Term 2'))
        shape = plan.sections[0].shape
        self.assertEqual(len(shape.headers), 15)
        self.assertEqual(shape.rows[0][1], 'Term 2')
        self.assertEqual(shape.rows[0][13], 0)
        self.assertEqual(shape.rows[2][4], '-')

    def test_all_terms(self):
        terms = sample_data.marks_entry_terms() + [{'label': 'Term 4', 'rows': []}]
        plan = ReportTableBuilder.plan_marks_entry_monitoring_all_terms(terms, ReportMetadata())
        self.assertEqual([s.label for s in plan.sections], ['Term 1', 'Term 2', 'Term 3'])
        self.assertEqual(plan.sections[2].shape.rows[0][1], 'Term 3')
        self.assertEqual(plan.sections[0].title, 'Marks Entry Monitoring - Term 1')


class TestParentReportShape(unittest.TestCase):

    def test_sections_and_filename(self):
        metadata = ReportMetadata.from_dict(sample_data.parent_report_metadata())
        plan = ReportTableBuilder.plan_parent_report(sample_data.parent_report_sections(), metadata)
        self.assertEqual(len(plan.sections), 2)
        shape = plan.sections[0].shape
        self.assertFalse(shape.index_column)
        self.assertEqual(shape.rows[0][3], '64.13')
        self.assertEqual(shape.rows[2][1], '-')
        self.assertIn('Student: J. Doe (A001)', plan.sections[0].summary.left)
        self.assertIn('Overall Average: 72.01', plan.sections[0].summary.right)
        self.assertEqual(plan.filename.render('pdf', GENERATED_AT),
                         'j-doe-a001-2024-all-terms-2026-10-19.pdf')

    def test_no_subjects(self):
        with self.assertRaises(EmptyDatasetError):
            ReportTableBuilder.plan_parent_report([{'examType': 'Term 1', 'subjects': []}], ReportMetadata())


if __name__ == '__main__':
    unittest.main()
