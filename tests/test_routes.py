"""
Integration tests for the report export routes
"""

import unittest
from io import BytesIO
import openpyxl
import sample_data
from app import create_app


class TestReportRoutes(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app()
        self.app.config['TESTING'] = True
        self.app.config['WTF_CSRF_ENABLED'] = False
        self.client = self.app.test_client()

    def test_index(self):
        response = self.client.get('/')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['success'])

    def test_class_report_excel_download(self):
        response = self.client.post('/reports/class/excel', json=sample_data.class_report_payload())
        self.assertEqual(response.status_code, 200)
        self.assertIn('spreadsheetml', response.headers['Content-Type'])
        disposition = response.headers['Content-Disposition']
        self.assertTrue(disposition.startswith('attachment; filename=grade-10-a-class-report-2024-term-1-'))
        self.assertTrue(disposition.endswith('.xlsx'))
        wb = openpyxl.load_workbook(BytesIO(response.data))
        self.assertEqual(wb.sheetnames, ['Class Report'])

    def test_class_report_pdf_download(self):
        response = self.client.post('/reports/class/pdf', json=sample_data.class_report_payload())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Content-Type'], 'application/pdf')
        self.assertTrue(response.data.startswith(b'%PDF'))

    def test_class_report_group_filter(self):
        payload = sample_data.class_report_payload()
        payload['groupFilter'] = {'Group 1': 'Biology'}
        response = self.client.post('/reports/class/rows', json=payload)
        data = response.get_json()
        self.assertTrue(data['success'])
        self.assertEqual([row['admissionNumber'] for row in data['rows']], ['A001', 'A003', 'A005'])
        self.assertEqual(data['groupOptions']['Group 1'], ['Biology', 'Commerce'])
        self.assertEqual(data['activeFilters'], ['Group 1: Biology'])

    def test_class_rows_select_and_clear(self):
        """Menu actions update the posted filter state and the rows it selects"""
        payload = sample_data.class_report_payload()
        payload['select'] = {'group': 'Group 1', 'subject': 'Biology'}
        data = self.client.post('/reports/class/rows', json=payload).get_json()
        self.assertEqual(data['groupFilter'], {'Group 1': 'Biology'})
        self.assertEqual([row['admissionNumber'] for row in data['rows']], ['A001', 'A003', 'A005'])
        self.assertEqual(data['coreSubjects'], ['Mathematics', 'Science', 'English'])

        payload = sample_data.class_report_payload()
        payload['groupFilter'] = data['groupFilter']
        payload['clear'] = 'Group 1'
        data = self.client.post('/reports/class/rows', json=payload).get_json()
        self.assertEqual(data['groupFilter'], {'Group 1': None})
        self.assertEqual(len(data['rows']), 6)
        self.assertEqual(data['activeFilters'], [])

        payload = sample_data.class_report_payload()
        payload['groupFilter'] = {'Group 1': 'Commerce', 'Group 2': 'Art'}
        payload['clear'] = True
        data = self.client.post('/reports/class/rows', json=payload).get_json()
        self.assertEqual(data['groupFilter'], {})

    def test_filter_without_matches_is_empty_dataset(self):
        payload = sample_data.class_report_payload()
        payload['groupFilter'] = {'Group 1': 'Astronomy'}
        response = self.client.post('/reports/class/pdf', json=payload)
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()['success'])

    def test_class_report_sections(self):
        payload = sample_data.class_report_payload()
        payload['sections'] = sample_data.class_report_sections()
        response = self.client.post('/reports/class/excel', json=payload)
        self.assertEqual(response.status_code, 200)
        wb = openpyxl.load_workbook(BytesIO(response.data))
        self.assertEqual(wb.sheetnames, ['Term 1', 'Term 2', 'Term 3'])

    def test_other_reports(self):
        response = self.client.post('/reports/student-marks/pdf', json={
            'rows': sample_data.student_marks_rows(), 'metadata': {'subjectName': 'Mathematics'}})
        self.assertEqual(response.status_code, 200)
        response = self.client.post('/reports/marks-entry/excel', json={
            'terms': sample_data.marks_entry_terms(), 'metadata': {}})
        self.assertEqual(response.status_code, 200)
        response = self.client.post('/reports/marks-entry/pdf', json={
            'rows': sample_data.marks_entry_rows(), 'metadata': {}})
        self.assertEqual(response.status_code, 200)
        response = self.client.post('/reports/parent/excel', json={
            'sections': sample_data.parent_report_sections(),
            'metadata': sample_data.parent_report_metadata()})
        self.assertEqual(response.status_code, 200)
        self.assertIn('filename=j-doe-a001-2024-all-terms-', response.headers['Content-Disposition'])

    def test_directory_downloads(self):
        listings = {
            'teachers': sample_data.teacher_records(),
            'students': sample_data.student_records(),
            'parents': sample_data.parent_records(),
            'class-teachers': sample_data.class_teacher_records(),
            'subjects': sample_data.subject_groups(),
        }
        for kind, records in listings.items():
            response = self.client.post(f'/reports/directory/{kind}/excel', json={'records': records})
            self.assertEqual(response.status_code, 200, kind)
            self.assertIn('spreadsheetml', response.headers['Content-Type'])
        response = self.client.post('/reports/directory/parents/pdf', json={
            'records': sample_data.parent_records(), 'metadata': {'title': 'Parents 2024'}})
        self.assertEqual(response.status_code, 200)
        self.assertIn('filename=parents-2024-', response.headers['Content-Disposition'])

    def test_directory_errors(self):
        response = self.client.post('/reports/directory/janitors/excel', json={'records': []})
        self.assertEqual(response.status_code, 404)
        response = self.client.post('/reports/directory/teachers/pdf', json={'records': []})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['message'], 'No teacher data available for export')

    def test_users_export(self):
        response = self.client.post('/reports/users/excel', json={
            'users': sample_data.user_records(), 'mode': 'profileRows'})
        self.assertEqual(response.status_code, 200)
        wb = openpyxl.load_workbook(BytesIO(response.data))
        self.assertEqual(wb.sheetnames, ['Users'])
        response = self.client.post('/reports/users/pdf', json={'users': sample_data.user_records()})
        self.assertEqual(response.status_code, 200)
        response = self.client.post('/reports/users/pdf', json={'users': sample_data.user_records(), 'mode': 'all'})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()['success'])

    def test_unknown_format(self):
        response = self.client.post('/reports/class/csv', json=sample_data.class_report_payload())
        self.assertEqual(response.status_code, 404)

    def test_invalid_json(self):
        response = self.client.post('/reports/class/excel', data='not json', content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()['success'])

    def test_csrf_enforced_by_default(self):
        app = create_app()
        app.config['TESTING'] = True
        response = app.test_client().post('/reports/class/excel', json=sample_data.class_report_payload())
        self.assertEqual(response.status_code, 400)


if __name__ == '__main__':
    unittest.main()
