"""
Unit tests for the elective group filter
"""

import unittest
from services.group_filter_service import GroupFilter
from services.normalizer_service import RowNormalizer

SUBJECTS = [
    {'subjectName': 'Math'},
    {'subjectName': 'Biology', 'isBasketSubject': True, 'group': 'Group 1'},
    {'subjectName': 'Commerce', 'isBasketSubject': True, 'group': 'Group 1'},
    {'subjectName': 'Art', 'isBasketSubject': True, 'group': 'Group 2'},
    {'subjectName': 'Music', 'isBasketSubject': True, 'group': 'Group 2'},
]


def _record(admission, group1, group2):
    return {
        'admissionNumber': admission,
        'name': admission,
        'marks': [{
            'Math': 60,
            'Group 1': {'subject': group1, 'marks': 70},
            'Group 2': {'subject': group2, 'marks': 65},
        }],
    }


class TestGroupFilter(unittest.TestCase):

    def setUp(self):
        self.rows = RowNormalizer.normalize([
            _record('A1', 'Biology', 'Art'),
            _record('A2', 'Biology', 'Music'),
            _record('A3', 'Commerce', 'Art'),
        ], SUBJECTS)

    def test_empty_state_returns_rows_unchanged(self):
        self.assertIs(GroupFilter.apply(self.rows, {}), self.rows)
        self.assertIs(GroupFilter.apply(self.rows, None), self.rows)
        self.assertIs(GroupFilter.apply(self.rows, {'Group 1': None}), self.rows)
        self.assertFalse(GroupFilter.is_active({'Group 1': None}))

    def test_single_group(self):
        result = GroupFilter.apply(self.rows, {'Group 1': 'Biology'})
        self.assertEqual([r.admission_number for r in result], ['A1', 'A2'])

    def test_conjunctive_across_groups(self):
        result = GroupFilter.apply(self.rows, {'Group 1': 'Biology', 'Group 2': 'Art'})
        self.assertEqual([r.admission_number for r in result], ['A1'])

    def test_idempotent(self):
        state = {'Group 2': 'Art'}
        once = GroupFilter.apply(self.rows, state)
        twice = GroupFilter.apply(once, state)
        self.assertEqual(once, twice)

    def test_no_match(self):
        self.assertEqual(GroupFilter.apply(self.rows, {'Group 1': 'Physics'}), [])

    def test_select_and_clear_return_new_state(self):
        state = {}
        selected = GroupFilter.select(state, 'Group 1', 'Biology')
        self.assertEqual(state, {})
        self.assertEqual(selected, {'Group 1': 'Biology'})
        cleared = GroupFilter.clear(selected, 'Group 1')
        self.assertEqual(cleared, {'Group 1': None})
        self.assertEqual(selected, {'Group 1': 'Biology'})
        self.assertEqual(GroupFilter.clear(selected), {})

    def test_options_and_describe(self):
        options = GroupFilter.options(SUBJECTS)
        self.assertEqual(options['Group 1'], ['Biology', 'Commerce'])
        self.assertEqual(options['Group 2'], ['Art', 'Music'])
        self.assertEqual(options['Group 3'], [])
        self.assertEqual(GroupFilter.describe({'Group 1': 'Biology', 'Group 2': None}), ['Group 1: Biology'])


if __name__ == '__main__':
    unittest.main()
