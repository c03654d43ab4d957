"""
Elective group filter for class report rows
"""

from services.normalizer_service import RowNormalizer


class GroupFilter:
    """Narrows normalized rows by the elective chosen in each basket group.

    A filter state maps group name -> subject name; None or a missing key
    means no constraint for that group. Rows are never mutated.
    """

    @staticmethod
    def is_active(state):
        return any((state or {}).values())

    @staticmethod
    def apply(rows, state):
        """Keep rows matching every selected group (AND across groups)"""
        if not GroupFilter.is_active(state):
            return rows
        selections = [(group, subject) for group, subject in state.items() if subject]
        return [
            row for row in rows
            if all(row.group_subjects.get(group) == subject for group, subject in selections)
        ]

    @staticmethod
    def select(state, group, subject_name):
        """New state with `subject_name` chosen for `group`"""
        new_state = dict(state or {})
        new_state[group] = subject_name
        return new_state

    @staticmethod
    def clear(state, group=None):
        """New state with one group (or every group) cleared"""
        if group is None:
            return {}
        new_state = dict(state or {})
        new_state[group] = None
        return new_state

    @staticmethod
    def options(subject_descriptors, group_names=None):
        """Elective subject names available per group, for the selection menus"""
        _, basket_subjects_by_group = RowNormalizer.partition_subjects(subject_descriptors, group_names)
        return {
            group: [subject.subject_name for subject in subjects]
            for group, subjects in basket_subjects_by_group.items()
        }

    @staticmethod
    def describe(state):
        """'Group 1: Biology' lines for the active selections, in state order"""
        return [f"{group}: {subject}" for group, subject in (state or {}).items() if subject]
