#!/usr/bin/env python3
"""
Sample data for the E-Class report export service
Builds realistic report payloads for demos, scripts and tests
"""

CLASS_SUBJECTS = [
    {'id': 1, 'subjectName': 'Mathematics', 'subjectMedium': 'English', 'isBasketSubject': False},
    {'id': 2, 'subjectName': 'Science', 'subjectMedium': 'English', 'isBasketSubject': False},
    {'id': 3, 'subjectName': 'English', 'subjectMedium': 'English', 'isBasketSubject': False},
    {'id': 4, 'subjectName': 'Biology', 'subjectMedium': 'English', 'isBasketSubject': True, 'group': 'Group 1'},
    {'id': 5, 'subjectName': 'Commerce', 'subjectMedium': 'English', 'isBasketSubject': True, 'group': 'Group 1'},
    {'id': 6, 'subjectName': 'Art', 'subjectMedium': 'English', 'isBasketSubject': True, 'group': 'Group 2'},
    {'id': 7, 'subjectName': 'Music', 'subjectMedium': 'English', 'isBasketSubject': True, 'group': 'Group 2'},
    {'id': 8, 'subjectName': 'ICT', 'subjectMedium': 'English', 'isBasketSubject': True, 'group': 'Group 3'},
]

_STUDENTS = [
    ('A001', 'J. Doe', 'jdoe@example.com'),
    ('A002', 'K. Perera', 'kperera@example.com'),
    ('A003', 'M. Silva', 'msilva@example.com'),
    ('A004', 'N. Fernando', 'nfernando@example.com'),
    ('A005', 'R. Jayasinghe', 'rjayasinghe@example.com'),
    ('A006', 'S. Bandara', 'sbandara@example.com'),
]


def class_records(term_offset=0):
    """Raw per-student class report records, in the API's MarkData shape"""
    records = []
    for index, (admission, name, email) in enumerate(_STUDENTS):
        base = 55 + (index * 7 + term_offset * 3) % 40
        marks = {
            'Mathematics': base + 4,
            'Science': base - 3,
            'Group 1': {'subject': 'Biology' if index % 2 == 0 else 'Commerce', 'marks': base + 1},
            'Group 2': {'subject': 'Art' if index % 3 else 'Music', 'marks': base - 6},
            'Group 3': {'subject': 'ICT', 'marks': base + 2},
        }
        # One student missed the English paper
        if index != 2:
            marks['English'] = base + 5
        records.append({
            'userName': f'student{index + 1}',
            'admissionNumber': admission,
            'nameWithInitials': name,
            'email': email,
            'averageOfMarks': base + 0.555,
            'position': index + 1,
            'marks': [marks],
        })
    return records


def class_report_payload():
    return {
        'data': {'subjects': CLASS_SUBJECTS, 'MarkData': class_records()},
        'metadata': {
            'title': 'Grade 10 A Class Report',
            'organizationName': 'Springfield College',
            'yearLabel': '2024',
            'termLabel': 'Term 1',
            'gradeLabel': 'Grade 10',
            'classLabel': 'A',
        },
    }


def class_report_sections():
    return [
        {'label': f'Term {term}', 'records': class_records(term_offset=term)}
        for term in (1, 2, 3)
    ]


def student_marks_rows():
    """Per-subject marks rows as returned by the student marks endpoint"""
    rows = []
    for index, (admission, name, _) in enumerate(_STUDENTS):
        absent = index == 4
        mark = None if absent else 38 + index * 9
        rows.append({
            'student': {'admissionNumber': admission, 'nameWithInitials': name},
            'academicYear': '2024',
            'academicTerm': 'Term 1',
            'academicMedium': 'English',
            'grade': {'grade': '10'},
            'class': {'className': 'A'},
            'subject': {'subjectName': 'Mathematics'},
            'studentMark': mark,
            'isAbsentStudent': absent,
        })
    return rows


def marks_entry_rows(term='Term 1'):
    """Marks entry progress rows, one per teacher/subject/class"""
    teachers = [
        ('T100', 'A. Kumara', 'akumara@example.com', '0771234567', 'Mathematics', 'MAT10'),
        ('T101', 'B. Dias', 'bdias@example.com', '0772345678', 'Science', 'SCI10'),
        ('T102', 'C. Wijesekara', None, None, 'English', 'ENG10'),
    ]
    rows = []
    for index, (staff_id, name, email, mobile, subject, code) in enumerate(teachers):
        marked = 30 - index * 8
        rows.append({
            'academicYear': '2024',
            'term': term,
            'teacherStaffId': staff_id,
            'teacherNameWithInitials': name,
            'teacherEmail': email,
            'teacherMobile': mobile,
            'academicMedium': 'English',
            'gradeName': 'Grade 10',
            'className': 'A',
            'subjectCode': code,
            'subjectName': subject,
            'totalStudentsForSubject': 30,
            'markedStudentsCount': marked,
            'pendingStudentsCount': 30 - marked,
            'status': 'Completed' if marked == 30 else 'Pending',
        })
    return rows


def marks_entry_terms():
    return [{'label': f'Term {term}', 'rows': marks_entry_rows(f'Term {term}')} for term in (1, 2, 3)]


def parent_report_sections():
    """One exam section per term for a single student"""
    sections = []
    for term in (1, 2):
        sections.append({
            'examType': f'Term {term} Examination',
            'academicDetails': {'year': '2024', 'grade': 'Grade 10', 'className': 'A'},
            'overall': {'averageOfMarks': (72.005, 74.5)[term - 1], 'position': 4 - term},
            'subjects': [
                {'subjectName': 'Mathematics', 'studentMark': 78 + term, 'studentGrade': 'A',
                 'classAverageMark': 64.125, 'highestMark': 96, 'highestGrade': 'A'},
                {'subjectName': 'Science', 'studentMark': 66, 'studentGrade': 'B',
                 'classAverageMark': 61.5, 'highestMark': 91, 'highestGrade': 'A'},
                {'subjectName': 'English', 'studentMark': None, 'studentGrade': None,
                 'classAverageMark': 58, 'highestMark': 88, 'highestGrade': 'A'},
            ],
        })
    return sections


def parent_report_metadata():
    return {
        'organizationName': 'Springfield College',
        'studentName': 'J. Doe',
        'admissionNumber': 'A001',
        'yearLabel': '2024',
        'gradeLabel': 'Grade 10',
        'classLabel': 'A',
    }


_TEACHERS = [
    (11, 'T1001', 'A. Gunawardena', 'Amali Gunawardena', 'Female'),
    (12, 'T1002', 'B. Rathnayake', 'Bimal Rathnayake', 'Male'),
    (13, 'T1003', 'C. Wijesinghe', 'Chamari Wijesinghe', 'Female'),
]


def _grade(number):
    return {'grade': str(number)}


def _class(name):
    return {'className': name}


def teacher_records():
    """Teachers with their teaching assignments (userProfile)"""
    subjects = [
        {'subjectName': 'Mathematics', 'subjectCode': 'MAT10'},
        {'subjectName': 'Science', 'subjectCode': 'SCI10'},
    ]
    records = []
    for index, (user_id, staff_id, initials, name, gender) in enumerate(_TEACHERS):
        profiles = [
            {'academicYear': '2024', 'academicMedium': 'English', 'grade': _grade(10),
             'class': _class(section), 'subject': subjects[index % 2]}
            for section in ('A', 'B')[:2 - index % 2]
        ]
        records.append({
            'id': user_id,
            'employeeNumber': staff_id,
            'nameWithInitials': initials,
            'name': name,
            'email': f'{staff_id.lower()}@example.com',
            'mobile': f'07712345{index:02d}',
            'gender': gender,
            'birthDate': f'198{index}-0{index + 3}-15T00:00:00.000Z',
            'address': f'<p>{index + 12}. Temple Road, Kandy*</p>',
            'employeeType': 'Teacher',
            'userType': {'userType': 'Teacher'},
            'availability': index != 2,
            # The last teacher has no assignment yet
            'userProfile': profiles if index < 2 else [],
        })
    return records


def student_records():
    """Students with academic profiles and basket subject choices"""
    records = []
    for index, (admission, name, email) in enumerate(_STUDENTS):
        basket = {
            'Group 1': {'subjectName': 'Biology' if index % 2 == 0 else 'Commerce'},
            'Group 2': {'subjectName': 'Art' if index % 3 else 'Music'},
        }
        records.append({
            'id': 100 + index,
            'employeeNumber': admission,
            'nameWithInitials': name,
            'email': email,
            'mobile': f'07198765{index:02d}',
            'gender': 'Female' if index % 2 else 'Male',
            'birthDate': f'2009-0{index + 1}-1{index}',
            'address': f'{index + 3} Lake Drive, Colombo',
            'employeeType': 'Student',
            'userType': {'userType': 'Student'},
            'availability': True,
            'studentProfile': [
                {'academicYear': '2024', 'academicMedium': 'English', 'grade': _grade(10),
                 'class': _class('A'), 'basketSubjects': basket},
            ],
        })
    return records


def parent_records():
    """Parents with their children's academic profiles (parentProfile)"""
    children = student_records()
    return [
        {
            'id': 201, 'nameWithInitials': 'P. Doe', 'email': 'pdoe@example.com', 'mobile': '0761111111',
            'gender': 'Male', 'address': '1. Hill Street, Galle',
            'parentProfile': [
                {'name': child['nameWithInitials'], 'employeeId': child['employeeNumber'],
                 'mobile': child['mobile'], 'gender': child['gender'],
                 'academicProfiles': child['studentProfile']}
                for child in children[:2]
            ],
        },
        {
            'id': 202, 'name': 'Q. Perera', 'email': 'qperera@example.com', 'mobile': '0762222222',
            'gender': 'Female', 'address': None, 'parentProfile': [],
        },
    ]


def class_teacher_records():
    teachers = teacher_records()
    return [
        {'year': '2024', 'grade': _grade(10), 'class': _class(section), 'teacher': teacher}
        for section, teacher in zip(('A', 'B', 'C'), teachers)
    ]


def user_records():
    """One teacher, one student and one parent as returned by the users endpoint"""
    teacher = dict(teacher_records()[0], userName='agunawardena')
    student = dict(student_records()[0], userName='student1')
    parent = dict(parent_records()[0], userName='pdoe', employeeType='Parent',
                  userType={'userType': 'Parent'}, availability=True)
    return [teacher, student, parent]


def subject_groups():
    """Subjects grouped by initial letter, as listed by the subjects page"""
    subjects = [dict(subject, subjectCode=f'S{subject["id"]:03d}', created_at='2024-01-08T09:30:00.000Z')
                for subject in CLASS_SUBJECTS]
    groups = {}
    for subject in subjects:
        groups.setdefault(subject['subjectName'][0], []).append(subject)
    letters = [{'letter': letter, 'subjects': groups[letter]} for letter in sorted(groups)]
    return letters + [{'letter': 'Z', 'subjects': 'No subjects'}]
