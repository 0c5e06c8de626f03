import pandas as pd
import pytest


ROSTER_ROWS = [
    {
        'student_id': 1, 'first_name': 'Ava', 'middle_name': 'Grace', 'last_name': 'Lopez',
        'grade': 10, 'curriculum': 'Science', 'email_id': 'ava.lopez@school.edu',
        'address': '123 Main St.;Springfield;IL;62704',
    },
    {
        'student_id': 2, 'first_name': 'Noah', 'middle_name': None, 'last_name': 'Kim',
        'grade': 11, 'curriculum': 'Arts', 'email_id': 'noah.kim@school.edu',
        'address': '10 Elm St.;Metropolis;NY;10001',
    },
    {
        'student_id': 3, 'first_name': 'Mia', 'middle_name': 'Rose', 'last_name': 'Patel',
        'grade': 9, 'curriculum': 'Mathematics', 'email_id': 'mia.patel@school.edu',
        'address': 'bad address',
    },
]


@pytest.fixture
def roster_df():
    return pd.DataFrame(ROSTER_ROWS)


@pytest.fixture
def raw_dir(tmp_path, roster_df):
    raw = tmp_path / 'raw'
    raw.mkdir()
    roster_df.to_csv(raw / 'student.csv', index=False)

    return raw
