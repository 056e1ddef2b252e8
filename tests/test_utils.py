import pytest

from utils import (allowed_file, calculate_experience_years, clean_filename, extract_skills_from_text,
                   extract_years_from_duration, format_salary_range, mask_location,
                   mask_phone, masked_contact_info, parse_salary_range, round_half_up, sanitize_html,
                   should_mask_contact, truncate_text, validate_email, validate_job_data, validate_phone,
                   validate_profile_data, validate_registration_data, CONTACT_HIDDEN_MESSAGE)


@pytest.mark.parametrize('phone,masked', [
    ('1234', 'xx34'),
    ('555-123-4590', 'xxx-xxx-90'),
    ('+1 (555) 123-4590', 'x-xxx-xxx-90'),
    ('+49 30 1234 567890', 'xxxxxxxxxxxx90'),
    ('12', 'xxx'),
    ('', 'Not provided'),
    (None, 'Not provided'),
])
def test_mask_phone(phone, masked):
    assert mask_phone(phone) == masked


@pytest.mark.parametrize('location,masked', [
    ('Berlin', 'Berlin'),
    ('12 Main Street, Berlin, Germany', 'Berlin, Germany'),
    ('Berlin, Germany', 'Berlin, Germany'),
    ('Somewhere very far away land', 'Somewhere very...'),
    ('', 'Location not specified'),
])
def test_mask_location(location, masked):
    assert mask_location(location) == masked


def test_contact_revealed_once_interview_is_booked():
    assert should_mask_contact([])
    assert should_mask_contact(['cancelled'])
    assert not should_mask_contact(['cancelled', 'scheduled'])
    assert not should_mask_contact(['rescheduled'])
    assert not should_mask_contact(['completed'])


def test_masked_contact_info():
    hidden = masked_contact_info('555-123-4590', 'ana@example.com', 'Berlin', [])
    assert hidden == {
        'phone': 'xxx-xxx-90',
        'email': 'xxx@xxx.com',
        'location': 'Berlin',
        'is_masked': True,
        'message': CONTACT_HIDDEN_MESSAGE,
    }

    shown = masked_contact_info('555-123-4590', 'ana@example.com', 'Berlin', ['scheduled'])
    assert shown['phone'] == '555-123-4590'
    assert shown['email'] == 'ana@example.com'
    assert shown['is_masked'] is False


@pytest.mark.parametrize('text,expected', [
    ('50k-70k', (50000, 70000)),
    ('50-70k', (50000, 70000)),
    ('€60,000 - €75,000', (60000, 75000)),
    ('45000', (45000, 45000)),
    ('60k per year', (60000, 60000)),
    ('', (None, None)),
    ('negotiable', (None, None)),
])
def test_parse_salary_range(text, expected):
    assert parse_salary_range(text) == expected


def test_format_salary_range():
    assert format_salary_range(50000, 70000) == '€50,000 - €70,000'
    assert format_salary_range(50000, 50000, 'USD') == '$50,000'
    assert format_salary_range(None, None) == 'Negotiable'


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(66.666) == 67
    assert round_half_up(12.4) == 12


def test_validate_email_and_phone():
    assert validate_email('ana@example.com')
    assert not validate_email('ana@example')
    assert not validate_email('')
    assert validate_phone('+49 (30) 123-45678')
    assert not validate_phone('12345')


def test_files():
    assert allowed_file('resume.PDF')
    assert not allowed_file('script.exe')
    assert not allowed_file('noextension')
    assert clean_filename('../../my resume.pdf') == 'my_resume.pdf'
    assert clean_filename('') == 'unnamed_file'


def test_extract_skills_from_text():
    skills = extract_skills_from_text('Python and Django developer. Loves python, Docker and REST API design.')
    assert skills == ['Python', 'Django', 'Docker', 'REST API']
    assert extract_skills_from_text('') == []


def test_experience_from_durations():
    assert extract_years_from_duration('2018 - 2021') == 3
    assert extract_years_from_duration('sometime') == 0
    assert calculate_experience_years([{'duration': '2015-2018'}, {'duration': '2018 – 2020'}]) == 5
    assert calculate_experience_years([]) == 0


def test_text_helpers():
    assert sanitize_html('<b>Great</b>   interview\n today') == 'Great interview today'
    assert sanitize_html(None) == ''
    assert truncate_text('a' * 10, 5) == 'aa...'
    assert truncate_text('short', 10) == 'short'


def test_validate_registration_data():
    assert validate_registration_data({'email': 'ana@example.com', 'password': 'secret123'}) == []
    errors = validate_registration_data({'email': 'nope', 'password': '123', 'role': 'admin'})
    assert errors == [
        "Invalid email format",
        "Password must be at least 6 characters",
        "Role must be candidate or employer",
    ]


def test_validate_job_data():
    assert validate_job_data({'title': 'Dev', 'description': 'Build things'}) == []
    errors = validate_job_data({'experience_level': 'guru', 'salary_min': 90000, 'salary_max': 50000,
                                'skills_required': 'python'})
    assert errors == [
        "Job title is required",
        "Job description is required",
        "Invalid experience level",
        "Minimum salary cannot be greater than maximum salary",
        "skills_required must be a list",
    ]


def test_validate_profile_data():
    assert validate_profile_data({'headline': 'Dev', 'experience_years': 6, 'skills': ['Python']}) == []
    assert validate_profile_data({'experience_years': '4', 'target_salary_min': 50000.0}) == []

    errors = validate_profile_data({
        'experience_years': 'lots',
        'target_salary_min': 90000,
        'target_salary_max': 50000,
        'target_salary_currency': 'EURO',
        'languages': 'English',
        'willing_to_relocate': 'yes',
        'phone': '12',
    })
    assert errors == [
        "Experience years must be a whole number",
        "Minimum salary cannot be greater than maximum salary",
        "Currency must be a 3-letter code",
        "languages must be a list",
        "willing_to_relocate must be true or false",
        "Invalid phone number format",
    ]

    assert validate_profile_data({'experience_years': 99}) == ["Experience years must be between 0 and 60"]
    assert validate_profile_data({'target_salary_max': -1}) == ["Maximum target salary must be a positive number"]
