from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import requests

from models import ApplicationStatus
from notifications import (RESEND_API_URL, notify_interview_reminder, notify_invitation, notify_offer,
                           notify_status_change, send_daily_report, send_email)


def _application():
    company = SimpleNamespace(name='Acme <GmbH>')
    job = SimpleNamespace(title='Backend Developer', company=company)
    candidate = SimpleNamespace(full_name='Ana Silva', email='ana@example.com')
    return SimpleNamespace(applicant=candidate, job=job, status=ApplicationStatus.SHORTLISTED,
                           response={'message': 'We liked your profile'})


def test_delivery_disabled_only_logs(ctx):
    with patch('notifications.requests.post') as post:
        assert send_email('ana@example.com', 'Hello', '<p>Hi</p>') is False
    post.assert_not_called()


def test_no_recipients(ctx):
    ctx.config['RESEND_API_KEY'] = 're_test'
    with patch('notifications.requests.post') as post:
        assert send_email([], 'Hello', '<p>Hi</p>') is False
        assert send_email([None, ''], 'Hello', '<p>Hi</p>') is False
    post.assert_not_called()


def test_send_via_resend(ctx):
    ctx.config['RESEND_API_KEY'] = 're_test'
    with patch('notifications.requests.post') as post:
        post.return_value = MagicMock(status_code=200)
        assert send_email('ana@example.com', 'Hello', '<p>Hi</p>', text='Hi') is True

    args, kwargs = post.call_args
    assert args[0] == RESEND_API_URL
    assert kwargs['json']['to'] == ['ana@example.com']
    assert kwargs['json']['subject'] == 'Hello'
    assert kwargs['json']['text'] == 'Hi'
    assert kwargs['headers']['Authorization'] == 'Bearer re_test'
    assert kwargs['timeout'] == 10


def test_resend_rejection_returns_false(ctx):
    ctx.config['RESEND_API_KEY'] = 're_test'
    with patch('notifications.requests.post') as post:
        post.return_value = MagicMock(status_code=422, text='invalid from address')
        assert send_email('ana@example.com', 'Hello', '<p>Hi</p>') is False


def test_transport_errors_never_raise(ctx):
    ctx.config['RESEND_API_KEY'] = 're_test'
    with patch('notifications.requests.post', side_effect=requests.ConnectionError('down')):
        assert send_email('ana@example.com', 'Hello', '<p>Hi</p>') is False


def test_send_via_smtp(ctx):
    ctx.config.update(SMTP_ENABLED=True, SMTP_USER='mailer@example.com', SMTP_PASSWORD='pw',
                      SMTP_SERVER='smtp.example.com', SMTP_PORT=587)
    with patch('notifications.smtplib.SMTP') as smtp:
        assert send_email(['ana@example.com', 'bo@example.com'], 'Hello', '<p>Hi</p>') is True

    smtp.assert_called_once_with('smtp.example.com', 587)
    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with('mailer@example.com', 'pw')
    message = server.send_message.call_args[0][0]
    assert message['To'] == 'ana@example.com, bo@example.com'
    assert message['Subject'] == 'Hello'


def test_smtp_without_user_is_skipped(ctx):
    ctx.config.update(SMTP_ENABLED=True, SMTP_USER='')
    with patch('notifications.smtplib.SMTP') as smtp:
        assert send_email('ana@example.com', 'Hello', '<p>Hi</p>') is False
    smtp.assert_not_called()


def test_invitation_template_escapes_user_content(ctx):
    ctx.config['RESEND_API_KEY'] = 're_test'
    with patch('notifications.requests.post') as post:
        post.return_value = MagicMock(status_code=200)
        assert notify_invitation(_application()) is True

    payload = post.call_args.kwargs['json']
    assert payload['subject'] == 'Invitation: Backend Developer'
    assert 'Acme &lt;GmbH&gt;' in payload['html']
    assert 'We liked your profile' in payload['html']


def test_status_change_template(ctx):
    ctx.config['RESEND_API_KEY'] = 're_test'
    with patch('notifications.requests.post') as post:
        post.return_value = MagicMock(status_code=200)
        notify_status_change(_application())

    assert '<strong>shortlisted</strong>' in post.call_args.kwargs['json']['html']


def test_broken_input_does_not_raise(ctx):
    assert notify_status_change(None) is False
    assert notify_invitation(SimpleNamespace()) is False


def test_reminder_goes_to_both_sides(ctx):
    ctx.config['RESEND_API_KEY'] = 're_test'
    interview = SimpleNamespace(
        application=_application(),
        seeker=SimpleNamespace(full_name='Ana', email='ana@example.com'),
        interviewer=SimpleNamespace(full_name='Bo', email='bo@example.com'),
        interview_date=datetime(2026, 10, 20, 9, 0),
        duration_minutes=30,
        interview_format='phone',
        meeting_link=None,
        location=None,
    )
    with patch('notifications.requests.post') as post:
        post.return_value = MagicMock(status_code=200)
        assert notify_interview_reminder(interview) is True

    payload = post.call_args.kwargs['json']
    assert payload['to'] == ['ana@example.com', 'bo@example.com']
    assert 'Phone Call' in payload['html']
    assert 'To be confirmed' in payload['html']


def test_daily_report(ctx):
    report = {
        'date': '2026-10-19',
        'new_applications': 4,
        'high_matches': 1,
        'interviews_scheduled': 2,
        'hires': 1,
        'open_jobs': 3,
        'top_matches': [{'candidate': 'Ana Silva', 'job': 'Backend Developer', 'score': 91}],
    }
    assert send_daily_report(report) is False

    ctx.config['RESEND_API_KEY'] = 're_test'
    with patch('notifications.requests.post') as post:
        post.return_value = MagicMock(status_code=200)
        assert send_daily_report(report, recipients=['ops@example.com']) is True

    payload = post.call_args.kwargs['json']
    assert payload['subject'] == 'Daily Hiring Report - 2026-10-19'
    assert '<td>91%</td>' in payload['html']


def test_offer_mentions_salary(ctx):
    ctx.config['RESEND_API_KEY'] = 're_test'
    application = _application()
    application.job.salary_min = 60000
    application.job.salary_max = 80000
    application.job.salary_currency = 'EUR'
    with patch('notifications.requests.post') as post:
        post.return_value = MagicMock(status_code=200)
        assert notify_offer(application) is True

    payload = post.call_args.kwargs['json']
    assert payload['subject'] == 'Job offer: Backend Developer'
    assert 'Salary: €60,000 - €80,000' in payload['html']
