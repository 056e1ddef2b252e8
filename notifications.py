"""
Outgoing e-mail.

Delivery goes through the Resend HTTP API when RESEND_API_KEY is set, SMTP when
SMTP_ENABLED is true, and is only logged otherwise. Nothing in here raises:
a notification failure must never undo the hiring action that triggered it.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import wraps
from html import escape
from typing import Dict, List, Optional, Union

import requests
from flask import current_app

from meetings import platform_label
from utils import format_salary_range, truncate_text

logger = logging.getLogger(__name__)

RESEND_API_URL = 'https://api.resend.com/emails'
FEEDBACK_PREVIEW_LENGTH = 1000


def _setting(name, default=None):
    return current_app.config.get(name, default)


def _send_via_resend(recipients: List[str], subject: str, html: str, text: Optional[str]) -> bool:
    payload = {
        'from': _setting('EMAIL_FROM'),
        'to': recipients,
        'subject': subject,
        'html': html,
    }
    if text:
        payload['text'] = text

    response = requests.post(
        RESEND_API_URL,
        json=payload,
        headers={'Authorization': f"Bearer {_setting('RESEND_API_KEY')}"},
        timeout=10,
    )
    if response.status_code >= 400:
        logger.error(f"Resend rejected email to {recipients}: {response.status_code} {response.text}")
        return False
    return True


def _send_via_smtp(recipients: List[str], subject: str, html: str, text: Optional[str]) -> bool:
    smtp_user = _setting('SMTP_USER')
    if not smtp_user:
        logger.warning("SMTP is enabled but SMTP_USER is not configured")
        return False

    msg = MIMEMultipart('alternative')
    msg['From'] = _setting('EMAIL_FROM') or smtp_user
    msg['To'] = ', '.join(recipients)
    msg['Subject'] = subject
    if text:
        msg.attach(MIMEText(text, 'plain'))
    msg.attach(MIMEText(html, 'html'))

    with smtplib.SMTP(_setting('SMTP_SERVER'), _setting('SMTP_PORT')) as server:
        server.starttls()
        server.login(smtp_user, _setting('SMTP_PASSWORD'))
        server.send_message(msg)
    return True


def send_email(to: Union[str, List[str]], subject: str, html: str, text: Optional[str] = None) -> bool:
    """Send an e-mail, returning whether it was handed to a transport"""
    recipients = [to] if isinstance(to, str) else [r for r in (to or []) if r]
    if not recipients:
        logger.warning(f"No recipients for email '{subject}'")
        return False

    try:
        if _setting('RESEND_API_KEY'):
            sent = _send_via_resend(recipients, subject, html, text)
        elif _setting('SMTP_ENABLED'):
            sent = _send_via_smtp(recipients, subject, html, text)
        else:
            logger.info(f"Email delivery disabled, would send '{subject}' to {', '.join(recipients)}")
            return False

        if sent:
            logger.info(f"Email '{subject}' sent to {', '.join(recipients)}")
        return sent

    except Exception as e:
        logger.error(f"Failed to send email '{subject}' to {recipients}: {e}")
        return False


def _never_raise(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{func.__name__} failed: {e}")
            return False
    return wrapper


def _layout(title: str, body: str) -> str:
    app_url = _setting('APP_BASE_URL', '')
    return f"""
    <html>
    <head>
        <style>
            body {{ font-family: Arial, sans-serif; color: #222; }}
            .header {{ background-color: #f8f9fa; padding: 20px; }}
            .content {{ padding: 20px; }}
            .details td {{ padding: 4px 12px 4px 0; }}
        </style>
    </head>
    <body>
        <div class="header"><h2>{escape(title)}</h2></div>
        <div class="content">
            {body}
            <p><a href="{escape(app_url)}">Open HireFlow</a></p>
        </div>
    </body>
    </html>
    """


def _name(user) -> str:
    return escape(user.full_name or user.email) if user else 'there'


def _interview_details(interview) -> str:
    where = interview.meeting_link or interview.location or 'To be confirmed'
    return f"""
            <table class="details">
                <tr><td>Date</td><td>{interview.interview_date.strftime('%A, %d %B %Y')}</td></tr>
                <tr><td>Time</td><td>{interview.interview_date.strftime('%H:%M')} UTC</td></tr>
                <tr><td>Duration</td><td>{interview.duration_minutes or 60} minutes</td></tr>
                <tr><td>Format</td><td>{platform_label(interview.interview_format)}</td></tr>
                <tr><td>Where</td><td>{escape(where)}</td></tr>
            </table>
    """


@_never_raise
def send_welcome_email(user) -> bool:
    body = f"""
            <p>Hi {_name(user)},</p>
            <p>Your profile is complete. We will start matching you with jobs that fit your skills and preferences.</p>
    """
    return send_email(user.email, "Welcome to HireFlow", _layout("Welcome aboard", body))


@_never_raise
def notify_job_posted(employer, job) -> bool:
    body = f"""
            <p>Hi {_name(employer)},</p>
            <p>Your job <strong>{escape(job.title)}</strong> is now live and visible to candidates.</p>
    """
    return send_email(employer.email, f'Your job "{job.title}" has been posted', _layout("Job posted", body))


@_never_raise
def notify_invitation(application) -> bool:
    candidate = application.applicant
    job = application.job
    response = application.response or {}
    body = f"""
            <p>Hi {_name(candidate)},</p>
            <p>You have been invited to apply for <strong>{escape(job.title)}</strong>
               at {escape(job.company.name if job.company else 'our company')}.</p>
            <p>{escape(response.get('message') or '')}</p>
            <p>Please accept or decline the invitation from your dashboard.</p>
    """
    return send_email(candidate.email, f"Invitation: {job.title}", _layout("You're invited", body))


@_never_raise
def notify_interview_scheduled(interview) -> bool:
    job = interview.application.job
    body = f"""
            <p>Hi {_name(interview.seeker)},</p>
            <p>An interview for <strong>{escape(job.title)}</strong> has been scheduled.</p>
            {_interview_details(interview)}
            <p>{escape(interview.agenda or '')}</p>
    """
    return send_email(interview.seeker.email, f"Interview scheduled: {job.title}",
                      _layout("Interview scheduled", body))


@_never_raise
def notify_interview_rescheduled(interview, recipient) -> bool:
    job = interview.application.job
    body = f"""
            <p>Hi {_name(recipient)},</p>
            <p>The interview for <strong>{escape(job.title)}</strong> has been rescheduled.</p>
            {_interview_details(interview)}
    """
    return send_email(recipient.email, f"Interview rescheduled: {job.title}",
                      _layout("Interview rescheduled", body))


@_never_raise
def notify_reschedule_requested(interview, employer, reason: str = '') -> bool:
    job = interview.application.job
    body = f"""
            <p>Hi {_name(employer)},</p>
            <p>{_name(interview.seeker)} asked to reschedule the interview for <strong>{escape(job.title)}</strong>.</p>
            <p>{escape(reason or '')}</p>
    """
    return send_email(employer.email, f"Reschedule requested: {job.title}",
                      _layout("Reschedule requested", body))


@_never_raise
def notify_interview_cancelled(interview) -> bool:
    job = interview.application.job
    body = f"""
            <p>Hi {_name(interview.seeker)},</p>
            <p>The interview for <strong>{escape(job.title)}</strong> on
               {interview.interview_date.strftime('%d %B %Y at %H:%M')} UTC has been cancelled.</p>
    """
    return send_email(interview.seeker.email, f"Interview cancelled: {job.title}",
                      _layout("Interview cancelled", body))


@_never_raise
def notify_interview_reminder(interview) -> bool:
    job = interview.application.job
    recipients = [interview.seeker.email]
    if interview.interviewer and interview.interviewer.email:
        recipients.append(interview.interviewer.email)
    body = f"""
            <p>This is a reminder for the upcoming interview for <strong>{escape(job.title)}</strong>.</p>
            {_interview_details(interview)}
    """
    return send_email(recipients, f"Reminder: interview for {job.title}", _layout("Interview reminder", body))


@_never_raise
def notify_status_change(application) -> bool:
    candidate = application.applicant
    job = application.job
    status = application.status.value.replace('_', ' ')
    body = f"""
            <p>Hi {_name(candidate)},</p>
            <p>Your application for <strong>{escape(job.title)}</strong> is now <strong>{status}</strong>.</p>
    """
    return send_email(candidate.email, f"Application update: {job.title}", _layout("Application update", body))


@_never_raise
def notify_offer(application) -> bool:
    candidate = application.applicant
    job = application.job
    body = f"""
            <p>Hi {_name(candidate)},</p>
            <p>Congratulations! You have received an offer for <strong>{escape(job.title)}</strong>.</p>
            <p>Salary: {escape(format_salary_range(job.salary_min, job.salary_max, job.salary_currency))}</p>
            <p>Review the offer and respond from your dashboard before it expires.</p>
    """
    return send_email(candidate.email, f"Job offer: {job.title}", _layout("You have an offer", body))


@_never_raise
def notify_feedback(interview) -> bool:
    job = interview.application.job
    rating = f"<p>Rating: {interview.rating}/5</p>" if interview.rating else ''
    body = f"""
            <p>Hi {_name(interview.seeker)},</p>
            <p>Your interviewer left feedback on your interview for <strong>{escape(job.title)}</strong>:</p>
            <blockquote>{escape(truncate_text(interview.feedback or '', FEEDBACK_PREVIEW_LENGTH))}</blockquote>
            {rating}
    """
    return send_email(interview.seeker.email, f"Interview feedback: {job.title}",
                      _layout("Interview feedback", body))


@_never_raise
def notify_onboarding_completed(application) -> bool:
    candidate = application.applicant
    job = application.job
    body = f"""
            <p>Hi {_name(candidate)},</p>
            <p>All onboarding steps for <strong>{escape(job.title)}</strong> are complete. Welcome to the team!</p>
    """
    return send_email(candidate.email, f"Onboarding complete: {job.title}", _layout("Onboarding complete", body))


@_never_raise
def send_daily_report(report: Dict, recipients: Optional[List[str]] = None) -> bool:
    """E-mail the daily hiring report to REPORT_RECIPIENTS"""
    recipients = recipients or _setting('REPORT_RECIPIENTS') or []
    if not recipients:
        logger.warning("No recipients configured for daily reports")
        return False

    rows = ''.join(
        f"<tr><td>{escape(item['candidate'] or '')}</td><td>{escape(item['job'])}</td>"
        f"<td>{item['score']}%</td></tr>"
        for item in report.get('top_matches', [])
    )
    body = f"""
            <p>Report date: {report['date']}</p>
            <table class="details">
                <tr><td>New applications</td><td>{report['new_applications']}</td></tr>
                <tr><td>High score applications (80+)</td><td>{report['high_matches']}</td></tr>
                <tr><td>Interviews scheduled</td><td>{report['interviews_scheduled']}</td></tr>
                <tr><td>Hires</td><td>{report['hires']}</td></tr>
                <tr><td>Open jobs</td><td>{report['open_jobs']}</td></tr>
            </table>
            <h3>Top applications</h3>
            <table class="details">
                <tr><th>Candidate</th><th>Job</th><th>Match score</th></tr>
                {rows}
            </table>
    """
    return send_email(recipients, f"Daily Hiring Report - {report['date']}", _layout("Daily Hiring Report", body))
