import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import List, Optional
from urllib.parse import urlencode, urlparse

logger = logging.getLogger(__name__)

INTERVIEW_ROUNDS = {
    '1st_interview': 1,
    'technical': 2,
    'hr_interview': 3,
    'final': 4,
}

PLATFORM_LABELS = {
    'video': 'Video Call',
    'phone': 'Phone Call',
    'in_person': 'In Person',
}

MEETING_PLATFORMS = {
    'google': 'Google Meet',
    'zoom': 'Zoom',
    'teams': 'Microsoft Teams',
}

MEETING_HOSTS = {
    'zoom.us': 'zoom',
    'teams.microsoft.com': 'teams',
    'meet.google.com': 'google',
}

_ALPHABET = string.ascii_lowercase + string.digits


def _token(length: int) -> str:
    return ''.join(secrets.choice(_ALPHABET) for _ in range(length))


def interview_round(interview_type: Optional[str]) -> int:
    return INTERVIEW_ROUNDS.get(interview_type or '', 1)


def platform_label(interview_format: Optional[str]) -> str:
    return PLATFORM_LABELS.get(interview_format or '', 'Video Call')


def generate_meeting_link(platform: str = 'google') -> str:
    """Create a join link for a video interview"""
    platform = (platform or 'google').lower()
    if platform == 'zoom':
        meeting_id = secrets.randbelow(90000000000) + 10000000000
        return f"https://zoom.us/j/{meeting_id}?pwd={_token(4)}"
    if platform == 'teams':
        return f"https://teams.microsoft.com/l/meetup-join/19:meeting_{_token(22)}"
    return f"https://meet.google.com/{_token(3)}-{_token(4)}-{_token(3)}"


def meeting_platform(link: Optional[str]) -> Optional[str]:
    """Platform key for a join link, None when the host is not one we know"""
    host = urlparse(link or '').netloc.lower()
    for suffix, platform in MEETING_HOSTS.items():
        if host == suffix or host.endswith('.' + suffix):
            return platform
    return None


def describe_meeting_link(link: Optional[str], platform: Optional[str] = None) -> Optional[dict]:
    if not link:
        return None
    platform = (platform or meeting_platform(link) or '').lower()
    name = MEETING_PLATFORMS.get(platform, PLATFORM_LABELS['video'])
    return {'link': link, 'platform': name}


def _calendar_stamp(value: datetime) -> str:
    return value.strftime('%Y%m%dT%H%M%SZ')


def google_calendar_url(title: str, start: datetime, duration_minutes: int = 60,
                        description: str = '', location: str = '',
                        attendees: Optional[List[str]] = None) -> str:
    """Calendar template link; ``start`` is naive UTC"""
    end = start + timedelta(minutes=duration_minutes or 60)
    params = {
        'action': 'TEMPLATE',
        'text': title,
        'dates': f"{_calendar_stamp(start)}/{_calendar_stamp(end)}",
        'details': description or '',
        'location': location or '',
    }
    if attendees:
        params['add'] = ','.join(attendees)
    return f"https://calendar.google.com/calendar/render?{urlencode(params)}"


def outlook_calendar_url(title: str, start: datetime, duration_minutes: int = 60,
                         description: str = '', location: str = '',
                         attendees: Optional[List[str]] = None) -> str:
    end = start + timedelta(minutes=duration_minutes or 60)
    params = {
        'subject': title,
        'startdt': start.strftime('%Y-%m-%dT%H:%M:%SZ'),
        'enddt': end.strftime('%Y-%m-%dT%H:%M:%SZ'),
        'body': description or '',
        'location': location or '',
        'path': '/calendar/action/compose',
        'rru': 'addevent',
    }
    if attendees:
        params['to'] = ','.join(attendees)
    return f"https://outlook.live.com/calendar/0/deeplink/compose?{urlencode(params)}"


def calendar_links(interview, job_title: str, attendees: Optional[List[str]] = None) -> dict:
    """Google and Outlook links for an Interview row"""
    title = f"Interview: {job_title}"
    description = interview.agenda or ''
    if interview.meeting_link:
        description = f"{description}\n\nJoin: {interview.meeting_link}".strip()
    location = interview.location or interview.meeting_link or ''
    return {
        'google': google_calendar_url(title, interview.interview_date, interview.duration_minutes,
                                      description, location, attendees),
        'outlook': outlook_calendar_url(title, interview.interview_date, interview.duration_minutes,
                                        description, location, attendees),
    }
