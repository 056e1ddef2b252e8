import re
from datetime import datetime
from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

from meetings import (calendar_links, describe_meeting_link, generate_meeting_link, google_calendar_url,
                      interview_round, outlook_calendar_url, platform_label)


def test_interview_rounds():
    assert interview_round('1st_interview') == 1
    assert interview_round('technical') == 2
    assert interview_round('hr_interview') == 3
    assert interview_round('final') == 4
    assert interview_round(None) == 1


def test_platform_labels():
    assert platform_label('video') == 'Video Call'
    assert platform_label('phone') == 'Phone Call'
    assert platform_label('in_person') == 'In Person'
    assert platform_label(None) == 'Video Call'


def test_generate_meeting_links():
    assert re.fullmatch(r'https://meet\.google\.com/[a-z0-9]{3}-[a-z0-9]{4}-[a-z0-9]{3}', generate_meeting_link())
    assert re.fullmatch(r'https://zoom\.us/j/\d{11}\?pwd=[a-z0-9]{4}', generate_meeting_link('zoom'))
    assert generate_meeting_link('Teams').startswith('https://teams.microsoft.com/l/meetup-join/')
    assert generate_meeting_link() != generate_meeting_link()


def test_describe_meeting_link():
    assert describe_meeting_link('https://zoom.us/j/1') == {'link': 'https://zoom.us/j/1', 'platform': 'Zoom'}
    assert describe_meeting_link('https://meet.google.com/abc-defg-hij')['platform'] == 'Google Meet'
    assert describe_meeting_link(generate_meeting_link('teams'))['platform'] == 'Microsoft Teams'
    assert describe_meeting_link('https://whereby.com/acme')['platform'] == 'Video Call'
    assert describe_meeting_link('https://example.com/room', 'zoom')['platform'] == 'Zoom'
    assert describe_meeting_link(None) is None


def test_google_calendar_url():
    url = google_calendar_url('Interview: Dev', datetime(2026, 10, 20, 10, 0), 45,
                              description='Agenda', location='Office', attendees=['a@example.com', 'b@example.com'])
    params = parse_qs(urlparse(url).query)
    assert url.startswith('https://calendar.google.com/calendar/render?')
    assert params['action'] == ['TEMPLATE']
    assert params['text'] == ['Interview: Dev']
    assert params['dates'] == ['20261020T100000Z/20261020T104500Z']
    assert params['add'] == ['a@example.com,b@example.com']


def test_outlook_calendar_url():
    url = outlook_calendar_url('Interview: Dev', datetime(2026, 10, 20, 10, 0))
    params = parse_qs(urlparse(url).query)
    assert params['startdt'] == ['2026-10-20T10:00:00Z']
    assert params['enddt'] == ['2026-10-20T11:00:00Z']
    assert params['subject'] == ['Interview: Dev']


def test_calendar_links_for_interview():
    interview = SimpleNamespace(
        agenda='Technical deep dive',
        meeting_link='https://meet.google.com/abc-defg-hij',
        location=None,
        interview_date=datetime(2026, 10, 20, 14, 30),
        duration_minutes=60,
    )
    links = calendar_links(interview, 'Backend Developer')
    google = parse_qs(urlparse(links['google']).query)
    assert google['text'] == ['Interview: Backend Developer']
    assert google['location'] == ['https://meet.google.com/abc-defg-hij']
    assert 'Join: https://meet.google.com/abc-defg-hij' in google['details'][0]
    assert links['outlook'].startswith('https://outlook.live.com/calendar/0/deeplink/compose?')
