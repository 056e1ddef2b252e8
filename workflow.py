"""
Status state machines for applications and interviews.

Every status change in the hiring flow goes through the tables below so the
same rules apply no matter which endpoint triggered the change.
"""
import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

from errors import InvalidTransition, UnknownEvent
from models import ApplicationStatus, InterviewStatus, utcnow

logger = logging.getLogger(__name__)

AS = ApplicationStatus
IS = InterviewStatus

# Statuses an employer may re-invite from; None stands for "no application yet"
REOPENABLE = frozenset({None, AS.DECLINED, AS.APPLIED, AS.REVIEWING, AS.SHORTLISTED,
                        AS.REJECTED, AS.WITHDRAWN, AS.EXPIRED})
IN_PROCESS = frozenset({AS.APPLIED, AS.REVIEWING, AS.SHORTLISTED, AS.ACCEPTED,
                        AS.INTERVIEWING, AS.OFFERED, AS.NEGOTIATING})
TERMINAL_STATUSES = frozenset({AS.HIRED, AS.REJECTED, AS.WITHDRAWN, AS.EXPIRED})

APPLICATION_TRANSITIONS: Dict[str, Tuple[FrozenSet, ApplicationStatus]] = {
    'invite': (REOPENABLE, AS.INVITED),
    'accept_invitation': (frozenset({AS.INVITED}), AS.ACCEPTED),
    'decline_invitation': (frozenset({AS.INVITED}), AS.DECLINED),
    'submit': (frozenset({None}), AS.APPLIED),
    'review': (frozenset({AS.APPLIED}), AS.REVIEWING),
    'shortlist': (frozenset({AS.APPLIED, AS.REVIEWING}), AS.SHORTLISTED),
    'interview': (frozenset({AS.APPLIED, AS.REVIEWING, AS.SHORTLISTED, AS.ACCEPTED, AS.INTERVIEWING}),
                  AS.INTERVIEWING),
    'request_reschedule': (frozenset({AS.INTERVIEWING}), AS.REVIEWING),
    'offer': (frozenset({AS.REVIEWING, AS.SHORTLISTED, AS.INTERVIEWING}), AS.OFFERED),
    'negotiate': (frozenset({AS.OFFERED}), AS.NEGOTIATING),
    'accept_offer': (frozenset({AS.OFFERED, AS.NEGOTIATING}), AS.HIRED),
    'decline_offer': (frozenset({AS.OFFERED, AS.NEGOTIATING}), AS.DECLINED),
    'hire': (frozenset({AS.INTERVIEWING, AS.OFFERED, AS.NEGOTIATING}), AS.HIRED),
    'reject': (IN_PROCESS, AS.REJECTED),
    'withdraw': (IN_PROCESS, AS.WITHDRAWN),
    'expire': (frozenset({AS.INVITED, AS.OFFERED}), AS.EXPIRED),
}

INTERVIEW_TRANSITIONS: Dict[str, Tuple[FrozenSet, InterviewStatus]] = {
    'reschedule': (frozenset({IS.SCHEDULED, IS.RESCHEDULED}), IS.RESCHEDULED),
    'confirm': (frozenset({IS.RESCHEDULED}), IS.SCHEDULED),
    'complete': (frozenset({IS.SCHEDULED, IS.RESCHEDULED}), IS.COMPLETED),
    'cancel': (frozenset({IS.SCHEDULED, IS.RESCHEDULED}), IS.CANCELLED),
    'record_outcome': (frozenset({IS.SCHEDULED, IS.RESCHEDULED, IS.COMPLETED}), IS.COMPLETED),
}


def _label(status) -> str:
    return status.value if status is not None else 'new'


def _next(table, current, event, kind):
    if event not in table:
        raise UnknownEvent(f"Unknown {kind} event: {event}")
    sources, target = table[event]
    if current not in sources:
        raise InvalidTransition(f"Cannot {event.replace('_', ' ')} a {kind} that is {_label(current)}")
    return target


def next_application_status(current: Optional[ApplicationStatus], event: str) -> ApplicationStatus:
    """Resolve the status an application moves to, raising on illegal moves"""
    return _next(APPLICATION_TRANSITIONS, current, event, 'application')


def next_interview_status(current: InterviewStatus, event: str) -> InterviewStatus:
    return _next(INTERVIEW_TRANSITIONS, current, event, 'interview')


def can_transition(current, event: str) -> bool:
    """True when ``event`` is legal from ``current``. Works for both machines."""
    table = INTERVIEW_TRANSITIONS if isinstance(current, InterviewStatus) else APPLICATION_TRANSITIONS
    entry = table.get(event)
    return bool(entry) and current in entry[0]


def allowed_events(current) -> List[str]:
    table = INTERVIEW_TRANSITIONS if isinstance(current, InterviewStatus) else APPLICATION_TRANSITIONS
    return [event for event, (sources, _) in table.items() if current in sources]


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES


def apply_application_event(application, event: str) -> ApplicationStatus:
    """Move an application through ``event``. The caller owns the commit."""
    previous = application.status
    application.status = next_application_status(previous, event)
    application.updated_at = utcnow()
    logger.info(f"Application {application.id}: {_label(previous)} -> {application.status.value} ({event})")
    return application.status


def apply_interview_event(interview, event: str) -> InterviewStatus:
    previous = interview.status
    interview.status = next_interview_status(previous, event)
    interview.updated_at = utcnow()
    logger.info(f"Interview {interview.id}: {previous.value} -> {interview.status.value} ({event})")
    return interview.status
