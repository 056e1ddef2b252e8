"""
Application, invitation, interview and offer flows.

Every status change goes through workflow.py. Writes that touch both an
interview and its application are committed together; notifications are sent
after the commit and never fail the request.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from access import (employer_can_see_candidate, ensure_applicant, ensure_job_owner, ensure_party,
                    get_application, get_interview, get_job, get_user, is_admin)
from database import db
from documents import store_file
from errors import (AlreadyInvited, DuplicateApplication, JobNotOpen, PermissionDenied,
                    SubmissionInProgress, ValidationError)
from matching import compute_match_score, match_stats, rank_candidates_for_job, recommend_jobs, filter_jobs, sort_jobs
from meetings import generate_meeting_link
from models import (ApplicationStatus, Document, Interview, InterviewStatus, Job, JobApplication, JobSeekerProfile,
                    JobStatus, Message, UserRole, INTERVIEW_FORMATS, INTERVIEW_TYPES, utcnow)
from notifications import (notify_feedback, notify_interview_cancelled, notify_interview_rescheduled,
                           notify_interview_scheduled, notify_invitation, notify_offer,
                           notify_reschedule_requested, notify_status_change)
from onboarding import start_onboarding
from utils import masked_contact_info, sanitize_html
from workflow import apply_application_event, apply_interview_event, allowed_events, can_transition

logger = logging.getLogger(__name__)

# Outcomes recorded on an interview that override the application's own status
OUTCOME_STATUSES = (ApplicationStatus.HIRED, ApplicationStatus.OFFERED,
                    ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN)

EMPLOYER_EVENTS = {'review', 'shortlist', 'interview', 'offer', 'reject', 'hire'}
CANDIDATE_EVENTS = {'withdraw'}
STATUS_EVENTS = {
    'reviewing': 'review',
    'shortlisted': 'shortlist',
    'interviewing': 'interview',
    'offered': 'offer',
    'rejected': 'reject',
    'hired': 'hire',
    'withdrawn': 'withdraw',
}
OFFER_RESPONSES = {
    'accepted': 'accept_offer',
    'declined': 'decline_offer',
    'negotiating': 'negotiate',
}
DEFAULT_BASE_SALARY = 50000
START_DATE_OFFSET_DAYS = 30

# In-process guard against double submits; the unique constraint is the real guarantee
_submission_lock = threading.Lock()
_submissions_in_progress = set()


def _commit():
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _parse_date(value):
    if not value:
        return None
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def _parse_interview_datetime(date_value, time_value) -> datetime:
    if not date_value or not time_value:
        raise ValidationError("Interview date and time are required")
    for fmt in ('%Y-%m-%d %H:%M', '%Y-%m-%d %H:%M:%S'):
        try:
            return datetime.strptime(f"{date_value} {time_value}", fmt)
        except ValueError:
            continue
    raise ValidationError("Invalid interview date or time")


def _profile_view(user_id) -> Dict:
    profile = JobSeekerProfile.query.filter_by(user_id=user_id).first()
    return profile.matching_view() if profile else {}


def _owned_document(document_id, user_id) -> Optional[int]:
    if not document_id:
        return None
    document = db.session.get(Document, document_id)
    if document is None or document.user_id != user_id:
        raise ValidationError(f"Document {document_id} not found")
    return document.id


# Applications

def submit_application(job_id, applicant, data: Optional[Dict] = None) -> JobApplication:
    """Apply for a job. Concurrent submits for the same pair are refused."""
    data = data or {}
    key = f"{job_id}-{applicant.id}"

    with _submission_lock:
        if key in _submissions_in_progress:
            raise SubmissionInProgress()
        _submissions_in_progress.add(key)

    try:
        return _create_application(job_id, applicant, data)
    finally:
        with _submission_lock:
            _submissions_in_progress.discard(key)


def _create_application(job_id, applicant, data: Dict) -> JobApplication:
    if applicant.role != UserRole.CANDIDATE:
        raise PermissionDenied("Only candidates can apply for jobs")

    job = get_job(job_id)
    if job.status != JobStatus.ACTIVE:
        raise JobNotOpen()

    if JobApplication.query.filter_by(job_id=job.id, applicant_id=applicant.id).first():
        raise DuplicateApplication()

    application = JobApplication(job_id=job.id, applicant_id=applicant.id)
    apply_application_event(application, 'submit')

    application.cover_note = data.get('cover_note')
    application.resume_id = _owned_document(data.get('resume_id'), applicant.id)
    application.cover_letter_id = _owned_document(data.get('cover_letter_id'), applicant.id)
    application.additional_document_ids = [
        _owned_document(doc_id, applicant.id) for doc_id in data.get('additional_document_ids') or []
    ]
    application.availability_date = _parse_date(data.get('availability_date'))
    application.salary_expectation = data.get('salary_expectation')
    application.visa_status = data.get('visa_status')
    application.motivation = data.get('motivation')
    application.custom_questions = data.get('custom_questions') or {}
    application.ai_match_score = compute_match_score(_profile_view(applicant.id), job.matching_view())
    application.application_date = utcnow()

    try:
        db.session.add(application)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateApplication()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"User {applicant.id} applied for job {job.id} (match {application.ai_match_score}%)")
    return application


def change_application_status(application_id, event: str, actor, notes: Optional[str] = None) -> JobApplication:
    """Move an application through the pipeline on behalf of the employer or the candidate"""
    event = STATUS_EVENTS.get(event, event)
    application = get_application(application_id)

    if event in CANDIDATE_EVENTS:
        ensure_applicant(application, actor)
    elif event in EMPLOYER_EVENTS:
        ensure_job_owner(application.job, actor)
    else:
        raise ValidationError(f"Status change '{event}' is not allowed here")

    apply_application_event(application, event)
    # employer_notes are private to the employer
    if notes is not None and event in EMPLOYER_EVENTS:
        application.employer_notes = notes
    _commit()

    if event == 'offer':
        notify_offer(application)
    else:
        notify_status_change(application)
    if application.status == ApplicationStatus.HIRED:
        start_onboarding(application.id)
    return application


# Invitations

def invite_candidate(job_id, candidate_id, employer, message: Optional[str] = None,
                     interview: Optional[Dict] = None) -> JobApplication:
    job = get_job(job_id)
    ensure_job_owner(job, employer)
    if job.status != JobStatus.ACTIVE:
        raise JobNotOpen()

    candidate = get_user(candidate_id)
    if candidate.role != UserRole.CANDIDATE:
        raise ValidationError("Only candidates can be invited")

    application = JobApplication.query.filter_by(job_id=job.id, applicant_id=candidate.id).first()
    if application is not None:
        if application.status in (ApplicationStatus.INVITED, ApplicationStatus.ACCEPTED):
            raise AlreadyInvited("Candidate has already been invited to this job")
        if application.status == ApplicationStatus.HIRED:
            raise AlreadyInvited("Candidate has already been hired for this job")
    else:
        application = JobApplication(job_id=job.id, applicant_id=candidate.id)

    apply_application_event(application, 'invite')

    now = utcnow()
    expiry_days = current_app.config.get('INVITATION_EXPIRY_DAYS', 14)
    response = {
        'type': 'interview' if interview else 'message',
        'message': message or f"You have been invited to apply for {job.title}",
        'invited_at': now.isoformat(),
        'expires_at': (now + timedelta(days=expiry_days)).isoformat(),
    }
    if interview:
        response['interview'] = {
            'date': interview.get('date'),
            'time': interview.get('time'),
            'type': interview.get('type', '1st_interview'),
            'format': interview.get('format', 'video'),
            'duration': interview.get('duration', 60),
            'location': interview.get('location'),
        }
    application.response = response
    application.invited_by = employer.id
    application.ai_match_score = compute_match_score(_profile_view(candidate.id), job.matching_view())

    db.session.add(application)
    _commit()

    logger.info(f"Employer {employer.id} invited candidate {candidate.id} to job {job.id}")
    notify_invitation(application)
    return application


def can_reinvite(job_id, candidate_id) -> Dict:
    application = JobApplication.query.filter_by(job_id=job_id, applicant_id=candidate_id).first()
    status = application.status if application else None
    return {
        'can_reinvite': can_transition(status, 'invite'),
        'status': status.value if status else None,
        'application_id': application.id if application else None,
    }


def _respond_to_invitation(application_id, candidate, event: str, reason: Optional[str]) -> JobApplication:
    application = get_application(application_id)
    ensure_applicant(application, candidate)
    apply_application_event(application, event)

    response = dict(application.response or {})
    response['responded_at'] = utcnow().isoformat()
    if reason:
        response['reason'] = reason
    application.response = response
    _commit()

    notify_status_change(application)
    return application


def accept_invitation(application_id, candidate) -> JobApplication:
    return _respond_to_invitation(application_id, candidate, 'accept_invitation', None)


def decline_invitation(application_id, candidate, reason: Optional[str] = None) -> JobApplication:
    return _respond_to_invitation(application_id, candidate, 'decline_invitation', reason)


# Interviews

def schedule_interview(application_id, interviewer, details: Dict) -> Interview:
    """Create an interview and move the application to interviewing in one transaction"""
    application = get_application(application_id)
    ensure_job_owner(application.job, interviewer)

    interview_date = _parse_interview_datetime(details.get('date'), details.get('time'))
    interview_type = details.get('type') or '1st_interview'
    interview_format = details.get('format') or 'video'
    if interview_type not in INTERVIEW_TYPES:
        raise ValidationError(f"Invalid interview type: {interview_type}")
    if interview_format not in INTERVIEW_FORMATS:
        raise ValidationError(f"Invalid interview format: {interview_format}")

    meeting_link = details.get('meeting_link')
    if interview_format == 'video' and not meeting_link:
        try:
            meeting_link = generate_meeting_link(details.get('platform') or 'google')
        except Exception as e:
            logger.warning(f"Could not generate meeting link: {e}")

    try:
        apply_application_event(application, 'interview')
        interview = Interview(
            application_id=application.id,
            job_id=application.job_id,
            seeker_id=application.applicant_id,
            interviewer_id=interviewer.id,
            interview_type=interview_type,
            interview_format=interview_format,
            location=details.get('location'),
            meeting_link=meeting_link,
            interview_date=interview_date,
            duration_minutes=int(details.get('duration') or 60),
            agenda=details.get('agenda'),
            interview_notes=details.get('notes'),
            status=InterviewStatus.SCHEDULED,
        )
        db.session.add(interview)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Interview {interview.id} scheduled for application {application.id} on {interview_date}")
    notify_interview_scheduled(interview)
    return interview


def reschedule_interview(interview_id, actor, details: Dict) -> Interview:
    """Book a new slot; an application parked in reviewing by a reschedule request goes back to interviewing"""
    interview = get_interview(interview_id)
    application = interview.application
    ensure_job_owner(application.job, actor)

    new_date = _parse_interview_datetime(details.get('date'), details.get('time'))
    try:
        apply_interview_event(interview, 'reschedule')
        if application.status == ApplicationStatus.REVIEWING:
            apply_application_event(application, 'interview')
        interview.interview_date = new_date
        interview.reminder_sent = False
        if details.get('duration'):
            interview.duration_minutes = int(details['duration'])
        if details.get('location') is not None:
            interview.location = details['location']
        if details.get('meeting_link'):
            interview.meeting_link = details['meeting_link']
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    notify_interview_rescheduled(interview, interview.seeker)
    return interview


def confirm_interview(interview_id, actor) -> Interview:
    interview = get_interview(interview_id)
    ensure_party(interview.application, actor)
    apply_interview_event(interview, 'confirm')
    _commit()
    return interview


def request_reschedule(interview_id, candidate, reason: Optional[str] = None) -> Interview:
    """Candidate asks for a new slot: interview rescheduled, application back to reviewing"""
    interview = get_interview(interview_id)
    application = interview.application
    ensure_applicant(application, candidate)

    try:
        apply_interview_event(interview, 'reschedule')
        apply_application_event(application, 'request_reschedule')
        if reason:
            interview.interview_notes = f"{interview.interview_notes or ''}\nReschedule requested: {reason}".strip()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    employer = interview.interviewer or get_user(application.job.created_by)
    notify_reschedule_requested(interview, employer, reason or '')
    return interview


def cancel_interview(interview_id, actor, reason: Optional[str] = None) -> Interview:
    interview = get_interview(interview_id)
    ensure_party(interview.application, actor)
    apply_interview_event(interview, 'cancel')
    if reason:
        interview.interview_notes = f"{interview.interview_notes or ''}\nCancelled: {reason}".strip()
    _commit()

    notify_interview_cancelled(interview)
    return interview


def complete_interview(interview_id, actor, notes: Optional[str] = None) -> Interview:
    interview = get_interview(interview_id)
    ensure_job_owner(interview.application.job, actor)
    apply_interview_event(interview, 'complete')
    if notes:
        interview.interview_notes = notes
    _commit()
    return interview


def add_interview_feedback(interview_id, actor, feedback: str, rating=None) -> Interview:
    """Store feedback on the interview and send it to the candidate as a message"""
    interview = get_interview(interview_id)
    ensure_job_owner(interview.application.job, actor)

    feedback = sanitize_html(feedback or '')
    if not feedback:
        raise ValidationError("Feedback is required")
    if rating is not None:
        try:
            rating = int(rating)
        except (TypeError, ValueError):
            raise ValidationError("Rating must be a number between 1 and 5")
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be a number between 1 and 5")

    interview.feedback = feedback
    interview.rating = rating
    interview.updated_at = utcnow()
    db.session.add(Message(
        sender_id=actor.id,
        recipient_id=interview.seeker_id,
        application_id=interview.application_id,
        body=f"Interview feedback: {feedback}",
    ))
    _commit()

    notify_feedback(interview)
    return interview


def _record_outcome(interview_id, actor, outcome: ApplicationStatus, event: str, offer_letter=None) -> Interview:
    interview = get_interview(interview_id)
    application = interview.application
    ensure_job_owner(application.job, actor)

    try:
        apply_interview_event(interview, 'record_outcome')
        interview.application_status = outcome
        apply_application_event(application, event)
        if offer_letter is not None:
            store_file(application.applicant_id, offer_letter, 'signed_offer',
                       meta={'application_id': application.id, 'uploaded_by': actor.id})
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    notify_status_change(application)
    return interview


def hire_from_interview(interview_id, actor, offer_letter=None) -> Interview:
    interview = _record_outcome(interview_id, actor, ApplicationStatus.HIRED, 'hire', offer_letter)
    start_onboarding(interview.application_id)
    return interview


def reject_from_interview(interview_id, actor) -> Interview:
    return _record_outcome(interview_id, actor, ApplicationStatus.REJECTED, 'reject')


def update_offer_status(application_id, applicant, status: str) -> JobApplication:
    event = OFFER_RESPONSES.get(status)
    if event is None:
        raise ValidationError("Offer status must be accepted, declined or negotiating")

    application = get_application(application_id)
    ensure_applicant(application, applicant)
    apply_application_event(application, event)
    _commit()

    notify_status_change(application)
    if application.status == ApplicationStatus.HIRED:
        start_onboarding(application.id)
    return application


# Read models

def primary_interview(application: JobApplication) -> Optional[Interview]:
    """Latest scheduled interview, else the first one"""
    interviews = list(application.interviews)
    if not interviews:
        return None
    scheduled = [i for i in interviews if i.status == InterviewStatus.SCHEDULED]
    if scheduled:
        return max(scheduled, key=lambda i: i.interview_date)
    return interviews[0]


def effective_status(application: JobApplication) -> str:
    """Status the candidate sees once interview outcomes are taken into account"""
    outcomes = [i for i in application.interviews if i.application_status in OUTCOME_STATUSES]
    if outcomes:
        latest = max(outcomes, key=lambda i: i.updated_at or i.created_at)
        return latest.application_status.value

    if application.status == ApplicationStatus.INTERVIEWING:
        interview = primary_interview(application)
        if interview is not None and interview.status == InterviewStatus.RESCHEDULED:
            return ApplicationStatus.REVIEWING.value

    return application.status.value


def application_view(application: JobApplication) -> Dict:
    data = application.to_dict()
    interview = primary_interview(application)
    data.update({
        'job': application.job.to_dict(),
        'effective_status': effective_status(application),
        'interview': interview.to_dict() if interview else None,
        'interviews': [i.to_dict() for i in application.interviews],
        'allowed_events': allowed_events(application.status),
    })
    return data


def candidate_applications(candidate) -> List[Dict]:
    applications = JobApplication.query.filter(
        JobApplication.applicant_id == candidate.id,
        JobApplication.status != ApplicationStatus.INVITED,
    ).order_by(JobApplication.application_date.desc()).all()
    return [application_view(a) for a in applications]


def candidate_invitations(candidate) -> List[Dict]:
    applications = JobApplication.query.filter(
        JobApplication.applicant_id == candidate.id,
        JobApplication.invited_by.isnot(None),
    ).order_by(JobApplication.updated_at.desc()).all()

    invitations = []
    for application in applications:
        response = application.response or {}
        invitations.append({
            'application_id': application.id,
            'job': application.job.to_dict(),
            'status': application.status.value,
            'pending': application.status == ApplicationStatus.INVITED,
            'message': response.get('message'),
            'interview': response.get('interview'),
            'invited_at': response.get('invited_at'),
            'expires_at': response.get('expires_at'),
        })
    return invitations


def offer_details(application: JobApplication) -> Dict:
    job = application.job
    offered_at = application.updated_at or utcnow()
    expiry_days = current_app.config.get('OFFER_EXPIRY_DAYS', 14)
    return {
        'application_id': application.id,
        'job': job.to_dict(),
        'company': job.company.name if job.company else None,
        'status': application.status.value,
        'offered_at': offered_at.isoformat(),
        'expires_at': (offered_at + timedelta(days=expiry_days)).isoformat(),
        'start_date': (offered_at + timedelta(days=START_DATE_OFFSET_DAYS)).date().isoformat(),
        'salary': {
            'base': job.salary_min or DEFAULT_BASE_SALARY,
            'currency': job.salary_currency or 'EUR',
        },
    }


def candidate_offers(candidate) -> List[Dict]:
    applications = JobApplication.query.filter(
        JobApplication.applicant_id == candidate.id,
        JobApplication.status.in_([ApplicationStatus.OFFERED, ApplicationStatus.NEGOTIATING]),
    ).order_by(JobApplication.updated_at.desc()).all()
    return [offer_details(a) for a in applications]


def _interview_statuses(application: JobApplication) -> List[str]:
    return [i.status.value for i in application.interviews]


def _candidate_entry(application: JobApplication) -> Dict:
    applicant = application.applicant
    profile = applicant.profile
    data = application_view(application)
    data['candidate'] = {
        'id': applicant.id,
        'full_name': applicant.full_name,
        'profile': profile.to_dict() if profile else None,
        'contact': masked_contact_info(applicant.phone, applicant.email,
                                       profile.current_location if profile else None,
                                       _interview_statuses(application)),
    }
    return data


def job_applications(job_id, employer, status: Optional[str] = None) -> List[Dict]:
    job = get_job(job_id)
    ensure_job_owner(job, employer)

    query = JobApplication.query.filter_by(job_id=job.id)
    if status:
        try:
            query = query.filter(JobApplication.status == ApplicationStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown application status: {status}")
    applications = query.order_by(JobApplication.ai_match_score.desc(), JobApplication.application_date.desc()).all()
    return [_candidate_entry(a) for a in applications]


def pipeline_summary(job_id, employer) -> Dict:
    job = get_job(job_id)
    ensure_job_owner(job, employer)

    counts = {status.value: 0 for status in ApplicationStatus}
    rows = db.session.query(JobApplication.status, db.func.count(JobApplication.id))\
        .filter(JobApplication.job_id == job.id)\
        .group_by(JobApplication.status).all()
    for status, count in rows:
        counts[status.value] = count

    upcoming = Interview.query.filter(
        Interview.job_id == job.id,
        Interview.status.in_([InterviewStatus.SCHEDULED, InterviewStatus.RESCHEDULED]),
        Interview.interview_date >= utcnow(),
    ).count()

    return {
        'job_id': job.id,
        'total': sum(counts.values()),
        'by_status': counts,
        'upcoming_interviews': upcoming,
    }


def hired_candidates(employer, job_id=None) -> List[Dict]:
    query = JobApplication.query.join(Job, JobApplication.job_id == Job.id)\
        .filter(JobApplication.status == ApplicationStatus.HIRED)
    if not is_admin(employer):
        query = query.filter(Job.created_by == employer.id)
    if job_id is not None:
        query = query.filter(JobApplication.job_id == job_id)
    return [_candidate_entry(a) for a in query.order_by(JobApplication.updated_at.desc()).all()]


def interviews_for_user(user, status: Optional[str] = None, date_from=None, date_to=None) -> List[Interview]:
    query = Interview.query
    if user.role == UserRole.CANDIDATE:
        query = query.filter(Interview.seeker_id == user.id)
    elif not is_admin(user):
        query = query.join(Job, Interview.job_id == Job.id)\
            .filter(db.or_(Job.created_by == user.id, Interview.interviewer_id == user.id))

    if status:
        try:
            query = query.filter(Interview.status == InterviewStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown interview status: {status}")
    if date_from:
        query = query.filter(Interview.interview_date >= datetime.combine(_parse_date(date_from), datetime.min.time()))
    if date_to:
        query = query.filter(Interview.interview_date < datetime.combine(_parse_date(date_to) + timedelta(days=1),
                                                                         datetime.min.time()))
    return query.order_by(Interview.interview_date).all()


def expire_stale_applications(now: Optional[datetime] = None) -> Dict[str, int]:
    """Expire invitations and offers nobody answered in time"""
    now = now or utcnow()
    invitation_cutoff = now - timedelta(days=current_app.config.get('INVITATION_EXPIRY_DAYS', 14))
    offer_cutoff = now - timedelta(days=current_app.config.get('OFFER_EXPIRY_DAYS', 14))

    stale = JobApplication.query.filter(db.or_(
        db.and_(JobApplication.status == ApplicationStatus.INVITED, JobApplication.updated_at < invitation_cutoff),
        db.and_(JobApplication.status == ApplicationStatus.OFFERED, JobApplication.updated_at < offer_cutoff),
    )).all()

    counts = {'invitations': 0, 'offers': 0}
    try:
        for application in stale:
            key = 'invitations' if application.status == ApplicationStatus.INVITED else 'offers'
            apply_application_event(application, 'expire')
            counts[key] += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if stale:
        logger.info(f"Expired {counts['invitations']} invitations and {counts['offers']} offers")
    return counts


# Matching views

def recommended_candidates(job_id, employer) -> Dict:
    job = get_job(job_id)
    ensure_job_owner(job, employer)

    profiles = [p.matching_view() for p in JobSeekerProfile.query.all() if p.skills]
    ranked = rank_candidates_for_job(job.matching_view(), profiles)
    for entry in ranked:
        entry.update(can_reinvite(job.id, entry['id']))
    return {'candidates': ranked, 'stats': match_stats(ranked)}


def recommended_jobs_for(candidate, limit: int = 12) -> List[Dict]:
    jobs = Job.query.filter_by(status=JobStatus.ACTIVE).order_by(Job.created_at.desc()).all()
    return recommend_jobs(_profile_view(candidate.id) or None, [j.matching_view() for j in jobs], limit=limit)


def search_jobs(candidate, filters: Dict, sort_by: str = 'match-score') -> List[Dict]:
    profile = _profile_view(candidate.id) if candidate is not None else {}
    jobs = []
    for job in Job.query.filter_by(status=JobStatus.ACTIVE).all():
        view = job.matching_view()
        view['match_score'] = compute_match_score(profile, view)
        jobs.append(view)
    return sort_jobs(filter_jobs(jobs, filters), sort_by)


def candidate_contact(candidate_id, employer) -> Dict:
    """Candidate contact details, masked until an interview is booked"""
    if employer.role == UserRole.CANDIDATE or not employer_can_see_candidate(employer, candidate_id):
        raise PermissionDenied("You do not have access to this candidate")

    candidate = get_user(candidate_id)
    query = Interview.query.filter(Interview.seeker_id == candidate.id)
    if not is_admin(employer):
        query = query.join(Job, Interview.job_id == Job.id).filter(Job.created_by == employer.id)
    statuses = [i.status.value for i in query.all()]

    profile = candidate.profile
    return masked_contact_info(candidate.phone, candidate.email,
                               profile.current_location if profile else None, statuses)
