import logging
from datetime import timedelta
from typing import Dict, List, Optional

from access import ensure_job_owner, ensure_party, get_application, get_job
from database import db
from errors import InvalidTransition, ValidationError
from models import (ApplicationStatus, Document, JobApplication, JobSeekerProfile, OnboardingTask,
                    TaskStatus, utcnow)
from notifications import notify_onboarding_completed, send_welcome_email
from utils import parse_salary_range, validate_email

logger = logging.getLogger(__name__)

# (key, title, category, required, initial status)
CHECKLIST = [
    ('offer_accepted', 'Offer accepted', 'milestone', True, TaskStatus.COMPLETED),
    ('background_check', 'Background check', 'milestone', True, TaskStatus.PENDING),
    ('equipment_setup', 'Equipment setup', 'milestone', True, TaskStatus.PENDING),
    ('signed_offer', 'Signed offer letter', 'document', True, TaskStatus.PENDING),
    ('i9_form', 'I-9 employment eligibility form', 'document', True, TaskStatus.PENDING),
    ('passport', 'Passport', 'visa', True, TaskStatus.PENDING),
    ('photo', 'Passport photo', 'visa', True, TaskStatus.PENDING),
    ('degree', 'Degree certificate', 'visa', True, TaskStatus.PENDING),
    ('experience', 'Experience letters', 'visa', True, TaskStatus.PENDING),
    ('bank_statement', 'Bank statement', 'visa', True, TaskStatus.PENDING),
    ('birth_certificate', 'Birth certificate', 'visa', True, TaskStatus.PENDING),
    ('police_clearance', 'Police clearance certificate', 'visa', False, TaskStatus.PENDING),
    ('medical_exam', 'Medical examination', 'visa', False, TaskStatus.NOT_REQUIRED_YET),
]

DOCUMENT_TASK_KEYS = {key for key, _, category, _, _ in CHECKLIST if category in ('document', 'visa')}

# Days after onboarding starts that each milestone is expected
MILESTONE_OFFSETS = {
    'offer_accepted': 0,
    'background_check': 7,
    'equipment_setup': 21,
}
START_DATE_OFFSET_DAYS = 30


def start_onboarding(application_id, actor=None) -> JobApplication:
    """Create the post-hire checklist. Safe to call more than once."""
    application = get_application(application_id)
    if actor is not None:
        ensure_party(application, actor)
    if application.status != ApplicationStatus.HIRED:
        raise InvalidTransition("Onboarding can only start for hired candidates")

    if application.onboarding_tasks:
        return application

    try:
        uploaded = {d.document_type: d for d in
                    Document.query.filter_by(user_id=application.applicant_id).order_by(Document.uploaded_at).all()}

        for key, title, category, required, status in CHECKLIST:
            task = OnboardingTask(
                application_id=application.id,
                key=key,
                title=title,
                category=category,
                required=required,
                status=status,
            )
            if status == TaskStatus.COMPLETED:
                task.completed_at = utcnow()
            elif key in uploaded and status == TaskStatus.PENDING:
                task.status = TaskStatus.COMPLETED
                task.document_id = uploaded[key].id
                task.completed_at = utcnow()
            db.session.add(task)

        application.onboarding_started_at = utcnow()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Onboarding started for application {application.id}")
    _finish_if_complete(application)
    return application


def _task(application: JobApplication, key: str) -> OnboardingTask:
    for task in application.onboarding_tasks:
        if task.key == key:
            return task
    raise ValidationError(f"Unknown onboarding task: {key}")


def complete_task(application_id, key: str, actor, document_id: Optional[int] = None) -> Dict:
    application = get_application(application_id)
    ensure_party(application, actor)
    if not application.onboarding_tasks:
        raise InvalidTransition("Onboarding has not started for this application")

    task = _task(application, key)
    if task.status != TaskStatus.COMPLETED:
        task.status = TaskStatus.COMPLETED
        task.completed_at = utcnow()
        if document_id:
            task.document_id = document_id
        db.session.commit()
        logger.info(f"Onboarding task {key} completed for application {application.id}")

    _finish_if_complete(application)
    return onboarding_progress(application)


def complete_tasks_for_document(document: Document) -> List[str]:
    """Tick off pending checklist items matching an uploaded document's type"""
    if document.document_type not in DOCUMENT_TASK_KEYS:
        return []

    tasks = OnboardingTask.query.join(JobApplication, OnboardingTask.application_id == JobApplication.id)\
        .filter(JobApplication.applicant_id == document.user_id,
                OnboardingTask.key == document.document_type,
                OnboardingTask.status != TaskStatus.COMPLETED).all()

    for task in tasks:
        task.status = TaskStatus.COMPLETED
        task.document_id = document.id
        task.completed_at = utcnow()
    if tasks:
        db.session.commit()

    for task in tasks:
        _finish_if_complete(task.application)
    return [task.key for task in tasks]


def _finish_if_complete(application: JobApplication) -> None:
    if application.onboarding_completed_at:
        return
    required = [t for t in application.onboarding_tasks if t.required]
    if not required or any(t.status != TaskStatus.COMPLETED for t in required):
        return

    application.onboarding_completed_at = utcnow()
    db.session.commit()
    logger.info(f"Onboarding completed for application {application.id}")
    notify_onboarding_completed(application)


def _visa_status(tasks: List[OnboardingTask]) -> str:
    visa_required = [t for t in tasks if t.category == 'visa' and t.required]
    if visa_required and all(t.status == TaskStatus.COMPLETED for t in visa_required):
        return 'approved'
    return 'in_progress'


def _timeline(application: JobApplication, tasks: List[OnboardingTask]) -> List[Dict]:
    started = application.onboarding_started_at or application.updated_at or utcnow()
    timeline = []
    for task in tasks:
        if task.category != 'milestone':
            continue
        timeline.append({
            'key': task.key,
            'title': task.title,
            'status': task.status.value,
            'due_date': (started + timedelta(days=MILESTONE_OFFSETS.get(task.key, 0))).date().isoformat(),
            'completed_at': task.completed_at.isoformat() if task.completed_at else None,
        })

    documents_done = all(t.status == TaskStatus.COMPLETED for t in tasks if t.category == 'document' and t.required)
    timeline.append({
        'key': 'documents',
        'title': 'Documents submitted',
        'status': 'completed' if documents_done else 'pending',
        'due_date': (started + timedelta(days=14)).date().isoformat(),
        'completed_at': None,
    })
    visa = _visa_status(tasks)
    timeline.append({
        'key': 'visa',
        'title': 'Visa processing',
        'status': 'completed' if visa == 'approved' else 'in_progress',
        'due_date': (started + timedelta(days=28)).date().isoformat(),
        'completed_at': None,
    })
    timeline.append({
        'key': 'start_date',
        'title': 'First day',
        'status': 'completed' if application.onboarding_completed_at else 'pending',
        'due_date': (started + timedelta(days=START_DATE_OFFSET_DAYS)).date().isoformat(),
        'completed_at': application.onboarding_completed_at.isoformat()
        if application.onboarding_completed_at else None,
    })
    return timeline


def onboarding_progress(application: JobApplication) -> Dict:
    tasks = list(application.onboarding_tasks)
    required = [t for t in tasks if t.required]
    completed = [t for t in required if t.status == TaskStatus.COMPLETED]
    percent = round(len(completed) / len(required) * 100) if required else 0

    return {
        'application_id': application.id,
        'started': bool(tasks),
        'started_at': application.onboarding_started_at.isoformat() if application.onboarding_started_at else None,
        'completed_at': application.onboarding_completed_at.isoformat()
        if application.onboarding_completed_at else None,
        'completed_count': len(completed),
        'required_count': len(required),
        'percent': percent,
        'visa_status': _visa_status(tasks),
        'tasks': [t.to_dict() for t in tasks],
        'documents': {t.key: t.status == TaskStatus.COMPLETED
                      for t in tasks if t.category in ('document', 'visa')},
        'timeline': _timeline(application, tasks) if tasks else [],
    }


def get_onboarding(application_id, actor) -> Dict:
    application = get_application(application_id)
    ensure_party(application, actor)
    return onboarding_progress(application)


def onboarding_candidates(job_id, employer) -> List[Dict]:
    """Hired candidates of a job with their onboarding progress"""
    job = get_job(job_id)
    ensure_job_owner(job, employer)
    hired = JobApplication.query.filter_by(job_id=job.id, status=ApplicationStatus.HIRED)\
        .order_by(JobApplication.updated_at.desc()).all()

    return [{
        'application': application.to_dict(),
        'candidate': application.applicant.to_dict(),
        'onboarding': onboarding_progress(application),
    } for application in hired]


# Candidate profile setup

PROFILE_STEPS = {
    1: 'personal_info',
    2: 'experience',
    3: 'documents',
    4: 'preferences',
}

VISA_SUMMARIES = {
    'citizen': 'EU citizen with full work authorization',
    'permit': 'work permit holder with authorization to work',
    'student': 'student visa holder seeking work opportunities',
    'applying': 'visa application in progress for work authorization',
}


def validate_profile_step(step: int, form: Dict, has_resume: bool = False) -> List[str]:
    """Validate one step of the candidate profile wizard and return list of errors"""
    errors = []

    if step == 1:
        for field, label in (('first_name', 'First name'), ('last_name', 'Last name'),
                             ('current_location', 'Current location'), ('visa_status', 'Visa status')):
            if not form.get(field):
                errors.append(f"{label} is required")
        if not form.get('email'):
            errors.append("Email is required")
        elif not validate_email(form['email']):
            errors.append("Invalid email format")

    elif step == 2:
        if not form.get('current_title'):
            errors.append("Current title is required")
        if form.get('experience') in (None, ''):
            errors.append("Years of experience is required")
        if not form.get('skills'):
            errors.append("At least one skill is required")
        if not str(form.get('education') or '').strip():
            errors.append("Education is required")
        if not isinstance(form.get('languages'), list) or not form['languages']:
            errors.append("At least one language is required")

    elif step == 3:
        if not has_resume:
            errors.append("A resume is required")

    elif step == 4:
        preferred = form.get('preferred_location')
        if not preferred:
            errors.append("Preferred location is required")
        elif preferred == 'other' and not form.get('custom_city'):
            errors.append("Please enter your preferred city")
        if not form.get('work_type'):
            errors.append("Work type is required")
        if not form.get('availability'):
            errors.append("Availability is required")

    else:
        errors.append(f"Unknown onboarding step: {step}")

    return errors


def _experience_text(experience) -> str:
    experience = str(experience or '0')
    if experience == '0':
        return 'entry-level'
    if experience == '1':
        return '1 year'
    return f"{experience} years"


def generate_profile_summary(form: Dict) -> str:
    name = f"{form.get('first_name', '')} {form.get('last_name', '')}".strip()
    skills = form.get('skills') or []
    if skills:
        skills_text = ', '.join(skills[:3])
        if len(skills) > 3:
            skills_text += f", and {len(skills) - 3} other skills"
    else:
        skills_text = 'various technical skills'

    work_type = form.get('work_type')
    job_type_text = work_type[0].upper() + work_type[1:].replace('-', ' ') if work_type else 'full-time'
    target_title = (form.get('desired_position') or '').strip() or form.get('current_title') or 'professional'

    summary = (f"{name} is an {_experience_text(form.get('experience'))} professional seeking a "
               f"{target_title} {job_type_text} position. Skilled in {skills_text}.")
    visa = VISA_SUMMARIES.get(form.get('visa_status'))
    if visa:
        summary += f" {visa[0].upper()}{visa[1:]}."
    return summary


def _normalize_languages(languages) -> List[Dict]:
    normalized = []
    for entry in languages or []:
        if isinstance(entry, dict):
            normalized.append({'language': entry.get('language'), 'proficiency': entry.get('proficiency') or 'Fluent'})
        elif entry:
            normalized.append({'language': str(entry).strip(), 'proficiency': 'Fluent'})
    return normalized


def complete_profile_onboarding(user, form: Dict) -> JobSeekerProfile:
    """Validate every wizard step, then upsert the profile and mark the user onboarded"""
    has_resume = Document.query.filter_by(user_id=user.id, document_type='resume').first() is not None
    errors = []
    for step in PROFILE_STEPS:
        errors.extend(validate_profile_step(step, form, has_resume=has_resume))
    if errors:
        raise ValidationError('; '.join(errors))

    salary_min, salary_max = parse_salary_range(form.get('salary_expectation'))
    try:
        experience_years = int(form.get('experience') or 0)
    except (TypeError, ValueError):
        experience_years = 0

    preferred = form.get('preferred_location')
    if preferred == 'other':
        preferred_locations = [form['custom_city']] if form.get('custom_city') else []
    else:
        preferred_locations = [preferred] if preferred else []

    profile = user.profile or JobSeekerProfile(user_id=user.id)
    profile.headline = form.get('current_title') or f"{form.get('first_name', '')} {form.get('last_name', '')}".strip()
    profile.summary = generate_profile_summary(form)
    profile.experience_years = experience_years
    profile.current_location = form.get('current_location')
    profile.preferred_locations = preferred_locations
    profile.willing_to_relocate = bool(form.get('relocatable'))
    profile.preferred_job_types = [form['work_type']] if form.get('work_type') else []
    profile.target_salary_min = salary_min
    profile.target_salary_max = salary_max
    profile.target_salary_currency = 'EUR'
    profile.skills = list(form.get('skills') or [])
    profile.languages = _normalize_languages(form.get('languages'))
    profile.education = form.get('education')
    profile.visa_status = form.get('visa_status')
    profile.availability = form.get('availability')
    profile.onboarding_completed = True

    try:
        db.session.add(profile)
        user.full_name = f"{form.get('first_name', '')} {form.get('last_name', '')}".strip() or user.full_name
        if form.get('phone'):
            user.phone = form['phone']
        user.onboarding_complete = True
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Profile onboarding completed for user {user.id}")
    send_welcome_email(user)
    return profile
