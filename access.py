"""Row lookups and ownership checks shared by the service modules."""
from database import db
from errors import NotFound, PermissionDenied
from models import Interview, Job, JobApplication, User, UserRole


def get_job(job_id) -> Job:
    job = db.session.get(Job, job_id)
    if job is None:
        raise NotFound("Job not found")
    return job


def get_application(application_id) -> JobApplication:
    application = db.session.get(JobApplication, application_id)
    if application is None:
        raise NotFound("Application not found")
    return application


def get_interview(interview_id) -> Interview:
    interview = db.session.get(Interview, interview_id)
    if interview is None:
        raise NotFound("Interview not found")
    return interview


def get_user(user_id) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def is_admin(user) -> bool:
    return user is not None and user.role == UserRole.ADMIN


def ensure_job_owner(job: Job, user) -> None:
    """Employers only act on jobs they created"""
    if is_admin(user):
        return
    if user is None or job.created_by != user.id:
        raise PermissionDenied("You do not have access to this job")


def ensure_applicant(application: JobApplication, user) -> None:
    if is_admin(user):
        return
    if user is None or application.applicant_id != user.id:
        raise PermissionDenied("You do not have access to this application")


def ensure_party(application: JobApplication, user) -> None:
    """Either the candidate or the employer who owns the job"""
    if user is not None and application.applicant_id == user.id:
        return
    ensure_job_owner(application.job, user)


def employer_can_see_candidate(employer, candidate_id) -> bool:
    """True when the candidate applied to (or was invited to) one of the employer's jobs"""
    if is_admin(employer):
        return True
    return db.session.query(JobApplication.id)\
        .join(Job, JobApplication.job_id == Job.id)\
        .filter(Job.created_by == employer.id, JobApplication.applicant_id == candidate_id)\
        .first() is not None
