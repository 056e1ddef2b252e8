from datetime import datetime, timezone
from database import db
from flask_login import UserMixin
from meetings import describe_meeting_link, interview_round, platform_label
from sqlalchemy import Enum
import enum


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class UserRole(enum.Enum):
    ADMIN = "admin"
    EMPLOYER = "employer"
    CANDIDATE = "candidate"

class JobStatus(enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"

class ApplicationStatus(enum.Enum):
    INVITED = "invited"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    APPLIED = "applied"
    REVIEWING = "reviewing"
    SHORTLISTED = "shortlisted"
    INTERVIEWING = "interviewing"
    OFFERED = "offered"
    NEGOTIATING = "negotiating"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"

class InterviewStatus(enum.Enum):
    SCHEDULED = "scheduled"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class TaskStatus(enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    NOT_REQUIRED_YET = "not_required_yet"


INTERVIEW_TYPES = ('1st_interview', 'technical', 'hr_interview', 'final')
INTERVIEW_FORMATS = ('video', 'phone', 'in_person')
EXPERIENCE_LEVELS = ('entry', 'mid', 'senior', 'lead', 'executive')


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    full_name = db.Column(db.String(120))
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(Enum(UserRole), nullable=False, default=UserRole.CANDIDATE)
    phone = db.Column(db.String(30))
    avatar_url = db.Column(db.String(512))
    onboarding_complete = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    profile = db.relationship('JobSeekerProfile', backref='user', uselist=False, lazy=True,
                              cascade='all, delete-orphan')

    @property
    def is_employer(self):
        return self.role in (UserRole.EMPLOYER, UserRole.ADMIN)

    @property
    def is_candidate(self):
        return self.role == UserRole.CANDIDATE

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role.value,
            'onboarding_complete': bool(self.onboarding_complete),
            'created_at': _iso(self.created_at),
        }

class Company(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    logo_url = db.Column(db.String(512))
    industry = db.Column(db.String(100))
    size = db.Column(db.String(50))
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    created_at = db.Column(db.DateTime, default=utcnow)

    jobs = db.relationship('Job', backref='company', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'logo_url': self.logo_url,
            'industry': self.industry,
            'size': self.size,
        }

class Job(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey('company.id'))
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    requirements = db.Column(db.Text)
    location = db.Column(db.String(100))
    is_remote = db.Column(db.Boolean, default=False)
    job_type = db.Column(db.String(50))  # full-time, part-time, contract, freelance
    experience_level = db.Column(db.String(50))  # entry, mid, senior, lead, executive
    salary_min = db.Column(db.Integer)
    salary_max = db.Column(db.Integer)
    salary_currency = db.Column(db.String(3), default='EUR')
    salary_type = db.Column(db.String(20), default='range')  # range, fixed, negotiable
    preferred_language = db.Column(db.String(50))
    skills_required = db.Column(db.JSON)
    status = db.Column(Enum(JobStatus), default=JobStatus.ACTIVE)
    created_at = db.Column(db.DateTime, default=utcnow)

    applications = db.relationship('JobApplication', backref='job', lazy=True, cascade='all, delete-orphan')

    @property
    def salary_range(self):
        if self.salary_min is None and self.salary_max is None:
            return None
        salary = {
            'min': self.salary_min,
            'max': self.salary_max,
            'currency': self.salary_currency or 'EUR',
            'type': self.salary_type or 'range',
        }
        if self.salary_type == 'fixed':
            salary['fixed'] = self.salary_min
        return salary

    def matching_view(self):
        """Plain dict consumed by the scoring functions in matching.py"""
        return {
            'id': self.id,
            'title': self.title,
            'location': self.location,
            'is_remote': bool(self.is_remote),
            'job_type': self.job_type,
            'experience_level': self.experience_level,
            'skills_required': self.skills_required or [],
            'preferred_language': self.preferred_language,
            'salary_range': self.salary_range,
            'created_at': _iso(self.created_at),
            'company': self.company.name if self.company else '',
        }

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'requirements': self.requirements,
            'location': self.location,
            'is_remote': bool(self.is_remote),
            'job_type': self.job_type,
            'experience_level': self.experience_level,
            'salary_range': self.salary_range,
            'preferred_language': self.preferred_language,
            'skills_required': self.skills_required or [],
            'status': self.status.value,
            'company': self.company.to_dict() if self.company else None,
            'created_by': self.created_by,
            'created_at': _iso(self.created_at),
        }

class JobSeekerProfile(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), unique=True, nullable=False)
    headline = db.Column(db.String(200))
    summary = db.Column(db.Text)
    experience_years = db.Column(db.Integer)
    current_location = db.Column(db.String(100))
    preferred_locations = db.Column(db.JSON)
    willing_to_relocate = db.Column(db.Boolean, default=False)
    preferred_job_types = db.Column(db.JSON)
    target_salary_min = db.Column(db.Integer)
    target_salary_max = db.Column(db.Integer)
    target_salary_currency = db.Column(db.String(3), default='EUR')
    skills = db.Column(db.JSON)
    languages = db.Column(db.JSON)  # strings or {"language", "proficiency"} dicts
    education = db.Column(db.Text)
    visa_status = db.Column(db.String(50))
    availability = db.Column(db.String(50))
    onboarding_completed = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    @property
    def target_salary_range(self):
        if self.target_salary_min is None and self.target_salary_max is None:
            return None
        return {
            'min': self.target_salary_min,
            'max': self.target_salary_max,
            'currency': self.target_salary_currency or 'EUR',
        }

    def matching_view(self):
        return {
            'id': self.user_id,
            'name': self.user.full_name if self.user else None,
            'headline': self.headline,
            'experience_years': self.experience_years,
            'current_location': self.current_location,
            'preferred_locations': self.preferred_locations or [],
            'willing_to_relocate': bool(self.willing_to_relocate),
            'preferred_job_types': self.preferred_job_types or [],
            'target_salary_range': self.target_salary_range,
            'skills': self.skills or [],
            'languages': self.languages or [],
        }

    def to_dict(self):
        data = self.matching_view()
        data.update({
            'summary': self.summary,
            'education': self.education,
            'visa_status': self.visa_status,
            'availability': self.availability,
            'onboarding_completed': bool(self.onboarding_completed),
            'updated_at': _iso(self.updated_at),
        })
        return data

class JobApplication(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey('job.id'), nullable=False)
    applicant_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    status = db.Column(Enum(ApplicationStatus), nullable=False, default=ApplicationStatus.APPLIED)
    cover_note = db.Column(db.Text)
    ai_match_score = db.Column(db.Integer)

    # Document references
    resume_id = db.Column(db.Integer, db.ForeignKey('document.id'))
    cover_letter_id = db.Column(db.Integer, db.ForeignKey('document.id'))
    additional_document_ids = db.Column(db.JSON)

    # Job-specific answers
    availability_date = db.Column(db.Date)
    salary_expectation = db.Column(db.String(100))
    visa_status = db.Column(db.String(50))
    motivation = db.Column(db.Text)
    custom_questions = db.Column(db.JSON)

    employer_notes = db.Column(db.Text)
    response = db.Column(db.JSON)  # invitation payload sent by the employer
    invited_by = db.Column(db.Integer, db.ForeignKey('user.id'))

    application_date = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)
    onboarding_started_at = db.Column(db.DateTime)
    onboarding_completed_at = db.Column(db.DateTime)

    applicant = db.relationship('User', foreign_keys=[applicant_id], lazy=True)
    interviews = db.relationship('Interview', backref='application', lazy=True,
                                 cascade='all, delete-orphan', order_by='Interview.interview_date')
    onboarding_tasks = db.relationship('OnboardingTask', backref='application', lazy=True,
                                       cascade='all, delete-orphan', order_by='OnboardingTask.id')

    # Unique constraint to prevent duplicate applications
    __table_args__ = (db.UniqueConstraint('job_id', 'applicant_id'),)

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'applicant_id': self.applicant_id,
            'status': self.status.value,
            'cover_note': self.cover_note,
            'match_score': self.ai_match_score,
            'documents': {
                'resume_id': self.resume_id,
                'cover_letter_id': self.cover_letter_id,
                'additional_document_ids': self.additional_document_ids or [],
            },
            'job_specific': {
                'availability_date': _iso(self.availability_date),
                'salary_expectation': self.salary_expectation,
                'visa_status': self.visa_status,
                'motivation': self.motivation,
            },
            'custom_questions': self.custom_questions or {},
            'employer_notes': self.employer_notes or '',
            'response': self.response,
            'application_date': _iso(self.application_date),
            'updated_at': _iso(self.updated_at),
        }

class Interview(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(db.Integer, db.ForeignKey('job_application.id'), nullable=False)
    job_id = db.Column(db.Integer, db.ForeignKey('job.id'), nullable=False)
    seeker_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    interviewer_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    interview_type = db.Column(db.String(30), default='1st_interview')
    interview_format = db.Column(db.String(20), default='video')
    location = db.Column(db.String(255))
    meeting_link = db.Column(db.String(512))
    interview_date = db.Column(db.DateTime, nullable=False)
    duration_minutes = db.Column(db.Integer, default=60)
    agenda = db.Column(db.Text)
    interview_notes = db.Column(db.Text)
    status = db.Column(Enum(InterviewStatus), nullable=False, default=InterviewStatus.SCHEDULED)
    # Outcome decided on this interview (hired, offered, rejected, withdrawn)
    application_status = db.Column(Enum(ApplicationStatus))
    feedback = db.Column(db.Text)
    rating = db.Column(db.Integer)
    reminder_sent = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    interviewer = db.relationship('User', foreign_keys=[interviewer_id], lazy=True)
    seeker = db.relationship('User', foreign_keys=[seeker_id], lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'application_id': self.application_id,
            'job_id': self.job_id,
            'seeker_id': self.seeker_id,
            'type': self.interview_type,
            'format': self.interview_format,
            'platform': platform_label(self.interview_format),
            'round': interview_round(self.interview_type),
            'total_rounds': len(INTERVIEW_TYPES),
            'location': self.location,
            'meeting_link': self.meeting_link,
            'meeting': describe_meeting_link(self.meeting_link),
            'date': self.interview_date.strftime('%Y-%m-%d'),
            'time': self.interview_date.strftime('%H:%M'),
            'interview_date': _iso(self.interview_date),
            'duration': self.duration_minutes or 60,
            'agenda': self.agenda,
            'notes': self.interview_notes,
            'status': self.status.value,
            'application_status': self.application_status.value if self.application_status else None,
            'feedback': self.feedback,
            'rating': self.rating,
            'can_reschedule': self.status == InterviewStatus.SCHEDULED,
            'reminder_sent': bool(self.reminder_sent),
            'interviewer': {
                'id': self.interviewer.id,
                'name': self.interviewer.full_name or 'Interviewer',
                'email': self.interviewer.email,
            } if self.interviewer else None,
            'updated_at': _iso(self.updated_at),
        }

class Document(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    document_type = db.Column(db.String(50), nullable=False)  # resume, cover_letter, passport, ...
    file_name = db.Column(db.String(255), nullable=False)
    file_path = db.Column(db.String(512), nullable=False)
    file_size = db.Column(db.Integer)
    mime_type = db.Column(db.String(100))
    meta = db.Column(db.JSON)
    uploaded_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'document_type': self.document_type,
            'file_name': self.file_name,
            'file_size': self.file_size,
            'mime_type': self.mime_type,
            'metadata': self.meta or {},
            'uploaded_at': _iso(self.uploaded_at),
        }

class OnboardingTask(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(db.Integer, db.ForeignKey('job_application.id'), nullable=False)
    key = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(20), nullable=False)  # milestone, document, visa
    required = db.Column(db.Boolean, default=True)
    status = db.Column(Enum(TaskStatus), nullable=False, default=TaskStatus.PENDING)
    document_id = db.Column(db.Integer, db.ForeignKey('document.id'))
    completed_at = db.Column(db.DateTime)

    __table_args__ = (db.UniqueConstraint('application_id', 'key'),)

    def to_dict(self):
        return {
            'key': self.key,
            'title': self.title,
            'category': self.category,
            'required': bool(self.required),
            'status': self.status.value,
            'document_id': self.document_id,
            'completed_at': _iso(self.completed_at),
        }

class Message(db.Model):
    """Model for direct messages between employer and candidate"""
    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    recipient_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    application_id = db.Column(db.Integer, db.ForeignKey('job_application.id'))
    body = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    read_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'sender_id': self.sender_id,
            'recipient_id': self.recipient_id,
            'application_id': self.application_id,
            'body': self.body,
            'created_at': _iso(self.created_at),
            'read_at': _iso(self.read_at),
        }
