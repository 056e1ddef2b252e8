import os
import tempfile

# Settings are read when config.py is imported, so these go first
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['START_BACKGROUND_SERVICES'] = 'false'
os.environ['UPLOAD_FOLDER'] = tempfile.mkdtemp(prefix='hireflow-tests-')
os.environ['SMTP_ENABLED'] = 'false'
os.environ['LOG_LEVEL'] = 'WARNING'
for name in ('RESEND_API_KEY', 'OPENAI_API_KEY', 'REPORT_RECIPIENTS'):
    os.environ.pop(name, None)

import pytest
from werkzeug.security import generate_password_hash

from app import app as flask_app
from database import db
from models import ApplicationStatus, Company, Job, JobApplication, JobSeekerProfile, User, UserRole, utcnow

PASSWORD = 'secret123'


@pytest.fixture
def app():
    flask_app.config.update(
        TESTING=True,
        RESEND_API_KEY=None,
        SMTP_ENABLED=False,
        OPENAI_API_KEY=None,
        REPORT_RECIPIENTS=[],
    )
    with flask_app.app_context():
        db.drop_all()
        db.create_all()

    yield flask_app

    with flask_app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Application context for calling the service modules directly"""
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture
def make_user():
    counter = {'n': 0}

    def _make_user(role='candidate', email=None, full_name=None, phone=None):
        counter['n'] += 1
        user = User(
            email=email or f"{role}{counter['n']}@example.com",
            full_name=full_name or f"{role.title()} {counter['n']}",
            phone=phone,
            password_hash=generate_password_hash(PASSWORD),
            role=UserRole(role),
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_job():
    def _make_job(employer, **fields):
        company = Company.query.filter_by(owner_id=employer.id).first()
        if company is None:
            company = Company(name=f"Company of {employer.full_name}", owner_id=employer.id)
            db.session.add(company)
            db.session.flush()

        values = {
            'title': 'Backend Developer',
            'description': 'Build and run our hiring APIs',
            'location': 'Berlin, Germany',
            'job_type': 'full-time',
            'experience_level': 'mid',
            'salary_min': 60000,
            'salary_max': 80000,
            'preferred_language': 'English',
            'skills_required': ['Python', 'SQL'],
        }
        values.update(fields)
        job = Job(created_by=employer.id, company_id=company.id, **values)
        db.session.add(job)
        db.session.commit()
        return job

    return _make_job


@pytest.fixture
def make_profile():
    def _make_profile(user, **fields):
        values = {
            'headline': 'Software Engineer',
            'experience_years': 3,
            'current_location': 'Berlin',
            'skills': ['Python', 'SQL'],
            'languages': ['English'],
            'target_salary_min': 60000,
            'target_salary_max': 70000,
        }
        values.update(fields)
        profile = JobSeekerProfile(user_id=user.id, **values)
        db.session.add(profile)
        db.session.commit()
        return profile

    return _make_profile


@pytest.fixture
def make_application():
    def _make_application(job, candidate, status=ApplicationStatus.APPLIED, **fields):
        values = {'application_date': utcnow(), 'updated_at': utcnow()}
        values.update(fields)
        application = JobApplication(job_id=job.id, applicant_id=candidate.id, status=status, **values)
        db.session.add(application)
        db.session.commit()
        return application

    return _make_application
