import logging
from datetime import datetime
from functools import wraps
from flask import request, jsonify, send_file
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.security import check_password_hash, generate_password_hash
from database import db
from documents import delete_document, get_document, list_documents, upload_document, can_view_documents
from errors import HiringError, PermissionDenied
from hiring import (accept_invitation, add_interview_feedback, cancel_interview, can_reinvite,
                    candidate_applications, candidate_contact, candidate_invitations, candidate_offers,
                    change_application_status, complete_interview, confirm_interview, decline_invitation,
                    hire_from_interview, hired_candidates, interviews_for_user, invite_candidate, job_applications,
                    pipeline_summary, recommended_candidates, recommended_jobs_for, reject_from_interview,
                    request_reschedule, reschedule_interview, schedule_interview, search_jobs, submit_application,
                    update_offer_status, application_view)
from access import ensure_job_owner, ensure_party, get_application, get_interview, get_job
from meetings import calendar_links
from models import (ApplicationStatus, Company, Interview, Job, JobApplication, JobSeekerProfile, JobStatus,
                    Message, User, UserRole, utcnow)
from onboarding import (complete_profile_onboarding, complete_task, get_onboarding, onboarding_candidates,
                        start_onboarding, validate_profile_step)
from notifications import notify_job_posted
from utils import validate_registration_data, validate_job_data, validate_profile_data, sanitize_html

logger = logging.getLogger(__name__)

JOB_FIELDS = ('title', 'description', 'requirements', 'location', 'is_remote', 'job_type', 'experience_level',
              'salary_min', 'salary_max', 'salary_currency', 'salary_type', 'preferred_language', 'skills_required')
PROFILE_FIELDS = ('headline', 'summary', 'experience_years', 'current_location', 'preferred_locations',
                  'willing_to_relocate', 'preferred_job_types', 'target_salary_min', 'target_salary_max',
                  'target_salary_currency', 'skills', 'languages', 'education', 'visa_status', 'availability')
PROFILE_INT_FIELDS = ('experience_years', 'target_salary_min', 'target_salary_max')


def _error_response(e, action):
    """Domain errors keep their status code, anything else is a 500"""
    if isinstance(e, HiringError):
        return jsonify({'success': False, 'error': e.message}), e.status_code
    db.session.rollback()
    logger.error(f"Error {action}: {e}")
    return jsonify({'success': False, 'error': str(e)}), 500


def employer_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_employer:
            return jsonify({'success': False, 'error': 'Employer access required'}), 403
        return f(*args, **kwargs)
    return decorated


def candidate_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_candidate:
            return jsonify({'success': False, 'error': 'Candidate access required'}), 403
        return f(*args, **kwargs)
    return decorated


def register_routes(app):
    # Auth

    @app.route('/api/auth/register', methods=['POST'])
    def api_register():
        """API endpoint to create a candidate or employer account"""
        try:
            data = request.get_json(silent=True) or {}
            errors = validate_registration_data(data)
            if errors:
                return jsonify({'success': False, 'error': '; '.join(errors)}), 400

            email = data['email'].strip().lower()
            if User.query.filter_by(email=email).first():
                return jsonify({'success': False, 'error': 'An account with this email already exists'}), 409

            user = User(
                email=email,
                full_name=data.get('full_name'),
                phone=data.get('phone'),
                password_hash=generate_password_hash(data['password']),
                role=UserRole(data.get('role') or 'candidate')
            )
            db.session.add(user)
            db.session.flush()

            if user.role == UserRole.EMPLOYER:
                db.session.add(Company(
                    name=data.get('company_name') or f"{user.full_name or email}'s company",
                    industry=data.get('industry'),
                    size=data.get('company_size'),
                    owner_id=user.id
                ))
            db.session.commit()

            login_user(user)
            logger.info(f"New {user.role.value} account: {email}")
            return jsonify({'success': True, 'user': user.to_dict()}), 201
        except Exception as e:
            return _error_response(e, "registering user")

    @app.route('/api/auth/login', methods=['POST'])
    def api_login():
        data = request.get_json(silent=True) or {}
        user = User.query.filter_by(email=(data.get('email') or '').strip().lower()).first()

        if user and check_password_hash(user.password_hash, data.get('password') or ''):
            login_user(user, remember=bool(data.get('remember')))
            return jsonify({'success': True, 'user': user.to_dict()})

        return jsonify({'success': False, 'error': 'Invalid email or password'}), 401

    @app.route('/api/auth/logout', methods=['POST'])
    @login_required
    def api_logout():
        logout_user()
        return jsonify({'success': True})

    @app.route('/api/auth/me')
    @login_required
    def api_me():
        return jsonify({'success': True, 'user': current_user.to_dict()})

    # Jobs

    @app.route('/api/jobs', methods=['GET'])
    def api_jobs():
        """API endpoint to search active jobs"""
        try:
            filters = {
                'search_term': request.args.get('search', ''),
                'location': request.args.get('location', 'all'),
                'job_type': request.args.get('job_type', 'all'),
                'experience': request.args.get('experience', 'all'),
                'language': request.args.get('language', 'all'),
                'salary': request.args.get('salary', 'all'),
            }
            candidate = current_user if current_user.is_authenticated and current_user.is_candidate else None
            jobs = search_jobs(candidate, filters, request.args.get('sort', 'match-score'))

            return jsonify({
                'success': True,
                'jobs': jobs,
                'count': len(jobs)
            })
        except Exception as e:
            return _error_response(e, "searching jobs")

    @app.route('/api/jobs', methods=['POST'])
    @login_required
    @employer_required
    def api_create_job():
        """API endpoint to post a new job"""
        try:
            data = request.get_json(silent=True) or {}
            errors = validate_job_data(data)
            if errors:
                return jsonify({'success': False, 'error': '; '.join(errors)}), 400

            company = Company.query.filter_by(owner_id=current_user.id).first()
            job = Job(created_by=current_user.id, company_id=company.id if company else None)
            for field in JOB_FIELDS:
                if field in data:
                    setattr(job, field, data[field])

            db.session.add(job)
            db.session.commit()

            logger.info(f"Job {job.id} '{job.title}' posted by user {current_user.id}")
            notify_job_posted(current_user, job)
            return jsonify({'success': True, 'job': job.to_dict()}), 201
        except Exception as e:
            return _error_response(e, "creating job")

    @app.route('/api/jobs/mine', methods=['GET'])
    @login_required
    @employer_required
    def api_my_jobs():
        try:
            jobs = Job.query.filter_by(created_by=current_user.id).order_by(Job.created_at.desc()).all()
            jobs_data = []
            for job in jobs:
                data = job.to_dict()
                data['applications_count'] = JobApplication.query.filter_by(job_id=job.id).count()
                jobs_data.append(data)
            return jsonify({'success': True, 'jobs': jobs_data, 'count': len(jobs_data)})
        except Exception as e:
            return _error_response(e, "listing employer jobs")

    @app.route('/api/jobs/<int:job_id>', methods=['GET'])
    def api_job_detail(job_id):
        """API endpoint to get detailed information about a specific job"""
        try:
            job = get_job(job_id)
            data = job.to_dict()
            if current_user.is_authenticated and current_user.is_candidate:
                application = JobApplication.query.filter_by(job_id=job.id, applicant_id=current_user.id).first()
                data['application'] = application.to_dict() if application else None
            return jsonify({'success': True, 'job': data})
        except Exception as e:
            return _error_response(e, "loading job")

    @app.route('/api/jobs/<int:job_id>', methods=['PUT'])
    @login_required
    @employer_required
    def api_update_job(job_id):
        try:
            job = get_job(job_id)
            ensure_job_owner(job, current_user)

            data = request.get_json(silent=True) or {}
            merged = {field: getattr(job, field) for field in JOB_FIELDS}
            merged.update(data)
            errors = validate_job_data(merged)
            if errors:
                return jsonify({'success': False, 'error': '; '.join(errors)}), 400

            for field in JOB_FIELDS:
                if field in data:
                    setattr(job, field, data[field])
            db.session.commit()
            return jsonify({'success': True, 'job': job.to_dict()})
        except Exception as e:
            return _error_response(e, "updating job")

    @app.route('/api/jobs/<int:job_id>', methods=['DELETE'])
    @login_required
    @employer_required
    def api_delete_job(job_id):
        try:
            job = get_job(job_id)
            ensure_job_owner(job, current_user)

            # Jobs with hiring history are closed instead of deleted
            if JobApplication.query.filter_by(job_id=job.id).count():
                job.status = JobStatus.CLOSED
                db.session.commit()
                return jsonify({'success': True, 'closed': True, 'job': job.to_dict()})

            db.session.delete(job)
            db.session.commit()
            return jsonify({'success': True, 'deleted': True})
        except Exception as e:
            return _error_response(e, "deleting job")

    @app.route('/api/jobs/<int:job_id>/toggle', methods=['POST'])
    @login_required
    @employer_required
    def api_toggle_job_status(job_id):
        try:
            job = get_job(job_id)
            ensure_job_owner(job, current_user)
            job.status = JobStatus.PAUSED if job.status == JobStatus.ACTIVE else JobStatus.ACTIVE
            db.session.commit()
            return jsonify({'success': True, 'status': job.status.value})
        except Exception as e:
            return _error_response(e, "toggling job status")

    @app.route('/api/jobs/<int:job_id>/recommended-candidates')
    @login_required
    @employer_required
    def api_recommended_candidates(job_id):
        """API endpoint to rank candidates by skill overlap with a job"""
        try:
            result = recommended_candidates(job_id, current_user)
            return jsonify({'success': True, **result})
        except Exception as e:
            return _error_response(e, "ranking candidates")

    @app.route('/api/jobs/<int:job_id>/pipeline')
    @login_required
    @employer_required
    def api_job_pipeline(job_id):
        try:
            return jsonify({'success': True, 'pipeline': pipeline_summary(job_id, current_user)})
        except Exception as e:
            return _error_response(e, "loading pipeline")

    @app.route('/api/jobs/<int:job_id>/applications')
    @login_required
    @employer_required
    def api_job_applications(job_id):
        try:
            applications = job_applications(job_id, current_user, request.args.get('status'))
            return jsonify({'success': True, 'applications': applications, 'count': len(applications)})
        except Exception as e:
            return _error_response(e, "listing job applications")

    @app.route('/api/jobs/<int:job_id>/interviews')
    @login_required
    @employer_required
    def api_job_interviews(job_id):
        try:
            job = get_job(job_id)
            ensure_job_owner(job, current_user)
            interviews = Interview.query.filter_by(job_id=job.id).order_by(Interview.interview_date).all()
            return jsonify({'success': True, 'interviews': [i.to_dict() for i in interviews]})
        except Exception as e:
            return _error_response(e, "listing job interviews")

    @app.route('/api/jobs/<int:job_id>/hired')
    @login_required
    @employer_required
    def api_job_hired(job_id):
        try:
            ensure_job_owner(get_job(job_id), current_user)
            return jsonify({'success': True, 'hired': hired_candidates(current_user, job_id)})
        except Exception as e:
            return _error_response(e, "listing hired candidates")

    @app.route('/api/jobs/<int:job_id>/onboarding')
    @login_required
    @employer_required
    def api_job_onboarding(job_id):
        try:
            return jsonify({'success': True, 'candidates': onboarding_candidates(job_id, current_user)})
        except Exception as e:
            return _error_response(e, "listing onboarding candidates")

    @app.route('/api/jobs/<int:job_id>/invitations', methods=['POST'])
    @login_required
    @employer_required
    def api_invite_candidate(job_id):
        """API endpoint to invite a candidate to a job"""
        try:
            data = request.get_json(silent=True) or {}
            if not data.get('candidate_id'):
                return jsonify({'success': False, 'error': 'candidate_id is required'}), 400

            application = invite_candidate(job_id, data['candidate_id'], current_user,
                                           message=data.get('message'), interview=data.get('interview'))
            return jsonify({'success': True, 'application': application.to_dict()}), 201
        except Exception as e:
            return _error_response(e, "inviting candidate")

    @app.route('/api/jobs/<int:job_id>/candidates/<int:candidate_id>/can-reinvite')
    @login_required
    @employer_required
    def api_can_reinvite(job_id, candidate_id):
        try:
            ensure_job_owner(get_job(job_id), current_user)
            return jsonify({'success': True, **can_reinvite(job_id, candidate_id)})
        except Exception as e:
            return _error_response(e, "checking invitation")

    @app.route('/api/jobs/<int:job_id>/apply', methods=['POST'])
    @login_required
    @candidate_required
    def api_apply(job_id):
        """API endpoint for a candidate to apply for a job"""
        try:
            application = submit_application(job_id, current_user, request.get_json(silent=True) or {})
            return jsonify({'success': True, 'application': application.to_dict()}), 201
        except Exception as e:
            return _error_response(e, "submitting application")

    # Applications

    @app.route('/api/applications')
    @login_required
    @candidate_required
    def api_my_applications():
        try:
            applications = candidate_applications(current_user)
            return jsonify({'success': True, 'applications': applications, 'count': len(applications)})
        except Exception as e:
            return _error_response(e, "listing applications")

    @app.route('/api/applications/<int:application_id>')
    @login_required
    def api_application_detail(application_id):
        try:
            application = get_application(application_id)
            ensure_party(application, current_user)
            return jsonify({'success': True, 'application': application_view(application)})
        except Exception as e:
            return _error_response(e, "loading application")

    @app.route('/api/applications/<int:application_id>/status', methods=['POST'])
    @login_required
    def api_application_status(application_id):
        """API endpoint to move an application through the hiring pipeline"""
        try:
            data = request.get_json(silent=True) or {}
            event = data.get('event') or data.get('status')
            if not event:
                return jsonify({'success': False, 'error': 'event is required'}), 400

            application = change_application_status(application_id, event, current_user, data.get('notes'))
            return jsonify({'success': True, 'application': application.to_dict()})
        except Exception as e:
            return _error_response(e, "changing application status")

    @app.route('/api/applications/<int:application_id>/withdraw', methods=['POST'])
    @login_required
    @candidate_required
    def api_withdraw_application(application_id):
        try:
            application = change_application_status(application_id, 'withdraw', current_user)
            return jsonify({'success': True, 'application': application.to_dict()})
        except Exception as e:
            return _error_response(e, "withdrawing application")

    @app.route('/api/applications/<int:application_id>/interviews', methods=['POST'])
    @login_required
    @employer_required
    def api_schedule_interview(application_id):
        """API endpoint to schedule an interview for an application"""
        try:
            interview = schedule_interview(application_id, current_user, request.get_json(silent=True) or {})
            return jsonify({'success': True, 'interview': interview.to_dict()}), 201
        except Exception as e:
            return _error_response(e, "scheduling interview")

    @app.route('/api/applications/<int:application_id>/onboarding', methods=['POST'])
    @login_required
    def api_start_onboarding(application_id):
        try:
            application = start_onboarding(application_id, current_user)
            return jsonify({'success': True, 'onboarding': get_onboarding(application.id, current_user)})
        except Exception as e:
            return _error_response(e, "starting onboarding")

    @app.route('/api/applications/<int:application_id>/onboarding', methods=['GET'])
    @login_required
    def api_get_onboarding(application_id):
        try:
            return jsonify({'success': True, 'onboarding': get_onboarding(application_id, current_user)})
        except Exception as e:
            return _error_response(e, "loading onboarding")

    @app.route('/api/applications/<int:application_id>/onboarding/tasks/<key>/complete', methods=['POST'])
    @login_required
    def api_complete_onboarding_task(application_id, key):
        try:
            data = request.get_json(silent=True) or {}
            progress = complete_task(application_id, key, current_user, data.get('document_id'))
            return jsonify({'success': True, 'onboarding': progress})
        except Exception as e:
            return _error_response(e, "completing onboarding task")

    # Invitations and offers

    @app.route('/api/invitations')
    @login_required
    @candidate_required
    def api_invitations():
        try:
            return jsonify({'success': True, 'invitations': candidate_invitations(current_user)})
        except Exception as e:
            return _error_response(e, "listing invitations")

    @app.route('/api/invitations/<int:application_id>/accept', methods=['POST'])
    @login_required
    @candidate_required
    def api_accept_invitation(application_id):
        try:
            application = accept_invitation(application_id, current_user)
            return jsonify({'success': True, 'application': application.to_dict()})
        except Exception as e:
            return _error_response(e, "accepting invitation")

    @app.route('/api/invitations/<int:application_id>/decline', methods=['POST'])
    @login_required
    @candidate_required
    def api_decline_invitation(application_id):
        try:
            data = request.get_json(silent=True) or {}
            application = decline_invitation(application_id, current_user, data.get('reason'))
            return jsonify({'success': True, 'application': application.to_dict()})
        except Exception as e:
            return _error_response(e, "declining invitation")

    @app.route('/api/offers')
    @login_required
    @candidate_required
    def api_offers():
        try:
            return jsonify({'success': True, 'offers': candidate_offers(current_user)})
        except Exception as e:
            return _error_response(e, "listing offers")

    @app.route('/api/offers/<int:application_id>', methods=['POST'])
    @login_required
    @candidate_required
    def api_respond_to_offer(application_id):
        """API endpoint for a candidate to accept, decline or negotiate an offer"""
        try:
            data = request.get_json(silent=True) or {}
            application = update_offer_status(application_id, current_user, data.get('status'))
            return jsonify({'success': True, 'application': application.to_dict()})
        except Exception as e:
            return _error_response(e, "updating offer")

    # Interviews

    @app.route('/api/interviews')
    @login_required
    def api_interviews():
        try:
            interviews = interviews_for_user(current_user, request.args.get('status'),
                                             request.args.get('from'), request.args.get('to'))
            return jsonify({'success': True, 'interviews': [i.to_dict() for i in interviews]})
        except Exception as e:
            return _error_response(e, "listing interviews")

    @app.route('/api/interviews/<int:interview_id>')
    @login_required
    def api_interview_detail(interview_id):
        try:
            interview = get_interview(interview_id)
            ensure_party(interview.application, current_user)
            data = interview.to_dict()
            data['job'] = interview.application.job.to_dict()
            data['calendar'] = calendar_links(interview, interview.application.job.title)
            return jsonify({'success': True, 'interview': data})
        except Exception as e:
            return _error_response(e, "loading interview")

    @app.route('/api/interviews/<int:interview_id>/reschedule', methods=['POST'])
    @login_required
    @employer_required
    def api_reschedule_interview(interview_id):
        try:
            interview = reschedule_interview(interview_id, current_user, request.get_json(silent=True) or {})
            return jsonify({'success': True, 'interview': interview.to_dict()})
        except Exception as e:
            return _error_response(e, "rescheduling interview")

    @app.route('/api/interviews/<int:interview_id>/confirm', methods=['POST'])
    @login_required
    def api_confirm_interview(interview_id):
        try:
            interview = confirm_interview(interview_id, current_user)
            return jsonify({'success': True, 'interview': interview.to_dict()})
        except Exception as e:
            return _error_response(e, "confirming interview")

    @app.route('/api/interviews/<int:interview_id>/request-reschedule', methods=['POST'])
    @login_required
    @candidate_required
    def api_request_reschedule(interview_id):
        try:
            data = request.get_json(silent=True) or {}
            interview = request_reschedule(interview_id, current_user, data.get('reason'))
            return jsonify({'success': True, 'interview': interview.to_dict()})
        except Exception as e:
            return _error_response(e, "requesting reschedule")

    @app.route('/api/interviews/<int:interview_id>/cancel', methods=['POST'])
    @login_required
    def api_cancel_interview(interview_id):
        try:
            data = request.get_json(silent=True) or {}
            interview = cancel_interview(interview_id, current_user, data.get('reason'))
            return jsonify({'success': True, 'interview': interview.to_dict()})
        except Exception as e:
            return _error_response(e, "cancelling interview")

    @app.route('/api/interviews/<int:interview_id>/complete', methods=['POST'])
    @login_required
    @employer_required
    def api_complete_interview(interview_id):
        try:
            data = request.get_json(silent=True) or {}
            interview = complete_interview(interview_id, current_user, data.get('notes'))
            return jsonify({'success': True, 'interview': interview.to_dict()})
        except Exception as e:
            return _error_response(e, "completing interview")

    @app.route('/api/interviews/<int:interview_id>/feedback', methods=['POST'])
    @login_required
    @employer_required
    def api_interview_feedback(interview_id):
        try:
            data = request.get_json(silent=True) or {}
            interview = add_interview_feedback(interview_id, current_user, data.get('feedback'), data.get('rating'))
            return jsonify({'success': True, 'interview': interview.to_dict()})
        except Exception as e:
            return _error_response(e, "saving interview feedback")

    @app.route('/api/interviews/<int:interview_id>/hire', methods=['POST'])
    @login_required
    @employer_required
    def api_hire_from_interview(interview_id):
        """API endpoint to hire the candidate of an interview, optionally with an offer letter"""
        try:
            interview = hire_from_interview(interview_id, current_user, request.files.get('offer_letter'))
            return jsonify({'success': True, 'interview': interview.to_dict(),
                            'application': interview.application.to_dict()})
        except Exception as e:
            return _error_response(e, "hiring candidate")

    @app.route('/api/interviews/<int:interview_id>/reject', methods=['POST'])
    @login_required
    @employer_required
    def api_reject_from_interview(interview_id):
        try:
            interview = reject_from_interview(interview_id, current_user)
            return jsonify({'success': True, 'interview': interview.to_dict(),
                            'application': interview.application.to_dict()})
        except Exception as e:
            return _error_response(e, "rejecting candidate")

    # Candidate profile

    @app.route('/api/profile', methods=['GET'])
    @login_required
    @candidate_required
    def api_get_profile():
        profile = current_user.profile
        return jsonify({'success': True, 'user': current_user.to_dict(),
                        'profile': profile.to_dict() if profile else None})

    @app.route('/api/profile', methods=['PUT'])
    @login_required
    @candidate_required
    def api_update_profile():
        try:
            data = request.get_json(silent=True) or {}
            errors = validate_profile_data(data)
            if errors:
                return jsonify({'success': False, 'error': '; '.join(errors)}), 400

            profile = current_user.profile or JobSeekerProfile(user_id=current_user.id)
            for field in PROFILE_FIELDS:
                if field in data:
                    value = data[field]
                    if field in PROFILE_INT_FIELDS and value is not None:
                        value = int(float(value))
                    setattr(profile, field, value)
            if 'full_name' in data:
                current_user.full_name = data['full_name']
            if 'phone' in data:
                current_user.phone = data['phone']

            db.session.add(profile)
            db.session.commit()
            return jsonify({'success': True, 'profile': profile.to_dict()})
        except Exception as e:
            return _error_response(e, "updating profile")

    @app.route('/api/profile/onboarding/validate', methods=['POST'])
    @login_required
    @candidate_required
    def api_validate_profile_step():
        data = request.get_json(silent=True) or {}
        has_resume = bool(list_documents(current_user.id, 'resume'))
        try:
            step = int(data.get('step'))
        except (TypeError, ValueError):
            return jsonify({'success': False, 'error': 'step must be a number'}), 400

        errors = validate_profile_step(step, data.get('form') or {}, has_resume=has_resume)
        return jsonify({'success': not errors, 'valid': not errors, 'errors': errors})

    @app.route('/api/profile/onboarding', methods=['POST'])
    @login_required
    @candidate_required
    def api_complete_profile_onboarding():
        """API endpoint to finish the candidate profile wizard"""
        try:
            profile = complete_profile_onboarding(current_user, request.get_json(silent=True) or {})
            return jsonify({'success': True, 'profile': profile.to_dict(), 'user': current_user.to_dict()})
        except Exception as e:
            return _error_response(e, "completing profile onboarding")

    @app.route('/api/matches/jobs')
    @login_required
    @candidate_required
    def api_matched_jobs():
        try:
            limit = request.args.get('limit', 12, type=int)
            jobs = recommended_jobs_for(current_user, limit=limit)
            return jsonify({'success': True, 'jobs': jobs, 'count': len(jobs)})
        except Exception as e:
            return _error_response(e, "matching jobs")

    @app.route('/api/candidates/<int:candidate_id>/contact')
    @login_required
    @employer_required
    def api_candidate_contact(candidate_id):
        try:
            return jsonify({'success': True, 'contact': candidate_contact(candidate_id, current_user)})
        except Exception as e:
            return _error_response(e, "loading candidate contact")

    @app.route('/api/candidates/<int:candidate_id>/documents')
    @login_required
    @employer_required
    def api_candidate_documents(candidate_id):
        try:
            if not can_view_documents(current_user, candidate_id):
                raise PermissionDenied("You do not have access to this candidate's documents")
            documents = list_documents(candidate_id, request.args.get('type'))
            return jsonify({'success': True, 'documents': [d.to_dict() for d in documents]})
        except Exception as e:
            return _error_response(e, "listing candidate documents")

    # Documents

    @app.route('/api/documents', methods=['POST'])
    @login_required
    def api_upload_document():
        """API endpoint to upload a document for the current user"""
        try:
            parse = request.form.get('parse', 'false').lower() == 'true'
            document = upload_document(current_user, request.files.get('file'),
                                       request.form.get('document_type'), parse_resume=parse)
            return jsonify({'success': True, 'document': document.to_dict()}), 201
        except Exception as e:
            return _error_response(e, "uploading document")

    @app.route('/api/documents', methods=['GET'])
    @login_required
    def api_list_documents():
        documents = list_documents(current_user.id, request.args.get('type'))
        return jsonify({'success': True, 'documents': [d.to_dict() for d in documents]})

    @app.route('/api/documents/<int:document_id>/download')
    @login_required
    def api_download_document(document_id):
        try:
            document = get_document(document_id, current_user)
            return send_file(document.file_path, mimetype=document.mime_type,
                             as_attachment=True, download_name=document.file_name)
        except Exception as e:
            return _error_response(e, "downloading document")

    @app.route('/api/documents/<int:document_id>', methods=['DELETE'])
    @login_required
    def api_delete_document(document_id):
        try:
            delete_document(document_id, current_user)
            return jsonify({'success': True})
        except Exception as e:
            return _error_response(e, "deleting document")

    # Messages

    @app.route('/api/messages')
    @login_required
    def api_messages():
        try:
            query = Message.query.filter(db.or_(Message.sender_id == current_user.id,
                                                Message.recipient_id == current_user.id))
            application_id = request.args.get('application_id', type=int)
            if application_id:
                query = query.filter(Message.application_id == application_id)
            messages = query.order_by(Message.created_at).all()

            now = utcnow()
            for message in messages:
                if message.recipient_id == current_user.id and message.read_at is None:
                    message.read_at = now
            db.session.commit()

            return jsonify({'success': True, 'messages': [m.to_dict() for m in messages]})
        except Exception as e:
            return _error_response(e, "listing messages")

    @app.route('/api/messages', methods=['POST'])
    @login_required
    def api_send_message():
        """API endpoint to message the other side of an application"""
        try:
            data = request.get_json(silent=True) or {}
            body = sanitize_html(data.get('body') or '')
            if not body or not data.get('application_id'):
                return jsonify({'success': False, 'error': 'application_id and body are required'}), 400

            application = get_application(data['application_id'])
            ensure_party(application, current_user)
            if current_user.id == application.applicant_id:
                recipient_id = application.job.created_by
            else:
                recipient_id = application.applicant_id

            message = Message(sender_id=current_user.id, recipient_id=recipient_id,
                              application_id=application.id, body=body)
            db.session.add(message)
            db.session.commit()
            return jsonify({'success': True, 'message': message.to_dict()}), 201
        except Exception as e:
            return _error_response(e, "sending message")

    # Stats

    @app.route('/api/stats')
    @login_required
    def api_stats():
        """API endpoint to get hiring statistics for the current user"""
        try:
            if current_user.is_candidate:
                applications = JobApplication.query.filter_by(applicant_id=current_user.id)
                stats = {
                    'applications': applications.filter(JobApplication.status != ApplicationStatus.INVITED).count(),
                    'pending_invitations': applications.filter_by(status=ApplicationStatus.INVITED).count(),
                    'interviews': Interview.query.filter_by(seeker_id=current_user.id).count(),
                    'offers': applications.filter(JobApplication.status.in_(
                        [ApplicationStatus.OFFERED, ApplicationStatus.NEGOTIATING])).count(),
                }
            else:
                jobs = Job.query
                applications = JobApplication.query.join(Job, JobApplication.job_id == Job.id)
                if current_user.role != UserRole.ADMIN:
                    jobs = jobs.filter(Job.created_by == current_user.id)
                    applications = applications.filter(Job.created_by == current_user.id)
                stats = {
                    'active_jobs': jobs.filter(Job.status == JobStatus.ACTIVE).count(),
                    'total_applications': applications.count(),
                    'high_matches': applications.filter(JobApplication.ai_match_score >= 80).count(),
                    'interviewing': applications.filter(
                        JobApplication.status == ApplicationStatus.INTERVIEWING).count(),
                    'hired': applications.filter(JobApplication.status == ApplicationStatus.HIRED).count(),
                }

            return jsonify({'success': True, 'stats': stats})
        except Exception as e:
            return _error_response(e, "loading stats")

    @app.route('/api/test', methods=['GET'])
    def api_test():
        """Simple test endpoint to verify API is working"""
        return jsonify({
            'success': True,
            'message': 'API is working correctly',
            'timestamp': datetime.now().isoformat()
        })
