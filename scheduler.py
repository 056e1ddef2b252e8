import time
import threading
import logging
import schedule
from datetime import timedelta
from database import db
from hiring import expire_stale_applications
from models import ApplicationStatus, Interview, InterviewStatus, Job, JobApplication, JobStatus, User, utcnow
from notifications import notify_interview_reminder, send_daily_report
from utils import log_processing_time

logger = logging.getLogger(__name__)

REMINDER_WINDOW_HOURS = 24


@log_processing_time
def generate_daily_report(app):
    """Collect the last day's hiring activity and e-mail it to REPORT_RECIPIENTS"""
    with app.app_context():
        since = utcnow() - timedelta(days=1)

        new_applications = JobApplication.query.filter(
            JobApplication.application_date >= since,
            JobApplication.invited_by.is_(None),
        ).count()

        high_matches = JobApplication.query.filter(
            JobApplication.application_date >= since,
            JobApplication.ai_match_score >= 80
        ).count()

        interviews_scheduled = Interview.query.filter(Interview.created_at >= since).count()

        hires = JobApplication.query.filter(
            JobApplication.status == ApplicationStatus.HIRED,
            JobApplication.updated_at >= since
        ).count()

        open_jobs = Job.query.filter_by(status=JobStatus.ACTIVE).count()

        top_matches = db.session.query(JobApplication, User, Job)\
            .join(User, JobApplication.applicant_id == User.id)\
            .join(Job, JobApplication.job_id == Job.id)\
            .filter(JobApplication.application_date >= since)\
            .filter(JobApplication.ai_match_score >= 70)\
            .order_by(JobApplication.ai_match_score.desc())\
            .limit(10).all()

        report = {
            'date': utcnow().strftime('%Y-%m-%d'),
            'new_applications': new_applications,
            'high_matches': high_matches,
            'interviews_scheduled': interviews_scheduled,
            'hires': hires,
            'open_jobs': open_jobs,
            'top_matches': [
                {
                    'candidate': user.full_name or user.email,
                    'job': job.title,
                    'score': application.ai_match_score,
                }
                for application, user, job in top_matches
            ]
        }

        logger.info(f"Generated daily report: {new_applications} new applications, {high_matches} high matches")

        if app.config.get('REPORT_RECIPIENTS'):
            send_daily_report(report)

        return report


@log_processing_time
def send_interview_reminders(app):
    """Remind both sides of interviews starting within the next day"""
    with app.app_context():
        now = utcnow()
        upcoming = Interview.query.filter(
            Interview.status.in_([InterviewStatus.SCHEDULED, InterviewStatus.RESCHEDULED]),
            Interview.reminder_sent.is_(False),
            Interview.interview_date >= now,
            Interview.interview_date <= now + timedelta(hours=REMINDER_WINDOW_HOURS),
        ).all()

        sent = 0
        for interview in upcoming:
            if notify_interview_reminder(interview):
                sent += 1
            interview.reminder_sent = True

        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Interview reminders: {len(upcoming)} due, {sent} delivered")
        return len(upcoming)


@log_processing_time
def expire_stale(app):
    with app.app_context():
        return expire_stale_applications()


def _safe(job, app):
    try:
        return job(app)
    except Exception as e:
        logger.error(f"Scheduled job {job.__name__} failed: {e}")
        return None


def schedule_tasks(app):
    """Schedule all background tasks"""
    # Daily report at 8 AM
    schedule.every().day.at("08:00").do(_safe, generate_daily_report, app)

    # Interview reminders every hour
    schedule.every().hour.do(_safe, send_interview_reminders, app)

    # Expire unanswered invitations and offers nightly
    schedule.every().day.at("02:00").do(_safe, expire_stale, app)

    logger.info("Scheduled tasks configured")


def run_scheduler():
    """Run the scheduler loop"""
    logger.info("Starting scheduler...")

    while True:
        try:
            schedule.run_pending()
            time.sleep(60)  # Check every minute
        except Exception as e:
            logger.error(f"Scheduler error: {e}")
            time.sleep(300)  # Wait 5 minutes before retrying


def start_background_services(app):
    """Schedule the recurring jobs and run them in a daemon thread"""
    logger.info("Starting background services...")
    schedule_tasks(app)

    scheduler_thread = threading.Thread(target=run_scheduler, daemon=True)
    scheduler_thread.start()
    logger.info("Background services started")
    return scheduler_thread
