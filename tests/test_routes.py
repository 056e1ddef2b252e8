from datetime import timedelta
from io import BytesIO

import pytest

from database import db
from models import JobApplication, utcnow

INTERVIEW_DAY = (utcnow() + timedelta(days=10)).strftime('%Y-%m-%d')

JOB = {
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


def register(app, role='candidate', email=None, **fields):
    """New client logged in as a freshly registered user"""
    client = app.test_client()
    payload = {
        'email': email or f"{role}@example.com",
        'password': 'secret123',
        'full_name': f"{role.title()} User",
        'role': role,
    }
    payload.update(fields)
    response = client.post('/api/auth/register', json=payload)
    assert response.status_code == 201, response.get_json()
    return client, response.get_json()['user']


@pytest.fixture
def employer(app):
    return register(app, 'employer', company_name='Acme GmbH')


@pytest.fixture
def candidate(app):
    return register(app, 'candidate', phone='+49 30 1234 5678')


@pytest.fixture
def job(employer):
    client, _ = employer
    response = client.post('/api/jobs', json=JOB)
    assert response.status_code == 201
    return response.get_json()['job']


def test_api_test_endpoint(app):
    response = app.test_client().get('/api/test')
    assert response.status_code == 200
    assert response.get_json()['message'] == 'API is working correctly'


def test_register_validation_and_duplicates(app, candidate):
    client = app.test_client()

    response = client.post('/api/auth/register', json={'email': 'nope', 'password': '123'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid email format; Password must be at least 6 characters'

    response = client.post('/api/auth/register', json={'email': 'Candidate@Example.com', 'password': 'secret123'})
    assert response.status_code == 409

    response = client.post('/api/auth/register', json={'email': 'x@example.com', 'password': 'secret123',
                                                       'role': 'admin'})
    assert response.status_code == 400


def test_login_logout(app, candidate):
    client = app.test_client()
    assert client.get('/api/auth/me').status_code == 401

    response = client.post('/api/auth/login', json={'email': 'candidate@example.com', 'password': 'wrong'})
    assert response.status_code == 401
    assert response.get_json()['error'] == 'Invalid email or password'

    response = client.post('/api/auth/login', json={'email': 'candidate@example.com', 'password': 'secret123'})
    assert response.status_code == 200
    assert client.get('/api/auth/me').get_json()['user']['role'] == 'candidate'

    client.post('/api/auth/logout')
    response = client.get('/api/auth/me')
    assert response.status_code == 401
    assert response.get_json() == {'success': False, 'error': 'Authentication required'}


def test_employer_posts_and_manages_jobs(app, employer, candidate, job):
    client, _ = employer
    candidate_client, _ = candidate

    assert job['title'] == 'Backend Developer'
    assert job['status'] == 'active'

    response = candidate_client.post('/api/jobs', json=JOB)
    assert response.status_code == 403

    response = client.post('/api/jobs', json={'title': 'No description'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Job description is required'

    response = client.put(f"/api/jobs/{job['id']}", json={'salary_min': 90000})
    assert response.status_code == 400

    response = client.put(f"/api/jobs/{job['id']}", json={'title': 'Senior Backend Developer'})
    assert response.get_json()['job']['title'] == 'Senior Backend Developer'

    other, _ = register(app, 'employer', email='other@example.com')
    assert other.put(f"/api/jobs/{job['id']}", json={'title': 'Mine now'}).status_code == 403

    mine = client.get('/api/jobs/mine').get_json()
    assert mine['count'] == 1
    assert mine['jobs'][0]['applications_count'] == 0

    assert client.post(f"/api/jobs/{job['id']}/toggle").get_json()['status'] == 'paused'
    assert app.test_client().get('/api/jobs').get_json()['count'] == 0
    assert client.post(f"/api/jobs/{job['id']}/toggle").get_json()['status'] == 'active'

    response = client.delete(f"/api/jobs/{job['id']}")
    assert response.get_json() == {'success': True, 'deleted': True}
    assert client.get(f"/api/jobs/{job['id']}").status_code == 404


def test_public_job_search(app, job):
    client = app.test_client()
    response = client.get('/api/jobs', query_string={'search': 'backend', 'location': 'berlin'})
    assert response.get_json()['count'] == 1

    response = client.get('/api/jobs', query_string={'search': 'designer'})
    assert response.get_json()['count'] == 0

    detail = client.get(f"/api/jobs/{job['id']}").get_json()['job']
    assert detail['title'] == 'Backend Developer'
    assert 'application' not in detail


def test_apply_and_hire_flow(app, employer, candidate, job):
    client, _ = employer
    candidate_client, candidate_user = candidate
    job_id = job['id']

    response = candidate_client.post(f"/api/jobs/{job_id}/apply", json={'cover_note': 'Hello'})
    assert response.status_code == 201
    application = response.get_json()['application']
    assert application['status'] == 'applied'

    response = candidate_client.post(f"/api/jobs/{job_id}/apply", json={})
    assert response.status_code == 409
    assert response.get_json()['error'] == 'You have already applied for this job'

    assert client.post(f"/api/jobs/{job_id}/apply", json={}).status_code == 403

    detail = candidate_client.get(f"/api/jobs/{job_id}").get_json()['job']
    assert detail['application']['id'] == application['id']

    # contact details stay hidden until an interview is on the calendar
    contact = client.get(f"/api/candidates/{candidate_user['id']}/contact").get_json()['contact']
    assert contact['is_masked'] is True
    assert contact['phone'] != '+49 30 1234 5678'

    response = client.post(f"/api/applications/{application['id']}/interviews", json={
        'date': INTERVIEW_DAY, 'time': '10:00', 'type': 'technical', 'format': 'video',
        'duration': 45, 'agenda': 'System design',
    })
    assert response.status_code == 201
    interview = response.get_json()['interview']
    assert interview['status'] == 'scheduled'

    contact = client.get(f"/api/candidates/{candidate_user['id']}/contact").get_json()['contact']
    assert contact['is_masked'] is False
    assert contact['phone'] == '+49 30 1234 5678'

    listed = candidate_client.get('/api/interviews').get_json()['interviews']
    assert [i['id'] for i in listed] == [interview['id']]

    detail = candidate_client.get(f"/api/interviews/{interview['id']}").get_json()['interview']
    assert detail['job']['id'] == job_id
    assert detail['calendar']['google'].startswith('https://calendar.google.com/')

    pipeline = client.get(f"/api/jobs/{job_id}/pipeline").get_json()['pipeline']
    assert pipeline['by_status']['interviewing'] == 1
    assert pipeline['upcoming_interviews'] == 1

    response = client.post(f"/api/interviews/{interview['id']}/hire")
    assert response.status_code == 200
    assert response.get_json()['application']['status'] == 'hired'

    onboarding = candidate_client.get(f"/api/applications/{application['id']}/onboarding").get_json()['onboarding']
    assert onboarding['started'] is True
    assert onboarding['percent'] == 9

    hired = client.get(f"/api/jobs/{job_id}/hired").get_json()['hired']
    assert len(hired) == 1

    # hired is final
    response = client.post(f"/api/applications/{application['id']}/status", json={'status': 'rejected'})
    assert response.status_code == 409

    # jobs with hiring history are closed instead of deleted
    response = client.delete(f"/api/jobs/{job_id}")
    assert response.get_json()['closed'] is True
    assert response.get_json()['job']['status'] == 'closed'


def test_status_changes_check_the_actor(app, employer, candidate, job):
    client, _ = employer
    candidate_client, _ = candidate
    application_id = candidate_client.post(f"/api/jobs/{job['id']}/apply", json={}).get_json()['application']['id']

    response = candidate_client.post(f"/api/applications/{application_id}/status", json={'status': 'shortlisted'})
    assert response.status_code == 403

    response = client.post(f"/api/applications/{application_id}/status", json={})
    assert response.status_code == 400

    response = client.post(f"/api/applications/{application_id}/status", json={'event': 'shortlist'})
    assert response.get_json()['application']['status'] == 'shortlisted'

    response = candidate_client.post(f"/api/applications/{application_id}/withdraw")
    assert response.get_json()['application']['status'] == 'withdrawn'

    applications = candidate_client.get('/api/applications').get_json()
    assert applications['count'] == 1


def test_invitation_flow(app, employer, candidate, job):
    client, _ = employer
    candidate_client, candidate_user = candidate

    response = client.post(f"/api/jobs/{job['id']}/invitations", json={})
    assert response.status_code == 400

    response = client.post(f"/api/jobs/{job['id']}/invitations",
                           json={'candidate_id': candidate_user['id'], 'message': 'Join us'})
    assert response.status_code == 201
    application_id = response.get_json()['application']['id']

    response = client.post(f"/api/jobs/{job['id']}/invitations", json={'candidate_id': candidate_user['id']})
    assert response.status_code == 409

    check = client.get(f"/api/jobs/{job['id']}/candidates/{candidate_user['id']}/can-reinvite").get_json()
    assert check['can_reinvite'] is False

    invitations = candidate_client.get('/api/invitations').get_json()['invitations']
    assert len(invitations) == 1

    response = candidate_client.post(f"/api/invitations/{application_id}/decline", json={'reason': 'Relocating'})
    assert response.get_json()['application']['status'] == 'declined'

    check = client.get(f"/api/jobs/{job['id']}/candidates/{candidate_user['id']}/can-reinvite").get_json()
    assert check['can_reinvite'] is True


def test_offer_flow(app, employer, candidate, job):
    client, _ = employer
    candidate_client, _ = candidate
    application_id = candidate_client.post(f"/api/jobs/{job['id']}/apply", json={}).get_json()['application']['id']

    assert client.post(f"/api/applications/{application_id}/status", json={'event': 'offer'}).status_code == 409
    client.post(f"/api/applications/{application_id}/status", json={'event': 'review'})
    response = client.post(f"/api/applications/{application_id}/status", json={'event': 'offer'})
    assert response.get_json()['application']['status'] == 'offered'

    offers = candidate_client.get('/api/offers').get_json()['offers']
    assert len(offers) == 1

    response = candidate_client.post(f"/api/offers/{application_id}", json={'status': 'maybe'})
    assert response.status_code == 400

    response = candidate_client.post(f"/api/offers/{application_id}", json={'status': 'accepted'})
    assert response.get_json()['application']['status'] == 'hired'


def test_documents_over_http(app, employer, candidate, job):
    client, _ = employer
    candidate_client, candidate_user = candidate

    response = candidate_client.post('/api/documents', data={
        'document_type': 'resume',
        'file': (BytesIO(b'Python and SQL engineer'), 'cv.txt'),
    }, content_type='multipart/form-data')
    assert response.status_code == 201
    document = response.get_json()['document']

    response = candidate_client.post('/api/documents', data={
        'document_type': 'resume',
        'file': (BytesIO(b'MZ'), 'virus.exe'),
    }, content_type='multipart/form-data')
    assert response.status_code == 400

    listed = candidate_client.get('/api/documents').get_json()['documents']
    assert [d['id'] for d in listed] == [document['id']]

    response = candidate_client.get(f"/api/documents/{document['id']}/download")
    assert response.status_code == 200
    assert response.data == b'Python and SQL engineer'

    # employers only see documents of their own applicants
    assert client.get(f"/api/documents/{document['id']}/download").status_code == 403
    assert client.get(f"/api/candidates/{candidate_user['id']}/documents").status_code == 403
    candidate_client.post(f"/api/jobs/{job['id']}/apply", json={'resume_id': document['id']})
    documents = client.get(f"/api/candidates/{candidate_user['id']}/documents").get_json()['documents']
    assert len(documents) == 1

    assert client.delete(f"/api/documents/{document['id']}").status_code == 403
    assert candidate_client.delete(f"/api/documents/{document['id']}").status_code == 200


def test_messages(app, employer, candidate, job):
    client, employer_user = employer
    candidate_client, candidate_user = candidate
    application_id = candidate_client.post(f"/api/jobs/{job['id']}/apply", json={}).get_json()['application']['id']

    response = candidate_client.post('/api/messages', json={'application_id': application_id,
                                                            'body': '<b>Hello</b>   there'})
    assert response.status_code == 201
    message = response.get_json()['message']
    assert message['body'] == 'Hello there'
    assert message['recipient_id'] == employer_user['id']

    assert candidate_client.post('/api/messages', json={'application_id': application_id}).status_code == 400

    outsider, _ = register(app, 'candidate', email='outsider@example.com')
    response = outsider.post('/api/messages', json={'application_id': application_id, 'body': 'Hi'})
    assert response.status_code == 403

    inbox = client.get('/api/messages', query_string={'application_id': application_id}).get_json()['messages']
    assert len(inbox) == 1
    assert inbox[0]['read_at'] is not None

    with app.app_context():
        assert db.session.get(JobApplication, application_id) is not None


def test_stats(app, employer, candidate, job):
    client, _ = employer
    candidate_client, _ = candidate
    candidate_client.post(f"/api/jobs/{job['id']}/apply", json={})

    candidate_stats = candidate_client.get('/api/stats').get_json()['stats']
    assert candidate_stats['applications'] == 1
    assert candidate_stats['pending_invitations'] == 0

    employer_stats = client.get('/api/stats').get_json()['stats']
    assert employer_stats['active_jobs'] == 1
    assert employer_stats['total_applications'] == 1
    assert employer_stats['hired'] == 0


def test_profile_endpoints(app, candidate):
    client, _ = candidate

    assert client.get('/api/profile').get_json()['profile'] is None

    response = client.put('/api/profile', json={'headline': 'Data Engineer', 'skills': ['Python'],
                                                'full_name': 'Ana Silva'})
    assert response.get_json()['profile']['headline'] == 'Data Engineer'
    assert client.get('/api/auth/me').get_json()['user']['full_name'] == 'Ana Silva'

    response = client.put('/api/profile', json={'experience_years': 'lots', 'skills': 'Python'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Experience years must be a whole number; skills must be a list'
    assert client.get('/api/profile').get_json()['profile']['skills'] == ['Python']

    response = client.put('/api/profile', json={'experience_years': '6'})
    assert response.get_json()['profile']['experience_years'] == 6

    response = client.post('/api/profile/onboarding/validate', json={'step': 3, 'form': {}})
    assert response.get_json() == {'success': False, 'valid': False, 'errors': ['A resume is required']}

    response = client.post('/api/profile/onboarding/validate', json={'step': 'one'})
    assert response.status_code == 400

    response = client.post('/api/profile/onboarding', json={'first_name': 'Ana'})
    assert response.status_code == 400
