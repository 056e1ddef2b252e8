import os
from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from database import db
from documents import can_view_documents, delete_document, get_document, list_documents, upload_document
from errors import NotFound, PermissionDenied, ValidationError
from models import Document

RESUME = b"""Ana Silva
ana.silva@example.com
Backend engineer with 6 years of experience in Python and Django.
Skills: PostgreSQL, Docker
"""


def _file(name, content=b'hello', content_type='text/plain'):
    return FileStorage(stream=BytesIO(content), filename=name, content_type=content_type)


def test_upload_document(ctx, make_user):
    user = make_user('candidate')
    document = upload_document(user, _file('My CV (final).txt'), 'resume')

    assert document.id is not None
    assert document.file_name == 'My_CV_final.txt'
    assert document.file_size == 5
    assert document.mime_type == 'text/plain'
    assert os.path.exists(document.file_path)
    assert os.path.dirname(document.file_path).endswith(str(user.id))


def test_upload_validation(ctx, make_user):
    user = make_user('candidate')

    with pytest.raises(ValidationError) as exc:
        upload_document(user, _file('cv.txt'), '')
    assert exc.value.message == 'Document type is required'

    with pytest.raises(ValidationError) as exc:
        upload_document(user, None, 'resume')
    assert exc.value.message == 'No file selected'

    with pytest.raises(ValidationError) as exc:
        upload_document(user, _file('script.exe'), 'resume')
    assert exc.value.message.startswith('File type not allowed')

    assert Document.query.count() == 0


def test_list_documents(ctx, make_user):
    user = make_user('candidate')
    upload_document(user, _file('cv.txt'), 'resume')
    upload_document(user, _file('passport.png', content_type='image/png'), 'passport')
    upload_document(make_user('candidate'), _file('other.txt'), 'resume')

    assert len(list_documents(user.id)) == 2
    passports = list_documents(user.id, 'passport')
    assert [d.file_name for d in passports] == ['passport.png']


def test_employers_see_documents_of_their_applicants(ctx, make_user, make_job, make_application):
    candidate = make_user('candidate')
    employer = make_user('employer')
    stranger = make_user('employer')
    document = upload_document(candidate, _file('cv.txt'), 'resume')

    assert can_view_documents(candidate, candidate.id) is True
    assert can_view_documents(employer, candidate.id) is False
    with pytest.raises(PermissionDenied):
        get_document(document.id, employer)

    make_application(make_job(employer), candidate)
    assert get_document(document.id, employer).id == document.id
    with pytest.raises(PermissionDenied):
        get_document(document.id, stranger)

    # candidates never see each other's files
    with pytest.raises(PermissionDenied):
        get_document(document.id, make_user('candidate'))

    with pytest.raises(NotFound):
        get_document(9999, candidate)


def test_delete_document(ctx, make_user, make_job, make_application):
    candidate = make_user('candidate')
    employer = make_user('employer')
    make_application(make_job(employer), candidate)
    document = upload_document(candidate, _file('cv.txt'), 'resume')
    path = document.file_path
    document_id = document.id

    # employers may read but not delete
    with pytest.raises(PermissionDenied):
        delete_document(document_id, employer)

    delete_document(document_id, candidate)
    assert db.session.get(Document, document_id) is None
    assert not os.path.exists(path)

    with pytest.raises(NotFound):
        delete_document(document_id, candidate)


def test_admin_can_delete_any_document(ctx, make_user):
    candidate = make_user('candidate')
    document = upload_document(candidate, _file('cv.txt'), 'resume')
    delete_document(document.id, make_user('admin'))
    assert Document.query.count() == 0


def test_resume_upload_fills_profile(ctx, make_user):
    user = make_user('candidate')
    document = upload_document(user, _file('cv.txt', RESUME), 'resume', parse_resume=True)

    assert user.profile is not None
    assert 'Python' in user.profile.skills
    assert 'Docker' in user.profile.skills
    assert user.profile.experience_years == 6
    assert document.meta['parsed'] is True


def test_unreadable_resume_still_uploads(ctx, make_user):
    user = make_user('candidate')
    document = upload_document(user, _file('cv.pdf', b'not really a pdf', 'application/pdf'), 'resume',
                               parse_resume=True)

    assert db.session.get(Document, document.id) is not None
