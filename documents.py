import os
import logging
from typing import List, Optional

from flask import current_app

from access import employer_can_see_candidate, is_admin
from database import db
from errors import NotFound, PermissionDenied, ValidationError
from models import Document, JobApplication, JobSeekerProfile, OnboardingTask, utcnow
from onboarding import complete_tasks_for_document
from resume_parser import apply_resume_to_profile, parse_resume_file
from utils import allowed_file, clean_filename, ALLOWED_EXTENSIONS

logger = logging.getLogger(__name__)


def user_folder(user_id) -> str:
    folder = os.path.join(current_app.config['UPLOAD_FOLDER'], str(user_id))
    os.makedirs(folder, exist_ok=True)
    return folder


def store_file(user_id, file_storage, document_type: str, meta: Optional[dict] = None) -> Document:
    """Write an uploaded file under the user's folder and add its Document row. The caller commits."""
    if file_storage is None or not file_storage.filename:
        raise ValidationError("No file selected")
    if not allowed_file(file_storage.filename):
        raise ValidationError(f"File type not allowed. Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}")

    filename = clean_filename(file_storage.filename)
    stored_name = f"{utcnow().strftime('%Y%m%d_%H%M%S_%f')}_{filename}"
    filepath = os.path.join(user_folder(user_id), stored_name)
    file_storage.save(filepath)

    document = Document(
        user_id=user_id,
        document_type=document_type,
        file_name=filename,
        file_path=filepath,
        file_size=os.path.getsize(filepath),
        mime_type=file_storage.mimetype,
        meta=meta or {},
    )
    db.session.add(document)
    return document


def upload_document(user, file_storage, document_type: str, parse_resume: bool = False) -> Document:
    if not document_type:
        raise ValidationError("Document type is required")

    try:
        document = store_file(user.id, file_storage, document_type)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Document {document.id} ({document_type}) uploaded by user {user.id}")
    complete_tasks_for_document(document)

    if parse_resume and document_type == 'resume':
        parse_into_profile(user, document)

    return document


def parse_into_profile(user, document: Document) -> Optional[dict]:
    """Parse a resume into the user's profile. Parsing problems never fail the upload."""
    try:
        parsed = parse_resume_file(document.file_path)
        profile = user.profile or JobSeekerProfile(user_id=user.id)
        apply_resume_to_profile(profile, parsed)
        db.session.add(profile)
        document.meta = dict(document.meta or {}, parsed=True, skills=parsed.get('skills', []))
        db.session.commit()
        return parsed
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error parsing resume {document.id}: {e}")
        return None


def list_documents(user_id, document_type: Optional[str] = None) -> List[Document]:
    query = Document.query.filter_by(user_id=user_id)
    if document_type:
        query = query.filter_by(document_type=document_type)
    return query.order_by(Document.uploaded_at.desc()).all()


def can_view_documents(actor, owner_id) -> bool:
    if actor.id == owner_id:
        return True
    return actor.is_employer and employer_can_see_candidate(actor, owner_id)


def get_document(document_id, actor) -> Document:
    document = db.session.get(Document, document_id)
    if document is None:
        raise NotFound("Document not found")
    if not can_view_documents(actor, document.user_id):
        raise PermissionDenied("You do not have access to this document")
    return document


def delete_document(document_id, actor) -> None:
    document = db.session.get(Document, document_id)
    if document is None:
        raise NotFound("Document not found")
    if document.user_id != actor.id and not is_admin(actor):
        raise PermissionDenied("You can only delete your own documents")

    path = document.file_path
    try:
        OnboardingTask.query.filter_by(document_id=document.id).update({'document_id': None})
        JobApplication.query.filter_by(resume_id=document.id).update({'resume_id': None})
        JobApplication.query.filter_by(cover_letter_id=document.id).update({'cover_letter_id': None})
        db.session.delete(document)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Could not remove file {path}: {e}")

    logger.info(f"Document {document_id} deleted by user {actor.id}")
