from typing import Optional


class HiringError(Exception):
    """Base class for hiring flow errors, carries the HTTP status to answer with"""
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(HiringError):
    status_code = 400


class UnknownEvent(HiringError):
    status_code = 400


class PermissionDenied(HiringError):
    status_code = 403


class NotFound(HiringError):
    status_code = 404


class InvalidTransition(HiringError):
    status_code = 409


class DuplicateApplication(HiringError):
    status_code = 409

    def __init__(self, message: str = "You have already applied for this job"):
        super().__init__(message)


class AlreadyInvited(HiringError):
    status_code = 409


class SubmissionInProgress(HiringError):
    status_code = 409

    def __init__(self, message: str = "Application submission already in progress"):
        super().__init__(message)


class JobNotOpen(HiringError):
    status_code = 409

    def __init__(self, message: str = "This job is no longer accepting applications"):
        super().__init__(message)
