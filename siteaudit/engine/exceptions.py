# siteaudit/engine/exceptions.py


class InspectionError(Exception):
    """Base class for errors surfaced to the caller with a user-facing message."""
    error_code = "INSPECTION_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InspectionError):
    error_code = "VALIDATION_ERROR"


class NotFoundError(InspectionError):
    error_code = "NOT_FOUND"


class EvaluationLockedError(InspectionError):
    error_code = "EVALUATION_LOCKED"


class PersistenceError(InspectionError):
    error_code = "PERSISTENCE_ERROR"


class ReportCompilationError(InspectionError):
    error_code = "REPORT_COMPILATION_FAILED"


class ImageResolutionError(Exception):
    """Raised by image resolvers; always captured per image by the compiler."""
