"""
Error taxonomy for the quiz pipeline.
Every failure carries the stage it came from so API responses say which step failed and why.
Per-material ExtractionError is collected as a warning; everything else aborts the request.
"""


class QuizPipelineError(Exception):
    """Base class: message, stage, HTTP status, and any per-material warnings collected so far."""

    status_code = 500
    error = "Internal error"
    stage = "request"

    def __init__(self, message: str, *, stage: str | None = None, warnings: list[str] | None = None):
        super().__init__(message)
        self.message = message
        if stage:
            self.stage = stage
        self.warnings = list(warnings or [])

    def to_detail(self) -> dict:
        detail = {"error": self.error, "message": self.message, "stage": self.stage}
        if self.warnings:
            detail["warnings"] = self.warnings
        return detail


class ConfigurationError(QuizPipelineError):
    """Generation credential missing. Raised before any network attempt."""

    status_code = 500
    error = "Configuration error"
    stage = "configuration"


class ValidationError(QuizPipelineError):
    """Malformed caller input (empty material list, missing course id, bad answers array)."""

    status_code = 400
    error = "Validation error"


class ResponseValidationError(ValidationError):
    """Generation output parsed as JSON but does not satisfy the quiz schema."""

    status_code = 502
    error = "Quiz generation failed"
    stage = "parse"

    def __init__(self, message: str, *, question_index: int | None = None, field: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.question_index = question_index  # 1-based
        self.field = field


class NotFoundError(QuizPipelineError):
    status_code = 404
    error = "Not found"


class ExtractionError(QuizPipelineError):
    """Per-material extraction failure; non-fatal to a batch."""

    status_code = 422
    error = "Extraction failed"
    stage = "extraction"


class UnsupportedFormatError(ExtractionError):
    pass


class EmptyContentError(ExtractionError):
    pass


class NoUsableContentError(QuizPipelineError):
    """Every material in the batch failed; warnings explain each one."""

    status_code = 400
    error = "No text content available"
    stage = "extraction"


class GenerationServiceError(QuizPipelineError):
    """Non-success response (or transport failure) from the generation service."""

    status_code = 502
    error = "Quiz generation failed"
    stage = "generation"

    def __init__(self, message: str, *, status: int | None = None, service_message: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.service_status = status
        self.service_message = service_message


class EmptyResponseError(QuizPipelineError):
    status_code = 502
    error = "Quiz generation failed"
    stage = "generation"


class MalformedResponseError(QuizPipelineError):
    """Generation output could not be parsed as a JSON array."""

    status_code = 502
    error = "Quiz generation failed"
    stage = "parse"


class PersistenceError(QuizPipelineError):
    status_code = 500
    error = "Failed to save"
    stage = "persistence"
