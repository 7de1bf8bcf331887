"""
Exception hierarchy shared by the stores, the validator, the routes and the client.
"""


class MonevError(Exception):
    """Base class for every application error."""


class ValidationError(MonevError):
    """Schema or roster payload rejected before anything is written."""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class PersistenceError(MonevError):
    """A write failed and its transaction was rolled back."""


class AnswerCodecError(MonevError, ValueError):
    """A raw answer cannot be stored under the given question type."""


class FormError(MonevError):
    """A problem with a submitted evaluation form."""


class IncompleteIdentity(FormError):
    def __init__(self, field, message):
        self.field = field
        super().__init__(message)


class IncompleteAnswers(FormError):
    def __init__(self, answered, required):
        self.answered = answered
        self.required = required
        super().__init__(
            f"Please answer every question ({answered}/{required} answered)."
        )


class InvalidAnswer(FormError):
    def __init__(self, question_id, message):
        self.question_id = question_id
        super().__init__(message)


class DuplicateSubmission(FormError):
    def __init__(self, message="You have already submitted this questionnaire."):
        super().__init__(message)


class TransportError(MonevError):
    """Network failure or a response body that is not JSON."""


class ApiError(MonevError):
    """The server answered with JSON describing an application error."""

    def __init__(self, message, status_code=None):
        self.status_code = status_code
        super().__init__(message)
