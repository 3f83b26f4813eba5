"""Error taxonomy for the score protocol.

Every error is request-local: the API turns it into a JSON body of the form
``{"error": {"code": ..., "message": ...}}`` with the matching HTTP status.
"""


class ScoreServiceError(Exception):
    code = "INTERNAL_ERROR"
    status = 500
    default_message = "Internal error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': {'code': self.code, 'message': self.message}}


class InvalidPlatform(ScoreServiceError):
    code = "INVALID_PLATFORM"
    status = 400
    default_message = "Platform must be mobile or desktop"


class MissingFields(ScoreServiceError):
    code = "MISSING_FIELDS"
    status = 400
    default_message = "All fields are required"


class InvalidSession(ScoreServiceError):
    code = "INVALID_SESSION"
    status = 401
    default_message = "Invalid or already used session"


class SessionExpired(ScoreServiceError):
    code = "SESSION_EXPIRED"
    status = 401
    default_message = "Session has expired"


class InvalidName(ScoreServiceError):
    code = "INVALID_NAME"
    status = 400
    default_message = "Player name must be 1-12 characters, letters, digits, space, _ or -"


class InvalidScore(ScoreServiceError):
    code = "INVALID_SCORE"
    status = 400
    default_message = "Score must be an integer between 0 and 1,000,000,000"


class InvalidScope(ScoreServiceError):
    code = "INVALID_SCOPE"
    status = 400
    default_message = "Scope must be weekly or alltime"


class StorageFailure(ScoreServiceError):
    code = "STORAGE_FAILURE"
    status = 500
    default_message = "Storage is unavailable"


class ShareNotFound(ScoreServiceError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Score not found"
