# vibecheck/errors.py
"""
Domain errors

Each error carries the HTTP status it maps to. The handlers in main.py
render them as {"error": message}; nothing else about the failure is
sent to the client.
"""


class VibeCheckError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VibeCheckError):
    """Bad or empty input the user can correct"""
    status_code = 400


class NotFoundError(VibeCheckError):
    """Unknown session or participant"""
    status_code = 404


class ConflictError(VibeCheckError):
    """Operation not valid in the current session state"""
    status_code = 400


class UpstreamUnavailable(VibeCheckError):
    """Movie lookup or completion service failed or is not configured"""
    status_code = 503


class RateLimitExceeded(VibeCheckError):
    status_code = 429
