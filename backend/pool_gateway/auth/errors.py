"""Auth-specific errors."""

MISSING_API_KEY = "missing api key"
INVALID_API_KEY = "invalid api key"


class AuthenticationError(Exception):
    """Raised when API key authentication fails.

    ``message`` is one of MISSING_API_KEY / INVALID_API_KEY and is safe to
    show the client. Anything more specific (unknown vs. disabled key,
    store failures) goes to the log only.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
