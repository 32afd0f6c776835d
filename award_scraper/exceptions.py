"""Custom exception classes for the award scraper"""

from .models import ErrorKind


class AwardScraperError(Exception):
    """Base exception for scraper errors"""

    kind = ErrorKind.UNCLASSIFIED


class ValidationError(AwardScraperError, ValueError):
    """Raised when a Query is malformed or outside the engine's search window"""

    kind = ErrorKind.VALIDATION


class ConfigError(AwardScraperError, ValueError):
    """Raised when an engine module or its config fails validation at registration"""

    kind = ErrorKind.VALIDATION


class EngineNotFoundError(AwardScraperError, KeyError):
    """Raised when no engine is registered for an airline id"""

    kind = ErrorKind.VALIDATION

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown engine"


class SearcherError(AwardScraperError):
    """Site automation failure (bad HTTP status, stuck page, unexpected state)

    Captured onto ``Results.error`` by the engine, never re-raised from ``search()``.
    """

    kind = ErrorKind.SEARCHER
    code = "SEARCHER_ERROR"
    default_message = "Searcher failed"

    def __init__(self, message: str = None):
        if message is None:
            message = f"{self.code}: {self.default_message}"
        super().__init__(message)


class BlockedAccessError(SearcherError):
    """Raised when the website answers 403 (the throttle is penalized first)"""

    code = "BLOCKED_ACCESS"
    default_message = "Access to the web page blocked by website"


class InvalidRouteError(SearcherError):
    code = "INVALID_ROUTE"
    default_message = "Airline and its partners do not fly this route"


class InvalidCabinError(SearcherError):
    code = "INVALID_CABIN"
    default_message = "Selected cabin is not available for this route"


class LoginFailedError(SearcherError):
    code = "LOGIN_FAILED"
    default_message = "Failed to login to website"


class SearcherTimeoutError(SearcherError):
    """Raised when a navigation or page wait exceeds its timeout"""

    code = "TIMEOUT"
    default_message = "Timed out waiting for the website"


class CredentialsError(SearcherError):
    """Login-step failure that must stop further queries on this engine/account"""

    kind = ErrorKind.CREDENTIALS


class MissingCredentialsError(CredentialsError):
    code = "MISSING_CREDENTIALS"
    default_message = "Missing login credentials"


class InvalidCredentialsError(CredentialsError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid login credentials"


class BlockedAccountError(CredentialsError):
    code = "BLOCKED_ACCOUNT"
    default_message = "Account has been blocked by website"


class BotDetectedError(CredentialsError):
    code = "BOT_DETECTED"
    default_message = "Suspicious activity detected by website"


class ParserError(AwardScraperError):
    """Raised by a Parser on malformed captured content, recorded on ``Results.error``"""

    kind = ErrorKind.PARSER


class IntegrityError(AwardScraperError):
    """Structural violation in parsed data, always a bug in the parser or its input"""

    kind = ErrorKind.INTEGRITY


class OrphanedFlightError(IntegrityError):
    """A parsed Flight owns no Awards"""

    pass


class OrphanedAwardError(IntegrityError):
    """A parsed Award is not attached to any Flight"""

    pass


class FlightMismatchError(IntegrityError):
    """Two flights share a key but their segment schedules differ"""

    pass


class InvalidDurationError(IntegrityError):
    """A segment arrives before it departs, or a connection is negative"""

    pass
