"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when a trade or input is rejected before any state change."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class InsufficientCashError(ValidationError):
    """Raised when a buy costs more than the available cash."""

    def __init__(self, requested: str, available: str):
        super().__init__(
            f"Not enough cash. Need ${requested}, have ${available}.",
            code="INSUFFICIENT_CASH",
        )


class InsufficientSharesError(ValidationError):
    """Raised when attempting to sell more shares than owned."""

    def __init__(self, symbol: str, requested: int, available: int):
        super().__init__(
            f"Not enough shares to sell. Trying to sell {requested}, only own {available} of {symbol}.",
            code="INSUFFICIENT_SHARES",
        )


class PositionNotFoundError(ValidationError):
    """Raised when selling a symbol that has never been held."""

    def __init__(self, symbol: str):
        super().__init__(f"Stock '{symbol}' not found in portfolio.", code="POSITION_NOT_FOUND")


class NotAuthenticatedError(AppError):
    """Raised when a portfolio mutation is attempted with no signed-in user."""

    def __init__(self, message: str = "User not logged in."):
        super().__init__(message, code="NOT_AUTHENTICATED")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str, code: str = "NOT_FOUND"):
        super().__init__(f"{resource} not found: {identifier}", code=code)


class SymbolNotFoundError(NotFoundError):
    """Raised when the upstream quote is degenerate (all zero), i.e. unknown symbol."""

    def __init__(self, symbol: str):
        super().__init__("Symbol", symbol, code="SYMBOL_NOT_FOUND")
        self.symbol = symbol


class UpstreamError(AppError):
    """Market data source failure. Retryable by the caller."""

    retryable = True

    def __init__(self, message: str, code: str = "UPSTREAM_ERROR"):
        super().__init__(message, code=code)


class MissingCredentialsError(UpstreamError):
    """Raised when an API key required by a market data source is not configured."""

    def __init__(self, provider: str, env_var: str):
        super().__init__(
            f"{provider} API key is missing. Please set {env_var}.",
            code="MISSING_CREDENTIALS",
        )


class RateLimitError(UpstreamError):
    """Raised on an HTTP 429 or a provider throttle notice."""

    def __init__(self, message: str):
        super().__init__(f"API limit reached: {message}", code="RATE_LIMITED")


class MalformedPayloadError(UpstreamError):
    """Raised when the top-level response body has an unexpected shape."""

    def __init__(self, message: str):
        super().__init__(message, code="MALFORMED_PAYLOAD")


class TransportError(UpstreamError):
    """Raised on connection failures and non-success HTTP status codes."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, code="TRANSPORT_ERROR")


class PersistenceError(AppError):
    """Raised (or recorded) when the key-value store cannot be read or written."""

    def __init__(self, message: str):
        super().__init__(message, code="PERSISTENCE_ERROR")


class ParseError(AppError):
    """Raised for a single malformed historical record."""

    def __init__(self, message: str):
        super().__init__(message, code="PARSE_ERROR")
