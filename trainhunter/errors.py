"""Error taxonomy shared by providers, strategies and the CLI."""


class TrainHunterError(Exception):
    """Base error for all failures raised by this package."""


class ConfigurationError(TrainHunterError):
    """Settings are out of range or inconsistent."""


class NetworkError(TrainHunterError):
    """An operation against the provider failed for good (retries exhausted or timed out)."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class ValidationError(TrainHunterError):
    """Search input is structurally invalid. Raised before any batching starts."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class SearchError(TrainHunterError):
    """A single search unit produced no usable journey."""

    def __init__(self, message: str, search_params: dict | None = None):
        super().__init__(message)
        self.search_params = search_params


_LABELS = {
    ConfigurationError: "Configuration Error",
    NetworkError: "Network Error",
    ValidationError: "Validation Error",
    SearchError: "Search Error",
}


def format_error(error: BaseException, verbose: bool = False) -> str:
    label = next((name for cls, name in _LABELS.items() if isinstance(error, cls)), "Error")
    message = f"{label}: {error}"
    if isinstance(error, NetworkError) and verbose and error.cause is not None:
        message += f"\n   Cause: {error.cause}"
    if isinstance(error, ValidationError) and error.field:
        message += f"\n   Field: {error.field}"
    if isinstance(error, SearchError) and verbose and error.search_params:
        params = ", ".join(f"{k}={v}" for k, v in error.search_params.items())
        message += f"\n   Search parameters: {params}"
    return message
