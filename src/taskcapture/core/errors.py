"""Custom exception types for the task-capture core.

Error messages follow the same shape everywhere:
- What failed (specific operation or component)
- Why it failed (the specific condition)
- How to fix it (actionable guidance, where there is one)

Parsing components never raise on malformed input; these exceptions cover
configuration and the external AI providers only.
"""


class TaskCaptureError(Exception):
    """Base exception for all task-capture errors."""

    pass


class ConfigValidationError(TaskCaptureError):
    """Raised when config.yaml fails Pydantic validation.

    Includes specific field errors with actionable messages.
    """

    pass


class ConfigLoadError(TaskCaptureError):
    """Raised when config.yaml cannot be loaded (file not found, YAML parse error)."""

    pass


class SplitProviderError(TaskCaptureError):
    """Raised when an AI split provider cannot produce a usable response.

    Never escapes the AI splitter: it is caught there, logged, and turned
    into the next fallback step.

    Attributes:
        provider: Provider name ('openai', 'anthropic', 'gemini')
        status_code: HTTP status code from the provider (if available)
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
