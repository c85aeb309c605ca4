from typing import Optional


class ResourceNotFoundError(Exception):
    """A referenced file or job id does not exist. Never retried."""

    def __init__(self, kind: str, resource_id: str):
        self.kind = kind
        self.resource_id = resource_id
        super().__init__(f"{kind} not found: {resource_id}")


class ProviderHTTPError(Exception):
    """Non-2xx answer from a completion backend."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(message)


class ProviderRateLimitedError(Exception):
    """A backend signalled throttling. Only used inside the fallback loop."""

    def __init__(self, provider: str, message: str = ""):
        self.provider = provider
        super().__init__(message or f"{provider} is rate limited")


class AllProvidersExhaustedError(Exception):
    def __init__(self, last_error: Optional[str]):
        self.last_error = last_error
        super().__init__(
            "All LLM providers exhausted. "
            f"Last error: {last_error or 'Unknown error'}. "
            "Please check your API keys and rate limits."
        )


class MalformedResponseError(ValueError):
    """Model output could not be turned into the required structure."""

    PREVIEW_CHARS = 200

    def __init__(self, reason: str, raw_text: str = ""):
        self.reason = reason
        self.preview = (raw_text or "")[: self.PREVIEW_CHARS]
        msg = f"Failed to parse LLM response: {reason}"
        if self.preview:
            msg += f" (preview: {self.preview!r})"
        super().__init__(msg)


class InvalidStatusTransitionError(Exception):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Illegal job status transition {current} -> {target}")
