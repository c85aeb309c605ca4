import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from domain.errors import AllProvidersExhaustedError, ProviderRateLimitedError
from domain.models import CompletionOptions, CompletionResponse
from infra.llm.backends import BackendRegistration
from infra.llm.rate_limiter import ProviderRateLimiter

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("rate limit", "too many requests", "quota exceeded")


class AttemptKind(enum.Enum):
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"


@dataclass
class AttemptOutcome:
    kind: AttemptKind
    response: Optional[CompletionResponse] = None
    error: Optional[BaseException] = None


def _status_code(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def is_rate_limit_error(exc: BaseException) -> bool:
    """HTTP 429 or a throttling phrase in the message.

    Message matching stays here so typed provider errors can replace it
    without touching the fallback loop.
    """
    if isinstance(exc, ProviderRateLimitedError):
        return True
    if _status_code(exc) == 429:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def classify_error(exc: BaseException) -> AttemptKind:
    return AttemptKind.RATE_LIMITED if is_rate_limit_error(exc) else AttemptKind.TRANSIENT


class LLMClient:
    """Priority-ordered completion backends with retry, backoff and rate-limit rotation."""

    def __init__(
        self,
        backends: List[BackendRegistration],
        rate_limiter: ProviderRateLimiter,
        *,
        max_attempts: int = 3,
        backoff_ms: int = 1000,
        backoff_multiplier: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._backends: Dict[str, BackendRegistration] = {b.name: b for b in backends}
        self.rate_limiter = rate_limiter
        self.max_attempts = max_attempts
        self.backoff_ms = backoff_ms
        self.backoff_multiplier = backoff_multiplier
        self._sleep = sleep

    def available_providers(self) -> List[str]:
        return self.provider_order()

    def provider_order(self, preferred: Optional[str] = None) -> List[str]:
        ordered = [b.name for b in sorted(self._backends.values(), key=lambda b: b.priority)]
        if preferred and preferred in self._backends:
            return [preferred] + [name for name in ordered if name != preferred]
        return ordered

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.backoff_ms * (self.backoff_multiplier ** (attempt - 1)) / 1000.0

    async def _attempt(self, registration: BackendRegistration, system_prompt: str,
                       user_prompt: str, options: CompletionOptions) -> AttemptOutcome:
        try:
            response = await registration.backend.complete(
                system_prompt,
                user_prompt,
                temperature=options.temperature,
                max_tokens=options.max_tokens,
            )
        except Exception as exc:
            return AttemptOutcome(kind=classify_error(exc), error=exc)
        return AttemptOutcome(kind=AttemptKind.SUCCESS, response=response)

    async def generate(self, system_prompt: str, user_prompt: str,
                       options: Optional[CompletionOptions] = None) -> CompletionResponse:
        options = options or CompletionOptions()
        last_error: Optional[str] = None
        order = self.provider_order(options.preferred_provider)
        if not order:
            raise AllProvidersExhaustedError("No LLM provider configured")

        for name in order:
            registration = self._backends[name]
            if self.rate_limiter.is_limited(name, registration.rpm):
                logger.warning("%s is rate limited, trying next provider", name)
                last_error = last_error or f"{name} is rate limited"
                continue

            for attempt in range(1, self.max_attempts + 1):
                logger.info("Attempting %s (attempt %d/%d)", name, attempt, self.max_attempts)
                outcome = await self._attempt(registration, system_prompt, user_prompt, options)

                if outcome.kind is AttemptKind.SUCCESS:
                    self.rate_limiter.record_success(name)
                    logger.info("Completion generated by %s/%s", name, outcome.response.model)
                    return outcome.response

                last_error = str(outcome.error) or outcome.error.__class__.__name__
                logger.error("%s attempt %d failed: %s", name, attempt, last_error)

                if outcome.kind is AttemptKind.RATE_LIMITED:
                    self.rate_limiter.mark_limited(name)
                    logger.warning("%s hit its rate limit, rotating to next provider", name)
                    break

                if attempt < self.max_attempts:
                    delay = self.backoff_delay(attempt)
                    logger.info("Waiting %.1fs before retrying %s", delay, name)
                    await self._sleep(delay)

        raise AllProvidersExhaustedError(last_error)

    async def health_check(self) -> Dict[str, bool]:
        health: Dict[str, bool] = {}
        for name, registration in self._backends.items():
            try:
                await registration.backend.complete(
                    "You are a helpful assistant.",
                    'Say "OK" if you can read this.',
                    temperature=0.1,
                    max_tokens=10,
                )
                health[name] = True
            except Exception as exc:
                logger.error("Health check failed for %s: %s", name, exc)
                health[name] = False
        return health
