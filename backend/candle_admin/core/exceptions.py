"""
Custom exception hierarchy for the candle admin backend.

Exceptions are categorized as:
- RetryableError: Transient errors where a later attempt might succeed
- NonRetryableError: Permanent errors that should fail immediately

The deployment reconciler never retries on its own; the split tells the
caller (operator or Celery task) whether a manual retry is worth it.
"""
from typing import Any, Dict, List


class CandleAdminException(Exception):
    """Base exception for the candle admin backend."""
    pass


# ============================================
# RETRYABLE ERRORS
# ============================================
class RetryableError(CandleAdminException):
    """
    Base class for transient errors.

    - Network timeouts
    - Rate limits (with backoff)
    - Temporary service unavailability
    """
    pass


class ExternalAPIError(RetryableError):
    """
    Error from an external API (Shopify, Gemini, Google JWKS).

    Typically transient - the external service might recover.
    """
    def __init__(self, service: str, message: str, status_code: int = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} API error: {message}")


class RateLimitError(RetryableError):
    """
    Rate limit exceeded.

    Should retry after the specified delay.
    """
    def __init__(self, service: str, retry_after: int = 60):
        self.service = service
        self.retry_after = retry_after
        super().__init__(f"{service} rate limited. Retry after {retry_after}s")


class ConnectionTimeoutError(RetryableError):
    """Connection or timeout error - typically transient."""
    pass


# ============================================
# NON-RETRYABLE ERRORS
# ============================================
class NonRetryableError(CandleAdminException):
    """
    Base class for errors that retrying won't fix.

    - Validation failures
    - Business rule violations reported by Shopify
    - Authentication errors (need config fix)
    """
    pass


class ValidationError(NonRetryableError):
    """Invalid input data - retrying won't help."""
    pass


class ConfigValidationError(ValidationError):
    """
    A pricing configuration failed validation.

    Carries every problem found so the operator can fix them in one pass.
    """
    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__(
            f"Invalid pricing configuration ({len(self.problems)} problem(s)): "
            + "; ".join(self.problems)
        )


class ShopifyUserError(NonRetryableError):
    """A Shopify mutation returned userErrors."""
    def __init__(self, operation: str, user_errors: List[Dict[str, Any]]):
        self.operation = operation
        self.user_errors = user_errors
        messages = ", ".join(str(e.get("message")) for e in user_errors) or "Unknown error"
        super().__init__(f"{operation} failed: {messages}")


class DeploymentInProgressError(NonRetryableError):
    """Another deployment already holds the lease for this catalog."""
    def __init__(self, catalog_id: str, holder: str | None = None):
        self.catalog_id = catalog_id
        self.holder = holder
        super().__init__(
            f"A deployment is already running for {catalog_id}"
            + (f" (held by {holder})" if holder else "")
        )


class AuthenticationError(NonRetryableError):
    """
    Token verification failed.

    Needs a fresh sign-in or a configuration fix, not a retry.
    """
    pass
