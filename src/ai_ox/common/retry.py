"""
Retry policy for transient provider failures.

Handles:
- Deciding which HTTP statuses are worth retrying
- Exponential backoff between attempts
"""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry logic with exponential backoff.

    Attributes:
        max_retries: Maximum retry attempts after the first try
        retry_delay_ms: Base delay between retries in milliseconds
        max_retry_delay_ms: Maximum delay between retries
    """

    # 408: Request Timeout - transient, should retry
    # 429: Too Many Requests - rate limited, should retry with backoff
    # 500: Internal Server Error - may be transient
    # 502: Bad Gateway - proxy/upstream issue, often transient
    # 503: Service Unavailable - temporary overload
    # 504: Gateway Timeout - upstream timeout, may succeed on retry
    RETRYABLE_STATUS_CODES: ClassVar[frozenset[int]] = frozenset({408, 429, 500, 502, 503, 504})

    max_retries: int = 3
    retry_delay_ms: int = 100
    max_retry_delay_ms: int = 5000

    def should_retry(self, status_code: int) -> bool:
        """
        Check if a request should be retried based on status code.

        Args:
            status_code: HTTP status code from response

        Returns:
            True if request should be retried
        """
        return status_code in self.RETRYABLE_STATUS_CODES

    def get_retry_delay(self, attempt: int) -> int:
        """
        Calculate retry delay with exponential backoff.

        Args:
            attempt: Current attempt number (1-based)

        Returns:
            Delay in milliseconds
        """
        delay = self.retry_delay_ms * (2 ** (attempt - 1))
        return min(delay, self.max_retry_delay_ms)
