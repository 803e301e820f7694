"""
Notification Infrastructure
============================

Outgoing notifications (SLA breaches, escalations, budget alerts) delivered
to a webhook that fans them out to email or chat.

Delivery is fire-and-forget from the caller's point of view: every send
returns a boolean and never raises, so a failed notification cannot roll
back the business transaction that triggered it.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from src.config import SLATarget, settings
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for preventing cascade failures.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._last_failure_time is not None:
            if time.monotonic() - self._last_failure_time >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        """Check if request should be allowed."""
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        """Record successful request."""
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Record failed request."""
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


@dataclass
class NotificationMessage:
    """Notification payload posted to the webhook."""
    kind: str
    to: str
    subject: str
    text: str
    data: Dict[str, Any] = field(default_factory=dict)


class INotificationClient(ABC):
    """
    Interface for outgoing notifications.

    Implementations return True when the message was delivered and False
    otherwise; they never raise.
    """

    @abstractmethod
    async def send_sla_breach(
        self,
        to: str,
        report_id: str,
        report_title: str,
        program_name: str,
        target: SLATarget,
        deadline: datetime
    ) -> bool:
        """Tell a company that a report missed an SLA target."""

    @abstractmethod
    async def send_sla_escalation(
        self,
        to: str,
        report_id: str,
        report_title: str,
        program_name: str,
        company_name: str,
        target: SLATarget,
        deadline: datetime
    ) -> bool:
        """Tell the platform admin that a breach went unaddressed."""

    @abstractmethod
    async def send_budget_alert(
        self,
        to: str,
        program_id: str,
        program_name: str,
        percentage: int,
        remaining: str
    ) -> bool:
        """Tell a company that program spend crossed a threshold."""

    async def close(self) -> None:
        """Release network resources."""


class WebhookNotificationClient(INotificationClient):
    """
    Webhook client with circuit breaker and retry logic.

    Handles sending notifications with:
    - Circuit breaker to prevent cascade failures
    - Exponential backoff retry
    - Timeout handling
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        frontend_url: str = "http://localhost:5173",
        max_retries: int = 3,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._webhook_url = webhook_url if webhook_url is not None else settings.notification_webhook_url
        self._timeout = timeout_seconds or settings.notification_timeout_seconds
        self._frontend_url = frontend_url.rstrip("/")
        self._max_retries = max_retries
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=60
        )
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    def _report_link(self, report_id: str) -> str:
        return f"{self._frontend_url}/reports/{report_id}"

    async def send_sla_breach(
        self,
        to: str,
        report_id: str,
        report_title: str,
        program_name: str,
        target: SLATarget,
        deadline: datetime
    ) -> bool:
        return await self._send(NotificationMessage(
            kind="sla_breach",
            to=to,
            subject=f"URGENT: SLA Breach - {report_title}",
            text=(
                f"The {target.value} SLA for report '{report_title}' in program "
                f"'{program_name}' expired at {deadline.isoformat()}. "
                f"Review it at {self._report_link(report_id)}"
            ),
            data={
                "report_id": report_id,
                "program_name": program_name,
                "target": target.value,
                "deadline": deadline.isoformat(),
            },
        ))

    async def send_sla_escalation(
        self,
        to: str,
        report_id: str,
        report_title: str,
        program_name: str,
        company_name: str,
        target: SLATarget,
        deadline: datetime
    ) -> bool:
        return await self._send(NotificationMessage(
            kind="sla_escalation",
            to=to,
            subject=f"ESCALATION: Critical SLA Breach - {report_title}",
            text=(
                f"{company_name} has not acted on report '{report_title}' in program "
                f"'{program_name}'. The {target.value} SLA expired at {deadline.isoformat()}."
            ),
            data={
                "report_id": report_id,
                "program_name": program_name,
                "company_name": company_name,
                "target": target.value,
                "deadline": deadline.isoformat(),
            },
        ))

    async def send_budget_alert(
        self,
        to: str,
        program_id: str,
        program_name: str,
        percentage: int,
        remaining: str
    ) -> bool:
        return await self._send(NotificationMessage(
            kind="budget_alert",
            to=to,
            subject=f"Budget Alert: {percentage}% Consumed - {program_name}",
            text=(
                f"Program '{program_name}' has used {percentage}% of its bounty budget. "
                f"Remaining: {remaining}."
            ),
            data={
                "program_id": program_id,
                "program_name": program_name,
                "percentage": percentage,
                "remaining": remaining,
            },
        ))

    async def _send(self, message: NotificationMessage) -> bool:
        """
        Post a message to the webhook.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self._webhook_url:
            logger.info(
                "Notification webhook not configured, skipping notification",
                extra={"kind": message.kind, "recipient": message.to}
            )
            return False

        if not self._circuit_breaker.allow_request():
            logger.warning(
                "Circuit breaker open, skipping notification",
                extra={"kind": message.kind}
            )
            return False

        payload = asdict(message)

        for attempt in range(self._max_retries):
            try:
                client = await self._get_client()
                response = await client.post(self._webhook_url, json=payload)

                if response.is_success:
                    self._circuit_breaker.record_success()
                    logger.info(
                        "Notification sent",
                        extra={"kind": message.kind, "recipient": message.to}
                    )
                    return True

                logger.warning(
                    "Notification webhook returned error status",
                    extra={
                        "status_code": response.status_code,
                        "attempt": attempt + 1
                    }
                )

            except httpx.HTTPError as e:
                logger.error(
                    "Notification failed",
                    extra={
                        "error": str(e),
                        "attempt": attempt + 1,
                        "kind": message.kind
                    }
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(2 ** attempt)

        self._circuit_breaker.record_failure()
        return False

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
