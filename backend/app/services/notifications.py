"""Outbound notifications via the remote email/PDF functions.

Lifecycle events are handed to a dispatcher after the status change has been
committed. ``LoggingDispatcher`` is used when no functions endpoint is
configured (local development, tests).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import requests

from backend.app.core.settings import get_settings
from backend.app.services.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleEvent:
    timesheet_id: int
    user_id: int
    organization_id: int
    from_status: Optional[str]
    to_status: str
    reason: Optional[str]
    timestamp: datetime

    def as_payload(self) -> dict:
        return {
            "timesheetId": self.timesheet_id,
            "userId": self.user_id,
            "organizationId": self.organization_id,
            "fromStatus": self.from_status,
            "toStatus": self.to_status,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class Recipient:
    email: str
    first_name: Optional[str] = None


class LoggingDispatcher:
    def timesheet_status_changed(self, event: LifecycleEvent, recipient: Recipient) -> None:
        logger.info(
            "Timesheet %s %s -> %s (notify %s)",
            event.timesheet_id,
            event.from_status,
            event.to_status,
            recipient.email,
        )

    def send_invoice(self, payload: dict) -> None:
        logger.info("Invoice %s ready to send to %s", payload.get("invoiceNumber"), payload.get("clientEmail"))

    def send_welcome(self, *, email: str, first_name: str | None, last_name: str | None, organization_name: str | None) -> None:
        logger.info("Welcome email for %s (%s)", email, organization_name)


class FunctionsDispatcher:
    """Posts JSON payloads to ``{base_url}/{function_name}``."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _invoke(self, function_name: str, payload: dict) -> requests.Response:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        url = f"{self.base_url}/{function_name}"
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExternalServiceError(f"{function_name} request failed") from exc
        if response.status_code >= 400:
            raise ExternalServiceError(f"{function_name} returned status code {response.status_code}")
        return response

    def timesheet_status_changed(self, event: LifecycleEvent, recipient: Recipient) -> None:
        payload = {
            "email": recipient.email,
            "firstName": recipient.first_name or "",
            "status": event.to_status,
            "reason": event.reason,
            "event": event.as_payload(),
        }
        self._invoke("sendTimesheetNotification", payload)

    def send_invoice(self, payload: dict) -> None:
        # The function renders the PDF and emails it; its body is not inspected.
        self._invoke("sendInvoice", payload)

    def send_welcome(self, *, email: str, first_name: str | None, last_name: str | None, organization_name: str | None) -> None:
        self._invoke(
            "sendWelcomeEmail",
            {
                "email": email,
                "firstName": first_name or "",
                "lastName": last_name or "",
                "organizationName": organization_name or "",
            },
        )


def get_dispatcher():
    """FastAPI dependency returning the configured dispatcher."""
    settings = get_settings()
    if settings.functions_base_url:
        return FunctionsDispatcher(
            settings.functions_base_url,
            api_key=settings.functions_api_key,
            timeout=settings.functions_timeout_seconds,
        )
    return LoggingDispatcher()


def dispatch_lifecycle_event(dispatcher, event: LifecycleEvent, recipient: Recipient | None) -> bool:
    """Best-effort delivery; a failure is logged and never undoes the transition."""
    if dispatcher is None or recipient is None:
        return False
    try:
        dispatcher.timesheet_status_changed(event, recipient)
    except Exception:
        logger.exception("Failed to dispatch notification for timesheet %s", event.timesheet_id)
        return False
    return True
