"""HTTP client for the external intake endpoints.

- POST {base}/api/legal-requests                       -> records the intake
- POST {base}/api/legal-requests/<n>/send-confirmation -> confirmation email
  ('-spanish' suffix for Spanish sessions)

Both calls are fire-and-await. Failures are raised as SubmissionError or
ConfirmationEmailError; nothing is retried automatically.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from intake_flow.errors import ConfirmationEmailError, SubmissionError
from intake_flow.wizard.payload import IntakeSubmission

logger = logging.getLogger(__name__)


class IntakeClient:
    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        r = self.session.post(url, json=payload, timeout=self.timeout)
        r.raise_for_status()
        body = r.json()
        if not isinstance(body, dict):
            raise ValueError(f"unexpected response body from {url}")
        return body

    def submit_intake(self, submission: IntakeSubmission) -> str:
        """Record the intake and return the request number assigned by the server."""
        if not self.base_url:
            raise SubmissionError("INTAKE_API_URL is not configured")
        try:
            body = self._post('/api/legal-requests', submission.to_wire())
        except (requests.RequestException, ValueError) as e:
            logger.error("Intake submission %s failed: %s", submission.request_number, e)
            raise SubmissionError(str(e)) from e
        if not body.get('success'):
            raise SubmissionError(body.get('error') or 'intake endpoint rejected the request')
        data = body.get('data')
        if data is not None and not isinstance(data, dict):
            raise SubmissionError(f"unexpected 'data' in intake response: {type(data).__name__}")
        request_number = str((data or {}).get('requestNumber') or submission.request_number)
        logger.info("Intake %s recorded (%s)", request_number, submission.case_type)
        return request_number

    def send_confirmation(self, request_number: str, language: str = 'en') -> None:
        suffix = '-spanish' if language == 'es' else ''
        path = f"/api/legal-requests/{request_number}/send-confirmation{suffix}"
        try:
            body = self._post(path, {})
        except (requests.RequestException, ValueError) as e:
            logger.warning("Confirmation email for %s failed: %s", request_number, e)
            raise ConfirmationEmailError(str(e)) from e
        if body.get('success') is False:
            raise ConfirmationEmailError(body.get('error') or 'confirmation email was not sent')


__all__ = ['IntakeClient']
