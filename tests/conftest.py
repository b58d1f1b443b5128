import os
import sys

import pytest

# Ensure the `src/` directory is on sys.path so we can import `intake_flow` package
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from intake_flow.errors import ConfirmationEmailError, SubmissionError  # noqa: E402
from intake_flow.flows import build_all_flows  # noqa: E402


class FakeIntakeClient:
    """Stands in for IntakeClient; records calls and fails on request."""

    def __init__(self, fail_submit=False, fail_email=False, request_number=None):
        self.fail_submit = fail_submit
        self.fail_email = fail_email
        self.request_number = request_number
        self.submissions = []
        self.confirmations = []

    def submit_intake(self, submission):
        self.submissions.append(submission)
        if self.fail_submit:
            raise SubmissionError("intake endpoint unavailable")
        return self.request_number or submission.request_number

    def send_confirmation(self, request_number, language='en'):
        self.confirmations.append((request_number, language))
        if self.fail_email:
            raise ConfirmationEmailError("mail relay down")


@pytest.fixture(scope="session")
def flows_by_language():
    return build_all_flows()


@pytest.fixture
def flows_en(flows_by_language):
    return flows_by_language['en']


@pytest.fixture
def flows_es(flows_by_language):
    return flows_by_language['es']


@pytest.fixture
def fake_client():
    return FakeIntakeClient()


@pytest.fixture
def make_client():
    return FakeIntakeClient
