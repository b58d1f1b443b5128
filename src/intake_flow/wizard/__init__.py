"""Intake wizard: session state machine, transcript assembly and submission."""

from intake_flow.wizard.session import WizardSession, WizardStep, new_session
from intake_flow.wizard.reducer import (
    Action,
    Answer,
    Back,
    ChangeLanguage,
    Next,
    Reset,
    SelectCaseType,
    SetAdditionalDetails,
    SubmitBasicInfo,
    reduce,
)
from intake_flow.wizard.transcript import build_submission, build_transcript
from intake_flow.wizard.submission import IntakeClient
from intake_flow.wizard.controller import SubmissionOutcome, SubmissionStatus, WizardController

__all__ = [
    "WizardSession",
    "WizardStep",
    "new_session",
    "Action",
    "Answer",
    "Back",
    "ChangeLanguage",
    "Next",
    "Reset",
    "SelectCaseType",
    "SetAdditionalDetails",
    "SubmitBasicInfo",
    "reduce",
    "build_submission",
    "build_transcript",
    "IntakeClient",
    "SubmissionOutcome",
    "SubmissionStatus",
    "WizardController",
]
