"""Submission payload sent to the intake endpoint (camelCase on the wire)."""
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field


class TranscriptEntry(BaseModel):
    question: str
    answer: str


class FormResponses(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answers: Dict[str, Any] = Field(default_factory=dict)
    additional_details: str = Field(default="", alias="additionalDetails", max_length=5000)
    transcript: List[TranscriptEntry] = Field(default_factory=list)
    submitted_at: str = Field(alias="submittedAt")


class IntakeSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_number: str = Field(alias="requestNumber", max_length=10)
    first_name: str = Field(alias="firstName", min_length=1, max_length=255)
    last_name: str = Field(default="", alias="lastName", max_length=255)
    email: str = Field(max_length=255)
    case_type: str = Field(alias="caseType", max_length=255)
    language: str = Field(default="en", max_length=5)
    form_responses: FormResponses = Field(alias="formResponses")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
