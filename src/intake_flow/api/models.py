from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field

from intake_flow.wizard import (
    Action,
    Answer,
    Back,
    ChangeLanguage,
    Next,
    Reset,
    SelectCaseType,
    SetAdditionalDetails,
    SubmitBasicInfo,
)

AnswerValue = Union[bool, int, float, str, List[str], None]


class CreateSessionRequest(BaseModel):
    language: Optional[str] = Field(default=None, max_length=10)


class WizardActionRequest(BaseModel):
    type: Literal[
        "submit_basic_info", "select_case_type", "answer", "set_additional_details",
        "next", "back", "change_language", "reset",
    ]
    full_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    case_type: Optional[str] = Field(default=None, max_length=100)
    key: Optional[str] = Field(default=None, max_length=100)
    value: AnswerValue = None
    text: Optional[str] = Field(default=None, max_length=5000)
    language: Optional[str] = Field(default=None, max_length=10)

    def to_action(self) -> Action:
        if self.type == "submit_basic_info":
            return SubmitBasicInfo(self.full_name or "", self.email or "")
        if self.type == "select_case_type":
            return SelectCaseType(self.case_type or "")
        if self.type == "answer":
            if not self.key:
                raise ValueError("answer requires 'key'")
            if isinstance(self.value, str) and len(self.value) > 5000:
                raise ValueError("answer is too long")
            return Answer(self.key, self.value)
        if self.type == "set_additional_details":
            return SetAdditionalDetails(self.text or "")
        if self.type == "next":
            return Next()
        if self.type == "back":
            return Back()
        if self.type == "change_language":
            if not self.language:
                raise ValueError("change_language requires 'language'")
            return ChangeLanguage(self.language)
        return Reset()
