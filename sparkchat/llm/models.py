"""
Core Spark wire models with type safety and validation.

This module provides the foundational models for Spark chat interactions:
- Protocol versions and their endpoint/domain/token limits
- Credentials
- Outbound request structure
- Inbound response frames and token usage
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Header status of the last frame for a question
TERMINAL_STATUS = 2

DEFAULT_UID = "123456"


class ProtocolVersion(Enum):
    """Supported Spark protocol versions."""
    V1 = 1
    V2 = 2


@dataclass(frozen=True)
class VersionSpec:
    """Everything that depends on the protocol version."""
    path_version: str
    domain: str
    max_tokens_limit: int


VERSION_SPECS: dict[ProtocolVersion, VersionSpec] = {
    ProtocolVersion.V1: VersionSpec("v1.1", "general", 4096),
    ProtocolVersion.V2: VersionSpec("v2.1", "generalv2", 8192),
}


@dataclass(frozen=True)
class Credentials:
    """Static application credentials issued by the Spark console."""
    app_id: str
    api_key: str
    api_secret: str

    def __repr__(self) -> str:
        return f"Credentials(app_id={self.app_id!r}, api_key='***', api_secret='***')"


# --------------------------------------------------------------------------- #
# Outbound request                                                            #
# --------------------------------------------------------------------------- #


class RequestHeader(BaseModel):
    app_id: str
    uid: str = DEFAULT_UID


class ChatParameters(BaseModel):
    """Model selection and sampling configuration."""
    domain: str
    temperature: float
    max_tokens: int
    top_k: int
    chat_id: str = ""


class RequestParameter(BaseModel):
    chat: ChatParameters


class RequestText(BaseModel):
    role: Literal["user"] = "user"
    content: str


class RequestMessage(BaseModel):
    text: list[RequestText]


class RequestPayload(BaseModel):
    message: RequestMessage


class ChatRequest(BaseModel):
    """
    Single-turn request sent once per question.
    """
    header: RequestHeader
    parameter: RequestParameter
    payload: RequestPayload

    @classmethod
    def for_question(
        cls,
        question: str,
        *,
        app_id: str,
        uid: str,
        domain: str,
        temperature: float,
        max_tokens: int,
        top_k: int,
    ) -> ChatRequest:
        """Wrap a question with header and sampling parameters."""
        return cls(
            header=RequestHeader(app_id=app_id, uid=uid),
            parameter=RequestParameter(
                chat=ChatParameters(
                    domain=domain,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    top_k=top_k,
                )
            ),
            payload=RequestPayload(
                message=RequestMessage(text=[RequestText(content=question)])
            ),
        )

    @property
    def question(self) -> str:
        return self.payload.message.text[0].content


# --------------------------------------------------------------------------- #
# Inbound frames                                                              #
# --------------------------------------------------------------------------- #


class _Frame(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        """A null field decodes like a missing one."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class ResponseHeader(_Frame):
    code: int = 0
    message: str = ""
    sid: str = ""
    status: int = 0


class ChoiceText(_Frame):
    content: str = ""
    role: str = "assistant"
    index: int = 0


class Choices(_Frame):
    status: int = 0
    seq: int = 0
    text: list[ChoiceText] = Field(default_factory=list)


class UsageText(_Frame):
    """Token accounting, informational only."""
    question_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Usage(_Frame):
    text: UsageText = Field(default_factory=UsageText)


class ResponsePayload(_Frame):
    choices: Choices = Field(default_factory=Choices)
    usage: Usage | None = None


class ResponseFrame(_Frame):
    """One decoded unit of the inbound message stream."""
    header: ResponseHeader = Field(default_factory=ResponseHeader)
    payload: ResponsePayload = Field(default_factory=ResponsePayload)

    @property
    def is_terminal(self) -> bool:
        return self.header.status == TERMINAL_STATUS

    @property
    def content(self) -> str:
        """Text of every choice in the frame, in arrival order."""
        return "".join(choice.content for choice in self.payload.choices.text)
