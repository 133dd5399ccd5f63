"""Code assistant routes for the Codepad API.

- POST /v1/assistant/commands: run an editor command on code
- POST /v1/assistant/generate: generate a snippet from a prompt
- GET /v1/assistant/templates: generation prompt templates for a language
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator

from codepad.api.auth import RequireCaller
from codepad.assistant.client import AssistantClient
from codepad.assistant.commands import AICommand
from codepad.assistant.generation import GENERATION_TEMPLATES
from codepad.files.models import DEFAULT_LANGUAGE

router = APIRouter(prefix="/v1/assistant", tags=["Assistant"])


class CommandRequest(BaseModel):
    """Request body for POST /v1/assistant/commands."""

    model_config = ConfigDict(extra="forbid")

    command: AICommand
    code: Annotated[str, Field(min_length=1)]
    language: str = DEFAULT_LANGUAGE


class GenerateRequest(BaseModel):
    """Request body for POST /v1/assistant/generate."""

    model_config = ConfigDict(extra="forbid")

    prompt: Annotated[str, Field(min_length=1)]
    language: str = DEFAULT_LANGUAGE

    @field_validator("prompt")
    @classmethod
    def no_blank_prompt(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Prompt cannot be empty or whitespace-only")
        return v


class AssistantResponse(BaseModel):
    """Assistant output."""

    command: str | None = None
    label: str | None = None
    language: str
    response: str


class TemplateInfo(BaseModel):
    title: str
    description: str
    prompt: str


class TemplateListResponse(BaseModel):
    language: str
    templates: list[TemplateInfo]


def _get_assistant(request: Request) -> AssistantClient:
    assistant: AssistantClient = request.app.state.assistant
    return assistant


@router.post("/commands", response_model=AssistantResponse)
def run_command(
    request_body: CommandRequest, request: Request, caller: RequireCaller
) -> AssistantResponse:
    """Run an editor command (explain, improve, refactor, comment, fix)."""
    text = _get_assistant(request).run_command(
        request_body.command, request_body.code, request_body.language
    )
    return AssistantResponse(
        command=request_body.command.value,
        label=request_body.command.label,
        language=request_body.language,
        response=text,
    )


@router.post("/generate", response_model=AssistantResponse)
def generate(
    request_body: GenerateRequest, request: Request, caller: RequireCaller
) -> AssistantResponse:
    """Generate a code snippet for the prompt."""
    text = _get_assistant(request).generate(request_body.prompt, request_body.language)
    return AssistantResponse(language=request_body.language, response=text)


@router.get("/templates", response_model=TemplateListResponse)
def list_templates(
    caller: RequireCaller,
    language: Annotated[str, Query(min_length=1)] = DEFAULT_LANGUAGE,
) -> TemplateListResponse:
    """List generation templates with prompts rendered for the language."""
    return TemplateListResponse(
        language=language,
        templates=[
            TemplateInfo(
                title=template.title,
                description=template.description,
                prompt=template.prompt_for(language),
            )
            for template in GENERATION_TEMPLATES
        ],
    )
