"""Code assistant for the Codepad editor.

Simulated AI features: editor commands on selected code, template-driven
code generation, and language detection for uploads.
"""

from codepad.assistant.client import AssistantClient, CodeAssistant
from codepad.assistant.commands import AICommand, respond
from codepad.assistant.generation import GENERATION_TEMPLATES, GenerationTemplate, generate_code
from codepad.assistant.languages import detect_language

__all__ = [
    "AssistantClient",
    "CodeAssistant",
    "AICommand",
    "respond",
    "GENERATION_TEMPLATES",
    "GenerationTemplate",
    "generate_code",
    "detect_language",
]
