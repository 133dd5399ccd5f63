"""Prompt templates and canned snippets for code generation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

_JS_FAMILY = frozenset({"javascript", "typescript"})


@dataclass(frozen=True)
class GenerationTemplate:
    """A starter prompt offered in the generation panel."""

    title: str
    description: str
    render: Callable[[str], str]

    def prompt_for(self, language: str) -> str:
        return self.render(language)


def _boilerplate(language: str) -> str:
    if language in _JS_FAMILY:
        return "Create a React component that displays a list of items with pagination"
    if language == "python":
        return "Create a FastAPI endpoint that returns a list of items with pagination"
    if language == "html":
        return "Create an HTML form with validation"
    return f"Create a basic starter template for {language}"


def _function(language: str) -> str:
    if language in _JS_FAMILY:
        return "Create a function that formats a date in different formats"
    if language == "python":
        return "Create a function that processes a CSV file"
    return f"Create a utility function for {language}"


def _error_handling(language: str) -> str:
    if language in _JS_FAMILY:
        return "Add try-catch error handling to the current code"
    if language == "python":
        return "Add try-except error handling to the current code"
    return f"Add error handling for {language}"


def _tests(language: str) -> str:
    if language in _JS_FAMILY:
        return "Create Jest tests for a function"
    if language == "python":
        return "Create pytest tests for a function"
    return f"Create unit tests for {language}"


GENERATION_TEMPLATES: tuple[GenerationTemplate, ...] = (
    GenerationTemplate(
        title="Generate boilerplate",
        description="Generate basic starter code for a component or function",
        render=_boilerplate,
    ),
    GenerationTemplate(
        title="Create function",
        description="Generate a utility function",
        render=_function,
    ),
    GenerationTemplate(
        title="Add error handling",
        description="Generate error handling code",
        render=_error_handling,
    ),
    GenerationTemplate(
        title="Add tests",
        description="Generate unit tests",
        render=_tests,
    ),
)

_JS_SNIPPET = """\
// Generated code for {language}
function processData(items) {{
  try {{
    return items
      .filter(item => item.active)
      .map(item => ({{
        id: item.id,
        name: item.name,
        processed: true,
        timestamp: new Date().toISOString()
      }}));
  }} catch (error) {{
    console.error("Error processing data:", error);
    return [];
  }}
}}"""

_PYTHON_SNIPPET = """\
# Generated code for Python
def process_data(items):
    try:
        return [
            {
                "id": item["id"],
                "name": item["name"],
                "processed": True,
                "timestamp": datetime.now().isoformat()
            }
            for item in items
            if item.get("active")
        ]
    except Exception as e:
        print(f"Error processing data: {e}")
        return []"""

_HTML_SNIPPET = """\
<!-- Generated HTML code -->
<form id="myForm" class="form-container">
  <div class="form-group">
    <label for="name">Name:</label>
    <input type="text" id="name" name="name" required />
  </div>
  <div class="form-group">
    <label for="email">Email:</label>
    <input type="email" id="email" name="email" required />
  </div>
  <button type="submit" class="submit-btn">Submit</button>
</form>"""

_PLACEHOLDER_SNIPPET = """\
// Generated code for {language}
// This is a placeholder for {language} code generation
// You would see actual {language} code here in a real implementation"""


def generate_code(prompt: str, language: str) -> str:
    """Return a canned snippet for the language.

    The prompt does not influence the result; only the language does.

    Raises:
        ValueError: If the prompt is empty.
    """
    if not prompt or not prompt.strip():
        raise ValueError("prompt must not be empty")

    lang = language.lower()
    if lang in _JS_FAMILY:
        return _JS_SNIPPET.format(language=lang)
    if lang == "python":
        return _PYTHON_SNIPPET
    if lang == "html":
        return _HTML_SNIPPET
    return _PLACEHOLDER_SNIPPET.format(language=lang)
