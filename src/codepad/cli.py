"""Codepad CLI - manage per-user files and storage from the command line.

Usage:
    codepad storage bootstrap
    codepad files list --user USER [--strict]
    codepad files get --user USER FILE_ID [--raw]
    codepad files save --user USER --name NAME [--id ID] [--language LANG] [--input PATH]
    codepad files upload --user USER PATH
    codepad files delete --user USER FILE_ID
    codepad assistant command {explain,improve,refactor,comment,fix} [--language LANG]
        [--input PATH]
    codepad assistant generate --prompt TEXT [--language LANG]
    codepad assistant templates [--language LANG]
    codepad token --user USER [--name NAME] [--email EMAIL] [--ttl SECONDS]
    codepad serve [--host HOST] [--port PORT]

Storage is selected with the CODEPAD_* environment variables (see
codepad.config).

Exit codes:
    0: Success
    1: Internal error (storage or configuration failure)
    2: Not found or invalid input
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from codepad.assistant.client import CodeAssistant
from codepad.assistant.commands import AICommand
from codepad.assistant.generation import GENERATION_TEMPLATES
from codepad.assistant.languages import detect_language
from codepad.config import (
    CODEPAD_SESSION_SECRET_ENV,
    ConfigError,
    Settings,
    build_object_store,
    load_settings,
)
from codepad.files.bootstrap import create_storage_area
from codepad.files.errors import (
    EmptyContentError,
    FileNamespaceError,
    FileNotFoundOrDeniedError,
    InvalidIdentifierError,
)
from codepad.files.models import DEFAULT_LANGUAGE, FileDraft
from codepad.files.service import FileNamespaceService, ListingPolicy
from codepad.storage.errors import ObjectStorageError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID = 2


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2, default=str))


def _error(code: str, message: str) -> dict[str, str]:
    return {"code": code, "message": message}


def _read_text(input_path: str | None) -> str:
    """Read text from a file or stdin."""
    if input_path:
        return Path(input_path).read_text(encoding="utf-8")
    return sys.stdin.read()


def _files_service(settings: Settings, *, strict: bool = False) -> FileNamespaceService:
    policy = ListingPolicy.STRICT if strict else ListingPolicy.PARTIAL
    return FileNamespaceService(build_object_store(settings), listing_policy=policy)


def cmd_storage_bootstrap(args: argparse.Namespace, settings: Settings) -> int:
    """Create the files container and its access policies."""
    result = create_storage_area(build_object_store(settings))
    _output_json(
        {
            "status": result.status.value,
            "container": result.container,
            "policies_created": result.policies_created,
            "policies_failed": result.policies_failed,
        }
    )
    return EXIT_OK


def cmd_files_list(args: argparse.Namespace, settings: Settings) -> int:
    listing = _files_service(settings, strict=args.strict).list_files(args.user)
    _output_json(listing.model_dump(mode="json"))
    return EXIT_OK


def cmd_files_get(args: argparse.Namespace, settings: Settings) -> int:
    file = _files_service(settings).get_file(args.user, args.file_id)
    if args.raw:
        sys.stdout.write(file.content)
    else:
        _output_json(file.model_dump(mode="json"))
    return EXIT_OK


def cmd_files_save(args: argparse.Namespace, settings: Settings) -> int:
    draft = FileDraft(
        id=args.id,
        name=args.name,
        content=_read_text(args.input),
        language=args.language,
    )
    saved = _files_service(settings).save_file(args.user, draft, source="cli")
    _output_json({"success": True, "file": saved.model_dump(mode="json", exclude={"content"})})
    return EXIT_OK


def cmd_files_upload(args: argparse.Namespace, settings: Settings) -> int:
    path = Path(args.path)
    draft = FileDraft(
        name=path.name,
        content=path.read_text(encoding="utf-8"),
        language=detect_language(path.name),
    )
    saved = _files_service(settings).upload_file(args.user, draft)
    _output_json({"success": True, "file": saved.model_dump(mode="json", exclude={"content"})})
    return EXIT_OK


def cmd_files_delete(args: argparse.Namespace, settings: Settings) -> int:
    _files_service(settings).delete_file(args.user, args.file_id)
    _output_json({"deleted": True, "id": args.file_id})
    return EXIT_OK


def cmd_assistant_command(args: argparse.Namespace, settings: Settings) -> int:
    assistant = CodeAssistant(latency_seconds=settings.ai_latency_seconds)
    command = AICommand(args.ai_command)
    response = assistant.run_command(command, _read_text(args.input), args.language)
    _output_json({"command": command.value, "label": command.label, "response": response})
    return EXIT_OK


def cmd_assistant_generate(args: argparse.Namespace, settings: Settings) -> int:
    assistant = CodeAssistant(latency_seconds=settings.ai_latency_seconds)
    print(assistant.generate(args.prompt, args.language))
    return EXIT_OK


def cmd_assistant_templates(args: argparse.Namespace, settings: Settings) -> int:
    _output_json(
        [
            {
                "title": template.title,
                "description": template.description,
                "prompt": template.prompt_for(args.language),
            }
            for template in GENERATION_TEMPLATES
        ]
    )
    return EXIT_OK


def cmd_token(args: argparse.Namespace, settings: Settings) -> int:
    """Issue a session token signed with CODEPAD_SESSION_SECRET."""
    from codepad.api.auth import issue_session_token

    if not settings.session_secret:
        _output_json(_error("CONFIG_ERROR", f"{CODEPAD_SESSION_SECRET_ENV} is not set"))
        return EXIT_ERROR

    print(
        issue_session_token(
            args.user,
            settings.session_secret,
            name=args.name,
            email=args.email,
            ttl_seconds=args.ttl,
        )
    )
    return EXIT_OK


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Run the API with uvicorn."""
    import uvicorn

    from codepad.api.main import create_app

    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)
    return EXIT_OK


def _add_user_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--user", required=True, help="User id that owns the files")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="codepad",
        description="Codepad - per-user code files on an object store",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("CODEPAD_LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING, or CODEPAD_LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # storage command
    storage_parser = subparsers.add_parser("storage", help="Storage provisioning")
    storage_subparsers = storage_parser.add_subparsers(
        dest="storage_command", required=True, help="Storage subcommands"
    )
    bootstrap_parser = storage_subparsers.add_parser(
        "bootstrap", help="Create the files container and its access policies"
    )
    bootstrap_parser.set_defaults(handler=cmd_storage_bootstrap)

    # files command
    files_parser = subparsers.add_parser("files", help="File namespace operations")
    files_subparsers = files_parser.add_subparsers(
        dest="files_command", required=True, help="File subcommands"
    )

    list_parser = files_subparsers.add_parser("list", help="List a user's files")
    _add_user_argument(list_parser)
    list_parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Fail if any file's metadata cannot be read",
    )
    list_parser.set_defaults(handler=cmd_files_list)

    get_parser = files_subparsers.add_parser("get", help="Print a file")
    _add_user_argument(get_parser)
    get_parser.add_argument("file_id", help="File id")
    get_parser.add_argument(
        "--raw", action="store_true", default=False, help="Print only the content"
    )
    get_parser.set_defaults(handler=cmd_files_get)

    save_parser = files_subparsers.add_parser("save", help="Create or overwrite a file")
    _add_user_argument(save_parser)
    save_parser.add_argument("--name", required=True, help="Display name")
    save_parser.add_argument("--id", default=None, help="File id (new file if omitted)")
    save_parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Language tag")
    save_parser.add_argument(
        "--input", default=None, metavar="PATH", help="Content file (reads stdin if omitted)"
    )
    save_parser.set_defaults(handler=cmd_files_save)

    upload_parser = files_subparsers.add_parser("upload", help="Upload a local file")
    _add_user_argument(upload_parser)
    upload_parser.add_argument("path", metavar="PATH", help="Local file to upload")
    upload_parser.set_defaults(handler=cmd_files_upload)

    delete_parser = files_subparsers.add_parser("delete", help="Delete a file")
    _add_user_argument(delete_parser)
    delete_parser.add_argument("file_id", help="File id")
    delete_parser.set_defaults(handler=cmd_files_delete)

    # assistant command
    assistant_parser = subparsers.add_parser("assistant", help="Code assistant")
    assistant_subparsers = assistant_parser.add_subparsers(
        dest="assistant_command", required=True, help="Assistant subcommands"
    )

    command_parser = assistant_subparsers.add_parser("command", help="Run an editor command")
    command_parser.add_argument("ai_command", choices=[c.value for c in AICommand])
    command_parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Language tag")
    command_parser.add_argument(
        "--input", default=None, metavar="PATH", help="Code file (reads stdin if omitted)"
    )
    command_parser.set_defaults(handler=cmd_assistant_command)

    generate_parser = assistant_subparsers.add_parser("generate", help="Generate a snippet")
    generate_parser.add_argument("--prompt", required=True, help="What to generate")
    generate_parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Language tag")
    generate_parser.set_defaults(handler=cmd_assistant_generate)

    templates_parser = assistant_subparsers.add_parser(
        "templates", help="List generation templates"
    )
    templates_parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Language tag")
    templates_parser.set_defaults(handler=cmd_assistant_templates)

    # token command
    token_parser = subparsers.add_parser("token", help="Issue a session token")
    _add_user_argument(token_parser)
    token_parser.add_argument("--name", default=None, help="Display name claim")
    token_parser.add_argument("--email", default=None, help="Email claim")
    token_parser.add_argument("--ttl", type=int, default=3600, help="Lifetime in seconds")
    token_parser.set_defaults(handler=cmd_token)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.set_defaults(handler=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = str(args.log_level).upper()
    if log_level not in logging.getLevelNamesMapping():
        _output_json(_error("INVALID_INPUT", f"Invalid log level: {args.log_level!r}"))
        return EXIT_INVALID
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return EXIT_OK

    try:
        settings = load_settings()
        return int(handler(args, settings))
    except ConfigError as e:
        _output_json(_error("CONFIG_ERROR", str(e)))
        return EXIT_ERROR
    except (FileNotFoundOrDeniedError, EmptyContentError) as e:
        _output_json(_error("NOT_FOUND", e.message))
        return EXIT_INVALID
    except InvalidIdentifierError as e:
        _output_json(_error("INVALID_INPUT", e.message))
        return EXIT_INVALID
    except FileNamespaceError as e:
        _output_json(_error("INTERNAL_ERROR", e.message))
        return EXIT_ERROR
    except ObjectStorageError as e:
        logger.error("Storage operation failed: %s", e)
        _output_json(_error("STORAGE_ERROR", str(e)))
        return EXIT_ERROR
    except (OSError, UnicodeDecodeError, ValueError) as e:
        _output_json(_error("INVALID_INPUT", str(e)))
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
