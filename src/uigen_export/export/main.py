"""CLI entrypoint for exporting projects.

Commands:
- `export`: run the export pipeline for one stored project
- `create-project`: store a project built from a directory of text files
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from uigen_export import __version__
from uigen_export.export.config import ExportSettings
from uigen_export.export.errors import ExportError, PreconditionError, ProjectNotFound
from uigen_export.export.logging import configure_logging
from uigen_export.export.pipeline import ExportRequest, export_project
from uigen_export.export.projects import ProjectStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uigen-export",
        description="Export UIGen projects to GitHub repositories",
    )
    parser.add_argument("--version", action="version", version=f"uigen-export {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="Export a stored project to a new repository")
    export.add_argument("--project-id", required=True, help="Id of the project to export")
    export.add_argument(
        "--user-id",
        required=True,
        help="Id of the requesting user; must own the project",
    )

    create = subparsers.add_parser(
        "create-project",
        help="Store a project whose file map is read from a directory",
    )
    create.add_argument("--user-id", required=True, help="Owner of the new project")
    create.add_argument("--name", required=True, help="Project name")
    create.add_argument(
        "--from-dir",
        required=True,
        help="Directory whose text files become the project's file map",
    )

    return parser


def read_file_map(directory: Path) -> dict[str, str]:
    """Read every UTF-8 text file under `directory`, keyed by POSIX relative path.

    Binary files and VCS metadata are skipped.
    """

    files: dict[str, str] = {}
    for path in sorted(directory.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(directory)
        if relative.parts[0] in {".git", "node_modules"}:
            continue
        try:
            files[relative.as_posix()] = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping non-text file", extra={"path": str(path)})
    return files


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = ExportSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    store = ProjectStore(settings.projects_state_file)

    try:
        if args.command == "export":
            result = export_project(
                ExportRequest(project_id=args.project_id, requester_id=args.user_id),
                store=store,
                settings=settings,
            )
            print(f"Successfully exported project to GitHub repository: {result.repository_url}")
            if result.fallback:
                print(
                    "Note: the URL was not reported by the GitHub CLI and was derived "
                    "from the repository name.",
                    file=sys.stderr,
                )
            return 0

        if args.command == "create-project":
            directory = Path(args.from_dir)
            if not directory.is_dir():
                print(f"Not a directory: {directory}", file=sys.stderr)
                return 2
            record = store.create(
                owner_id=args.user_id, name=args.name, files=read_file_map(directory)
            )
            print(record.id)
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except ProjectNotFound as e:
        print(e.message, file=sys.stderr)
        return 3

    except PreconditionError as e:
        print(e.message, file=sys.stderr)
        return 4

    except ExportError as e:
        logger.warning("Export failed", extra={"error": e.message})
        print(e.message, file=sys.stderr)
        return 1

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
