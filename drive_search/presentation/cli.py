import asyncio
import json
import logging
import subprocess
import sys
from pathlib import Path

from drive_search.config.settings import settings
from drive_search.container import configure_container, container
from drive_search.core.errors import BuildError, ConfigurationError, InvalidQueryError
from drive_search.core.models.index import BuildStats
from drive_search.core.services.query_service import QueryService

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def _print_json(data: dict) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def cmd_build() -> int:
    """Build command - force a full index build."""
    try:
        settings.require_root_id()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    configure_container(settings)
    query_service = container.resolve(QueryService)
    try:
        result = asyncio.run(query_service.rebuild())
    except BuildError as e:
        logger.error(f"Build failed: {e}")
        _print_json({"ok": False, "reason": e.reason, "detail": e.detail})
        return 1

    _print_json({"ok": isinstance(result, BuildStats), **result.to_dict()})
    return 0


def cmd_search(query: str) -> int:
    """Search command - build if needed, then query."""
    configure_container(settings)
    query_service = container.resolve(QueryService)
    try:
        response = asyncio.run(query_service.search(query))
    except InvalidQueryError as e:
        _print_json({"ok": False, "error": str(e)})
        return 2

    _print_json({"ok": True, **response.to_dict()})
    return 0


def cmd_status() -> int:
    """Status command - provider and index health."""
    configure_container(settings)
    query_service = container.resolve(QueryService)
    status = asyncio.run(query_service.health())
    _print_json(status.to_dict())
    return 0 if status.healthy else 1


def cmd_ui() -> int:
    """UI command - run the Chainlit search chat."""
    logger.info("Starting Chainlit...")
    app_path = Path(__file__).parent / "chainlit_app.py"
    return subprocess.run(
        [
            sys.executable,
            "-m",
            "chainlit",
            "run",
            str(app_path),
            "--host",
            "0.0.0.0",
            "--port",
            "8000",
        ]
    ).returncode


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: drive-search <command>")
        print("Commands: build, search <query>, status, ui")
        sys.exit(1)

    command = sys.argv[1]

    if command == "build":
        sys.exit(cmd_build())
    elif command == "search":
        sys.exit(cmd_search(" ".join(sys.argv[2:])))
    elif command == "status":
        sys.exit(cmd_status())
    elif command == "ui":
        sys.exit(cmd_ui())
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
