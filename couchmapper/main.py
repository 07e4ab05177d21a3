"""Composition root for couchmapper.

This module is the ONLY location that imports both core logic and
concrete adapter implementations. All wiring of dependencies happens here.

Usage:
    couchmapper <command> [json-arguments]

Commands:
    create-db {"database": "users"}
    drop-db   {"database": "users"}
    get       {"database": "users", "doc_id": "..."}
    find      {"database": "users", "where": {"age": {"gt": 50}}, "order": ["name"]}
"""

import asyncio
import json
import logging
import sys
from typing import Any

from couchmapper.adapters.cli.commands import CLICommandHandler
from couchmapper.adapters.store.couchdb import CouchDBDocumentStore
from couchmapper.adapters.store.memory import InMemoryDocumentStore
from couchmapper.config import Settings, load_settings
from couchmapper.core.document_service import DocumentService
from couchmapper.core.ports import DocumentStorePort

logger = logging.getLogger(__name__)

COMMANDS = ("create-db", "drop-db", "get", "find")


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # stdout carries command results, so logs go to stderr
    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def build_store(settings: Settings) -> DocumentStorePort:
    """Instantiate the document store selected by configuration."""
    if settings.store_backend == "memory":
        logger.info("Document store: in-memory")
        return InMemoryDocumentStore()
    logger.info(f"Document store: CouchDB at {settings.couchdb_url}")
    return CouchDBDocumentStore(
        api_url=settings.couchdb_url,
        username=settings.couchdb_username,
        password=settings.couchdb_password,
        timeout=settings.couchdb_timeout_seconds,
        page_size=settings.find_page_size,
    )


async def execute_command(
    cli_handler: CLICommandHandler, command: str, args: dict[str, Any]
) -> dict[str, Any]:
    """Execute a CLI command.

    Raises:
        ValueError: If command is not recognized or a required argument is missing.
    """
    try:
        if command == "create-db":
            return await cli_handler.create_database(args["database"])
        if command == "drop-db":
            return await cli_handler.delete_database(args["database"])
        if command == "get":
            return await cli_handler.get_document(args["database"], args["doc_id"])
        if command == "find":
            return await cli_handler.find_documents(
                args["database"],
                where=args.get("where"),
                order=args.get("order"),
                limit=args.get("limit"),
            )
    except KeyError as e:
        raise ValueError(f"Missing argument {e} for command '{command}'") from e
    raise ValueError(f"Unknown command '{command}'. Expected one of: {', '.join(COMMANDS)}")


async def bootstrap(command: str, args: dict[str, Any], settings: Settings | None = None) -> dict[str, Any]:
    """Load configuration, wire the store and run one command.

    Steps:
    1. Load configuration from environment
    2. Instantiate the store adapter
    3. Initialize the document service and CLI handler
    4. Execute the command and release the store
    """
    settings = settings or load_settings()
    store = build_store(settings)
    try:
        cli_handler = CLICommandHandler(DocumentService(store))
        return await execute_command(cli_handler, command, args)
    finally:
        await store.close()


def main(argv: list[str] | None = None) -> None:
    """Application entry point.

    Exit codes:
        0: Command succeeded
        1: Command failed or bad usage
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    argv = sys.argv[1:] if argv is None else argv
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_format)

    if not argv:
        print(__doc__)
        sys.exit(1)

    command, args_str = argv[0], argv[1] if len(argv) > 1 else "{}"
    try:
        args = json.loads(args_str)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON arguments: {e}")
        sys.exit(1)
    if not isinstance(args, dict):
        logger.error("Arguments must be a JSON object")
        sys.exit(1)

    try:
        result = asyncio.run(bootstrap(command, args, settings))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (SIGINT)")
        sys.exit(130)
    except ValueError as e:
        result = {"status": "error", "operation": command, "message": str(e)}
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    print(json.dumps(result, indent=2, default=str))
    sys.exit(0 if result.get("status") == "success" else 1)


if __name__ == "__main__":
    main()
