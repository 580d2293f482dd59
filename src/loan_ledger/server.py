"""Loan Ledger MCP Server - FastMCP Implementation

Exposes the loan ledger over MCP: tools issue, return and delete loans,
resources give read-only views of the loans and their items.
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import LedgerConfig, get_config
from .database.session import get_db_manager
from .observability import initialize_observability
from .resources import all_resources
from .tools import all_tools

# stderr for logs, stdout for MCP protocol
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)


def create_server(config: LedgerConfig | None = None) -> FastMCP:
    """Build the FastMCP server and register every tool and resource."""
    config = config or get_config()

    mcp = FastMCP(
        name=config.server_name,
        instructions=(
            "A library loan ledger. Use the tools to lend books (several titles per loan), "
            "return loans with late-fee settlement, and delete loans. Shelf stock is "
            "checked and updated atomically. Use resources to browse existing loans."
        ),
    )

    for resource in all_resources:
        uri = resource.get("uri_template", resource.get("uri"))
        logger.debug("Registering resource: %s with URI: %s", resource["name"], uri)
        try:
            mcp.resource(
                uri,
                name=resource["name"],
                description=resource["description"],
                mime_type=resource["mime_type"],
            )(resource["handler"])
        except Exception:
            logger.exception("Failed to register resource %s", resource["name"])
            raise

    logger.info("Registered %d resources", len(all_resources))

    for tool in all_tools:
        logger.debug("Registering tool: %s", tool["name"])
        try:
            mcp.tool(
                name=tool["name"],
                description=tool["description"],
            )(tool["handler"])
        except Exception:
            logger.exception("Failed to register tool %s", tool["name"])
            raise

    logger.info("Registered %d tools", len(all_tools))
    return mcp


def _prepare_database() -> None:
    db_manager = get_db_manager()
    if not db_manager.verify_connection():
        raise RuntimeError("Database connection could not be established")
    db_manager.init_database()


def run_server(config: LedgerConfig | None = None) -> None:
    """Run the MCP server on the configured transport.

    stdio: stdin receives JSON-RPC requests, stdout sends responses.
    streamable_http: serves MCP over HTTP on ``http_host``:``http_port``.
    """
    config = config or get_config()
    logger.info(
        "Starting %s v%s on %s transport",
        config.server_name,
        config.server_version,
        config.transport,
    )

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose protocol logging active")
    else:
        logging.getLogger().setLevel(config.log_level)
        logging.getLogger("fastmcp").setLevel(logging.WARNING)

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        get_db_manager().close()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    initialize_observability()
    _prepare_database()
    mcp = create_server(config)

    logger.info("MCP Server ready and waiting for connections...")
    if config.transport == "streamable_http":
        mcp.run(transport="streamable-http", host=config.http_host, port=config.http_port)
    else:
        mcp.run(transport="stdio")


def main() -> None:
    """Main entry point for the MCP server."""
    try:
        config = get_config()
        logger.info("=" * 60)
        logger.info("Loan Ledger MCP Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        run_server(config)

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
