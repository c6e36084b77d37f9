"""MCP server entry point for the Google Reader sync engine.

Runs FastMCP with Streamable HTTP transport so MCP clients can trigger
synchronization cycles via HTTP POST to /mcp.
"""

import asyncio
import logging
import signal
import sys

from fastmcp import FastMCP

from .config import Config, load_config
from .sync import SyncOrchestrator
from .tools import register_tools

logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def describe_account(config: Config) -> str:
    """One-line summary of the account and sync mode, logged at startup."""
    profile = config.profile
    mode = "intelligent" if config.intelligent_sync else "full stream"
    if config.unread_only:
        mode += ", unread only"
    return (
        f"{profile.variant.value} account at {profile.base_url(config.greader_url)} "
        f"({profile.auth_scheme.value}, {mode}, contents batch {config.contents_batch}, "
        f"global threshold {config.global_threshold:g})"
    )


def main() -> None:
    """Run the greader-sync MCP server."""
    config = load_config()
    orchestrator = SyncOrchestrator(config)

    mcp = FastMCP("greader-sync")
    register_tools(mcp, orchestrator)

    def handle_shutdown(signum: int, frame: object) -> None:
        logger.info("Received signal %d, closing connection to %s", signum, orchestrator.client.base_url)
        asyncio.run(orchestrator.aclose())
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    logger.info("Syncing %s", describe_account(config))
    logger.info("Starting greader-sync MCP server on %s:%d (streamable-http)", config.server_host, config.server_port)
    mcp.run(
        transport="streamable-http",
        host=config.server_host,
        port=config.server_port,
    )


if __name__ == "__main__":
    main()
