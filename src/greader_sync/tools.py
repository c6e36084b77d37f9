"""MCP tool definitions for the Google Reader sync engine.

Each tool does exactly one thing. All exceptions are caught at the
tool boundary and returned as "Error: ..." strings so the MCP protocol
never sees an uncaught exception.
"""

import logging

from fastmcp import FastMCP

from .models import FeedStatus, MessageStateSets
from .sync import SyncOrchestrator

logger = logging.getLogger(__name__)


def _status_reply(status: FeedStatus) -> str:
    return "OK" if status is FeedStatus.NORMAL else f"Error: {status.value}"


def _parse_local_state(local_state: dict[str, dict[str, list[str]]]) -> dict[str, MessageStateSets]:
    """Turn ``{stream_id: {"read": [...], "unread": [...], "starred": [...]}}`` into state sets."""
    return {
        stream_id: MessageStateSets.from_lists(
            states.get("read"), states.get("unread"), states.get("starred")
        )
        for stream_id, states in local_state.items()
    }


def register_tools(mcp: FastMCP, orchestrator: SyncOrchestrator) -> None:
    """Register all sync tools on the given MCP server instance."""

    @mcp.tool()
    async def get_category_tree(with_icons: bool = False) -> str:
        """Get the categories, feeds and labels of the account as a nested tree.

        Args:
            with_icons: Whether to download feed icons while building the tree.
        """
        try:
            result = await orchestrator.fetch_tree(with_icons)
            if not result.ok:
                return _status_reply(result.status)
            return str(result.value.to_dict())
        except Exception as e:
            logger.error("get_category_tree failed: %s", e, exc_info=True)
            return f"Error: {e}"

    @mcp.tool()
    async def sync_feeds(
        local_state: dict[str, dict[str, list[str]]],
        total_feeds: int | None = None,
        max_messages_per_feed: int = 50,
    ) -> str:
        """Synchronize feeds against locally known message states.

        Args:
            local_state: Map of feed stream id to known message ids, e.g.
                {"feed/1": {"read": [...], "unread": [...], "starred": [...]}}.
            total_feeds: Number of feeds in the whole account (default: feeds given).
            max_messages_per_feed: Maximum messages listed per feed in the reply.

        Returns per-feed status, message count and the new or changed messages.
        """
        try:
            results = await orchestrator.run_cycle(_parse_local_state(local_state), total_feeds)
            reply = {}
            for stream_id, result in results.items():
                messages = result.value or []
                reply[stream_id] = {
                    "status": result.status.value,
                    "count": len(messages),
                    "messages": [m.to_dict() for m in messages[:max_messages_per_feed]],
                }
            return str(reply)
        except Exception as e:
            logger.error("sync_feeds failed: %s", e, exc_info=True)
            return f"Error: {e}"

    @mcp.tool()
    async def mark_messages(state: str, assign: bool, message_ids: list[str]) -> str:
        """Assign or remove a state or label stream on messages.

        Args:
            state: Stream id such as "user/-/state/com.google/read" or a label id.
            assign: True to add the state, False to remove it.
            message_ids: Long-form message ids.

        Returns "OK" on success or an error message.
        """
        try:
            return _status_reply(await orchestrator.edit_message_state(state, assign, message_ids))
        except Exception as e:
            logger.error("mark_messages failed: %s", e, exc_info=True)
            return f"Error: {e}"

    @mcp.tool()
    async def mark_as_read(message_ids: list[str]) -> str:
        """Mark messages as read. Returns "OK" on success or an error message."""
        try:
            return _status_reply(await orchestrator.mark_messages_read(True, message_ids))
        except Exception as e:
            logger.error("mark_as_read failed: %s", e, exc_info=True)
            return f"Error: {e}"

    @mcp.tool()
    async def mark_as_unread(message_ids: list[str]) -> str:
        """Mark messages as unread. Returns "OK" on success or an error message."""
        try:
            return _status_reply(await orchestrator.mark_messages_read(False, message_ids))
        except Exception as e:
            logger.error("mark_as_unread failed: %s", e, exc_info=True)
            return f"Error: {e}"

    @mcp.tool()
    async def star_messages(message_ids: list[str]) -> str:
        """Star messages. Returns "OK" on success or an error message."""
        try:
            return _status_reply(await orchestrator.mark_messages_starred(True, message_ids))
        except Exception as e:
            logger.error("star_messages failed: %s", e, exc_info=True)
            return f"Error: {e}"

    @mcp.tool()
    async def unstar_messages(message_ids: list[str]) -> str:
        """Remove the star from messages. Returns "OK" on success or an error message."""
        try:
            return _status_reply(await orchestrator.mark_messages_starred(False, message_ids))
        except Exception as e:
            logger.error("unstar_messages failed: %s", e, exc_info=True)
            return f"Error: {e}"

    @mcp.tool()
    async def get_user_info() -> str:
        """Get account metadata reported by the server."""
        try:
            result = await orchestrator.user_info()
            if not result.ok:
                return _status_reply(result.status)
            return str(result.value)
        except Exception as e:
            logger.error("get_user_info failed: %s", e, exc_info=True)
            return f"Error: {e}"
