"""Synchronization cycle for one Google Reader account.

A cycle starts with ``prepare_account_fetch`` and continues with one
``fetch_feed_messages`` call per feed. When the cycle covers a large share
of the account, every changed message is downloaded once in the prepare
step and later handed out feed by feed. Otherwise each feed reconciles its
own stream. Starred state is always reconciled account-wide.
"""

import logging

from .client import GreaderClient
from .config import Config
from .errors import AuthError, SyncError
from .icons import HttpIconFetcher, IconFetcher, attach_icons
from .models import FeedStatus, Message, MessageStateSets, RemoteIdSnapshot, Result
from .providers import FULL_STATE_IMPORTANT, FULL_STATE_READ, FULL_STATE_READING_LIST
from .reconcile import fetch_ratio, reconcile, should_fetch_globally, starred_delta
from .tree import CategoryTree, TreeNode, decode_tree

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Entry point for fetching messages and the feed tree of one account.

    No public coroutine raises; failures come back as ``FeedStatus``
    values. Instances are not safe for concurrent use.
    """

    def __init__(
        self,
        config: Config,
        client: GreaderClient | None = None,
        icon_fetcher: IconFetcher | None = None,
    ):
        self._config = config
        self.client = client or GreaderClient(config)
        self._icon_fetcher = icon_fetcher
        self.labels: list[TreeNode] = []
        self._prefetched: list[Message] = []
        self._prefetched_status = FeedStatus.NORMAL
        self._global_fetching = False

    @property
    def global_fetching(self) -> bool:
        return self._global_fetching

    @property
    def prefetched_status(self) -> FeedStatus:
        return self._prefetched_status

    @property
    def prefetched_messages(self) -> tuple[Message, ...]:
        return tuple(self._prefetched)

    def clear_prefetched(self) -> None:
        self._prefetched = []
        self._prefetched_status = FeedStatus.NORMAL

    async def _remote_snapshot(self, stream_id: str, newer_than: int | None) -> RemoteIdSnapshot:
        codec = self.client.codec
        all_ids = None
        if not self._config.unread_only:
            all_ids = codec.to_long_all(
                await self.client.item_ids(stream_id, False, newer_than=newer_than)
            )
        unread_ids = codec.to_long_all(await self.client.item_ids(stream_id, True, newer_than=newer_than))
        return RemoteIdSnapshot(unread_ids=unread_ids, all_ids=all_ids)

    async def prepare_account_fetch(
        self,
        feeds: list[str],
        local_state: dict[str, MessageStateSets],
        total_feeds: int | None = None,
    ) -> FeedStatus:
        """Start a cycle for ``feeds`` (stream ids) out of ``total_feeds`` in the account.

        ``total_feeds`` counts leaf feeds only; it defaults to ``len(feeds)``.
        The returned status is also remembered and reported by every
        ``fetch_feed_messages`` call of this cycle.
        """
        self.clear_prefetched()
        if not self._config.intelligent_sync:
            self._global_fetching = False
            return self._prefetched_status

        total = len(feeds) if total_feeds is None else total_feeds
        self._global_fetching = should_fetch_globally(len(feeds), total, self._config.global_threshold)
        logger.debug("Percentage of feeds for fetching: %.1f%%", fetch_ratio(len(feeds), total) * 100.0)

        state = MessageStateSets.merge(list(local_state.values()))
        newer_than = self._config.newer_than()

        try:
            if not await self.client.session.ensure_login():
                raise AuthError("login failed")

            remote_starred = self.client.codec.to_long_all(
                await self.client.item_ids(FULL_STATE_IMPORTANT, False, newer_than=newer_than)
            )
            to_download = starred_delta(remote_starred, state.starred)

            if self._global_fetching:
                logger.info("Performing global contents fetching")
                snapshot = await self._remote_snapshot(FULL_STATE_READING_LIST, newer_than)
                to_download |= reconcile(
                    snapshot.all_ids,
                    snapshot.unread_ids,
                    state.read,
                    state.unread,
                    self._config.unread_only,
                )
            else:
                logger.info("Performing feed-based contents fetching")

            if to_download:
                self._prefetched = await self.client.item_contents(sorted(to_download), self.labels)
        except SyncError as e:
            self._prefetched = []
            self._prefetched_status = e.status
            logger.error("Failed to fetch item IDs for common stream: %s", e)

        return self._prefetched_status

    async def fetch_feed_messages(self, stream_id: str, local_state: MessageStateSets) -> Result[list[Message]]:
        """Return new and changed messages of one feed."""
        if self._prefetched_status is not FeedStatus.NORMAL:
            return Result([], self._prefetched_status)

        messages: list[Message] = []
        try:
            if not self._config.intelligent_sync:
                messages = await self.client.stream_contents(stream_id, self.labels)
            elif not self._global_fetching:
                snapshot = await self._remote_snapshot(stream_id, self._config.newer_than())
                to_download = reconcile(
                    snapshot.all_ids,
                    snapshot.unread_ids,
                    local_state.read,
                    local_state.unread,
                    self._config.unread_only,
                )
                if to_download:
                    messages = await self.client.item_contents(sorted(to_download), self.labels)
        except SyncError as e:
            logger.error("Failed to fetch messages for stream %s: %s", self.client.codec.simplify(stream_id), e)
            return Result([], e.status)

        messages.extend(self._drain_prefetched(stream_id, {m.custom_id for m in messages}))
        return Result(messages)

    def _drain_prefetched(self, stream_id: str, known_ids: set[str]) -> list[Message]:
        """Remove and return prefetched messages of ``stream_id`` not in ``known_ids``."""
        drained = []
        remaining = []
        for message in self._prefetched:
            if message.feed_id != stream_id:
                remaining.append(message)
            elif message.custom_id not in known_ids:
                known_ids.add(message.custom_id)
                drained.append(message)
        self._prefetched = remaining
        return drained

    async def run_cycle(
        self,
        local_state: dict[str, MessageStateSets],
        total_feeds: int | None = None,
    ) -> dict[str, Result[list[Message]]]:
        """Prepare a cycle and fetch every feed named in ``local_state``."""
        await self.prepare_account_fetch(list(local_state), local_state, total_feeds)
        return {
            stream_id: await self.fetch_feed_messages(stream_id, state)
            for stream_id, state in local_state.items()
        }

    async def fetch_tree(self, with_icons: bool = False) -> Result[CategoryTree]:
        """Download and decode the category/feed/label tree of the account."""
        try:
            tags = await self.client.tag_list()
            subscriptions = await self.client.subscription_list()
            tree = decode_tree(
                tags,
                subscriptions,
                self.client.profile,
                self._config.greader_url or self.client.profile.fixed_base_url or "",
            )
        except SyncError as e:
            logger.error("Failed to obtain feed tree: %s", e)
            return Result(None, e.status)

        if with_icons:
            fetcher = self._icon_fetcher or HttpIconFetcher(self.client.http)
            found = await attach_icons(tree, fetcher)
            logger.info("Obtained icons for %d of %d feeds", found, len(tree.feeds))

        self.labels = tree.labels
        return Result(tree)

    async def edit_message_state(self, state: str, assign: bool, message_ids: list[str]) -> FeedStatus:
        """Assign or remove a state stream (read, starred, a label) on messages."""
        if not message_ids:
            return FeedStatus.NORMAL
        try:
            await self.client.edit_tag(state, assign, message_ids)
        except SyncError as e:
            action = "assign" if assign else "remove"
            logger.error("Failed to %s %s on %d messages: %s", action, state, len(message_ids), e)
            return e.status
        return FeedStatus.NORMAL

    async def mark_messages_read(self, read: bool, message_ids: list[str]) -> FeedStatus:
        return await self.edit_message_state(FULL_STATE_READ, read, message_ids)

    async def mark_messages_starred(self, starred: bool, message_ids: list[str]) -> FeedStatus:
        return await self.edit_message_state(FULL_STATE_IMPORTANT, starred, message_ids)

    async def user_info(self) -> Result[dict]:
        try:
            return Result(await self.client.user_info())
        except SyncError as e:
            logger.error("Failed to obtain user info: %s", e)
            return Result(None, e.status)

    async def aclose(self) -> None:
        await self.client.aclose()
