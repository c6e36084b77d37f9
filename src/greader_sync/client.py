"""Google Reader API client shared by every supported provider."""

import logging
from urllib.parse import quote

import httpx

from .auth import AuthSession, Notifier, OAuthTokenSource, TokenStore
from .config import Config
from .content import decode_item_ids, decode_stream_contents
from .errors import AuthError, NetworkError, PayloadError
from .models import Message
from .pagination import chunked, fetch_in_batches, paginate
from .providers import FULL_STATE_READ, ITEM_IDS_MAX, Operation
from .stream_ids import StreamIdCodec
from .transport import FORM_CONTENT_TYPE, form_body, perform_request
from .tree import TreeNode

logger = logging.getLogger(__name__)


class GreaderClient:
    """Async client for one account on a Google Reader compatible server.

    Every request is awaited before the next one is issued. Methods raise
    ``SyncError`` subclasses; the orchestrator turns them into statuses.
    """

    def __init__(
        self,
        config: Config,
        http: httpx.AsyncClient | None = None,
        token_source: OAuthTokenSource | None = None,
        notifier: Notifier | None = None,
        token_store: TokenStore | None = None,
    ):
        self._config = config
        self.profile = config.profile
        self._http = http or httpx.AsyncClient(timeout=config.timeout, follow_redirects=True)
        self.session = AuthSession(self._http, config, token_source, notifier, token_store)
        self.codec = StreamIdCodec(self.profile)

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    @property
    def base_url(self) -> str:
        return self.profile.base_url(self._config.greader_url)

    def _url(self, operation: Operation, **params: object) -> str:
        template = self.profile.url(operation, self._config.greader_url)
        return template.format(**params) if params else template

    async def _ensure_login(self) -> None:
        if not await self.session.ensure_login():
            raise AuthError("login failed")

    async def _request(self, method: str, url: str, content: str | None = None) -> httpx.Response:
        headers = self.session.headers()
        if content is not None:
            headers["Content-Type"] = FORM_CONTENT_TYPE
        try:
            return await perform_request(
                self._http, method, url, self._config.timeout, content=content, headers=headers
            )
        except NetworkError as e:
            if e.status_code == 401:
                self.session.handle_unauthorized(str(e))
            raise

    async def _request_json(self, method: str, url: str, content: str | None = None) -> dict:
        response = await self._request(method, url, content)
        try:
            data = response.json()
        except ValueError as e:
            raise PayloadError(f"Invalid JSON from {url}") from e
        if not isinstance(data, dict):
            raise PayloadError(f"Unexpected response shape from {url}")
        return data

    def _encode(self, value: str) -> str:
        return value if self.profile.raw_ids else quote(value, safe="")

    async def item_ids(
        self,
        stream_id: str,
        unread_only: bool,
        max_count: int = -1,
        newer_than: int | None = None,
    ) -> list[str]:
        """List ids of all (or only unread) items in a stream, as returned by the server."""
        await self._ensure_login()
        base = self._url(
            Operation.ITEM_IDS,
            stream=self._encode(stream_id),
            count=ITEM_IDS_MAX if max_count <= 0 else max_count,
        )

        async def fetch_page(continuation: str) -> tuple[list[str], str]:
            url = base
            if unread_only:
                url += f"&xt={FULL_STATE_READ}"
            if continuation:
                url += f"&c={quote(continuation, safe='')}"
            if newer_than is not None:
                url += f"&ot={newer_than}"
            try:
                return decode_item_ids(await self._request_json("GET", url))
            except NetworkError as e:
                logger.error(
                    "Cannot download item IDs for %s, network error: %s", self.codec.simplify(stream_id), e
                )
                raise

        ids = await paginate(fetch_page)
        logger.debug(
            "Stream %s has %d item ids (unread only: %s)", self.codec.simplify(stream_id), len(ids), unread_only
        )
        return ids

    async def item_contents(self, item_ids: list[str], labels: list[TreeNode] | None = None) -> list[Message]:
        """Download contents of the given long-form item ids in provider-sized batches."""
        await self._ensure_login()
        request_ids = self.codec.for_request(item_ids)

        async def fetch_batch(batch: list[str]) -> list[Message]:
            body = form_body([("i", self._encode(item_id)) for item_id in batch])

            async def fetch_page(continuation: str) -> tuple[list[Message], str]:
                url = self._url(Operation.ITEM_CONTENTS)
                if continuation:
                    url += f"&c={quote(continuation, safe='')}"
                try:
                    payload = await self._request_json("POST", url, body)
                except NetworkError as e:
                    logger.error("Cannot download messages for %d ids, network error: %s", len(batch), e)
                    raise
                return decode_stream_contents(payload, "", labels)

            return await paginate(fetch_page)

        messages = await fetch_in_batches(request_ids, self._config.contents_batch, fetch_batch)
        logger.info("Downloaded %d messages for %d ids", len(messages), len(item_ids))
        return messages

    async def stream_contents(self, stream_id: str, labels: list[TreeNode] | None = None) -> list[Message]:
        """Download the newest messages of a whole stream, up to the configured batch size."""
        await self._ensure_login()
        target = self._config.target_stream_size
        stream = stream_id if self.profile.raw_stream_in_contents_url else quote(stream_id, safe="")
        newer_than = self._config.newer_than()
        base = self._url(Operation.STREAM_CONTENTS, stream=stream, count=target)

        async def fetch_page(continuation: str) -> tuple[list[Message], str]:
            url = base
            if self._config.unread_only:
                url += f"&xt={FULL_STATE_READ}"
            if continuation:
                url += f"&c={quote(continuation, safe='')}"
            if newer_than is not None:
                url += f"&ot={newer_than}"
            try:
                payload = await self._request_json("GET", url)
            except NetworkError as e:
                logger.error(
                    "Cannot download messages for %s, network error: %s", self.codec.simplify(stream_id), e
                )
                raise
            return decode_stream_contents(payload, stream_id, labels)

        return await paginate(fetch_page, limit=target)

    async def tag_list(self) -> dict:
        await self._ensure_login()
        return await self._request_json("GET", self._url(Operation.TAG_LIST))

    async def subscription_list(self) -> dict:
        await self._ensure_login()
        return await self._request_json("GET", self._url(Operation.SUBSCRIPTION_LIST))

    async def user_info(self) -> dict:
        await self._ensure_login()
        return await self._request_json("GET", self._url(Operation.USER_INFO))

    async def edit_tag(self, state: str, assign: bool, item_ids: list[str]) -> None:
        """Add (``assign``) or remove ``state`` on items, in batches."""
        await self._ensure_login()
        url = self._url(Operation.EDIT_TAG)

        for batch in chunked(item_ids, self._config.edit_tag_batch):
            pairs = [("a" if assign else "r", state)]
            pairs.extend(("i", self._encode(item_id)) for item_id in batch)
            if self.profile.needs_edit_token:
                pairs.append(("T", self.session.edit_token))
            await self._request("POST", url, form_body(pairs))

        logger.info("Updated %s on %d items", state, len(item_ids))

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if not self._http.is_closed:
            await self._http.aclose()
