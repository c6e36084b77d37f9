"""Conversion between long-form item ids and provider short forms."""

import re

from .errors import PayloadError
from .providers import ProviderProfile

LONG_ID_PREFIX = "tag:google.com,2005:reader/item/"

_NUMERIC_SEGMENT = re.compile(r"/\d+/")


class StreamIdCodec:
    """Converts item ids for one provider.

    Set arithmetic always runs on long-form ids; short forms only appear
    in request URLs and bodies of providers that want them.
    """

    def __init__(self, profile: ProviderProfile):
        self._profile = profile

    def to_long(self, stream_id: str) -> str:
        """Return the canonical ``tag:google.com,2005:reader/item/<hex>`` id.

        Numeric short ids are rendered as 16 zero-padded hex digits.
        TheOldReader ids are opaque and are wrapped as they are.
        """
        if stream_id.startswith(LONG_ID_PREFIX):
            return stream_id
        if self._profile.opaque_short_ids:
            return LONG_ID_PREFIX + stream_id
        try:
            return f"{LONG_ID_PREFIX}{int(stream_id):016x}"
        except ValueError as e:
            raise PayloadError(f"Unexpected item id: {stream_id!r}") from e

    def to_short(self, stream_id: str) -> str:
        """Return the decimal short form of a long id.

        Ids not in long form are returned unchanged.
        """
        if not stream_id.startswith(LONG_ID_PREFIX):
            return stream_id
        try:
            return str(int(stream_id[len(LONG_ID_PREFIX):], 16))
        except ValueError:
            return stream_id

    def to_long_all(self, stream_ids: list[str]) -> set[str]:
        return {self.to_long(stream_id) for stream_id in stream_ids}

    def for_request(self, stream_ids: list[str]) -> list[str]:
        """Render long ids in the form the provider expects in requests."""
        if self._profile.short_ids_in_requests:
            return [self.to_short(stream_id) for stream_id in stream_ids]
        return list(stream_ids)

    @staticmethod
    def simplify(stream_id: str) -> str:
        """Replace user-specific numeric path segments with ``/-/``."""
        return _NUMERIC_SEGMENT.sub("/-/", stream_id)
