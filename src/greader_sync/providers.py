"""Per-provider protocol differences, expressed as one profile per service.

Every quirk of a Google Reader compatible service lives in its
``ProviderProfile``; the rest of the package only reads profile fields.
"""

from dataclasses import dataclass, field
from enum import Enum


class ProviderVariant(str, Enum):
    FRESHRSS = "freshrss"
    INOREADER = "inoreader"
    THE_OLD_READER = "theoldreader"
    BAZQUX = "bazqux"
    REEDAH = "reedah"
    OTHER = "other"


class AuthScheme(str, Enum):
    CLIENT_LOGIN = "client_login"
    OAUTH = "oauth"


class Operation(str, Enum):
    CLIENT_LOGIN = "client_login"
    TOKEN = "token"
    TAG_LIST = "tag_list"
    SUBSCRIPTION_LIST = "subscription_list"
    STREAM_CONTENTS = "stream_contents"
    EDIT_TAG = "edit_tag"
    ITEM_IDS = "item_ids"
    ITEM_CONTENTS = "item_contents"
    USER_INFO = "user_info"


ENDPOINTS: dict[Operation, str] = {
    Operation.CLIENT_LOGIN: "accounts/ClientLogin",
    Operation.TOKEN: "reader/api/0/token",
    Operation.TAG_LIST: "reader/api/0/tag/list?output=json",
    Operation.SUBSCRIPTION_LIST: "reader/api/0/subscription/list?output=json",
    Operation.STREAM_CONTENTS: "reader/api/0/stream/contents/{stream}?output=json&n={count}",
    Operation.EDIT_TAG: "reader/api/0/edit-tag",
    Operation.ITEM_IDS: "reader/api/0/stream/items/ids?output=json&s={stream}&n={count}",
    Operation.ITEM_CONTENTS: "reader/api/0/stream/items/contents?output=json",
    Operation.USER_INFO: "reader/api/0/user-info?output=json",
}

STATE_READ = "state/com.google/read"
STATE_IMPORTANT = "state/com.google/starred"
FULL_STATE_READ = "user/-/state/com.google/read"
FULL_STATE_IMPORTANT = "user/-/state/com.google/starred"
FULL_STATE_READING_LIST = "user/-/state/com.google/reading-list"

ITEM_IDS_MAX = 200000
EDIT_TAG_BATCH = 200
DEFAULT_ITEM_CONTENTS_BATCH = 999
TOR_ITEM_CONTENTS_BATCH = 9999
INO_ITEM_CONTENTS_BATCH = 250
SPONSORED_STREAM_PREFIX = "tor/sponsored"
INOREADER_URL = "https://www.inoreader.com"
FRESHRSS_API_PATH = "api/greader.php/"


@dataclass(frozen=True)
class ProviderProfile:
    """Declarative description of one provider's protocol quirks."""

    variant: ProviderVariant
    auth_scheme: AuthScheme = AuthScheme.CLIENT_LOGIN
    fixed_base_url: str | None = None
    api_path: str = ""
    item_contents_batch: int = DEFAULT_ITEM_CONTENTS_BATCH
    # Ids in ItemContents bodies and stream ids in ItemIds URLs are sent
    # unencoded.
    raw_ids: bool = False
    raw_stream_in_contents_url: bool = False
    short_ids_in_requests: bool = False
    opaque_short_ids: bool = False
    needs_edit_token: bool = False
    categories_from_subscriptions: bool = False
    label_tags_are_categories: bool = False
    label_ids_are_labels: bool = False
    fix_icon_port: bool = False
    endpoints: dict[Operation, str] = field(default_factory=lambda: dict(ENDPOINTS))

    @property
    def uses_oauth(self) -> bool:
        return self.auth_scheme is AuthScheme.OAUTH

    def base_url(self, configured_url: str) -> str:
        """Return the API root for this provider, always ending with ``/``."""
        base_url = self.fixed_base_url or configured_url
        if not base_url.endswith("/"):
            base_url += "/"
        return base_url + self.api_path

    def url(self, operation: Operation, configured_url: str) -> str:
        return self.base_url(configured_url) + self.endpoints[operation]


PROFILES: dict[ProviderVariant, ProviderProfile] = {
    ProviderVariant.FRESHRSS: ProviderProfile(
        variant=ProviderVariant.FRESHRSS,
        api_path=FRESHRSS_API_PATH,
        item_contents_batch=TOR_ITEM_CONTENTS_BATCH,
        raw_stream_in_contents_url=True,
        fix_icon_port=True,
    ),
    ProviderVariant.INOREADER: ProviderProfile(
        variant=ProviderVariant.INOREADER,
        auth_scheme=AuthScheme.OAUTH,
        fixed_base_url=INOREADER_URL,
        item_contents_batch=INO_ITEM_CONTENTS_BATCH,
        categories_from_subscriptions=True,
        label_ids_are_labels=True,
    ),
    ProviderVariant.THE_OLD_READER: ProviderProfile(
        variant=ProviderVariant.THE_OLD_READER,
        item_contents_batch=TOR_ITEM_CONTENTS_BATCH,
        raw_ids=True,
        raw_stream_in_contents_url=True,
        opaque_short_ids=True,
        label_tags_are_categories=True,
    ),
    ProviderVariant.BAZQUX: ProviderProfile(
        variant=ProviderVariant.BAZQUX,
        categories_from_subscriptions=True,
        label_ids_are_labels=True,
    ),
    ProviderVariant.REEDAH: ProviderProfile(
        variant=ProviderVariant.REEDAH,
        short_ids_in_requests=True,
        needs_edit_token=True,
        categories_from_subscriptions=True,
        label_ids_are_labels=True,
    ),
    ProviderVariant.OTHER: ProviderProfile(variant=ProviderVariant.OTHER),
}


def profile_for(variant: ProviderVariant | str) -> ProviderProfile:
    """Look up the profile of a provider by enum member or its string value."""
    return PROFILES[ProviderVariant(variant)]
