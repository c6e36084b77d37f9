"""Category, feed and label hierarchy decoded from tag and subscription lists.

Nodes live in one list owned by ``CategoryTree``; parents and children
reference each other by index.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from enum import Enum

import httpx

from .errors import PayloadError
from .providers import SPONSORED_STREAM_PREFIX, ProviderProfile

logger = logging.getLogger(__name__)

ROOT_INDEX = 0

_LAST_SEGMENT = re.compile(r".+/([^/]+)")

IconCandidate = tuple[str, bool]


class NodeKind(str, Enum):
    ROOT = "root"
    CATEGORY = "category"
    FEED = "feed"
    LABELS = "labels"
    LABEL = "label"


@dataclass(eq=False)
class TreeNode:
    kind: NodeKind
    title: str = ""
    custom_id: str = ""
    description: str = ""
    source: str = ""
    color: str = ""
    icon: bytes | None = None
    icon_candidates: list[IconCandidate] = field(default_factory=list)
    index: int = -1
    parent: int | None = None
    children: list[int] = field(default_factory=list)


class CategoryTree:
    """Arena of ``TreeNode`` values rooted at a synthetic root node."""

    def __init__(self) -> None:
        self.nodes: list[TreeNode] = []
        self._labels_index: int | None = None
        self.add(TreeNode(NodeKind.ROOT, title="root"), parent=None)

    def add(self, node: TreeNode, parent: int | None = ROOT_INDEX) -> int:
        node.index = len(self.nodes)
        node.parent = parent
        self.nodes.append(node)
        if parent is not None:
            self.nodes[parent].children.append(node.index)
        if node.kind is NodeKind.LABELS:
            self._labels_index = node.index
        return node.index

    @property
    def root(self) -> TreeNode:
        return self.nodes[ROOT_INDEX]

    @property
    def labels_node(self) -> TreeNode | None:
        if self._labels_index is None:
            return None
        return self.nodes[self._labels_index]

    def children(self, index: int) -> list[TreeNode]:
        return [self.nodes[i] for i in self.nodes[index].children]

    def parent(self, index: int) -> TreeNode | None:
        parent = self.nodes[index].parent
        return None if parent is None else self.nodes[parent]

    def of_kind(self, kind: NodeKind) -> list[TreeNode]:
        return [node for node in self.nodes if node.kind is kind]

    @property
    def categories(self) -> list[TreeNode]:
        return self.of_kind(NodeKind.CATEGORY)

    @property
    def feeds(self) -> list[TreeNode]:
        return self.of_kind(NodeKind.FEED)

    @property
    def labels(self) -> list[TreeNode]:
        return self.of_kind(NodeKind.LABEL)

    def find(self, custom_id: str, kind: NodeKind | None = None) -> TreeNode | None:
        for node in self.nodes:
            if node.custom_id == custom_id and (kind is None or node.kind is kind):
                return node
        return None

    def to_dict(self, index: int = ROOT_INDEX) -> dict:
        node = self.nodes[index]
        data: dict = {"kind": node.kind.value, "title": node.title, "id": node.custom_id}
        if node.kind is NodeKind.FEED:
            data["url"] = node.source
            data["has_icon"] = node.icon is not None
        if node.kind is NodeKind.LABEL:
            data["color"] = node.color
        if node.children:
            data["children"] = [self.to_dict(child) for child in node.children]
        return data


def color_from_text(text: str) -> str:
    """Deterministic ``#rrggbb`` color for a label id."""
    return "#" + hashlib.md5(text.encode("utf-8")).hexdigest()[:6]


def _label_name(label_id: str) -> str:
    match = _LAST_SEGMENT.match(label_id)
    return match.group(1) if match else ""


def _text(entry: dict, key: str) -> str:
    value = entry.get(key)
    return value if isinstance(value, str) else ""


def _categories(subscription: dict) -> list:
    categories = subscription.get("categories")
    return categories if isinstance(categories, list) else []


def _entries(payload: dict, key: str) -> list[dict]:
    if not isinstance(payload, dict):
        raise PayloadError(f"Expected a JSON object holding '{key}'")
    entries = payload.get(key, [])
    if not isinstance(entries, list):
        raise PayloadError(f"'{key}' is not a list")
    return [entry for entry in entries if isinstance(entry, dict)]


def icon_candidates(subscription: dict, profile: ProviderProfile, base_url: str) -> list[IconCandidate]:
    """Ordered icon URLs to try for a subscription.

    The flag tells whether the URL points at an icon directly (True) or at
    a web page whose favicon should be used (False).
    """
    candidates: list[IconCandidate] = []
    icon_url = _text(subscription, "iconUrl")

    if icon_url:
        if icon_url.startswith("//"):
            icon_url = f"{httpx.URL(base_url).scheme}:{icon_url}"
        elif profile.fix_icon_port:
            try:
                icon = httpx.URL(icon_url)
                base = httpx.URL(base_url)
                if icon.host == base.host:
                    icon_url = str(icon.copy_with(port=base.port))
            except httpx.InvalidURL:
                logger.warning("Ignoring malformed icon URL %s", icon_url)
        candidates.append((icon_url, True))

    candidates.append((_text(subscription, "htmlUrl"), False))
    return candidates


def decode_tree(
    tags_payload: dict,
    subscriptions_payload: dict,
    profile: ProviderProfile,
    base_url: str = "",
) -> CategoryTree:
    """Build the category/feed/label tree from TagList and SubscriptionList JSON.

    Raises:
        PayloadError: If either payload does not have the expected shape.
    """
    tree = CategoryTree()
    categories: dict[str, int] = {}
    labels: list[TreeNode] = []
    subscriptions = _entries(subscriptions_payload, "subscriptions")

    if profile.categories_from_subscriptions:
        for subscription in subscriptions:
            for category in _categories(subscription):
                category_id = _text(category, "id") if isinstance(category, dict) else ""
                if category_id and category_id not in categories:
                    categories[category_id] = tree.add(
                        TreeNode(
                            NodeKind.CATEGORY,
                            title=category_id[category_id.rfind("/") + 1 :],
                            custom_id=category_id,
                        )
                    )

    categories[""] = ROOT_INDEX

    for tag in _entries(tags_payload, "tags"):
        tag_id = _text(tag, "id")
        tag_type = _text(tag, "type")
        if not tag_id:
            continue

        if tag_type == "folder" or (profile.label_tags_are_categories and "/label/" in tag_id):
            if tag_id in categories:
                tree.nodes[categories[tag_id]].description = _text(tag, "htmlUrl")
                continue
            categories[tag_id] = tree.add(
                TreeNode(
                    NodeKind.CATEGORY,
                    title=tag_id[tag_id.rfind("/") + 1 :],
                    custom_id=tag_id,
                    description=_text(tag, "htmlUrl"),
                )
            )
        elif tag_type == "tag" or (
            profile.label_ids_are_labels and "/label/" in tag_id and tag_id not in categories
        ):
            labels.append(
                TreeNode(
                    NodeKind.LABEL,
                    title=_label_name(tag_id),
                    custom_id=tag_id,
                    color=color_from_text(tag_id),
                )
            )

    for subscription in subscriptions:
        feed_id = _text(subscription, "id")
        if not feed_id:
            logger.warning("Skipping subscription without a stream id: %s", subscription.get("title"))
            continue
        if feed_id.startswith(SPONSORED_STREAM_PREFIX):
            continue

        parent_label = ""
        for category in _categories(subscription):
            category_id = _text(category, "id") if isinstance(category, dict) else ""
            if "/label/" in category_id:
                parent_label = category_id
                break

        url = _text(subscription, "htmlUrl")
        tree.add(
            TreeNode(
                NodeKind.FEED,
                title=_text(subscription, "title"),
                custom_id=feed_id,
                description=url,
                source=url,
                icon_candidates=icon_candidates(subscription, profile, base_url),
            ),
            parent=categories.get(parent_label, ROOT_INDEX),
        )

    labels_index = tree.add(TreeNode(NodeKind.LABELS, title="Labels"))
    for label in labels:
        tree.add(label, parent=labels_index)

    logger.info(
        "Decoded %d categories, %d feeds and %d labels",
        len(tree.categories),
        len(tree.feeds),
        len(labels),
    )
    return tree
