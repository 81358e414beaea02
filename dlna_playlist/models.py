"""Value types exchanged between the content directory, the walker and the players."""

import enum
from dataclasses import dataclass
from typing import Optional


class NodeKind(enum.Enum):
    ITEM = "item"
    CONTAINER = "container"


@dataclass(frozen=True)
class ContentNode:
    """One child returned by a ContentDirectory Browse.

    ``url``, ``content_type`` and ``date`` are only filled in for items.
    """

    id: str
    title: str
    kind: NodeKind
    parent_id: str = ""
    upnp_class: str = ""
    url: Optional[str] = None
    content_type: Optional[str] = None
    date: Optional[str] = None

    @property
    def is_container(self) -> bool:
        return self.kind is NodeKind.CONTAINER


@dataclass(frozen=True)
class PlaybackItem:
    """What a player needs to play one item."""

    id: str
    url: str
    title: str

    @classmethod
    def from_node(cls, node: ContentNode) -> "PlaybackItem":
        if node.is_container or not node.url:
            raise ValueError(f"Node {node.id!r} is not a playable item")
        return cls(id=node.id, url=node.url, title=node.title)


@dataclass(frozen=True)
class ContainerDone:
    """Emitted by the walker once a container's whole subtree has been emitted."""

    node: ContentNode
