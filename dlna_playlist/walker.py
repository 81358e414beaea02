"""
Depth-first walk over a ContentDirectory tree.

The walker only needs a ``browse(container_id) -> List[ContentNode]``
callable. Children are visited in the order the server returns them; a
container's whole subtree is emitted before its next sibling, followed by a
ContainerDone event for that container. Containers are browsed lazily, when
the walk reaches them.

No cycle detection is done: a server that lists a container inside its own
subtree makes the walk endless.
"""

import fnmatch
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple, Union

from .errors import PathNotFound
from .models import ContainerDone, ContentNode, PlaybackItem

logger = logging.getLogger(__name__)

Browse = Callable[[str], List[ContentNode]]
WalkEvent = Union[PlaybackItem, ContainerDone]


def _walk_nodes(browse: Browse, root_id: str) -> Iterator[Tuple[ContentNode, bool]]:
    """Yield ``(node, finished)`` pairs in pre-order.

    Every node is yielded once with ``finished=False`` when reached; each
    container is yielded again with ``finished=True`` after its subtree.
    """
    stack = [(None, iter(browse(root_id)))]
    while stack:
        container, children = stack[-1]
        node = next(children, None)
        if node is None:
            stack.pop()
            if container is not None:
                yield container, True
            continue
        yield node, False
        if node.is_container:
            stack.append((node, iter(browse(node.id))))


def walk(browse: Browse, root_id: str) -> Iterator[WalkEvent]:
    """Yield a PlaybackItem per playable item and a ContainerDone per finished container."""
    for node, finished in _walk_nodes(browse, root_id):
        if finished:
            yield ContainerDone(node)
        elif not node.is_container:
            if not node.url:
                logger.warning("Item %s (%s) has no resource URL, ignoring it", node.id, node.title)
                continue
            yield PlaybackItem.from_node(node)


def traverse(browse: Browse, root_id: str) -> Iterator[PlaybackItem]:
    """Yield only the playable items of the tree under ``root_id``."""
    for event in walk(browse, root_id):
        if isinstance(event, PlaybackItem):
            yield event


def find_node(browse: Browse, root_id: str, pattern: str) -> Optional[ContentNode]:
    """Return the first node, in walk order, whose title matches the glob ``pattern``."""
    for node, finished in _walk_nodes(browse, root_id):
        if not finished and fnmatch.fnmatchcase(node.title, pattern):
            return node
    return None


def resolve_path(browse: Browse, root_id: str, path: str) -> ContentNode:
    """Descend ``path`` one glob component per level, taking the first match.

    Raises:
        PathNotFound: if a component matches no child of its container
    """
    node = None
    current_id = root_id
    for component in [c for c in path.split("/") if c]:
        if node is not None and not node.is_container:
            raise PathNotFound(path, component)
        node = next((child for child in browse(current_id) if fnmatch.fnmatchcase(child.title, component)), None)
        if node is None:
            raise PathNotFound(path, component)
        logger.debug("Path component %r matched %s (%s)", component, node.title, node.id)
        current_id = node.id
    if node is None:
        raise PathNotFound(path, path)
    return node


@dataclass(frozen=True)
class ResumeState:
    """Skip-until-checkpoint state, threaded through the playlist run.

    While armed, every item except ``target`` is skipped. Reaching the
    target disarms the state for the rest of the run.
    """

    armed: bool = False
    target: str = ""

    @classmethod
    def from_checkpoint(cls, item_id: Optional[str]) -> "ResumeState":
        if not item_id:
            return cls()
        return cls(armed=True, target=item_id)

    def admit(self, item_id: str) -> Tuple["ResumeState", bool]:
        """Return the state after seeing ``item_id`` and whether to play it."""
        if not self.armed:
            return self, True
        if item_id == self.target:
            return ResumeState(armed=False, target=self.target), True
        return self, False
