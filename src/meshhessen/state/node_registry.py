from __future__ import annotations

import logging
from dataclasses import replace

from meshhessen.core.geo import haversine_meters
from meshhessen.core.merge import merge_node
from meshhessen.core.models import Node
from meshhessen.core.types import OwnPositionSource

logger = logging.getLogger(__name__)


class NodeRegistry:
    """Sole owner of :class:`Node` records, keyed by node number.

    Other components hold node numbers and call :meth:`lookup` for
    current display data. Records are replaced on every change; a
    returned ``Node`` is a snapshot.
    """

    def __init__(self, position_source: OwnPositionSource | None = None) -> None:
        self._nodes: dict[int, Node] = {}
        self._position_source = position_source
        self._own_node_num: int | None = None
        self._node_filter = ""
        self._sorted: list[Node] | None = None

    # -- own position -------------------------------------------------------

    @property
    def own_node_num(self) -> int | None:
        return self._own_node_num

    def set_own_node(self, num: int | None) -> None:
        self._own_node_num = num
        self.recalculate_all()

    def set_position_source(self, source: OwnPositionSource | None) -> None:
        self._position_source = source
        self.recalculate_all()

    def own_coordinate(self) -> tuple[float, float] | None:
        """Configured operator position, else own node GPS, else None."""
        if self._position_source is not None:
            configured = self._position_source.own_position()
            if configured is not None:
                return configured
        if self._own_node_num is not None:
            own = self._nodes.get(self._own_node_num)
            if own is not None and own.latitude is not None and own.longitude is not None:
                return own.latitude, own.longitude
        return None

    # -- mutation -----------------------------------------------------------

    def upsert(self, node: Node) -> Node:
        existing = self._nodes.get(node.num)
        if existing is None:
            self._nodes[node.num] = replace(node)
            logger.debug("new node %s (%s)", node.node_id, node.name or "?")
        else:
            self._nodes[node.num] = merge_node(existing, node)
        self._invalidate()
        if node.num == self._own_node_num:
            # Own GPS may be the fallback coordinate for everybody else.
            self.recalculate_all()
        else:
            self.recalculate_distance(node.num)
        return self._nodes[node.num]

    def recalculate_distance(self, num: int) -> None:
        node = self._nodes.get(num)
        if node is None:
            return
        distance: float | None = None
        own = self.own_coordinate()
        if own is not None and node.latitude is not None and node.longitude is not None:
            distance = haversine_meters(own[0], own[1], node.latitude, node.longitude)
        if distance != node.distance_meters:
            self._nodes[num] = replace(node, distance_meters=distance)
            self._invalidate()

    def recalculate_all(self) -> None:
        for num in list(self._nodes):
            self.recalculate_distance(num)

    def set_note(self, num: int, note: str) -> bool:
        return self._edit(num, note=note)

    def set_color(self, num: int, color_hex: str) -> bool:
        return self._edit(num, color_hex=color_hex)

    def set_pinned(self, num: int, pinned: bool) -> bool:
        """User toggle; the only way a pinned node becomes unpinned."""
        return self._edit(num, pinned=pinned)

    def _edit(self, num: int, **changes: object) -> bool:
        node = self._nodes.get(num)
        if node is None:
            return False
        self._nodes[num] = replace(node, **changes)
        self._invalidate()
        return True

    def clear(self) -> None:
        self._nodes.clear()
        self._invalidate()

    # -- queries ------------------------------------------------------------

    def lookup(self, num: int) -> Node | None:
        return self._nodes.get(num)

    @property
    def node_filter(self) -> str:
        return self._node_filter

    @node_filter.setter
    def node_filter(self, query: str) -> None:
        self._node_filter = query or ""

    def sorted_nodes(self) -> list[Node]:
        if self._sorted is None:
            self._sorted = sorted(self._nodes.values(), key=lambda n: (n.name.lower(), n.num))
        return list(self._sorted)

    def filtered_list(self, query: str | None = None) -> list[Node]:
        """Nodes sorted by name; *query* (default: :attr:`node_filter`) narrows by substring."""
        q = (self._node_filter if query is None else query).lower()
        nodes = self.sorted_nodes()
        if not q:
            return nodes
        return [
            n
            for n in nodes
            if q in n.name.lower()
            or q in n.short_name.lower()
            or q in n.node_id.lower()
            or q in n.note.lower()
        ]

    def _invalidate(self) -> None:
        self._sorted = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, num: object) -> bool:
        return num in self._nodes
