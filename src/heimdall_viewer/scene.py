"""Scene graph for the SBOM view.

A scene is an arena of boxes addressed by index. Each box knows its parent
and children by index, and every non-root box has one connector line from
its parent's bottom centre to its own top centre. The builder rebuilds the
whole arena from the document on every structural change; between rebuilds
boxes are moved in place and connectors are refreshed incrementally.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Union

from heimdall_viewer.expansion import ExpansionState
from heimdall_viewer.layout import BOX_HEIGHT, BOX_WIDTH, LEVEL_HEIGHT, layout_row
from heimdall_viewer.models import Component, Document, Vulnerability
from heimdall_viewer.resolver import (
    find_affecting_vulnerabilities,
    find_dependents,
    find_orphan_vulnerabilities,
    resolve_reference,
)

logger = logging.getLogger(__name__)

ROOT_WIDTH = 300
ROOT_HEIGHT = 100
ROOT_TOP = 50
ORPHAN_OFFSET = 200

ROOT_COLOR = "#4facfe"
COMPONENT_COLORS = ["#667eea", "#764ba2", "#f093fb", "#f5576c", "#4facfe", "#00f2fe"]
VULNERABILITY_COLORS = ["#6e89ff", "#bb78ff", "#f9c7ff", "#ff8393", "#88c8ff", "#8bf9ff"]
CONNECTOR_COLOR = "#667eea"
DEFAULT_STROKE = "#ffffff"


class NodeKind(Enum):
    """Kinds of boxes in the scene."""

    ROOT = "root"
    COMPONENT = "component"
    VULNERABILITY = "vulnerability"


SELECTED_STROKES = {
    NodeKind.ROOT: "#ffd700",
    NodeKind.COMPONENT: "#ffd700",
    NodeKind.VULNERABILITY: "#ff9900",
}


@dataclass
class Viewport:
    """Visible drawing area in content units."""

    width: float = 800
    height: float = 600


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def intersects(self, other: "Rect") -> bool:
        return (
            self.right >= other.x
            and self.x <= other.right
            and self.bottom >= other.y
            and self.y <= other.bottom
        )

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    @classmethod
    def from_corners(cls, x0: float, y0: float, x1: float, y1: float) -> "Rect":
        return cls(min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))


@dataclass
class SceneNode:
    """A box in the scene."""

    index: int
    kind: NodeKind
    x: float
    y: float
    width: float
    height: float
    level: int
    payload: Union[Document, Component, Vulnerability]
    labels: list[str]
    fill: str
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    # parent bottom centre at build time, used if the parent disappears
    fallback_anchor: tuple[float, float] = (0.0, 0.0)
    selected: bool = False

    @property
    def bounds(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def bottom_center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height)

    @property
    def top_center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y)

    @property
    def stroke(self) -> str:
        return SELECTED_STROKES[self.kind] if self.selected else DEFAULT_STROKE

    @property
    def stroke_width(self) -> int:
        if self.selected or self.kind is NodeKind.ROOT:
            return 3
        return 2


@dataclass
class Connector:
    """Line from a parent's bottom centre to a child's top centre."""

    child: int
    points: tuple[float, float, float, float]


class Scene:
    """Arena of scene nodes plus their connectors."""

    def __init__(self, viewport: Viewport) -> None:
        self.viewport = viewport
        self.nodes: list[SceneNode] = []
        self.connectors: dict[int, Connector] = {}

    @property
    def root(self) -> Optional[SceneNode]:
        return self.nodes[0] if self.nodes else None

    def add_node(
        self,
        kind: NodeKind,
        x: float,
        y: float,
        width: float,
        height: float,
        level: int,
        payload: Any,
        labels: list[str],
        fill: str,
        parent: Optional[int] = None,
    ) -> SceneNode:
        """Append a node, linking it under ``parent`` when given."""
        node = SceneNode(
            index=len(self.nodes),
            kind=kind,
            x=x,
            y=y,
            width=width,
            height=height,
            level=level,
            payload=payload,
            labels=labels,
            fill=fill,
            parent=parent,
        )
        if parent is not None:
            parent_node = self.nodes[parent]
            parent_node.children.append(node.index)
            node.fallback_anchor = parent_node.bottom_center
            self.connectors[node.index] = Connector(node.index, self.connector_points(node.index))
        self.nodes.append(node)
        return node

    def get(self, index: Optional[int]) -> Optional[SceneNode]:
        if index is None or index < 0 or index >= len(self.nodes):
            return None
        return self.nodes[index]

    def connector_points(self, index: int) -> tuple[float, float, float, float]:
        """Endpoints of the connector leading into node ``index``."""
        node = self.nodes[index]
        parent = self.get(node.parent)
        if parent is not None:
            px, py = parent.bottom_center
        else:
            px, py = node.fallback_anchor
        cx, cy = node.top_center
        return (px, py, cx, cy)

    def descendants(self, index: int) -> list[int]:
        """Indices of every node below ``index``, depth first."""
        result = []
        stack = list(reversed(self.nodes[index].children))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.nodes[current].children))
        return result

    def is_descendant(self, index: int, ancestor: int) -> bool:
        """True if ``index`` is ``ancestor`` or lies below it."""
        current: Optional[int] = index
        while current is not None:
            if current == ancestor:
                return True
            node = self.get(current)
            current = node.parent if node else None
        return False

    def clamp_position(self, node: SceneNode, x: float, y: float) -> tuple[float, float]:
        """Keep a box inside the viewport."""
        max_x = max(0.0, self.viewport.width - node.width)
        max_y = max(0.0, self.viewport.height - node.height)
        return (min(max(x, 0.0), max_x), min(max(y, 0.0), max_y))

    def move_node(self, index: int, x: float, y: float) -> SceneNode:
        """Move a node, clamped to the viewport. Connectors are not touched."""
        node = self.nodes[index]
        node.x, node.y = self.clamp_position(node, x, y)
        return node

    def refresh_connectors(self, indices: Any) -> list[int]:
        """Recompute the connectors touching the given nodes.

        A node's own connector and the connectors of its direct children
        both depend on its position.
        """
        touched = set()
        for index in indices:
            touched.add(index)
            touched.update(self.nodes[index].children)
        for index in sorted(touched):
            connector = self.connectors.get(index)
            if connector is not None:
                connector.points = self.connector_points(index)
        return sorted(touched)

    def refresh_all_connectors(self) -> list[int]:
        for index, connector in self.connectors.items():
            connector.points = self.connector_points(index)
        return sorted(self.connectors)

    def draw_order(self) -> Iterator[Union[Connector, SceneNode]]:
        """Connectors first so they are always below boxes."""
        yield from self.connectors.values()
        yield from self.nodes

    def extent(self) -> Optional[Rect]:
        """Bounding box of every node and connector."""
        if not self.nodes:
            return None
        xs: list[float] = []
        ys: list[float] = []
        for node in self.nodes:
            xs.extend((node.x, node.x + node.width))
            ys.extend((node.y, node.y + node.height))
        for connector in self.connectors.values():
            x0, y0, x1, y1 = connector.points
            xs.extend((x0, x1))
            ys.extend((y0, y1))
        return Rect.from_corners(min(xs), min(ys), max(xs), max(ys))

    def node_at(self, x: float, y: float) -> Optional[int]:
        """Topmost node under a content-space point."""
        for node in reversed(self.nodes):
            if node.bounds.contains(x, y):
                return node.index
        return None

    def nodes_intersecting(self, rect: Rect) -> list[int]:
        return [node.index for node in self.nodes if node.bounds.intersects(rect)]

    def __len__(self) -> int:
        return len(self.nodes)


def format_rating(vuln: Vulnerability) -> str:
    average = vuln.average_rating
    if math.isnan(average):
        return "Unknown rating"
    return f"average rating: {average:.2f}"


def component_labels(component: Component) -> list[str]:
    return [
        component.name or component.bom_ref or "Unknown",
        component.version or "No version",
        component.type or "Unknown type",
    ]


def vulnerability_labels(vuln: Vulnerability) -> list[str]:
    return [vuln.id or "Unknown", vuln.state or "No State", format_rating(vuln)]


def root_labels(document: Document) -> list[str]:
    return [
        document.title,
        f"{document.bom_format} v{document.spec_version}",
        f"{len(document.components)} Components",
        f"{len(document.vulnerabilities)} VEX",
    ]


class SceneBuilder:
    """Materialize a document and its expansion state into a Scene."""

    def __init__(
        self,
        document: Document,
        expansion: ExpansionState,
        viewport: Viewport,
    ) -> None:
        self.document = document
        self.expansion = expansion
        self.viewport = viewport
        self.scene = Scene(viewport)

    def build(self) -> Scene:
        root = self._add_root()
        if not self.expansion.sbom_expanded:
            logger.debug("SBOM collapsed, only root is shown")
            return self.scene

        root_x, root_y = root.bottom_center
        if self.document.components:
            self._render_hierarchy(
                self.document.components, 1, root_x, root_y, NodeKind.COMPONENT, root.index, frozenset()
            )

        orphans = find_orphan_vulnerabilities(self.document)
        if orphans:
            self._render_hierarchy(
                orphans,
                1,
                root_x,
                root_y + ORPHAN_OFFSET,
                NodeKind.VULNERABILITY,
                root.index,
                frozenset(),
            )

        logger.debug(
            f"Built scene with {len(self.scene.nodes)} nodes and "
            f"{len(self.scene.connectors)} connectors"
        )
        return self.scene

    def _add_root(self) -> SceneNode:
        return self.scene.add_node(
            NodeKind.ROOT,
            self.viewport.width / 2 - ROOT_WIDTH / 2,
            ROOT_TOP,
            ROOT_WIDTH,
            ROOT_HEIGHT,
            0,
            self.document,
            root_labels(self.document),
            ROOT_COLOR,
        )

    def _render_hierarchy(
        self,
        items: list,
        level: int,
        anchor_x: float,
        anchor_y: float,
        kind: NodeKind,
        parent: int,
        path: frozenset,
    ) -> None:
        positions = layout_row(
            len(items), level, anchor_x, anchor_y, self.viewport.width, self.viewport.height
        )
        for item, pos in zip(items, positions):
            if kind is NodeKind.COMPONENT:
                labels = component_labels(item)
                fill = COMPONENT_COLORS[level % len(COMPONENT_COLORS)]
            elif kind is NodeKind.VULNERABILITY:
                labels = vulnerability_labels(item)
                fill = VULNERABILITY_COLORS[level % len(VULNERABILITY_COLORS)]
            else:
                raise ValueError(f"Unsupported node kind in hierarchy: {kind}")

            node = self.scene.add_node(
                kind, pos.x, pos.y, BOX_WIDTH, BOX_HEIGHT, level, item, labels, fill, parent
            )
            if kind is NodeKind.COMPONENT:
                self._render_component_children(item, node, path)

    def _render_component_children(
        self, component: Component, node: SceneNode, path: frozenset
    ) -> None:
        bottom_x, bottom_y = node.bottom_center

        vulns = find_affecting_vulnerabilities(component, self.document)
        if vulns:
            self._render_hierarchy(
                vulns, node.level + 1, bottom_x, bottom_y, NodeKind.VULNERABILITY, node.index, path
            )

        if not component.bom_ref or not self.expansion.is_expanded(component.bom_ref):
            return

        ref = resolve_reference(component)
        dependents = find_dependents(component, self.document)
        acyclic = [d for d in dependents if resolve_reference(d) not in path and d is not component]
        if len(acyclic) < len(dependents):
            logger.warning(f"Dependency cycle through {ref}, not expanding repeated components")
        if acyclic:
            self._render_hierarchy(
                acyclic,
                node.level + 1,
                bottom_x,
                bottom_y + LEVEL_HEIGHT,
                NodeKind.COMPONENT,
                node.index,
                path | {ref},
            )


def build_scene(document: Document, expansion: ExpansionState, viewport: Viewport) -> Scene:
    """Build the scene for a document."""
    return SceneBuilder(document, expansion, viewport).build()
