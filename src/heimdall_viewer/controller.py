"""Interaction controller for the SBOM canvas.

The controller owns all view state and turns raw pointer, keyboard and
menu input into document and scene changes. It never touches a widget;
everything visible goes through a ``ViewHost`` and a ``StatusReporter``,
so the whole interaction model runs headless in tests.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from heimdall_viewer.config import ViewerConfig
from heimdall_viewer.errors import DocumentIOError, FormatError, UnresolvedReferenceError
from heimdall_viewer.expansion import ExpansionState
from heimdall_viewer.loader import DocumentLoader, read_text
from heimdall_viewer.messaging import (
    ItemRequest,
    ItemType,
    ItemUpdated,
    UpdateOutcome,
    merge_item_update,
    request_for,
)
from heimdall_viewer.models import Affect, Analysis, Component, Document, Vulnerability
from heimdall_viewer.resolver import find_dependents, require_reference
from heimdall_viewer.scene import NodeKind, Rect, Scene, SceneNode, Viewport, build_scene
from heimdall_viewer.status import StatusReporter

logger = logging.getLogger(__name__)

# tk mouse button numbers
LEFT_BUTTON = 1
MIDDLE_BUTTON = 2
RIGHT_BUTTON = 3

MIN_SCALE = 0.1
MAX_SCALE = 5.0


class Mode(Enum):
    """Pointer interaction modes. Exactly one is active at a time."""

    IDLE = "idle"
    SELECTING = "selecting"
    PANNING = "panning"
    DRAGGING = "dragging"


@dataclass
class ViewTransform:
    """Maps content coordinates to screen coordinates."""

    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def to_content(self, x: float, y: float) -> tuple[float, float]:
        return ((x - self.offset_x) / self.scale, (y - self.offset_y) / self.scale)

    def to_screen(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.scale + self.offset_x, y * self.scale + self.offset_y)


@dataclass
class DragState:
    """A node drag in progress, tracked in screen coordinates."""

    node: int
    last_x: float
    last_y: float
    toggle: bool = False
    moved: bool = False


@dataclass
class AppState:
    """Everything the main view knows about."""

    document: Optional[Document] = None
    path: Optional[Path] = None
    dirty: bool = False
    expansion: ExpansionState = field(default_factory=ExpansionState)
    scene: Optional[Scene] = None
    selection: list[int] = field(default_factory=list)
    view: ViewTransform = field(default_factory=ViewTransform)
    mode: Mode = Mode.IDLE
    selection_origin: Optional[tuple[float, float]] = None
    selection_rect: Optional[Rect] = None
    pan_origin: Optional[tuple[float, float]] = None
    drag: Optional[DragState] = None
    viewport: Viewport = field(default_factory=Viewport)


class MenuAction(Enum):
    """Context menu actions."""

    OPEN = "open"
    EXPAND = "expand"
    EXPAND_TO_FIT = "expandToFit"
    COLLAPSE = "collapse"
    COLLAPSE_ALL = "collapseAll"
    SAVE = "save"
    COPY = "copy"
    ADD_VEX = "addVex"


@dataclass
class MenuItem:
    """One entry of a context menu."""

    action: MenuAction
    label: str
    enabled: bool = True


class ViewHost(ABC):
    """Platform side of the main view.

    The tkinter shell implements this; tests use a recording fake.
    """

    @abstractmethod
    def scene_changed(self, scene: Optional[Scene]) -> None:
        """The scene was rebuilt and must be redrawn from scratch."""
        pass

    def nodes_changed(self, indices: list[int]) -> None:
        """Positions or strokes of some nodes and connectors changed."""

    def selection_box_changed(self, rect: Optional[Rect]) -> None:
        """The rubber-band rectangle moved, or went away when None."""

    @abstractmethod
    def view_changed(self, view: ViewTransform) -> None:
        """Zoom or pan changed."""
        pass

    @abstractmethod
    def open_item_window(self, request: ItemRequest) -> None:
        """Open a detail or VEX window for a record."""
        pass

    @abstractmethod
    def copy_to_clipboard(self, text: str) -> None:
        pass

    @abstractmethod
    def ask_open_path(self) -> Optional[Path]:
        pass

    @abstractmethod
    def ask_save_path(self) -> Optional[Path]:
        pass


class InteractionController:
    """Drives the SBOM view.

    Usage:
        controller = InteractionController(host, status=StatusReporter(root.after))
        controller.load_path(Path("bom.json"))
        controller.press(x, y, LEFT_BUTTON)
        controller.motion(x + 10, y)
        controller.release(x + 10, y)
    """

    def __init__(
        self,
        host: ViewHost,
        status: Optional[StatusReporter] = None,
        config: Optional[ViewerConfig] = None,
        state: Optional[AppState] = None,
        loader: Optional[DocumentLoader] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.host = host
        self.config = config or ViewerConfig()
        self.status = status or StatusReporter(
            status_timeout_ms=self.config.status_timeout_ms,
            error_timeout_ms=self.config.error_timeout_ms,
        )
        self.state = state or AppState()
        self.loader = loader or DocumentLoader(clock=clock)
        self.clock = clock

    # Rendering

    def render(self) -> Optional[Scene]:
        """Rebuild the scene from the document and expansion state."""
        state = self.state
        if state.document is None:
            self.status.error("No SBOM data found")
            return None

        state.scene = build_scene(state.document, state.expansion, state.viewport)
        state.selection = []
        state.drag = None
        state.mode = Mode.IDLE
        self.host.scene_changed(state.scene)
        return state.scene

    def resize(self, width: float, height: float) -> None:
        """The canvas was resized."""
        if width <= 1 or height <= 1:
            return
        self.state.viewport.width = width
        self.state.viewport.height = height
        if self.state.scene is not None:
            self.fit_to_screen()

    def debug_summary(self) -> str:
        """One-line state dump for the dev overlay."""
        state = self.state
        nodes = len(state.scene) if state.scene is not None else 0
        return (
            f"mode={state.mode.value} zoom={state.view.scale:.2f} "
            f"nodes={nodes} selected={len(state.selection)}"
        )

    # Document commands

    def open_file(self) -> bool:
        path = self.host.ask_open_path()
        if path is None:
            return False
        return self.load_path(path)

    def load_path(self, path: Path) -> bool:
        """Read and show a document file.

        Returns:
            True if the document was loaded. On failure the previous
            document stays active.
        """
        try:
            content = read_text(path)
        except DocumentIOError as e:
            self.status.error(str(e))
            return False
        return self.load_text(content, Path(path))

    def load_text(self, content: str, path: Optional[Path] = None) -> bool:
        """Show a document from raw text."""
        try:
            document = self.loader.load(content)
        except FormatError as e:
            logger.warning(f"Failed to parse SBOM: {e}")
            self.status.error(f"Failed to parse SBOM: {e}")
            return False

        state = self.state
        state.document = document
        state.path = path
        state.dirty = False
        state.expansion.reset()
        state.view = ViewTransform()
        self.render()
        self.host.view_changed(state.view)
        self.status.status(f"Loaded {path.name if path else 'SBOM'}")
        return True

    def save(self) -> bool:
        """Write the document to its current path, or ask for one."""
        if self.state.document is None:
            self.status.error("No SBOM loaded")
            return False
        if self.state.path is None:
            return self.save_as()
        return self._write(self.state.path, "File saved successfully")

    def save_as(self) -> bool:
        if self.state.document is None:
            self.status.error("No SBOM loaded")
            return False
        path = self.host.ask_save_path()
        if path is None:
            return False
        if not self._write(Path(path), f"Saved as {Path(path).name}"):
            return False
        self.state.path = Path(path)
        return True

    def _write(self, path: Path, message: str) -> bool:
        try:
            self.loader.write(self.state.document, path)
        except DocumentIOError as e:
            self.status.error(str(e))
            return False
        self.state.dirty = False
        self.status.status(message)
        return True

    def add_vulnerability(self, component: Optional[Component] = None) -> Optional[Vulnerability]:
        """Append a template VEX entry and open it for editing.

        With a component the entry is attached to it through ``affects``;
        without one, or when the component has no reference, the entry is
        an orphan.
        """
        document = self.state.document
        if document is None:
            self.status.error("No SBOM loaded - cannot add VEX")
            return None

        now = self.clock()
        today = datetime.fromtimestamp(now).date().isoformat()
        vuln = Vulnerability(
            id=f"VULN-{int(now * 1000)}",
            source={"name": "Custom", "url": ""},
            description="",
            detail="",
            recommendation="",
            created=today,
            published=today,
            updated=today,
            analysis=Analysis(state="reported", justification="", response=[], detail=""),
            credits={"individuals": []},
            cwes=[],
            advisories=[],
            references=[],
            ratings=[],
            affects=[],
        )

        message = f"Added new VEX {vuln.id}"
        if component is not None:
            try:
                vuln.affects.append(Affect(ref=require_reference(component)))
            except UnresolvedReferenceError as e:
                logger.warning(f"{e}, new VEX {vuln.id} is not attached")
                message += " (component has no reference, not attached)"

        document.vulnerabilities.append(vuln)
        self.state.dirty = True
        self.state.expansion.expand_root()
        self.render()
        self.status.status(message)
        self.host.open_item_window(request_for(vuln))
        return vuln

    def apply_item_update(self, message: ItemUpdated) -> UpdateOutcome:
        """Merge an edit from an item window, re-render and write back."""
        state = self.state
        if state.document is None:
            logger.warning("Item update received with no SBOM loaded")
            return UpdateOutcome.IGNORED

        if message.item_type is ItemType.SBOM:
            outcome = self._merge_document(message.updated_data)
        else:
            outcome = merge_item_update(state.document, message)
        if outcome in (UpdateOutcome.UPDATED, UpdateOutcome.ADDED):
            state.dirty = True
        if message.item_type is ItemType.VEX:
            state.expansion.expand_root()

        self.render()
        if outcome is UpdateOutcome.NOT_FOUND:
            self.status.error("Item not found in SBOM")
        elif outcome is UpdateOutcome.IGNORED:
            self.status.error(f"Cannot update {message.item_type.value} items")
        elif outcome in (UpdateOutcome.UPDATED, UpdateOutcome.ADDED) and state.path is not None:
            self._write(state.path, "Changes saved to file")
        return outcome

    def _merge_document(self, updated: dict) -> UpdateOutcome:
        try:
            self.state.document = self.loader.merge(self.state.document, updated)
        except FormatError as e:
            logger.warning(f"Rejected SBOM update: {e}")
            self.status.error(f"Failed to update SBOM: {e}")
            return UpdateOutcome.INVALID
        return UpdateOutcome.UPDATED

    # Expansion

    def toggle_root(self) -> None:
        if self.state.document is None:
            return
        expanded = self.state.expansion.toggle_root()
        self.render()
        self.status.status("SBOM expanded" if expanded else "SBOM collapsed")

    def expand_root(self) -> None:
        if self.state.document is None:
            return
        self.state.expansion.expand_root()
        self.render()

    def collapse_root(self) -> None:
        if self.state.document is None:
            return
        self.state.expansion.collapse_root()
        self.render()

    def expand_to_fit(self) -> None:
        self.expand_root()
        self.fit_to_screen()

    def expand_component(self, component: Component) -> None:
        """Show a component's dependents."""
        document = self.state.document
        if document is None or not component.bom_ref:
            return
        if not find_dependents(component, document):
            self.status.status("No dependencies found")
            return
        self.state.expansion.expand_root()
        self.state.expansion.expand_component(component.bom_ref)
        self.render()
        self.status.status(f"Expanded {component.name or component.bom_ref}")

    def collapse_component(self, component: Component) -> None:
        if not component.bom_ref:
            return
        if self.state.expansion.collapse_component(component.bom_ref):
            self.render()
            self.status.status(f"Collapsed {component.name or component.bom_ref}")

    def collapse_all(self) -> None:
        if self.state.document is None:
            return
        self.state.expansion.collapse_all()
        self.render()
        self.status.status("All components collapsed")

    def activate(self, index: int) -> None:
        """Double-click behaviour for a node."""
        state = self.state
        node = state.scene.get(index) if state.scene is not None else None
        if node is None or state.document is None:
            return

        if node.kind is NodeKind.ROOT:
            self.toggle_root()
        elif node.kind is NodeKind.COMPONENT:
            self._activate_component(node.payload)
        elif node.kind is NodeKind.VULNERABILITY:
            if not state.expansion.sbom_expanded:
                self.expand_root()
            self.host.open_item_window(request_for(node.payload))
        else:
            raise ValueError(f"Unknown node kind: {node.kind}")

    def _activate_component(self, component: Component) -> None:
        state = self.state
        root_was_expanded = state.expansion.sbom_expanded
        state.expansion.expand_root()

        if not state.document.dependencies_of(component):
            if not root_was_expanded:
                self.render()
            self.host.open_item_window(request_for(component))
            return

        if component.bom_ref and find_dependents(component, state.document):
            expanded = state.expansion.toggle_component(component.bom_ref)
            self.render()
            label = component.name or component.bom_ref
            self.status.status(f"Expanded {label}" if expanded else f"Collapsed {label}")
            return

        if not root_was_expanded:
            self.render()
        self.status.status("No dependencies found")

    # Selection

    def _set_selection(self, indices: list[int]) -> None:
        state = self.state
        scene = state.scene
        changed = set(state.selection) ^ set(indices)
        for index in state.selection:
            scene.nodes[index].selected = False
        for index in indices:
            scene.nodes[index].selected = True
        state.selection = list(indices)
        if changed:
            self.host.nodes_changed(sorted(changed))

    def deselect_all(self) -> None:
        if self.state.scene is not None:
            self._set_selection([])

    def click(self, index: int, toggle: bool = False) -> None:
        """Select a node. With ``toggle`` the node is added or removed."""
        selection = list(self.state.selection)
        if toggle:
            if index in selection:
                selection.remove(index)
            else:
                selection.append(index)
        else:
            selection = [index]
        self._set_selection(selection)
        self._report_selection()

    def _report_selection(self) -> None:
        count = len(self.state.selection)
        if count == 1:
            node = self.state.scene.nodes[self.state.selection[0]]
            self.status.status(f"Selected: {node.labels[0]}")
        elif count > 1:
            self.status.status(f"Selected {count} items")

    # Pointer input, all coordinates in screen space

    def press(
        self, x: float, y: float, button: int = LEFT_BUTTON, shift: bool = False, ctrl: bool = False
    ) -> None:
        state = self.state
        if state.mode is not Mode.IDLE or state.scene is None:
            return

        cx, cy = state.view.to_content(x, y)
        hit = state.scene.node_at(cx, cy)
        if hit is None:
            if button == LEFT_BUTTON:
                self.deselect_all()
                if shift:
                    self._start_panning(x, y)
                else:
                    self._start_selection(cx, cy)
            elif button == MIDDLE_BUTTON:
                self._start_panning(x, y)
        elif button == LEFT_BUTTON:
            state.mode = Mode.DRAGGING
            state.drag = DragState(hit, x, y, toggle=ctrl)

    def motion(self, x: float, y: float) -> None:
        state = self.state
        if state.mode is Mode.SELECTING:
            self._update_selection(x, y)
        elif state.mode is Mode.PANNING:
            px, py = state.pan_origin
            state.view.offset_x += x - px
            state.view.offset_y += y - py
            state.pan_origin = (x, y)
            self.host.view_changed(state.view)
        elif state.mode is Mode.DRAGGING:
            drag = state.drag
            dx = (x - drag.last_x) / state.view.scale
            dy = (y - drag.last_y) / state.view.scale
            if dx == 0 and dy == 0:
                return
            drag.moved = True
            drag.last_x, drag.last_y = x, y
            self.drag_node(drag.node, dx, dy)

    def release(self, x: float, y: float) -> None:
        state = self.state
        if state.mode is Mode.SELECTING:
            self._update_selection(x, y)
            state.selection_origin = None
            state.selection_rect = None
            self.host.selection_box_changed(None)
            self._report_selection()
        elif state.mode is Mode.DRAGGING:
            drag = state.drag
            state.drag = None
            state.mode = Mode.IDLE
            if not drag.moved:
                self.click(drag.node, toggle=drag.toggle)
            return
        state.pan_origin = None
        state.mode = Mode.IDLE

    def double_click(self, x: float, y: float) -> None:
        state = self.state
        if state.scene is None:
            return
        hit = state.scene.node_at(*state.view.to_content(x, y))
        if hit is not None:
            self.activate(hit)

    def _start_selection(self, cx: float, cy: float) -> None:
        state = self.state
        state.mode = Mode.SELECTING
        state.selection_origin = (cx, cy)
        state.selection_rect = Rect(cx, cy, 0, 0)
        self.host.selection_box_changed(state.selection_rect)

    def _update_selection(self, x: float, y: float) -> None:
        state = self.state
        cx, cy = state.view.to_content(x, y)
        ox, oy = state.selection_origin
        state.selection_rect = Rect.from_corners(ox, oy, cx, cy)
        self.host.selection_box_changed(state.selection_rect)
        self._set_selection(state.scene.nodes_intersecting(state.selection_rect))

    def _start_panning(self, x: float, y: float) -> None:
        self.state.mode = Mode.PANNING
        self.state.pan_origin = (x, y)

    # Moving nodes

    def drag_node(self, index: int, dx: float, dy: float) -> list[int]:
        """Move a node by a content-space delta.

        When the node is part of a multi-selection every selected node
        moves with it. Each node is clamped to the viewport on its own.

        Returns:
            Indices of the nodes and connectors that changed.
        """
        moved = [index]
        selection = self.state.selection
        if len(selection) > 1 and index in selection:
            moved.extend(i for i in selection if i != index)
        return self._move_nodes(moved, dx, dy)

    def nudge(self, dx: float, dy: float) -> list[int]:
        """Move the selection by a fixed step."""
        if self.state.scene is None or not self.state.selection:
            return []
        changed = self._move_nodes(list(self.state.selection), dx, dy)
        self.status.status(f"Moved {len(self.state.selection)} item(s)")
        return changed

    def _move_nodes(self, indices: list[int], dx: float, dy: float) -> list[int]:
        scene = self.state.scene
        for index in indices:
            node = scene.nodes[index]
            scene.move_node(index, node.x + dx, node.y + dy)

        if any(scene.nodes[i].kind is NodeKind.ROOT for i in indices):
            touched = scene.refresh_all_connectors()
        else:
            affected = set(indices)
            for index in indices:
                affected.update(scene.descendants(index))
            touched = scene.refresh_connectors(affected)

        changed = sorted(set(indices) | set(touched))
        self.host.nodes_changed(changed)
        return changed

    # Context menu

    def context_menu(self, index: Optional[int] = None) -> list[MenuItem]:
        """Menu entries for a node, or for the empty canvas when None."""
        state = self.state
        loaded = state.document is not None
        node = self._node(index)

        if node is None:
            return [
                MenuItem(MenuAction.OPEN, "Open File..."),
                MenuItem(MenuAction.SAVE, "Save", loaded),
                MenuItem(MenuAction.ADD_VEX, "Add VEX", loaded),
                MenuItem(MenuAction.COLLAPSE_ALL, "Collapse All", bool(state.expansion.expanded)),
            ]

        if node.kind is NodeKind.ROOT:
            expanded = state.expansion.sbom_expanded
            return [
                MenuItem(MenuAction.OPEN, "Open SBOM Details"),
                MenuItem(MenuAction.EXPAND, "Expand", not expanded),
                MenuItem(MenuAction.EXPAND_TO_FIT, "Expand to Fit"),
                MenuItem(MenuAction.COLLAPSE, "Collapse", expanded),
                MenuItem(MenuAction.SAVE, "Save"),
                MenuItem(MenuAction.COPY, "Copy Reference"),
                MenuItem(MenuAction.ADD_VEX, "Add VEX"),
            ]

        if node.kind is NodeKind.COMPONENT:
            component = node.payload
            has_dependents = bool(find_dependents(component, state.document))
            expanded = bool(component.bom_ref) and state.expansion.is_expanded(component.bom_ref)
            return [
                MenuItem(MenuAction.OPEN, "Open Details"),
                MenuItem(MenuAction.EXPAND, "Expand", has_dependents and not expanded),
                MenuItem(MenuAction.EXPAND_TO_FIT, "Expand to Fit"),
                MenuItem(MenuAction.COLLAPSE, "Collapse", expanded),
                MenuItem(MenuAction.SAVE, "Save"),
                MenuItem(MenuAction.COPY, "Copy Reference"),
                MenuItem(MenuAction.ADD_VEX, "Add VEX"),
            ]

        if node.kind is NodeKind.VULNERABILITY:
            return [
                MenuItem(MenuAction.OPEN, "Open VEX"),
                MenuItem(MenuAction.SAVE, "Save"),
                MenuItem(MenuAction.COPY, "Copy ID"),
            ]

        raise ValueError(f"Unknown node kind: {node.kind}")

    def run_menu_action(self, action: MenuAction, index: Optional[int] = None) -> None:
        """Execute a context menu entry for a node or the canvas."""
        node = self._node(index)
        logger.debug(f"Menu action {action.value} on {node.kind.value if node else 'canvas'}")

        if action is MenuAction.SAVE:
            self.save()
        elif node is None:
            if action is MenuAction.OPEN:
                self.open_file()
            elif action is MenuAction.ADD_VEX:
                self.add_vulnerability(None)
            elif action is MenuAction.COLLAPSE_ALL:
                self.collapse_all()
        elif node.kind is NodeKind.ROOT:
            self._run_root_action(action, node)
        elif node.kind is NodeKind.COMPONENT:
            self._run_component_action(action, node.payload)
        elif node.kind is NodeKind.VULNERABILITY:
            if action is MenuAction.OPEN:
                self.host.open_item_window(request_for(node.payload))
            elif action is MenuAction.COPY:
                self._copy(node.payload.id or "")

    def _run_root_action(self, action: MenuAction, node: SceneNode) -> None:
        if action is MenuAction.OPEN:
            self.host.open_item_window(request_for(node.payload))
        elif action is MenuAction.EXPAND:
            self.expand_root()
        elif action is MenuAction.EXPAND_TO_FIT:
            self.expand_to_fit()
        elif action is MenuAction.COLLAPSE:
            self.collapse_root()
        elif action is MenuAction.COPY:
            self._copy("SBOM")
        elif action is MenuAction.ADD_VEX:
            self.add_vulnerability(None)

    def _run_component_action(self, action: MenuAction, component: Component) -> None:
        if action is MenuAction.OPEN:
            self.host.open_item_window(request_for(component))
        elif action is MenuAction.EXPAND:
            self.expand_component(component)
        elif action is MenuAction.EXPAND_TO_FIT:
            if component.bom_ref and find_dependents(component, self.state.document):
                self.state.expansion.expand_component(component.bom_ref)
            self.expand_to_fit()
        elif action is MenuAction.COLLAPSE:
            self.collapse_component(component)
        elif action is MenuAction.COPY:
            self._copy(component.bom_ref or component.name or "")
        elif action is MenuAction.ADD_VEX:
            self.add_vulnerability(component)

    def _copy(self, text: str) -> None:
        self.host.copy_to_clipboard(text)
        self.status.status(f"Copied {text}")

    def _node(self, index: Optional[int]) -> Optional[SceneNode]:
        if self.state.scene is None:
            return None
        return self.state.scene.get(index)

    # Zoom and view

    def zoom(self, factor: float) -> None:
        view = self.state.view
        view.scale = min(MAX_SCALE, max(MIN_SCALE, view.scale * factor))
        self.host.view_changed(view)
        self.status.status(f"Zoom: {round(view.scale * 100)}%")

    def zoom_in(self) -> None:
        self.zoom(self.config.zoom_in_factor)

    def zoom_out(self) -> None:
        self.zoom(self.config.zoom_out_factor)

    def reset_zoom(self) -> None:
        self.state.view = ViewTransform()
        self.host.view_changed(self.state.view)
        self.status.status("Zoom reset")

    def center_view(self) -> None:
        view = self.state.view
        view.offset_x = 0.0
        view.offset_y = 0.0
        self.host.view_changed(view)

    def fit_to_screen(self) -> None:
        """Scale and centre the view on the scene, never zooming past 100%."""
        scene = self.state.scene
        extent = scene.extent() if scene is not None else None
        if extent is None:
            return

        viewport = self.state.viewport
        padding = self.config.fit_padding
        scale = min(
            (viewport.width - 2 * padding) / max(extent.width, 1.0),
            (viewport.height - 2 * padding) / max(extent.height, 1.0),
            1.0,
        )
        scale = max(MIN_SCALE, scale)

        view = self.state.view
        view.scale = scale
        view.offset_x = (viewport.width - extent.width * scale) / 2 - extent.x * scale
        view.offset_y = (viewport.height - extent.height * scale) / 2 - extent.y * scale
        self.host.view_changed(view)

    # Keyboard

    def handle_key(self, key: str, ctrl: bool = False, shift: bool = False) -> bool:
        """Handle a key press.

        Args:
            key: tk keysym or character, e.g. ``"plus"``, ``"+"``, ``"Up"``.
            ctrl: Ctrl (or Cmd) held.
            shift: Shift held.

        Returns:
            True if the key was handled.
        """
        if ctrl:
            lowered = key.lower()
            if lowered == "o":
                self.open_file()
            elif lowered == "s" and shift:
                self.save_as()
            elif lowered == "s":
                self.save()
            else:
                return False
            return True

        step = self.config.nudge_step
        if key in ("+", "=", "plus", "equal"):
            self.zoom_in()
        elif key in ("-", "minus"):
            self.zoom_out()
        elif key == "0":
            self.reset_zoom()
        elif key in ("f", "F"):
            self.fit_to_screen()
        elif key == "Up":
            self.nudge(0, -step)
        elif key == "Down":
            self.nudge(0, step)
        elif key == "Left":
            self.nudge(-step, 0)
        elif key == "Right":
            self.nudge(step, 0)
        else:
            return False
        return True
