"""Desktop shell for the viewer, built on tkinter.

All behaviour lives in ``InteractionController``; this module only turns
tk events into controller calls and draws whatever the scene holds.
"""

import json
import logging
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox, ttk
from typing import Optional

from heimdall_viewer.config import ViewerConfig
from heimdall_viewer.controller import (
    InteractionController,
    MenuItem,
    ViewHost,
    ViewTransform,
)
from heimdall_viewer.messaging import ItemRequest, WindowRegistry
from heimdall_viewer.scene import CONNECTOR_COLOR, Connector, Rect, Scene, SceneNode
from heimdall_viewer.status import StatusReporter

logger = logging.getLogger(__name__)

COLORS = {
    "bg": "#1e1e2e",
    "surface": "#2a2a3d",
    "border": "#3a3a55",
    "text": "#ffffff",
    "text_dim": "#a0a0b8",
    "selection": "#ffd700",
}

FONTS = {
    "title": ("Segoe UI", 11, "bold"),
    "body": ("Segoe UI", 9),
    "small": ("Segoe UI", 8),
    "mono": ("Consolas", 10),
}

FILE_TYPES = [
    ("CycloneDX", "*.json *.xml"),
    ("JSON", "*.json"),
    ("XML", "*.xml"),
    ("All Files", "*.*"),
]

CTRL_MASK = 0x0004
SHIFT_MASK = 0x0001


class HeimdallViewerApp(tk.Tk, ViewHost):
    """Main window: toolbar, graph canvas and status bar."""

    def __init__(self, config: Optional[ViewerConfig] = None) -> None:
        super().__init__()
        self.viewer_config = config or ViewerConfig()
        self.title("Heimdall SBOM Viewer")
        self.geometry(f"{self.viewer_config.window_width}x{self.viewer_config.window_height}")
        self.minsize(640, 480)
        self.configure(bg=COLORS["bg"])

        self._status_msg = tk.StringVar(value="Ready")
        self._windows = WindowRegistry()

        status = StatusReporter(
            scheduler=self.after,
            on_change=self._status_msg.set,
            status_timeout_ms=self.viewer_config.status_timeout_ms,
            error_timeout_ms=self.viewer_config.error_timeout_ms,
        )
        self.controller = InteractionController(self, status=status, config=self.viewer_config)

        self._build_ui()
        self._bind_events()

    # ── layout ────────────────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        self._build_toolbar()
        self._build_statusbar()

        self.canvas = tk.Canvas(self, bg=COLORS["bg"], highlightthickness=0)
        self.canvas.pack(fill="both", expand=True)

        self._overlay: Optional[tk.Label] = None
        if self.viewer_config.dev_mode:
            self._overlay = tk.Label(
                self.canvas, bg=COLORS["surface"], fg=COLORS["text_dim"], font=FONTS["small"]
            )
            self._overlay.place(x=8, y=8)

    def _build_toolbar(self) -> None:
        bar = tk.Frame(self, bg=COLORS["surface"])
        bar.pack(fill="x", side="top")

        controller = self.controller
        buttons = [
            ("Open", controller.open_file),
            ("Save", controller.save),
            ("Save As", controller.save_as),
            ("Zoom In", controller.zoom_in),
            ("Zoom Out", controller.zoom_out),
            ("Reset Zoom", controller.reset_zoom),
            ("Fit to Screen", controller.fit_to_screen),
            ("Center", controller.center_view),
            ("Collapse All", controller.collapse_all),
        ]
        for text, command in buttons:
            ttk.Button(bar, text=text, command=command).pack(side="left", padx=2, pady=4)

    def _build_statusbar(self) -> None:
        bar = tk.Frame(self, bg=COLORS["surface"], height=24)
        bar.pack(fill="x", side="bottom")
        bar.pack_propagate(False)
        tk.Label(
            bar,
            textvariable=self._status_msg,
            bg=COLORS["surface"],
            fg=COLORS["text_dim"],
            font=FONTS["small"],
        ).pack(side="left", padx=10)

    def _bind_events(self) -> None:
        canvas = self.canvas
        canvas.bind("<ButtonPress-1>", lambda e: self._press(e, 1))
        canvas.bind("<ButtonPress-2>", lambda e: self._press(e, 2))
        canvas.bind("<B1-Motion>", self._motion)
        canvas.bind("<B2-Motion>", self._motion)
        canvas.bind("<ButtonRelease-1>", self._release)
        canvas.bind("<ButtonRelease-2>", self._release)
        canvas.bind("<Double-Button-1>", self._double_click)
        canvas.bind("<ButtonPress-3>", self._context_menu)
        canvas.bind("<MouseWheel>", self._wheel)
        canvas.bind("<Button-4>", lambda e: self.controller.zoom_in())
        canvas.bind("<Button-5>", lambda e: self.controller.zoom_out())
        canvas.bind("<Configure>", self._on_resize)
        self.bind("<Key>", self._key)

    # ── event handlers ────────────────────────────────────────────────────────

    def _press(self, event: tk.Event, button: int) -> None:
        self.canvas.focus_set()
        self.controller.press(
            event.x,
            event.y,
            button,
            shift=bool(event.state & SHIFT_MASK),
            ctrl=bool(event.state & CTRL_MASK),
        )
        self._update_overlay()

    def _motion(self, event: tk.Event) -> None:
        self.controller.motion(event.x, event.y)
        self._update_overlay()

    def _release(self, event: tk.Event) -> None:
        self.controller.release(event.x, event.y)
        self._update_overlay()

    def _double_click(self, event: tk.Event) -> None:
        self.controller.double_click(event.x, event.y)

    def _wheel(self, event: tk.Event) -> None:
        if event.delta > 0:
            self.controller.zoom_in()
        elif event.delta < 0:
            self.controller.zoom_out()

    def _key(self, event: tk.Event) -> None:
        self.controller.handle_key(
            event.keysym,
            ctrl=bool(event.state & CTRL_MASK),
            shift=bool(event.state & SHIFT_MASK),
        )

    def _on_resize(self, event: tk.Event) -> None:
        self.controller.resize(event.width, event.height)

    def _context_menu(self, event: tk.Event) -> None:
        state = self.controller.state
        index = None
        if state.scene is not None:
            index = state.scene.node_at(*state.view.to_content(event.x, event.y))

        menu = tk.Menu(self, tearoff=0)
        for item in self.controller.context_menu(index):
            menu.add_command(
                label=item.label,
                state="normal" if item.enabled else "disabled",
                command=self._menu_command(item, index),
            )
        try:
            menu.tk_popup(event.x_root, event.y_root)
        finally:
            menu.grab_release()

    def _menu_command(self, item: MenuItem, index: Optional[int]):
        return lambda: self.controller.run_menu_action(item.action, index)

    # ── ViewHost ──────────────────────────────────────────────────────────────

    def scene_changed(self, scene: Optional[Scene]) -> None:
        self._redraw()

    def nodes_changed(self, indices: list[int]) -> None:
        scene = self.controller.state.scene
        if scene is None:
            return
        for index in indices:
            node = scene.get(index)
            if node is None:
                continue
            self.canvas.delete(f"n{index}")
            self._draw_node(node)
            connector = scene.connectors.get(index)
            if connector is not None:
                self.canvas.coords(f"c{index}", *self._screen_points(connector))
        self.canvas.tag_lower("connector")

    def selection_box_changed(self, rect: Optional[Rect]) -> None:
        self.canvas.delete("selection")
        if rect is None:
            return
        view = self.controller.state.view
        x0, y0 = view.to_screen(rect.x, rect.y)
        x1, y1 = view.to_screen(rect.right, rect.bottom)
        self.canvas.create_rectangle(
            x0, y0, x1, y1, outline=COLORS["selection"], dash=(4, 2), tags=("selection",)
        )

    def view_changed(self, view: ViewTransform) -> None:
        self._redraw()

    def open_item_window(self, request: ItemRequest) -> None:
        ItemWindow(self, request, self._windows, self.controller)

    def copy_to_clipboard(self, text: str) -> None:
        self.clipboard_clear()
        self.clipboard_append(text)

    def ask_open_path(self) -> Optional[Path]:
        path = filedialog.askopenfilename(title="Open SBOM", filetypes=FILE_TYPES)
        return Path(path) if path else None

    def ask_save_path(self) -> Optional[Path]:
        path = filedialog.asksaveasfilename(
            title="Save SBOM As",
            defaultextension=".json",
            filetypes=[("JSON", "*.json"), ("All Files", "*.*")],
        )
        return Path(path) if path else None

    # ── drawing ───────────────────────────────────────────────────────────────

    def _redraw(self) -> None:
        self.canvas.delete("all")
        scene = self.controller.state.scene
        if scene is not None:
            for item in scene.draw_order():
                if isinstance(item, Connector):
                    self._draw_connector(item)
                else:
                    self._draw_node(item)
        self._update_overlay()

    def _screen_points(self, connector: Connector) -> list[float]:
        view = self.controller.state.view
        x0, y0, x1, y1 = connector.points
        return [*view.to_screen(x0, y0), *view.to_screen(x1, y1)]

    def _draw_connector(self, connector: Connector) -> None:
        self.canvas.create_line(
            *self._screen_points(connector),
            fill=CONNECTOR_COLOR,
            width=2,
            tags=("connector", f"c{connector.child}"),
        )

    def _draw_node(self, node: SceneNode) -> None:
        view = self.controller.state.view
        x0, y0 = view.to_screen(node.x, node.y)
        x1, y1 = view.to_screen(node.x + node.width, node.y + node.height)
        tags = ("node", f"n{node.index}")
        self.canvas.create_rectangle(
            x0, y0, x1, y1, fill=node.fill, outline=node.stroke, width=node.stroke_width, tags=tags
        )

        line_height = (y1 - y0) / (len(node.labels) + 1)
        size = max(6, int(9 * view.scale))
        for i, label in enumerate(node.labels):
            weight = "bold" if i == 0 else "normal"
            self.canvas.create_text(
                (x0 + x1) / 2,
                y0 + line_height * (i + 1),
                text=label,
                fill=COLORS["text"],
                font=("Segoe UI", size, weight),
                width=max(1, x1 - x0 - 8),
                tags=tags,
            )

    def _update_overlay(self) -> None:
        if self._overlay is not None:
            self._overlay.configure(text=self.controller.debug_summary())


class ItemWindow(tk.Toplevel):
    """JSON editor for one component, VEX entry or the whole SBOM."""

    def __init__(
        self,
        master: tk.Misc,
        request: ItemRequest,
        registry: WindowRegistry,
        controller: InteractionController,
    ) -> None:
        super().__init__(master)
        self.registry = registry
        self.controller = controller
        self.window_id = registry.open(request)

        self.title(request.title)
        self.geometry("640x560")
        self.configure(bg=COLORS["bg"])
        self.protocol("WM_DELETE_WINDOW", self._close)

        self.text = tk.Text(
            self,
            bg=COLORS["surface"],
            fg=COLORS["text"],
            insertbackground=COLORS["text"],
            font=FONTS["mono"],
            wrap="none",
        )
        self.text.insert("1.0", json.dumps(request.item_data, indent=2))
        self.text.pack(fill="both", expand=True, padx=8, pady=(8, 4))

        buttons = tk.Frame(self, bg=COLORS["bg"])
        buttons.pack(fill="x", padx=8, pady=(0, 8))
        ttk.Button(buttons, text="Close", command=self._close).pack(side="right")
        ttk.Button(buttons, text="Save", command=self._save).pack(side="right", padx=4)

    def _save(self) -> None:
        try:
            updated = json.loads(self.text.get("1.0", "end"))
        except json.JSONDecodeError as e:
            messagebox.showerror("Invalid JSON", str(e), parent=self)
            return
        if not isinstance(updated, dict):
            messagebox.showerror("Invalid JSON", "Expected a JSON object", parent=self)
            return

        message = self.registry.submit(self.window_id, updated)
        self.controller.apply_item_update(message)

    def _close(self) -> None:
        self.registry.close(self.window_id)
        self.destroy()


def run_app(path: Optional[Path] = None, config: Optional[ViewerConfig] = None) -> None:
    """Create the main window, optionally load a file, and run the event loop."""
    app = HeimdallViewerApp(config)
    if path is not None:
        # let the canvas get its real size before the first layout
        app.after(100, lambda: app.controller.load_path(path))
    logger.info("Starting viewer")
    app.mainloop()
