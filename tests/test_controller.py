"""Tests for the interaction controller."""

import json

import pytest

from heimdall_viewer.controller import (
    LEFT_BUTTON,
    MAX_SCALE,
    MIDDLE_BUTTON,
    MIN_SCALE,
    AppState,
    InteractionController,
    MenuAction,
    Mode,
    ViewHost,
)
from heimdall_viewer.messaging import ItemType, ItemUpdated, UpdateOutcome
from heimdall_viewer.models import Component
from heimdall_viewer.scene import NodeKind, Viewport
from heimdall_viewer.status import StatusReporter

# Node indices of the sample document with the root expanded
ROOT, CORE, REQUESTS, CVE, ORPHAN = range(5)


class FakeHost(ViewHost):
    """Records everything the controller asks the view to do."""

    def __init__(self):
        self.scenes = []
        self.changed = []
        self.boxes = []
        self.views = 0
        self.windows = []
        self.clipboard = []
        self.open_path = None
        self.save_path = None
        self.asked_open = 0

    def scene_changed(self, scene):
        self.scenes.append(scene)

    def nodes_changed(self, indices):
        self.changed.append(indices)

    def selection_box_changed(self, rect):
        self.boxes.append(rect)

    def view_changed(self, view):
        self.views += 1

    def open_item_window(self, request):
        self.windows.append(request)

    def copy_to_clipboard(self, text):
        self.clipboard.append(text)

    def ask_open_path(self):
        self.asked_open += 1
        return self.open_path

    def ask_save_path(self):
        return self.save_path


@pytest.fixture
def host():
    """A recording view host."""
    return FakeHost()


@pytest.fixture
def controller(host, fixed_clock, sbom_file):
    """Controller with the sample document loaded in a 1200x800 view."""
    controller = InteractionController(
        host,
        status=StatusReporter(),
        state=AppState(viewport=Viewport(1200, 800)),
        clock=fixed_clock,
    )
    assert controller.load_path(sbom_file)
    return controller


@pytest.fixture
def expanded(controller):
    """The loaded controller with the root expanded."""
    controller.expand_root()
    return controller


def center(controller, index):
    node = controller.state.scene.nodes[index]
    return node.x + node.width / 2, node.y + node.height / 2


def click_node(controller, index, ctrl=False):
    x, y = center(controller, index)
    controller.press(x, y, LEFT_BUTTON, ctrl=ctrl)
    controller.release(x, y)


def assert_connectors_consistent(scene):
    for index, connector in scene.connectors.items():
        node = scene.nodes[index]
        parent = scene.nodes[node.parent]
        assert connector.points == (*parent.bottom_center, *node.top_center)


class TestRendering:
    """Tests for render and document loading."""

    def test_render_without_document(self, host):
        controller = InteractionController(host, status=StatusReporter())

        assert controller.render() is None
        assert controller.status.message == "Error: No SBOM data found"
        assert controller.state.scene is None
        assert host.scenes == []

    def test_load_shows_collapsed_root(self, controller, host):
        assert len(controller.state.scene) == 1
        assert host.scenes[-1] is controller.state.scene
        assert controller.status.message == "Loaded bom.json"
        assert not controller.state.dirty

    def test_sample_layout(self, expanded):
        kinds = [node.kind for node in expanded.state.scene.nodes]
        assert kinds == [
            NodeKind.ROOT,
            NodeKind.COMPONENT,
            NodeKind.COMPONENT,
            NodeKind.VULNERABILITY,
            NodeKind.VULNERABILITY,
        ]

    def test_format_error_keeps_previous_document(self, controller):
        previous = controller.state.document

        assert not controller.load_text('{"components": []}')
        assert controller.state.document is previous
        assert controller.status.message.startswith("Error: Failed to parse SBOM")

    def test_missing_file_keeps_previous_document(self, controller, tmp_path):
        previous = controller.state.document

        assert not controller.load_path(tmp_path / "nope.json")
        assert controller.state.document is previous
        assert controller.status.message.startswith("Error: Failed to read file")

    def test_rerender_clears_selection(self, expanded):
        click_node(expanded, CORE)
        expanded.render()

        assert expanded.state.selection == []
        assert not any(node.selected for node in expanded.state.scene.nodes)


class TestPointer:
    """Tests for selection, panning and dragging."""

    def test_rubber_band_selection(self, expanded, host):
        expanded.press(10, 10, LEFT_BUTTON)
        assert expanded.state.mode is Mode.SELECTING

        expanded.motion(1190, 260)
        assert expanded.state.selection == [ROOT]

        expanded.motion(1190, 300)
        expanded.release(1190, 300)

        assert expanded.state.selection == [ROOT, CORE, REQUESTS]
        assert expanded.state.mode is Mode.IDLE
        assert expanded.state.selection_rect is None
        assert host.boxes[-1] is None

    def test_press_on_empty_canvas_deselects(self, expanded):
        click_node(expanded, CORE)
        expanded.press(10, 10, LEFT_BUTTON)
        expanded.release(10, 10)

        assert expanded.state.selection == []

    def test_panning_moves_view_not_nodes(self, expanded):
        before = [(n.x, n.y) for n in expanded.state.scene.nodes]

        expanded.press(10, 10, LEFT_BUTTON, shift=True)
        assert expanded.state.mode is Mode.PANNING
        expanded.motion(30, 25)
        expanded.motion(40, 35)
        expanded.release(40, 35)

        view = expanded.state.view
        assert (view.offset_x, view.offset_y) == (30, 25)
        assert [(n.x, n.y) for n in expanded.state.scene.nodes] == before

    def test_middle_button_pans(self, expanded):
        expanded.press(10, 10, MIDDLE_BUTTON)
        assert expanded.state.mode is Mode.PANNING

    def test_modes_are_exclusive(self, expanded):
        expanded.press(10, 10, LEFT_BUTTON)
        x, y = center(expanded, CORE)
        expanded.press(x, y, LEFT_BUTTON)
        expanded.press(x, y, MIDDLE_BUTTON)

        assert expanded.state.mode is Mode.SELECTING
        assert expanded.state.drag is None

    def test_click_selects(self, expanded):
        click_node(expanded, CORE)

        assert expanded.state.selection == [CORE]
        assert expanded.state.scene.nodes[CORE].selected
        assert expanded.status.message == "Selected: webapp-core"

    def test_ctrl_click_toggles(self, expanded):
        click_node(expanded, CORE)
        click_node(expanded, REQUESTS, ctrl=True)
        assert expanded.state.selection == [CORE, REQUESTS]

        click_node(expanded, CORE, ctrl=True)
        assert expanded.state.selection == [REQUESTS]

    def test_drag_moves_node_and_refreshes_child_connectors(self, expanded, host):
        node = expanded.state.scene.nodes[REQUESTS]
        start = (node.x, node.y)
        x, y = center(expanded, REQUESTS)

        expanded.press(x, y, LEFT_BUTTON)
        assert expanded.state.mode is Mode.DRAGGING
        expanded.motion(x + 20, y + 10)
        expanded.release(x + 20, y + 10)

        assert (node.x, node.y) == (start[0] + 20, start[1] + 10)
        assert {REQUESTS, CVE} <= set(host.changed[-1])
        assert expanded.state.selection == []
        assert_connectors_consistent(expanded.state.scene)

    def test_drag_delta_scaled_to_content(self, expanded):
        expanded.state.view.scale = 2.0
        node = expanded.state.scene.nodes[CORE]
        start_x = node.x
        sx, sy = expanded.state.view.to_screen(*center(expanded, CORE))

        expanded.press(sx, sy, LEFT_BUTTON)
        expanded.motion(sx + 40, sy)
        expanded.release(sx + 40, sy)

        assert node.x == start_x + 20

    def test_drag_refreshes_descendant_connectors(self, expanded):
        expanded.expand_component(expanded.state.scene.nodes[CORE].payload)
        x, y = center(expanded, CORE)

        expanded.press(x, y, LEFT_BUTTON)
        expanded.motion(x - 30, y + 15)
        expanded.release(x - 30, y + 15)

        assert_connectors_consistent(expanded.state.scene)

    def test_dragging_root_refreshes_every_connector(self, expanded, host):
        x, y = center(expanded, ROOT)

        expanded.press(x, y, LEFT_BUTTON)
        expanded.motion(x + 10, y)
        expanded.release(x + 10, y)

        assert set(host.changed[-1]) == {ROOT, CORE, REQUESTS, CVE, ORPHAN}
        assert_connectors_consistent(expanded.state.scene)

    def test_multi_drag_clamps_each_node(self, expanded):
        expanded.press(10, 250, LEFT_BUTTON)
        expanded.motion(1190, 300)
        expanded.release(1190, 300)
        assert expanded.state.selection == [CORE, REQUESTS]

        core = expanded.state.scene.nodes[CORE]
        requests = expanded.state.scene.nodes[REQUESTS]
        core_x, requests_x = core.x, requests.x
        x, y = center(expanded, CORE)

        expanded.press(x, y, LEFT_BUTTON)
        expanded.motion(x - 400, y)
        expanded.release(x - 400, y)

        assert core_x - 400 < 0
        assert core.x == 0
        assert requests.x == requests_x - 400
        assert_connectors_consistent(expanded.state.scene)


class TestDoubleClick:
    """Tests for double-click activation."""

    def test_root_toggles_expansion(self, controller):
        controller.double_click(*center(controller, ROOT))
        assert controller.state.expansion.sbom_expanded
        assert len(controller.state.scene) == 5

        controller.double_click(*center(controller, ROOT))
        assert not controller.state.expansion.sbom_expanded
        assert len(controller.state.scene) == 1

    def test_component_with_dependents_toggles(self, expanded):
        expanded.double_click(*center(expanded, CORE))

        assert expanded.state.expansion.is_expanded("core@2.0.0")
        assert expanded.status.message == "Expanded webapp-core"

        expanded.double_click(*center(expanded, CORE))
        assert not expanded.state.expansion.is_expanded("core@2.0.0")

    def test_component_without_dependencies_opens_details(self, expanded, host):
        expanded.double_click(*center(expanded, REQUESTS))

        (request,) = host.windows
        assert request.item_type is ItemType.COMPONENT
        assert request.item_data["name"] == "requests"

    def test_unresolved_dependencies(self, controller):
        controller.load_text(
            json.dumps(
                {
                    "bomFormat": "CycloneDX",
                    "specVersion": "1.4",
                    "components": [{"name": "a", "bomRef": "a", "dependencies": ["ghost"]}],
                }
            )
        )
        controller.expand_root()
        controller.double_click(*center(controller, 1))

        assert controller.status.message == "No dependencies found"
        assert controller.state.expansion.expanded == set()

    def test_vulnerability_opens_vex_window(self, expanded, host):
        expanded.double_click(*center(expanded, CVE))

        (request,) = host.windows
        assert request.item_type is ItemType.VEX
        assert request.item_data["id"] == "CVE-2023-32681"

    def test_double_click_on_canvas_does_nothing(self, expanded, host):
        expanded.double_click(5, 5)
        assert host.windows == []


class TestContextMenu:
    """Tests for context menu entries and actions."""

    def enabled(self, items):
        return {item.action: item.enabled for item in items}

    def test_canvas_menu(self, expanded):
        items = expanded.context_menu(None)

        assert [i.action for i in items] == [
            MenuAction.OPEN,
            MenuAction.SAVE,
            MenuAction.ADD_VEX,
            MenuAction.COLLAPSE_ALL,
        ]
        assert not self.enabled(items)[MenuAction.COLLAPSE_ALL]

        expanded.expand_component(expanded.state.scene.nodes[CORE].payload)
        assert self.enabled(expanded.context_menu(None))[MenuAction.COLLAPSE_ALL]

    def test_root_menu(self, controller):
        collapsed = self.enabled(controller.context_menu(ROOT))
        assert collapsed[MenuAction.EXPAND]
        assert not collapsed[MenuAction.COLLAPSE]

        controller.expand_root()
        expanded = self.enabled(controller.context_menu(ROOT))
        assert not expanded[MenuAction.EXPAND]
        assert expanded[MenuAction.COLLAPSE]

    def test_component_menu(self, expanded):
        assert self.enabled(expanded.context_menu(CORE))[MenuAction.EXPAND]
        assert not self.enabled(expanded.context_menu(REQUESTS))[MenuAction.EXPAND]

        expanded.run_menu_action(MenuAction.EXPAND, CORE)
        core_menu = self.enabled(expanded.context_menu(CORE))
        assert not core_menu[MenuAction.EXPAND]
        assert core_menu[MenuAction.COLLAPSE]

    def test_vulnerability_menu(self, expanded):
        actions = [item.action for item in expanded.context_menu(CVE)]
        assert actions == [MenuAction.OPEN, MenuAction.SAVE, MenuAction.COPY]

    def test_copy_actions(self, expanded, host):
        expanded.run_menu_action(MenuAction.COPY, REQUESTS)
        expanded.run_menu_action(MenuAction.COPY, CVE)
        expanded.run_menu_action(MenuAction.COPY, ROOT)

        assert host.clipboard == ["requests@2.28.0", "CVE-2023-32681", "SBOM"]

    def test_collapse_component(self, expanded):
        expanded.run_menu_action(MenuAction.EXPAND, CORE)
        expanded.run_menu_action(MenuAction.COLLAPSE, CORE)

        assert expanded.state.expansion.expanded == set()

    def test_collapse_all_is_idempotent(self, expanded):
        expanded.run_menu_action(MenuAction.EXPAND, CORE)
        expanded.run_menu_action(MenuAction.COLLAPSE_ALL, None)
        first = len(expanded.state.scene)
        expanded.run_menu_action(MenuAction.COLLAPSE_ALL, None)

        assert len(expanded.state.scene) == first == 5
        assert expanded.state.expansion.sbom_expanded

    def test_open_file_from_canvas(self, expanded, host):
        expanded.run_menu_action(MenuAction.OPEN, None)
        assert host.asked_open == 1


class TestView:
    """Tests for zoom, fit and keyboard handling."""

    def test_zoom_in_clamps(self, controller):
        for _ in range(50):
            controller.zoom_in()
        assert controller.state.view.scale == MAX_SCALE

    def test_zoom_out_clamps(self, controller):
        for _ in range(50):
            controller.zoom_out()
        assert controller.state.view.scale == MIN_SCALE

    def test_reset_zoom(self, controller):
        controller.zoom_in()
        controller.state.view.offset_x = 40
        controller.reset_zoom()

        view = controller.state.view
        assert (view.scale, view.offset_x, view.offset_y) == (1.0, 0.0, 0.0)

    def test_center_view_keeps_scale(self, controller):
        controller.zoom_in()
        controller.state.view.offset_x = 40
        controller.center_view()

        assert controller.state.view.offset_x == 0
        assert controller.state.view.scale == pytest.approx(1.2)

    def test_fit_never_zooms_past_one(self, expanded):
        expanded.fit_to_screen()
        assert expanded.state.view.scale == 1.0

    def test_fit_centres_extent(self, expanded):
        expanded.resize(400, 300)

        view = expanded.state.view
        extent = expanded.state.scene.extent()
        assert view.scale < 1.0
        left, top = view.to_screen(extent.x, extent.y)
        right, bottom = view.to_screen(extent.right, extent.bottom)
        assert left + right == pytest.approx(400)
        assert top + bottom == pytest.approx(300)

    def test_zoom_keys(self, controller):
        assert controller.handle_key("plus")
        assert controller.state.view.scale == pytest.approx(1.2)
        assert controller.handle_key("minus")
        assert controller.state.view.scale == pytest.approx(0.96)
        assert controller.handle_key("0")
        assert controller.state.view.scale == 1.0

    def test_unknown_key(self, controller):
        assert not controller.handle_key("q")
        assert not controller.handle_key("x", ctrl=True)

    def test_arrow_keys_nudge_selection(self, expanded):
        click_node(expanded, CORE)
        node = expanded.state.scene.nodes[CORE]
        x, y = node.x, node.y

        expanded.handle_key("Right")
        expanded.handle_key("Down")

        assert (node.x, node.y) == (x + 10, y + 10)
        assert_connectors_consistent(expanded.state.scene)

    def test_nudge_clamped_to_viewport(self, expanded):
        click_node(expanded, ROOT)
        for _ in range(20):
            expanded.handle_key("Up")
        assert expanded.state.scene.nodes[ROOT].y == 0

    def test_nudge_without_selection(self, expanded):
        assert expanded.nudge(10, 0) == []

    def test_ctrl_o_opens(self, controller, host):
        controller.handle_key("o", ctrl=True)
        assert host.asked_open == 1


class TestDocumentCommands:
    """Tests for save, add VEX and item updates."""

    def test_save_writes_current_path(self, controller, sbom_file, loader):
        controller.state.dirty = True

        assert controller.handle_key("s", ctrl=True)
        assert not controller.state.dirty
        assert controller.status.message == "File saved successfully"
        assert loader.read(sbom_file) == controller.state.document

    def test_save_failure_keeps_dirty(self, controller, tmp_path):
        controller.state.path = tmp_path / "missing" / "bom.json"
        controller.state.dirty = True

        assert not controller.save()
        assert controller.state.dirty
        assert controller.status.message.startswith("Error: Failed to save file")

    def test_save_as(self, controller, host, tmp_path):
        host.save_path = tmp_path / "copy.json"

        assert controller.handle_key("S", ctrl=True, shift=True)
        assert controller.state.path == tmp_path / "copy.json"
        assert json.loads(host.save_path.read_text())["bomFormat"] == "CycloneDX"

    def test_save_without_path_asks(self, controller, host, tmp_path, sbom_data):
        controller.load_text(json.dumps(sbom_data))
        host.save_path = tmp_path / "new.json"

        assert controller.save()
        assert host.save_path.exists()

    def test_save_as_cancelled(self, controller, sbom_file):
        assert not controller.save_as()
        assert controller.state.path == sbom_file

    def test_add_vulnerability_to_component(self, expanded, host):
        component = expanded.state.scene.nodes[REQUESTS].payload
        vuln = expanded.add_vulnerability(component)

        assert vuln.id == "VULN-1704164645000"
        assert vuln.state == "reported"
        assert vuln.affect_refs == ["requests@2.28.0"]
        assert vuln.created == vuln.published == vuln.updated
        assert vuln in expanded.state.document.vulnerabilities
        assert expanded.state.dirty
        assert host.windows[-1].item_type is ItemType.VEX

    def test_add_orphan_vulnerability(self, controller):
        vuln = controller.add_vulnerability(None)

        assert vuln.affects == []
        assert controller.state.expansion.sbom_expanded
        labels = [node.labels[0] for node in controller.state.scene.nodes]
        assert vuln.id in labels

    def test_add_vulnerability_unresolved_component(self, controller, caplog):
        vuln = controller.add_vulnerability(Component(version="1.0"))

        assert vuln.affects == []
        assert "not attached" in controller.status.message
        assert "no identifiable reference" in caplog.text

    def test_add_vulnerability_from_menu(self, expanded):
        expanded.run_menu_action(MenuAction.ADD_VEX, CORE)
        assert expanded.state.document.vulnerabilities[-1].affect_refs == ["core@2.0.0"]

    def test_component_update_merged_and_written(self, controller, sbom_file):
        message = ItemUpdated(
            {"bomRef": "requests@2.28.0", "name": "requests"},
            ItemType.COMPONENT,
            {"version": "2.31.0"},
        )

        assert controller.apply_item_update(message) is UpdateOutcome.UPDATED
        assert controller.state.document.find_component("requests@2.28.0").version == "2.31.0"
        saved = json.loads(sbom_file.read_text())
        assert saved["components"][1]["version"] == "2.31.0"
        assert not controller.state.dirty

    def test_unknown_vex_update_appends_and_expands(self, controller):
        message = ItemUpdated({"id": "CVE-NEW"}, ItemType.VEX, {"description": "new"})

        assert controller.apply_item_update(message) is UpdateOutcome.ADDED
        assert controller.state.expansion.sbom_expanded
        assert controller.state.document.find_vulnerability("CVE-NEW").description == "new"

    def test_unknown_component_update(self, controller):
        message = ItemUpdated({"bomRef": "ghost"}, ItemType.COMPONENT, {"version": "9"})

        assert controller.apply_item_update(message) is UpdateOutcome.NOT_FOUND
        assert controller.status.message == "Error: Item not found in SBOM"

    def test_sbom_update_merged_and_written(self, controller, sbom_file):
        message = ItemUpdated(
            controller.state.document.to_dict(), ItemType.SBOM, {"specVersion": "1.5"}
        )

        assert controller.apply_item_update(message) is UpdateOutcome.UPDATED
        assert controller.state.document.spec_version == "1.5"
        assert controller.state.scene.root.labels[1] == "CycloneDX v1.5"
        assert json.loads(sbom_file.read_text())["specVersion"] == "1.5"
        assert controller.status.message == "Changes saved to file"

    def test_invalid_sbom_update_rejected(self, controller, sbom_file):
        before = sbom_file.read_text()
        message = ItemUpdated({}, ItemType.SBOM, {"bomFormat": ""})

        assert controller.apply_item_update(message) is UpdateOutcome.INVALID
        assert controller.state.document.bom_format == "CycloneDX"
        assert not controller.state.dirty
        assert sbom_file.read_text() == before
        assert controller.status.message.startswith("Error: Failed to update SBOM")

    def test_debug_summary(self, expanded):
        assert expanded.debug_summary() == "mode=idle zoom=1.00 nodes=5 selected=0"
