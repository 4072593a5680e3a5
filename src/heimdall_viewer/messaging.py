"""Messages exchanged between the main view and item windows.

The main view sends an ``ItemRequest`` when it opens a detail or VEX
window. The window answers with an ``ItemUpdated`` carrying the edited
fields, which the main view merges onto the stored record.
"""

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from heimdall_viewer.models import Component, Document, Vulnerability

logger = logging.getLogger(__name__)


class ItemType(Enum):
    """Kinds of item a window can edit."""

    COMPONENT = "component"
    VEX = "vex"
    SBOM = "sbom"

    @classmethod
    def from_value(cls, value: str) -> "ItemType":
        """Parse an item type, accepting ``vulnerability`` for VEX."""
        if value == "vulnerability":
            return cls.VEX
        return cls(value)


class UpdateOutcome(Enum):
    """Result of applying an update to the document."""

    UPDATED = "updated"
    ADDED = "added"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    IGNORED = "ignored"


@dataclass
class ItemRequest:
    """Main view -> item window."""

    item_data: dict[str, Any]
    item_type: ItemType

    @property
    def title(self) -> str:
        name = self.item_data.get("name") or self.item_data.get("id") or "Unknown"
        return f"{self.item_type.value} Details - {name}"

    def to_dict(self) -> dict:
        return {"itemData": self.item_data, "itemType": self.item_type.value}


@dataclass
class ItemUpdated:
    """Item window -> main view."""

    item_data: dict[str, Any]
    item_type: ItemType
    updated_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "itemData": self.item_data,
            "itemType": self.item_type.value,
            "updatedData": self.updated_data,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ItemUpdated":
        return cls(
            item_data=data.get("itemData") or {},
            item_type=ItemType.from_value(data["itemType"]),
            updated_data=data.get("updatedData") or {},
        )


def _component_key(data: dict) -> Optional[str]:
    return data.get("bomRef") or data.get("bom-ref")


def merge_item_update(document: Document, message: ItemUpdated) -> UpdateOutcome:
    """Merge an update onto the matching record of ``document``.

    Components are matched by bomRef and vulnerabilities by id, both taken
    from ``item_data`` (the record as it was sent to the window). An unknown
    vulnerability id is appended as a new entry. Document-level updates
    replace the document itself and go through ``DocumentLoader.merge``.
    """
    if message.item_type is ItemType.COMPONENT:
        key = _component_key(message.item_data)
        for i, component in enumerate(document.components):
            if key is not None and component.bom_ref == key:
                document.components[i] = component.merge(message.updated_data)
                return UpdateOutcome.UPDATED
        logger.warning(f"Component {key!r} not found in SBOM during update")
        return UpdateOutcome.NOT_FOUND

    if message.item_type is ItemType.VEX:
        vuln_id = message.item_data.get("id")
        for i, vuln in enumerate(document.vulnerabilities):
            if vuln_id is not None and vuln.id == vuln_id:
                document.vulnerabilities[i] = vuln.merge(message.updated_data)
                return UpdateOutcome.UPDATED
        document.vulnerabilities.append(
            Vulnerability.from_dict({**message.item_data, **message.updated_data})
        )
        return UpdateOutcome.ADDED

    logger.warning(f"Updates for item type {message.item_type.value} are not supported")
    return UpdateOutcome.IGNORED


def request_for(item: Any) -> ItemRequest:
    """Build the window request for a document record."""
    if isinstance(item, Component):
        return ItemRequest(item.to_dict(), ItemType.COMPONENT)
    if isinstance(item, Vulnerability):
        return ItemRequest(item.to_dict(), ItemType.VEX)
    if isinstance(item, Document):
        return ItemRequest(item.to_dict(), ItemType.SBOM)
    raise TypeError(f"No item window for {type(item).__name__}")


class WindowRegistry:
    """Tracks open item windows, one pending edit per window."""

    def __init__(self) -> None:
        self._windows: dict[str, ItemRequest] = {}
        self._ids = itertools.count(1)

    def open(self, request: ItemRequest) -> str:
        window_id = str(next(self._ids))
        self._windows[window_id] = request
        logger.debug(f"Opened item window {window_id}: {request.title}")
        return window_id

    def close(self, window_id: str) -> None:
        self._windows.pop(window_id, None)

    def get(self, window_id: str) -> Optional[ItemRequest]:
        return self._windows.get(window_id)

    def submit(self, window_id: str, updated_data: dict[str, Any]) -> ItemUpdated:
        """Build the update message for a window's edit.

        The window keeps the edited record so a later edit is matched
        against the saved values.
        """
        request = self._windows[window_id]
        message = ItemUpdated(request.item_data, request.item_type, updated_data)
        self._windows[window_id] = ItemRequest(
            {**request.item_data, **updated_data}, request.item_type
        )
        return message

    def __len__(self) -> int:
        return len(self._windows)
