"""Expansion state of the SBOM graph."""

from dataclasses import dataclass, field


@dataclass
class ExpansionState:
    """Which parts of the graph are currently shown.

    ``sbom_expanded`` controls whether anything below the root is visible;
    ``expanded`` holds the bomRefs of components whose dependencies are
    visible. Collapsing the root forgets every component expansion.
    """

    sbom_expanded: bool = False
    expanded: set[str] = field(default_factory=set)

    def expand_root(self) -> None:
        self.sbom_expanded = True

    def collapse_root(self) -> None:
        self.sbom_expanded = False
        self.expanded.clear()

    def toggle_root(self) -> bool:
        """Toggle root expansion and return the new state."""
        if self.sbom_expanded:
            self.collapse_root()
        else:
            self.expand_root()
        return self.sbom_expanded

    def expand_component(self, ref: str) -> None:
        self.expanded.add(ref)

    def collapse_component(self, ref: str) -> bool:
        """Collapse a component. Returns False if it was not expanded."""
        if ref not in self.expanded:
            return False
        self.expanded.discard(ref)
        return True

    def toggle_component(self, ref: str) -> bool:
        """Toggle a component and return whether it is now expanded."""
        if ref in self.expanded:
            self.expanded.discard(ref)
            return False
        self.expanded.add(ref)
        return True

    def collapse_all(self) -> None:
        self.expanded.clear()

    def is_expanded(self, ref: str) -> bool:
        return ref in self.expanded

    def reset(self) -> None:
        """Back to the state of a freshly loaded document."""
        self.sbom_expanded = False
        self.expanded.clear()
