"""Reference resolution between components and vulnerabilities.

A component is referenced by its bomRef, falling back to its purl and then
its name. Vulnerabilities point at components through ``affects[].ref`` and
components point at each other through their dependency refs.
"""

import logging
import time
from typing import Callable, Optional
from urllib.parse import quote

from heimdall_viewer.errors import UnresolvedReferenceError
from heimdall_viewer.models import Component, Document, Vulnerability

logger = logging.getLogger(__name__)

# Characters left unescaped, matching JavaScript's encodeURIComponent.
URL_SAFE_CHARS = "-_.!~*'()"


def resolve_reference(component: Optional[Component]) -> Optional[str]:
    """Return the component's canonical reference, or None."""
    if component is None:
        return None
    return component.bom_ref or component.purl or component.name or None


def require_reference(component: Component) -> str:
    """Return the component's reference, raising when it has none."""
    ref = resolve_reference(component)
    if ref is None:
        raise UnresolvedReferenceError("Component has no identifiable reference")
    return ref


def reference_index(document: Document) -> dict[str, Component]:
    """Map every resolvable reference to its component.

    With duplicate references the first component wins.
    """
    index: dict[str, Component] = {}
    for component in document.components:
        ref = resolve_reference(component)
        if ref is not None and ref not in index:
            index[ref] = component
    return index


def find_orphan_vulnerabilities(document: Document) -> list[Vulnerability]:
    """Vulnerabilities that are not attached to any component.

    A vulnerability is orphaned when its ``affects`` is empty or absent, or
    when none of its refs match a component reference.
    """
    refs = set(reference_index(document))
    orphans = []
    for vuln in document.vulnerabilities:
        if not vuln.affects:
            orphans.append(vuln)
        elif not any(ref in refs for ref in vuln.affect_refs):
            orphans.append(vuln)
    return orphans


def find_dependents(component: Component, document: Document) -> list[Component]:
    """Components whose reference is listed in ``component``'s dependencies."""
    wanted = set(document.dependencies_of(component))
    if not wanted:
        return []
    return [c for c in document.components if resolve_reference(c) in wanted]


def find_affecting_vulnerabilities(
    component: Component, document: Document
) -> list[Vulnerability]:
    """Vulnerabilities whose ``affects`` contains the component's reference."""
    ref = resolve_reference(component)
    if ref is None:
        return []
    return [v for v in document.vulnerabilities if ref in v.affect_refs]


def generate_bom_ref(
    component: Component, index: int, clock: Callable[[], float] = time.time
) -> str:
    """Generate a bomRef for a component that lacks one.

    The purl-derived form is stable. The fallback embeds the current time in
    milliseconds, so it differs between loads of the same file.
    """
    if component.purl:
        return quote(component.purl, safe=URL_SAFE_CHARS)
    return f"component-{index}-{int(clock() * 1000)}"


def normalize_bom_refs(document: Document, clock: Callable[[], float] = time.time) -> int:
    """Give every component without a bomRef a generated one.

    Returns:
        Number of components that received a generated bomRef.
    """
    generated = 0
    for index, component in enumerate(document.components):
        if component.bom_ref:
            continue
        component.bom_ref = generate_bom_ref(component, index, clock)
        generated += 1
        if not component.purl:
            logger.debug(f"Component {index} has no purl, using time-based bomRef {component.bom_ref}")
    if generated:
        logger.info(f"Generated bomRef for {generated} component(s)")
    return generated
