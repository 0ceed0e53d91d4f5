"""Namespace-agnostic helpers over :mod:`xml.etree.ElementTree` elements.

Statement XML arrives with and without default namespaces (CAMT ships
``urn:iso:std:iso:20022:tech:xsd:camt.053.001.0x``, repaired OFX has none),
so every lookup here compares *local* tag names only.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator


def local_name(tag: str) -> str:
    """``{urn:...}Ntry`` -> ``Ntry``."""

    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def children(node: ET.Element, name: str) -> list[ET.Element]:
    return [c for c in node if local_name(c.tag) == name]


def child(node: ET.Element | None, name: str) -> ET.Element | None:
    if node is None:
        return None
    for c in node:
        if local_name(c.tag) == name:
            return c
    return None


def child_text(node: ET.Element | None, name: str) -> str | None:
    """Stripped text of the first ``name`` child; ``None`` when absent or empty."""

    found = child(node, name)
    if found is None or found.text is None:
        return None
    return found.text.strip() or None


def path(node: ET.Element | None, *names: str) -> ET.Element | None:
    """Follow first-child links ``names`` from ``node``."""

    for name in names:
        node = child(node, name)
        if node is None:
            return None
    return node


def descendants(node: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield every element below ``node`` named ``name``, in document order.

    ``node`` itself is not included. Matches inside a match are yielded too.
    """

    for element in node.iter():
        if element is not node and local_name(element.tag) == name:
            yield element


def first_descendant(node: ET.Element, name: str) -> ET.Element | None:
    return next(descendants(node, name), None)


__all__ = [
    "child",
    "child_text",
    "children",
    "descendants",
    "first_descendant",
    "local_name",
    "path",
]
