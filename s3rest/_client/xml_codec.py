"""XML request manifests and namespace-agnostic response parsing."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from s3rest.exceptions import DecodeError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from s3rest.models import CompletedPart


def _serialize(root: ET.Element) -> bytes:
    return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


def _add_text(parent: ET.Element, tag: str, text: str) -> ET.Element:
    child = ET.SubElement(parent, tag)
    child.text = text
    return child


def build_create_bucket_configuration(location: str) -> bytes:
    """``<CreateBucketConfiguration><LocationConstraint>`` document."""
    root = ET.Element("CreateBucketConfiguration")
    _add_text(root, "LocationConstraint", location)
    return _serialize(root)


def build_complete_multipart_upload(parts: Sequence[CompletedPart]) -> bytes:
    """Part manifest, serialized in exactly the order of *parts*."""
    root = ET.Element("CompleteMultipartUpload")
    for part in parts:
        node = ET.SubElement(root, "Part")
        _add_text(node, "PartNumber", str(part.part_number))
        _add_text(node, "ETag", part.etag)
    return _serialize(root)


def build_delete_manifest(keys: Iterable[str]) -> bytes:
    """``<Delete><Object><Key>`` document for a batch delete."""
    root = ET.Element("Delete")
    for key in keys:
        node = ET.SubElement(root, "Object")
        _add_text(node, "Key", key)
    return _serialize(root)


def parse_document(body: bytes, expected_root: str | None = None) -> ET.Element:
    """Parse *body* and strip namespaces from every tag.

    Raises ``DecodeError`` when the body is empty, not well-formed, or its
    root element is not *expected_root*.
    """
    if not body.strip():
        raise DecodeError(f"Expected <{expected_root or 'XML'}> document, got empty body")
    try:
        root = ET.fromstring(body)  # noqa: S314
    except ET.ParseError as e:
        raise DecodeError(f"Malformed XML response: {e}") from e
    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = element.tag.split("}", 1)[1]
    if expected_root is not None and root.tag != expected_root:
        raise DecodeError(f"Expected <{expected_root}> document, got <{root.tag}>")
    return root


def child_text(element: ET.Element, tag: str) -> str | None:
    """Text of the first direct child named *tag*, or ``None``."""
    child = element.find(tag)
    if child is None:
        return None
    return child.text or ""


def required_text(element: ET.Element, tag: str) -> str:
    """Like :func:`child_text` but raises ``DecodeError`` when absent."""
    text = child_text(element, tag)
    if text is None:
        raise DecodeError(f"<{element.tag}> is missing required <{tag}>")
    return text
