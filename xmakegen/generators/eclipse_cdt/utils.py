import hashlib
from pathlib import Path
from typing import Dict, Optional
from xml.dom.minidom import Document, Element, Node

from xmakegen.generators.utils import write_if_changed


def owner_doc(xnode: Node) -> Document:
    if isinstance(xnode, Document):
        return xnode
    else:
        assert xnode.ownerDocument
        return xnode.ownerDocument


def append_element(
    xparent: Node, name: str, attributes: Optional[Dict[str, str]] = None
) -> Element:
    xelement = owner_doc(xparent).createElement(name)
    for key, value in (attributes or {}).items():
        xelement.setAttribute(key, value)
    xparent.appendChild(xelement)
    return xelement


def append_text_element(xparent: Node, name: str, value: str) -> Element:
    xelement = append_element(xparent, name)
    xelement.appendChild(owner_doc(xparent).createTextNode(value))
    return xelement


def write_xml_to_path(xdoc: Document, path: Path):
    write_if_changed(path, xdoc.toprettyxml(indent="\t", newl="\n", encoding="UTF-8"))


# Stable numeric suffix for CDT element ids.
def make_id(prefix: str, key: str) -> str:
    digest = int(hashlib.sha1(key.encode("utf-8")).hexdigest()[:8], 16)
    return f"{prefix}.{digest}"
