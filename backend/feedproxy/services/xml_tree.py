from __future__ import annotations

import re

from lxml import etree

from feedproxy.services.feed_normalizer import FeedParseError

_XML_DECL_ENCODING_RE = re.compile(r"""^(\s*<\?xml[^>]*?encoding\s*=\s*["'])([^"']+)(["'])""")

# External entities, DTD loading and network access stay off; upstream bodies are untrusted.
_XML_PARSER = etree.XMLParser(
    recover=False,
    resolve_entities=False,
    no_network=True,
    load_dtd=False,
    huge_tree=False,
    collect_ids=False,
)


def _qualified_name(element: etree._Element) -> str:
    tag = element.tag
    if not isinstance(tag, str) or not tag.startswith("{"):
        return str(tag)
    local = etree.QName(element).localname
    return f"{element.prefix}:{local}" if element.prefix else local


class LxmlNode:
    """``XmlNode`` over an lxml element.

    A document-level node (``include_self=True``) matches the root element as
    well as its descendants, mirroring a DOM ``Document``.
    """

    def __init__(self, element: etree._Element, *, include_self: bool = False):
        self._element = element
        self._include_self = include_self

    def elements_by_tag_name(self, name: str) -> list[LxmlNode]:
        walker = self._element.iter if self._include_self else self._element.iterdescendants
        return [LxmlNode(el) for el in walker(etree.Element) if _qualified_name(el) == name]

    def text_content(self) -> str:
        # string() skips comments and processing instructions, like DOM textContent.
        return str(self._element.xpath("string()"))

    def get_attribute(self, name: str) -> str | None:
        return self._element.get(name)


def parse_xml(text: str) -> LxmlNode:
    # The text is already decoded; re-declare it as UTF-8 to match the bytes handed to lxml.
    source = _XML_DECL_ENCODING_RE.sub(r"\1utf-8\3", (text or "").lstrip(), count=1)
    if not source:
        raise FeedParseError("Failed to parse XML (not valid RSS/Atom?)")
    try:
        root = etree.fromstring(source.encode("utf-8", errors="replace"), parser=_XML_PARSER)
    except etree.XMLSyntaxError as e:
        raise FeedParseError("Failed to parse XML (not valid RSS/Atom?)") from e
    if root is None:
        raise FeedParseError("Failed to parse XML (not valid RSS/Atom?)")
    return LxmlNode(root, include_self=True)
