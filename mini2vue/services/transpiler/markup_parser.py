"""
AXML parser.

Event-driven scan of mini-program markup built on ``html.parser``. Nodes are
attached to the top of an explicit open-element stack, so malformed nesting
is healed deterministically instead of failing the file.
"""
from typing import Dict, Any, List, Optional, Tuple
from html import unescape
from html.parser import HTMLParser
import logging
import re

from .script_parser import JSParser, ParseError
from .types import (
    MarkupRoot,
    MarkupElement,
    MarkupAttribute,
    ExpressionParseError,
)

logger = logging.getLogger(__name__)


MUSTACHE_PATTERN = re.compile(r'\{\{.*?\}\}', re.S)
SINGLE_MUSTACHE_PATTERN = re.compile(r'^\s*\{\{(.*?)\}\}\s*$', re.S)
MUSTACHE_SPLIT_PATTERN = re.compile(r'(\{\{.*?\}\})', re.S)

TAG_NAME_PATTERN = re.compile(r'<\s*([^\s/>]+)')
ATTRIBUTE_PATTERN = re.compile(
    r'''([^\s/>"'=]+)'''
    r'''(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+)))?'''
)

# Elements that never have content and are not pushed on the open stack
VOID_TAGS = frozenset((
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'param', 'source', 'track', 'wbr',
))


def has_mustache(text: str) -> bool:
    """Check if a string contains at least one {{ ... }} span."""
    return bool(MUSTACHE_PATTERN.search(text or ''))


def to_template_literal(value: str) -> str:
    """
    Build the template literal equivalent to a mixed mustache string.

    Args:
        value: e.g. "item {{ active ? 'on' : '' }}"

    Returns:
        e.g. "`item ${active ? 'on' : ''}`"
    """
    parts = []
    for segment in MUSTACHE_SPLIT_PATTERN.split(value):
        if not segment:
            continue
        if segment.startswith('{{') and segment.endswith('}}'):
            parts.append('${' + segment[2:-2].strip() + '}')
        else:
            parts.append(segment.replace('\\', '\\\\').replace('`', '\\`').replace('${', '\\${'))
    return '`' + ''.join(parts) + '`'


def parse_attribute_expression(value: str):
    """
    Parse the expression held by a mustache attribute value.

    A parse failure is returned as a ParseError placeholder so that a bad
    expression only affects its own attribute.

    Args:
        value: Raw attribute value

    Returns:
        Expression dict, ExpressionParseError, or None for literal values
    """
    if not has_mustache(value):
        return None

    single = SINGLE_MUSTACHE_PATTERN.match(value)
    source = single.group(1).strip() if single else to_template_literal(value)

    try:
        return JSParser.parse_expression(source)
    except ParseError as e:
        error: ExpressionParseError = {
            'type': 'ParseError',
            'raw': value,
            'error': e.message,
        }
        return error


class AxmlParser(HTMLParser):
    """
    Parser for AXML markup.

    Handles:
        - Nested, self-closing and void tags
        - Comments
        - Attribute values with embedded braces or quotes
        - Case-sensitive tag and attribute names (onTap, a:for)

    Example:
        root = AxmlParser().parse('<view a:if="{{ show }}">Hi</view>')
    """

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.root: MarkupRoot = {'type': 'Root', 'children': []}
        self.stack: List[Dict[str, Any]] = [self.root]

    def parse(self, text: str) -> MarkupRoot:
        """
        Parse markup text.

        Args:
            text: AXML source

        Returns:
            Root node of the markup tree
        """
        self.reset()
        self.root = {'type': 'Root', 'children': []}
        self.stack = [self.root]

        self.feed(text)
        self.close()

        if len(self.stack) > 1:
            unclosed = [node['tagName'] for node in self.stack[1:]]
            logger.debug(f"Unclosed elements at end of input: {unclosed}")

        return self.root

    # ─── HTMLParser overrides ───

    def handle_starttag(self, tag, attrs):
        element = self._open_element(tag)
        if tag.lower() not in VOID_TAGS:
            self.stack.append(element)

    def handle_startendtag(self, tag, attrs):
        self._open_element(tag)

    def handle_endtag(self, tag):
        name = tag.lower()
        for depth in range(len(self.stack) - 1, 0, -1):
            if self.stack[depth]['tagName'].lower() == name:
                if depth != len(self.stack) - 1:
                    skipped = [node['tagName'] for node in self.stack[depth + 1:]]
                    logger.debug(f"Closing </{tag}> implicitly closes {skipped}")
                del self.stack[depth:]
                return
        logger.debug(f"Ignoring stray closing tag </{tag}>")

    def handle_data(self, data):
        if not data.strip():
            return
        self.stack[-1]['children'].append({
            'type': 'Text',
            'value': data,
            'isMustache': has_mustache(data),
        })

    def handle_comment(self, data):
        self.stack[-1]['children'].append({
            'type': 'Comment',
            'value': data,
        })

    # ─── helpers ───

    def _open_element(self, tag: str) -> MarkupElement:
        """Create an element from the raw start tag and attach it to the stack top."""
        raw = self.get_starttag_text() or f"<{tag}>"
        tag_name, attributes = self._scan_start_tag(raw, tag)

        element: MarkupElement = {
            'type': 'Element',
            'tagName': tag_name,
            'attributes': attributes,
            'children': [],
        }
        self.stack[-1]['children'].append(element)
        return element

    @staticmethod
    def _scan_start_tag(raw: str, fallback_tag: str) -> Tuple[str, List[MarkupAttribute]]:
        """
        Re-scan a raw start tag, keeping the original case of names.

        Args:
            raw: Start tag text, e.g. '<view onTap="go" a:for="{{ list }}">'
            fallback_tag: Lower-cased tag name reported by HTMLParser

        Returns:
            Tuple of (tag name, attributes)
        """
        match = TAG_NAME_PATTERN.match(raw)
        tag_name = match.group(1) if match else fallback_tag
        rest = raw[match.end():] if match else ''
        rest = re.sub(r'/?\s*>$', '', rest)

        attributes: List[MarkupAttribute] = []
        seen = set()
        for attr_match in ATTRIBUTE_PATTERN.finditer(rest):
            name = attr_match.group(1)
            if name in seen:
                continue
            seen.add(name)

            raw_value = next(
                (group for group in attr_match.groups()[1:] if group is not None),
                '',
            )
            value = unescape(raw_value)
            attributes.append({
                'name': name,
                'value': value,
                'isMustache': has_mustache(value),
                'expression': parse_attribute_expression(value),
            })

        return tag_name, attributes


def parse_markup(text: str) -> MarkupRoot:
    """
    Parse AXML text into a markup tree.

    Args:
        text: AXML source

    Returns:
        Root node
    """
    return AxmlParser().parse(text)


def find_attribute(element: Dict[str, Any], name: str) -> Optional[MarkupAttribute]:
    """Find an attribute of an element by exact name."""
    for attr in element.get('attributes', []):
        if attr['name'] == name:
            return attr
    return None
