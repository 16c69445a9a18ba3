"""
AXML to Vue template transformer.

Maps mini-program tags, attributes, events and a:* directives to their Vue
template equivalents, and collects the helper modules declared with
<import-sjs>.
"""
from enum import Enum
from typing import Dict, Any, List, Optional
import logging
import re

from .types import (
    MarkupAttribute,
    ModuleBinding,
    TemplateAttribute,
    TemplateElement,
    TemplateRoot,
    TemplateTransformResult,
)

logger = logging.getLogger(__name__)


# Element that declares a helper module instead of rendering anything
MODULE_IMPORT_TAG = 'import-sjs'

# Tag used for elements whose only child is text
TEXT_TAG = 'text'

COMPONENT_MAP: Dict[str, str] = {
    'view': 'div',
    'image': 'image',
    'text': 'span',
    'block': 'template',
}

EVENT_MAP: Dict[str, str] = {
    'Tap': 'click',
    'LongPress': 'longpress',
    'CatchTap': 'click',
    'Input': 'input',
    'Change': 'change',
    'Blur': 'blur',
    'Focus': 'focus',
    'Submit': 'submit',
}

DEFAULT_LOOP_ITEM = 'item'
DEFAULT_LOOP_INDEX = 'index'

EVENT_PATTERN = re.compile(r'^(on|catch)([A-Z][a-zA-Z]*)')
DIRECTIVE_PREFIX = 'a:'
EXACT_MUSTACHE_PATTERN = re.compile(r'^\{\{((?:(?!\}\}).)*)\}\}$', re.S)
SELF_REFERENCE_PATTERN = re.compile(r'^this\.')
LOOP_PATTERN = re.compile(r'^\{\{\s*(.*?)\s*\}\}$', re.S)
MUSTACHE_PATTERN = re.compile(r'\{\{.*?\}\}', re.S)
CLASS_SEGMENT_PATTERN = re.compile(r'(\{\{.*?\}\})', re.S)
TEXT_SELF_REFERENCE_PATTERN = re.compile(r'\{\{\s*this\.')
IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_$][\w$]*$')


class DirectiveKind(str, Enum):
    """Directive attributes (a:*) recognized by the transformer"""
    IF = "if"
    ELIF = "elif"
    ELSE = "else"
    FOR = "for"
    FOR_ITEM = "for-item"
    FOR_INDEX = "for-index"
    KEY = "key"
    OTHER = "other"

    @classmethod
    def of(cls, attribute_name: str) -> "DirectiveKind":
        """Classify a directive attribute name such as 'a:for'."""
        try:
            return cls(attribute_name[len(DIRECTIVE_PREFIX):])
        except ValueError:
            return cls.OTHER


def strip_mustache(value: str) -> str:
    """Extract the expression from '{{ expr }}', or return the value unchanged."""
    match = LOOP_PATTERN.match(value or '')
    return match.group(1).strip() if match else value


class LoopNames:
    """Loop variable names of one element (a:for-item / a:for-index)."""

    def __init__(self, attributes: List[MarkupAttribute]):
        self.item = DEFAULT_LOOP_ITEM
        self.index = DEFAULT_LOOP_INDEX
        for attr in attributes:
            kind = DirectiveKind.of(attr['name']) if attr['name'].startswith(DIRECTIVE_PREFIX) else None
            if kind == DirectiveKind.FOR_ITEM and attr['value'].strip():
                self.item = strip_mustache(attr['value'].strip())
            elif kind == DirectiveKind.FOR_INDEX and attr['value'].strip():
                self.index = strip_mustache(attr['value'].strip())


class AxmlToVueTransformer:
    """
    Transforms an AXML markup tree into a Vue template tree.

    Module bindings found in <import-sjs> elements are collected into an
    accumulator passed down the walk and returned with the template, so a
    transformer instance holds no per-call state.

    Example:
        result = AxmlToVueTransformer().transform(parse_markup(text))
        result['template'], result['moduleBindings']
    """

    def __init__(
        self,
        component_map: Optional[Dict[str, str]] = None,
        event_map: Optional[Dict[str, str]] = None,
    ):
        self.component_map = {**COMPONENT_MAP, **(component_map or {})}
        self.event_map = {**EVENT_MAP, **(event_map or {})}

    def transform(self, root: Dict[str, Any]) -> TemplateTransformResult:
        """
        Transform a markup tree.

        Args:
            root: Root node from the markup parser

        Returns:
            TemplateTransformResult with the template tree and module bindings
        """
        bindings: List[ModuleBinding] = []
        template: TemplateRoot = {
            'type': 'Root',
            'children': self._convert_children(root.get('children', []), bindings),
        }
        return {'template': template, 'moduleBindings': bindings}

    def _convert_children(self, children: List[Dict[str, Any]], bindings: List[ModuleBinding]) -> List[Dict[str, Any]]:
        converted = []
        for child in children:
            node = self._convert_node(child, bindings)
            if node is not None:
                converted.append(node)
        return converted

    def _convert_node(self, node: Dict[str, Any], bindings: List[ModuleBinding]) -> Optional[Dict[str, Any]]:
        node_type = node.get('type')

        if node_type == 'Element':
            if node['tagName'] == MODULE_IMPORT_TAG:
                return self._convert_module_import(node, bindings)
            return self._convert_element(node, bindings)

        if node_type == 'Text':
            return {
                'type': 'Text',
                'value': TEXT_SELF_REFERENCE_PATTERN.sub('{{ ', node['value']),
            }

        # Source comments are not carried into the template
        return None

    def _convert_module_import(self, node: Dict[str, Any], bindings: List[ModuleBinding]) -> Optional[Dict[str, Any]]:
        """Record an <import-sjs> binding and replace the element with a comment."""
        attrs = {attr['name']: attr['value'] for attr in node.get('attributes', [])}
        source = attrs.get('from', '')
        name = attrs.get('name', '')

        if not (source and name):
            logger.warning(f"<{MODULE_IMPORT_TAG}> without 'from' and 'name' ignored: {attrs}")
            return None

        binding: ModuleBinding = {'from': source, 'name': name}
        bindings.append(binding)
        return {'type': 'Comment', 'value': f" SJS import: {name} from {source} "}

    def _convert_element(self, node: Dict[str, Any], bindings: List[ModuleBinding]) -> TemplateElement:
        children = node.get('children', [])
        has_only_text_child = len(children) == 1 and children[0].get('type') == 'Text'
        tag = TEXT_TAG if has_only_text_child else self.map_component(node['tagName'])

        return {
            'type': 'Element',
            'tag': tag,
            'attributes': self.process_attributes(node.get('attributes', [])),
            'children': self._convert_children(children, bindings),
        }

    def map_component(self, tag_name: str) -> str:
        """Map a mini-program tag to its Vue tag (unmapped tags pass through)."""
        return self.component_map.get(tag_name, tag_name)

    def process_attributes(self, attributes: List[MarkupAttribute]) -> List[TemplateAttribute]:
        """
        Transform the attributes of one element.

        Args:
            attributes: Markup attributes

        Returns:
            Template attributes in source order
        """
        loop_names = LoopNames(attributes)
        result = []

        for attr in attributes:
            event_match = EVENT_PATTERN.match(attr['name'])
            if event_match:
                converted = self.process_event(event_match.group(2), attr['value'])
            elif attr['name'].startswith(DIRECTIVE_PREFIX):
                converted = self.process_directive(attr, loop_names)
            else:
                converted = self.process_static(attr)

            if converted is not None:
                result.append(converted)

        return result

    def process_event(self, event_type: str, handler: str) -> TemplateAttribute:
        """Convert onTap="handler" to @click="handler()"."""
        vue_event = self.event_map.get(event_type, event_type.lower())
        method = SELF_REFERENCE_PATTERN.sub('', handler.strip())
        return {
            'name': f"@{vue_event}",
            'value': f"{method}()",
            'kind': 'event',
        }

    def process_directive(self, attr: MarkupAttribute, loop_names: LoopNames) -> Optional[TemplateAttribute]:
        """Convert an a:* directive."""
        kind = DirectiveKind.of(attr['name'])
        value = attr['value']

        if kind == DirectiveKind.IF:
            return self._directive('v-if', strip_mustache(value))
        elif kind == DirectiveKind.ELIF:
            return self._directive('v-else-if', strip_mustache(value))
        elif kind == DirectiveKind.ELSE:
            return self._directive('v-else', None)
        elif kind == DirectiveKind.FOR:
            return self._directive('v-for', self._loop_binding(value, loop_names))
        elif kind == DirectiveKind.KEY:
            return self._directive(':key', self._key_binding(value, loop_names))
        elif kind in (DirectiveKind.FOR_ITEM, DirectiveKind.FOR_INDEX):
            # Consumed by the loop binding
            return None

        directive_name = attr['name'][len(DIRECTIVE_PREFIX):]
        return self._directive(f"v-{directive_name}", strip_mustache(value))

    @staticmethod
    def _directive(name: str, value: Optional[str]) -> TemplateAttribute:
        return {'name': name, 'value': value, 'kind': 'directive'}

    @staticmethod
    def _loop_binding(value: str, loop_names: LoopNames) -> str:
        match = LOOP_PATTERN.match(value.strip())
        if match:
            source = match.group(1).strip()
        else:
            logger.warning(f"Loop directive without mustache expression: {value!r}")
            source = value.strip()
        return f"({loop_names.item}, {loop_names.index}) in {source}"

    @staticmethod
    def _key_binding(value: str, loop_names: LoopNames) -> str:
        stripped = value.strip()
        if LOOP_PATTERN.match(stripped):
            return strip_mustache(stripped)
        if stripped == '*this':
            return loop_names.item
        if IDENTIFIER_PATTERN.match(stripped):
            return f"{loop_names.item}.{stripped}"
        return stripped

    def process_static(self, attr: MarkupAttribute) -> TemplateAttribute:
        """Convert a plain attribute, binding it when it holds a mustache expression."""
        name = attr['name']
        value = attr['value']

        if name == 'class':
            if MUSTACHE_PATTERN.search(value):
                return {'name': ':class', 'value': self.class_binding(value), 'kind': 'static'}
            return {'name': name, 'value': value, 'kind': 'static'}

        match = EXACT_MUSTACHE_PATTERN.match(value)
        if match:
            expression = match.group(1).strip()
            if expression in ('true', 'false'):
                return {'name': f":{name}", 'value': expression == 'true', 'kind': 'static'}
            return {'name': f":{name}", 'value': expression, 'kind': 'static'}

        return {'name': name, 'value': value, 'kind': 'static'}

    @staticmethod
    def class_binding(value: str) -> str:
        """
        Concatenate literal and {{ expr }} segments into one template string.

        Args:
            value: e.g. "item item-{{ type }} {{ active ? 'on' : '' }}"

        Returns:
            e.g. "`item item-${type} ${active ? 'on' : ''}`"
        """
        parts = []
        for segment in CLASS_SEGMENT_PATTERN.split(value):
            dynamic = re.match(r'^\{\{(.*?)\}\}$', segment, re.S)
            if dynamic:
                parts.append('${' + dynamic.group(1).strip() + '}')
            else:
                parts.append(segment.replace('`', '\\`'))
        joined = re.sub(r'\s+', ' ', ''.join(parts)).strip()
        return f"`{joined}`"


def transform_markup(root: Dict[str, Any]) -> TemplateTransformResult:
    """
    Transform a markup tree into a Vue template tree.

    Args:
        root: Root node from parse_markup

    Returns:
        TemplateTransformResult with the template and module bindings
    """
    return AxmlToVueTransformer().transform(root)
