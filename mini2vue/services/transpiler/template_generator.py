"""
Vue template generator.

Serializes the transformed template tree and wraps it in the .vue file
skeleton that links the sibling script and style files.
"""
from typing import Dict, Any, List
import json

from mini2vue.config import settings
from .types import TemplateAttribute

INDENT = "  "

# Attribute output order within a tag
ATTRIBUTE_ORDER = {'directive': 0, 'static': 1, 'event': 2}


def format_attribute(attr: TemplateAttribute) -> str:
    """
    Format one attribute.

    Args:
        attr: Template attribute

    Returns:
        e.g. 'v-if="show"', ':disabled="true"', 'v-else'
    """
    value = attr['value']
    if isinstance(value, bool):
        value = json.dumps(value)
    if value is None or value == '':
        return attr['name']
    if '"' in value and "'" not in value:
        return f"{attr['name']}='{value}'"
    escaped = value.replace('"', '&quot;')
    return f'{attr["name"]}="{escaped}"'


def format_attributes(attributes: List[TemplateAttribute]) -> str:
    """Format attributes as directives, then static attributes, then events."""
    ordered = sorted(attributes, key=lambda attr: ATTRIBUTE_ORDER.get(attr['kind'], 1))
    return ' '.join(format_attribute(attr) for attr in ordered)


def render_node(node: Dict[str, Any], level: int = 0) -> List[str]:
    """
    Render a template node as indented lines.

    Args:
        node: Template node
        level: Indentation level

    Returns:
        Output lines
    """
    indent = INDENT * level
    node_type = node.get('type')

    if node_type == 'Text':
        return [f"{indent}{node['value'].strip()}"]

    if node_type == 'Comment':
        return [f"{indent}<!--{node['value']}-->"]

    if node_type == 'Root':
        lines = []
        for child in node.get('children', []):
            lines.extend(render_node(child, level))
        return lines

    tag = node['tag']
    attributes = format_attributes(node.get('attributes', []))
    opening = f"<{tag} {attributes}" if attributes else f"<{tag}"
    children = node.get('children', [])

    if not children:
        return [f"{indent}{opening} />"]

    lines = [f"{indent}{opening}>"]
    for child in children:
        lines.extend(render_node(child, level + 1))
    lines.append(f"{indent}</{tag}>")
    return lines


def render_template(template: Dict[str, Any]) -> str:
    """
    Render a template tree inside the single root container.

    Args:
        template: Template root from the transformer

    Returns:
        Template markup
    """
    lines = [f'<div class="{settings.ROOT_CONTAINER_CLASS}">']
    lines.extend(render_node(template, 1))
    lines.append('</div>')
    return '\n'.join(lines)


def generate_markup(template: Dict[str, Any], base_name: str) -> str:
    """
    Generate the .vue file for a transformed template.

    The component object lives in the sibling script with the same base
    name, and styles in the sibling style file.

    Args:
        template: Template root from the transformer
        base_name: File name without extension (e.g. "index")

    Returns:
        .vue file content
    """
    return (
        "<template>\n"
        f"{render_template(template)}\n"
        "</template>\n"
        "\n"
        "<script>\n"
        f"import component from './{base_name}';\n"
        "export default component;\n"
        "</script>\n"
        "\n"
        f'<style src="./{base_name}{settings.STYLE_EXTENSION}"></style>\n'
    )
