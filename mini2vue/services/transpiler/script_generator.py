"""
Vue component script generator.

Serializes a component description into the component module that the
generated .vue file imports. Emission order: imports, kept module
statements, props, data, lifecycle hooks, methods, watch.
"""
from typing import Dict, Any, List
import json
import re

from .types import ComponentDescription, MethodDefinition, UtilityModule

INDENT = "  "

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_$][\w$]*$')


def format_key(key: str) -> str:
    """Format an object key, quoting it when it is not an identifier."""
    return key if IDENTIFIER_PATTERN.match(key) else json.dumps(key, ensure_ascii=False)


def format_value(value: Any) -> str:
    """Format a JSON-compatible value as a JavaScript literal."""
    if value is None:
        return 'null'
    return json.dumps(value, ensure_ascii=False)


def format_prop_default(value: Any) -> str:
    """Format a prop default; objects and arrays need a factory function."""
    if isinstance(value, (list, dict)):
        return f"() => ({format_value(value)})"
    return format_value(value)


def render_function(
    signature: str,
    body: List[str],
    level: int,
    suffix: str = ',',
) -> List[str]:
    """
    Render `signature { body }` at an indentation level.

    Args:
        signature: e.g. "async created(query)"
        body: Body lines relative to the function body
        level: Indentation level of the signature
        suffix: Text after the closing brace

    Returns:
        Output lines
    """
    indent = INDENT * level
    if not body:
        return [f"{indent}{signature} {{}}{suffix}"]

    lines = [f"{indent}{signature} {{"]
    lines.extend(f"{indent}{INDENT}{line}" for line in body)
    lines.append(f"{indent}}}{suffix}")
    return lines


def method_signature(method: MethodDefinition) -> str:
    prefix = 'async ' if method['isAsync'] else ''
    return f"{prefix}{method['name']}({', '.join(method['params'])})"


class ComponentScriptGenerator:
    """Generates the component module for a ComponentDescription."""

    def generate(self, description: ComponentDescription) -> str:
        """
        Serialize a component description.

        Args:
            description: Component description from the script transformer

        Returns:
            JavaScript module text
        """
        lines: List[str] = []

        if description['imports']:
            lines.extend(description['imports'])
            lines.append('')

        for statement in description.get('statements', []):
            lines.append(statement)
            lines.append('')

        lines.append('export default {')
        lines.extend(self._props(description['props']))
        lines.extend(self._data(description))
        lines.extend(self._lifecycles(description['lifeCycles']))
        lines.extend(self._methods(description['methods']))
        lines.extend(self._watch(description['watch']))
        lines.append('};')

        return '\n'.join(lines) + '\n'

    @staticmethod
    def _props(props: Dict[str, Any]) -> List[str]:
        if not props:
            return []

        lines = [f"{INDENT}props: {{"]
        for name, prop in props.items():
            options = []
            if prop.get('type'):
                options.append(f"type: {prop['type']}")
            options.append(f"default: {format_prop_default(prop.get('default'))}")
            lines.append(f"{INDENT * 2}{format_key(name)}: {{ {', '.join(options)} }},")
        lines.append(f"{INDENT}}},")
        lines.append('')
        return lines

    @staticmethod
    def _data(description: ComponentDescription) -> List[str]:
        lines = [f"{INDENT}data() {{", f"{INDENT * 2}return {{"]
        for key, value in description['data'].items():
            lines.append(f"{INDENT * 3}{format_key(key)}: {format_value(value)},")
        for binding in description['sjsImports']:
            lines.append(f"{INDENT * 3}{binding['name']}: {binding['name']}Module,")
        lines.append(f"{INDENT * 2}}};")
        lines.append(f"{INDENT}}},")
        lines.append('')
        return lines

    @staticmethod
    def _lifecycles(lifecycles: Dict[str, MethodDefinition]) -> List[str]:
        if not lifecycles:
            return []

        lines = []
        for hook in lifecycles.values():
            lines.extend(render_function(method_signature(hook), hook['body'], 1))
        lines.append('')
        return lines

    @staticmethod
    def _methods(methods: Dict[str, MethodDefinition]) -> List[str]:
        lines = [f"{INDENT}methods: {{"]
        for method in methods.values():
            lines.extend(render_function(method_signature(method), method['body'], 2))
        lines.append(f"{INDENT}}},")
        return lines

    @staticmethod
    def _watch(watch: Dict[str, Any]) -> List[str]:
        if not watch:
            return []

        lines = ['', f"{INDENT}watch: {{"]
        for key, watcher in watch.items():
            params = ', '.join(watcher['params'])
            if watcher['deep']:
                lines.append(f"{INDENT * 2}{format_key(key)}: {{")
                lines.extend(render_function(f"handler({params})", watcher['body'], 3))
                lines.append(f"{INDENT * 3}deep: true,")
                lines.append(f"{INDENT * 2}}},")
            else:
                lines.extend(render_function(f"{key}({params})", watcher['body'], 2))
        lines.append(f"{INDENT}}},")
        return lines


def generate_script(description: ComponentDescription) -> str:
    """
    Serialize a component description into a component module.

    Args:
        description: Component description

    Returns:
        JavaScript module text
    """
    return ComponentScriptGenerator().generate(description)


def generate_utility_module(module: UtilityModule) -> str:
    """
    Serialize a utility module.

    Args:
        module: Utility module from the script transformer

    Returns:
        JavaScript module text
    """
    blocks = []
    for item in module['items']:
        if isinstance(item, str):
            blocks.append(item)
            continue
        export = 'export ' if item['exported'] else ''
        prefix = 'async ' if item['isAsync'] else ''
        signature = f"{export}const {item['name']} = {prefix}({', '.join(item['params'])}) =>"
        blocks.append('\n'.join(render_function(signature, item['body'], 0, suffix=';')))
    return '\n\n'.join(blocks) + '\n'
