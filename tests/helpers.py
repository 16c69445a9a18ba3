"""Shared helpers for mini2vue tests."""

from typing import Dict, List

from mini2vue.services.transpiler.script_parser import JSParser, literal_value, property_key


def elements(node) -> List[dict]:
    """Element children of a tree node."""
    return [child for child in node.get('children', []) if child.get('type') == 'Element']


def attribute_map(element) -> dict:
    """Attribute name -> value of a template or markup element."""
    return {attr['name']: attr['value'] for attr in element.get('attributes', [])}


def exported_component(code: str) -> Dict[str, dict]:
    """Properties of the `export default { ... }` object of a generated module, keyed by name."""
    ast = JSParser.parse(code)
    for node in ast['body']:
        if node['type'] == 'ExportDefaultDeclaration':
            return {property_key(prop): prop for prop in node['declaration']['properties']}
    raise AssertionError("no default export")


def returned_data(code: str):
    """Literal value returned by the data() function of a generated component."""
    data = exported_component(code)['data']['value']
    statement = data['body']['body'][0]
    assert statement['type'] == 'ReturnStatement'
    ok, value = literal_value(statement['argument'])
    assert ok
    return value
