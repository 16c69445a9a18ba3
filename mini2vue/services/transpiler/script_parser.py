"""
JavaScript parser wrapper using esprima.

Parses mini-program scripts to an ESTree-compatible AST whose nodes carry
their verbatim source text, and extracts the structure of the
Page/Component declaration call. Code esprima rejects (optional chaining,
nullish coalescing, TypeScript annotations) is parsed with tree-sitter.
"""
from typing import Dict, Any, Optional, List, Iterator, Tuple
import logging

import esprima

from .syntax_tree import SyntaxTreeConverter, SyntaxTreeError
from .types import PageStructure, PropertyEntry, ObserverEntry

logger = logging.getLogger(__name__)


# Identifiers of the two declaration call forms
DECLARATION_CALLEES = ('Page', 'Component')

PAGE_LIFECYCLES = ('onLoad', 'onShow', 'onReady', 'onHide', 'onUnload')

COMPONENT_LIFECYCLES = (
    'created',
    'attached',
    'ready',
    'detached',
    'error',
    'didMount',
    'didUpdate',
    'didUnmount',
    'didHide',
    'didShow',
)

# Both vocabularies are accepted for either call form
LIFECYCLE_HOOKS = frozenset(PAGE_LIFECYCLES + COMPONENT_LIFECYCLES)

FUNCTION_TYPES = ('FunctionExpression', 'ArrowFunctionExpression')

# Keys that never hold child nodes
_NON_CHILD_KEYS = ('range', 'loc', 'comments', 'tokens', 'errors', 'sourceText')


class ParseError(Exception):
    """Exception raised when JavaScript parsing fails"""
    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"Parse error at line {line}, column {column}: {message}")


class JSParser:
    """
    JavaScript parser that converts mini-program scripts to AST.

    Uses esprima to parse JavaScript and returns an ESTree-compatible AST
    in which every ranged node also holds its original source text under
    the ``sourceText`` key.
    """

    @staticmethod
    def parse(code: str, tolerant: bool = True) -> Dict[str, Any]:
        """
        Parse JavaScript code to AST.

        Args:
            code: JavaScript code to parse
            tolerant: If True, continue parsing after recoverable errors

        Returns:
            AST as a dictionary

        Raises:
            ParseError: If parsing fails
        """
        options = {
            'tolerant': tolerant,
            'range': True,
            'loc': True,
            'comment': True,
        }

        try:
            # Mini-program scripts use import/export, so try module grammar first
            ast = esprima.parseModule(code, options=options)
        except esprima.Error:
            try:
                # Fall back to sloppy script grammar (e.g. `with`, octal literals)
                ast = esprima.parseScript(code, options=options)
            except esprima.Error as e:
                # ES2020+ operators and type annotations
                logger.debug(f"esprima rejected script ({getattr(e, 'description', e)}), using tree-sitter")
                return JSParser._parse_syntax_tree(code)

        tree = JSParser._node_to_dict(ast)
        JSParser._annotate_source(tree, code)
        return tree

    @staticmethod
    def _parse_syntax_tree(code: str, expression: bool = False) -> Dict[str, Any]:
        try:
            converter = SyntaxTreeConverter(code)
            return converter.parse_expression() if expression else converter.parse()
        except SyntaxTreeError as e:
            raise ParseError(e.message, e.line, e.column)

    @staticmethod
    def parse_expression(code: str) -> Dict[str, Any]:
        """
        Parse a single JavaScript expression.

        Args:
            code: JavaScript expression to parse

        Returns:
            Expression AST as a dictionary

        Raises:
            ParseError: If the text is not a single expression
        """
        # Wrap in parentheses to ensure it's parsed as expression
        wrapped = f"({code}\n)"
        try:
            ast = esprima.parseScript(wrapped, options={'range': True})
        except esprima.Error:
            return JSParser._parse_syntax_tree(wrapped, expression=True)

        body = ast.body
        if len(body) != 1 or getattr(body[0], 'expression', None) is None:
            raise ParseError(f"Not a single expression: {code!r}")

        expression = JSParser._node_to_dict(body[0].expression)
        JSParser._annotate_source(expression, wrapped)
        return expression

    @staticmethod
    def _node_to_dict(node: Any) -> Any:
        """
        Convert esprima node to dictionary.

        Args:
            node: Esprima AST node

        Returns:
            Dictionary representation of the node
        """
        if node is None:
            return None

        if isinstance(node, list):
            return [JSParser._node_to_dict(item) for item in node]

        if not hasattr(node, '__dict__'):
            return node

        result = {}
        for key, value in node.__dict__.items():
            if key.startswith('_'):
                continue
            # esprima stores the ESTree `async` flag as `isAsync`
            if key == 'isAsync':
                key = 'async'
            if isinstance(value, list):
                result[key] = [JSParser._node_to_dict(item) for item in value]
            elif hasattr(value, '__dict__'):
                result[key] = JSParser._node_to_dict(value)
            else:
                result[key] = value

        return result

    @staticmethod
    def _annotate_source(tree: Any, code: str):
        """
        Store the original source slice of every ranged node.

        Args:
            tree: AST (dict) produced by _node_to_dict
            code: Source text the AST was parsed from
        """
        stack = [tree]
        while stack:
            node = stack.pop()
            if isinstance(node, list):
                stack.extend(node)
                continue
            if not isinstance(node, dict):
                continue

            span = node.get('range')
            if isinstance(span, (list, tuple)) and len(span) == 2 and 'type' in node:
                node['sourceText'] = code[span[0]:span[1]]

            for key, value in node.items():
                if key not in _NON_CHILD_KEYS and isinstance(value, (dict, list)):
                    stack.append(value)

    @staticmethod
    def get_node_type(node: Dict[str, Any]) -> str:
        """Get the type of an AST node."""
        return node.get('type', '') if node else ''

    @staticmethod
    def source_of(node: Optional[Dict[str, Any]]) -> str:
        """Get the original source text of a node."""
        return node.get('sourceText', '') if node else ''


def walk(node: Any) -> Iterator[Dict[str, Any]]:
    """
    Iterate over AST nodes in document order (pre-order).

    Args:
        node: AST node or list of nodes

    Yields:
        Every node dict in the subtree
    """
    if isinstance(node, list):
        for item in node:
            yield from walk(item)
        return

    if not isinstance(node, dict) or 'type' not in node:
        return

    yield node
    for key, value in node.items():
        if key in _NON_CHILD_KEYS:
            continue
        if isinstance(value, (dict, list)):
            yield from walk(value)


def property_key(prop: Dict[str, Any]) -> Optional[str]:
    """
    Get the static name of an object property.

    Args:
        prop: Property node

    Returns:
        Key name, or None for computed keys and spread elements
    """
    if prop.get('type') != 'Property' or prop.get('computed'):
        return None

    key = prop.get('key') or {}
    if key.get('type') == 'Identifier':
        return key.get('name')
    if key.get('type') == 'Literal' and key.get('value') is not None:
        value = key.get('value')
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value)
    return None


def is_function(node: Optional[Dict[str, Any]]) -> bool:
    """Check if a node is a function or arrow function expression."""
    return bool(node) and node.get('type') in FUNCTION_TYPES


def literal_value(node: Optional[Dict[str, Any]]) -> Tuple[bool, Any]:
    """
    Evaluate a node holding a JSON-compatible literal.

    Args:
        node: Expression node

    Returns:
        Tuple of (is_literal, value). Non-literal members of arrays and
        objects become None.
    """
    if not node:
        return False, None

    node_type = node.get('type')

    if node_type == 'Literal':
        if 'regex' in node and node.get('regex'):
            return False, None
        value = node.get('value')
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return True, value

    if node_type == 'Identifier' and node.get('name') == 'undefined':
        return True, None

    if node_type == 'UnaryExpression' and node.get('operator') in ('-', '+'):
        ok, value = literal_value(node.get('argument'))
        if ok and isinstance(value, (int, float)) and not isinstance(value, bool):
            return True, -value if node.get('operator') == '-' else value
        return False, None

    if node_type == 'TemplateLiteral' and not node.get('expressions'):
        quasis = node.get('quasis') or []
        return True, ''.join((q.get('value') or {}).get('cooked', '') for q in quasis)

    if node_type == 'ArrayExpression':
        items = []
        for element in node.get('elements') or []:
            ok, value = literal_value(element)
            items.append(value if ok else None)
        return True, items

    if node_type == 'ObjectExpression':
        result = {}
        for prop in node.get('properties') or []:
            key = property_key(prop)
            if key is None:
                continue
            ok, value = literal_value(prop.get('value'))
            result[key] = value if ok else None
        return True, result

    return False, None


class StructureAnalyzer:
    """
    Extracts the structure of a Page/Component declaration call.

    Locates the first call of ``Page({...})`` or ``Component({...})`` in
    document order and classifies every top-level property of its
    configuration object into data, methods, lifecycle hooks, properties
    or observers.
    """

    def analyze(self, ast: Dict[str, Any]) -> Optional[PageStructure]:
        """
        Analyze a parsed script.

        Args:
            ast: Parsed JavaScript AST

        Returns:
            PageStructure, or None when the script has no declaration call
        """
        call = find_declaration_call(ast)
        if call is None:
            return None

        result: PageStructure = {
            'kind': call['callee']['name'],
            'data': {},
            'methods': {},
            'lifeCycles': {},
            'properties': [],
            'observers': [],
        }

        config = call['arguments'][0]
        for prop in config.get('properties', []):
            key = property_key(prop)
            if key is None:
                logger.debug(f"Skipping non-static declaration key: {JSParser.source_of(prop)}")
                continue
            self._classify(key, prop.get('value') or {}, result)

        return result

    def _classify(self, key: str, value: Dict[str, Any], result: PageStructure):
        """Put one configuration property into its bucket."""
        if key == 'data':
            result['data'] = self._extract_data(value)
        elif key == 'methods':
            if value.get('type') == 'ObjectExpression':
                for method_prop in value.get('properties', []):
                    name = property_key(method_prop)
                    if name and is_function(method_prop.get('value')):
                        result['methods'][name] = method_prop['value']
        elif key in ('properties', 'props'):
            if value.get('type') == 'ObjectExpression':
                result['properties'] = self._extract_properties(value)
        elif key == 'observers':
            result['observers'] = self._extract_observers(value)
        elif key == 'lifetimes':
            if value.get('type') == 'ObjectExpression':
                for hook_prop in value.get('properties', []):
                    name = property_key(hook_prop)
                    if name and is_function(hook_prop.get('value')):
                        result['lifeCycles'][name] = hook_prop['value']
        elif is_function(value):
            if key in LIFECYCLE_HOOKS:
                result['lifeCycles'][key] = value
            else:
                result['methods'][key] = value
        else:
            logger.debug(f"Ignoring declaration key '{key}' of type {JSParser.get_node_type(value)}")

    @staticmethod
    def _extract_data(value: Dict[str, Any]) -> Dict[str, Any]:
        """
        Extract the literal data object.

        Accepts an object literal or a function whose body returns one.
        """
        if is_function(value):
            body = value.get('body') or {}
            if body.get('type') == 'ObjectExpression':
                value = body
            else:
                returned = [
                    stmt.get('argument') for stmt in body.get('body', [])
                    if stmt.get('type') == 'ReturnStatement'
                ]
                value = returned[-1] if returned and returned[-1] else {}

        if value.get('type') != 'ObjectExpression':
            return {}

        _, data = literal_value(value)
        return data

    @staticmethod
    def _extract_properties(value: Dict[str, Any]) -> List[PropertyEntry]:
        """Extract component inputs in declaration order."""
        properties = []
        for prop in value.get('properties', []):
            name = property_key(prop)
            if name is None:
                continue
            prop_value = prop.get('value') or {}
            properties.append({
                'name': name,
                'type': prop_value.get('name') if prop_value.get('type') == 'Identifier' else 'unknown',
                'value': prop_value,
            })
        return properties

    @staticmethod
    def _extract_observers(value: Dict[str, Any]) -> List[ObserverEntry]:
        """Extract watchers in declaration order."""
        observers = []
        if value.get('type') != 'ObjectExpression':
            return observers

        for prop in value.get('properties', []):
            key = property_key(prop)
            handler = prop.get('value')
            if key is None or not is_function(handler):
                continue
            observers.append({
                'key': key,
                'params': [JSParser.source_of(p) for p in handler.get('params', [])],
                'node': handler,
            })
        return observers


def find_declaration_call(ast: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Find the first Page/Component call with a single object literal argument.

    Args:
        ast: Parsed JavaScript AST

    Returns:
        The CallExpression node, or None
    """
    for node in walk(ast):
        if node.get('type') != 'CallExpression':
            continue
        callee = node.get('callee') or {}
        args = node.get('arguments') or []
        if (
            callee.get('type') == 'Identifier'
            and callee.get('name') in DECLARATION_CALLEES
            and len(args) == 1
            and args[0].get('type') == 'ObjectExpression'
        ):
            return node
    return None


def parse_script(text: str) -> Dict[str, Any]:
    """
    Parse script text into an AST annotated with source slices.

    Args:
        text: Script source

    Returns:
        Program node as a dictionary
    """
    return JSParser.parse(text)


def parse_expression(text: str) -> Dict[str, Any]:
    """
    Parse a standalone expression (e.g. a mustache expression).

    Args:
        text: Expression source

    Returns:
        Expression node as a dictionary
    """
    return JSParser.parse_expression(text)


def analyze_script(ast: Dict[str, Any]) -> Optional[PageStructure]:
    """
    Extract the declaration structure of a parsed script.

    Args:
        ast: Parsed JavaScript AST

    Returns:
        PageStructure, or None when the script is not a page or component
    """
    return StructureAnalyzer().analyze(ast)
