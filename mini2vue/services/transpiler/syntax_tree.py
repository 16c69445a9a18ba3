"""
Tree-sitter parsing for script syntax esprima does not cover.

Optional chaining, nullish coalescing and TypeScript annotations are parsed
with the tree-sitter TypeScript grammar and converted to the same
ESTree-shaped dicts that JSParser builds from esprima, ``range`` and
``sourceText`` included. Node kinds the transpiler never inspects keep a
generic shape: the CamelCase grammar name and their named children under
``children``.
"""
from typing import Dict, Any, List, Optional
import logging
import re

from tree_sitter_languages import get_parser

logger = logging.getLogger(__name__)


# TypeScript is a superset of the script syntax found in mini-programs
GRAMMAR = "typescript"

LOGICAL_OPERATORS = ('&&', '||', '??')

ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v', '0': '\0'}
LINE_CONTINUATIONS = ('\n', '\r\n', '\r', '\u2028', '\u2029')
ESCAPE_PATTERN = re.compile(r'\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|.)', re.S)

_parsers: Dict[str, Any] = {}


class SyntaxTreeError(Exception):
    """Raised when tree-sitter reports an error or missing node"""
    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(message)


def get_syntax_parser(grammar: str = GRAMMAR):
    """Get the cached tree-sitter parser for a grammar."""
    if grammar not in _parsers:
        _parsers[grammar] = get_parser(grammar)
    return _parsers[grammar]


def _decode_escape(match) -> str:
    sequence = match.group(1)
    if sequence.startswith('u{'):
        return chr(int(sequence[2:-1], 16))
    if sequence[0] in 'ux' and len(sequence) > 1:
        return chr(int(sequence[1:], 16))
    if sequence in LINE_CONTINUATIONS:
        return ''
    return ESCAPES.get(sequence, sequence)


def decode_escapes(raw: str) -> str:
    """Cook the escape sequences of a string or template literal body."""
    return ESCAPE_PATTERN.sub(_decode_escape, raw)


def parse_number(text: str):
    """Evaluate a numeric literal (separators, radix prefixes and BigInt suffix)."""
    text = text.replace('_', '').rstrip('n')
    lowered = text.lower()
    if lowered.startswith(('0x', '0o', '0b')):
        return int(lowered, 0)
    if len(text) > 1 and text[0] == '0' and all(c in '01234567' for c in text):
        # Legacy octal
        return int(text, 8)
    value = float(text)
    return int(value) if value.is_integer() and 'e' not in lowered and '.' not in text else value


def camel_case(grammar_type: str) -> str:
    return ''.join(part.capitalize() for part in grammar_type.split('_'))


class SyntaxTreeConverter:
    """
    Converts a tree-sitter tree into ESTree-shaped dicts.

    Example:
        program = SyntaxTreeConverter("Page({ onLoad(q) { q?.id; } });").parse()
    """

    def __init__(self, code: str):
        self.code = code
        self.source = code.encode('utf-8')
        self._char_index = self._build_char_index(code, self.source)
        self._handlers = {
            'program': self._program,
            'expression_statement': self._expression_statement,
            'parenthesized_expression': self._parenthesized,
            'import_statement': self._import,
            'export_statement': self._export,
            'lexical_declaration': self._variable_declaration,
            'variable_declaration': self._variable_declaration,
            'function_declaration': self._function_declaration,
            'generator_function_declaration': self._function_declaration,
            'function': self._function_expression,
            'function_expression': self._function_expression,
            'generator_function': self._function_expression,
            'arrow_function': self._arrow_function,
            'statement_block': self._block,
            'return_statement': self._return,
            'object': self._object,
            'pair': self._pair,
            'method_definition': self._method,
            'shorthand_property_identifier': self._shorthand_property,
            'spread_element': self._spread,
            'array': self._array,
            'call_expression': self._call,
            'new_expression': self._new,
            'member_expression': self._member,
            'subscript_expression': self._subscript,
            'unary_expression': self._unary,
            'binary_expression': self._binary,
            'ternary_expression': self._conditional,
            'assignment_expression': self._assignment,
            'augmented_assignment_expression': self._assignment,
            'await_expression': self._await,
            'identifier': self._identifier,
            'property_identifier': self._identifier,
            'shorthand_property_identifier_pattern': self._identifier,
            'undefined': self._identifier,
            'this': self._this,
            'string': self._string,
            'number': self._number,
            'true': self._boolean,
            'false': self._boolean,
            'null': self._null,
            'regex': self._regex,
            'template_string': self._template,
        }

    @staticmethod
    def _build_char_index(code: str, source: bytes) -> Optional[List[int]]:
        """Map byte offsets to character offsets (None when the text is ASCII)."""
        if len(code) == len(source):
            return None
        index = [0] * (len(source) + 1)
        position = 0
        for char_number, char in enumerate(code):
            width = len(char.encode('utf-8'))
            for offset in range(width):
                index[position + offset] = char_number
            position += width
        index[position] = len(code)
        return index

    def _char(self, byte_offset: int) -> int:
        return byte_offset if self._char_index is None else self._char_index[byte_offset]

    def _slice(self, start_byte: int, end_byte: int) -> str:
        return self.code[self._char(start_byte):self._char(end_byte)]

    def _text(self, node) -> str:
        return self._slice(node.start_byte, node.end_byte)

    def _node(self, node, node_type: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        result = {'type': node_type}
        result.update(fields)
        result['range'] = [self._char(node.start_byte), self._char(node.end_byte)]
        result['sourceText'] = self._text(node)
        return result

    @staticmethod
    def _named(node) -> List[Any]:
        return [child for child in node.named_children if child.type != 'comment']

    @staticmethod
    def _has_token(node, token: str) -> bool:
        return any(child.type == token for child in node.children)

    def _is_optional(self, node) -> bool:
        # Older grammars expose `?.` as a bare token
        return self._has_token(node, 'optional_chain') or self._has_token(node, '?.')

    # ─── entry points ───

    def parse(self) -> Dict[str, Any]:
        """
        Parse the code as a module.

        Returns:
            Program node as a dictionary

        Raises:
            SyntaxTreeError: If the tree contains an error or missing node
        """
        tree = get_syntax_parser().parse(self.source)
        root = tree.root_node
        if root.has_error:
            error = self._first_error(root)
            logger.debug(f"tree-sitter error at {error.line}:{error.column}: {error.message}")
            raise error
        return self.convert(root)

    def parse_expression(self) -> Dict[str, Any]:
        """Parse code holding exactly one expression statement and return the expression."""
        body = self.parse()['body']
        if len(body) != 1 or body[0]['type'] != 'ExpressionStatement':
            raise SyntaxTreeError("Not a single expression", 1, 0)
        return body[0]['expression']

    def _first_error(self, root) -> SyntaxTreeError:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == 'ERROR' or node.is_missing:
                row, column = node.start_point
                if node.is_missing:
                    message = f"Missing {node.type!r}"
                else:
                    message = f"Unexpected {self._text(node)[:20]!r}"
                return SyntaxTreeError(message, row + 1, column)
            stack.extend(reversed(node.children))
        return SyntaxTreeError("Syntax error", 1, 0)

    def convert(self, node) -> Optional[Dict[str, Any]]:
        """Convert one tree-sitter node (and its subtree)."""
        if node is None:
            return None
        handler = self._handlers.get(node.type)
        if handler is not None:
            return handler(node)
        return self._node(node, camel_case(node.type), {
            'children': [self.convert(child) for child in self._named(node)],
        })

    def _convert_all(self, nodes) -> List[Dict[str, Any]]:
        return [self.convert(child) for child in nodes]

    # ─── statements ───

    def _program(self, node):
        return self._node(node, 'Program', {
            'sourceType': 'module',
            'body': self._convert_all(self._named(node)),
        })

    def _expression_statement(self, node):
        named = self._named(node)
        return self._node(node, 'ExpressionStatement', {
            'expression': self.convert(named[0]) if named else None,
        })

    def _parenthesized(self, node):
        named = self._named(node)
        # ESTree has no parenthesized node
        return self.convert(named[0]) if len(named) == 1 else self._node(node, 'SequenceExpression', {
            'expressions': self._convert_all(named),
        })

    def _import(self, node):
        specifiers = []
        for clause in node.named_children:
            if clause.type != 'import_clause':
                continue
            for child in self._named(clause):
                if child.type == 'identifier':
                    specifiers.append(self._node(child, 'ImportDefaultSpecifier', {
                        'local': self._identifier(child),
                    }))
                elif child.type == 'namespace_import':
                    name = self._named(child)[-1]
                    specifiers.append(self._node(child, 'ImportNamespaceSpecifier', {
                        'local': self._identifier(name),
                    }))
                elif child.type == 'named_imports':
                    for spec in self._named(child):
                        if spec.type != 'import_specifier':
                            continue
                        imported = spec.child_by_field_name('name')
                        alias = spec.child_by_field_name('alias') or imported
                        specifiers.append(self._node(spec, 'ImportSpecifier', {
                            'imported': self.convert(imported),
                            'local': self._identifier(alias),
                        }))

        return self._node(node, 'ImportDeclaration', {
            'specifiers': specifiers,
            'source': self.convert(node.child_by_field_name('source')),
        })

    def _export(self, node):
        declaration = node.child_by_field_name('declaration')
        if self._has_token(node, 'default'):
            return self._node(node, 'ExportDefaultDeclaration', {
                'declaration': self.convert(declaration or node.child_by_field_name('value')),
            })
        return self._node(node, 'ExportNamedDeclaration', {
            'declaration': self.convert(declaration),
            'specifiers': [],
            'source': self.convert(node.child_by_field_name('source')),
        })

    def _variable_declaration(self, node):
        declarations = [
            self._node(declarator, 'VariableDeclarator', {
                'id': self.convert(declarator.child_by_field_name('name')),
                'init': self.convert(declarator.child_by_field_name('value')),
            })
            for declarator in self._named(node)
            if declarator.type == 'variable_declarator'
        ]
        return self._node(node, 'VariableDeclaration', {
            'declarations': declarations,
            'kind': node.children[0].type,
        })

    def _block(self, node):
        return self._node(node, 'BlockStatement', {'body': self._convert_all(self._named(node))})

    def _return(self, node):
        named = self._named(node)
        return self._node(node, 'ReturnStatement', {'argument': self.convert(named[0]) if named else None})

    # ─── functions ───

    def _params(self, node) -> List[Dict[str, Any]]:
        parameters = node.child_by_field_name('parameters')
        if parameters is None:
            parameter = node.child_by_field_name('parameter')
            return [self.convert(parameter)] if parameter is not None else []
        return self._convert_all(self._named(parameters))

    def _function_fields(self, node, name=None) -> Dict[str, Any]:
        return {
            'id': self.convert(name),
            'params': self._params(node),
            'body': self.convert(node.child_by_field_name('body')),
            'generator': self._has_token(node, '*'),
            'expression': False,
            'async': self._has_token(node, 'async'),
        }

    def _function_declaration(self, node):
        return self._node(node, 'FunctionDeclaration', self._function_fields(node, node.child_by_field_name('name')))

    def _function_expression(self, node):
        return self._node(node, 'FunctionExpression', self._function_fields(node, node.child_by_field_name('name')))

    def _arrow_function(self, node):
        fields = self._function_fields(node)
        fields['expression'] = node.child_by_field_name('body').type != 'statement_block'
        return self._node(node, 'ArrowFunctionExpression', fields)

    # ─── objects and arrays ───

    def _property_key(self, node) -> Dict[str, Any]:
        if node.type == 'computed_property_name':
            return self.convert(self._named(node)[0])
        if node.type in ('property_identifier', 'private_property_identifier'):
            return self._identifier(node)
        return self.convert(node)

    def _property(self, node, key, value, method=False, shorthand=False):
        return self._node(node, 'Property', {
            'key': self._property_key(key),
            'computed': key.type == 'computed_property_name',
            'value': value,
            'kind': 'init',
            'method': method,
            'shorthand': shorthand,
        })

    def _object(self, node):
        return self._node(node, 'ObjectExpression', {'properties': self._convert_all(self._named(node))})

    def _pair(self, node):
        key = node.child_by_field_name('key')
        return self._property(node, key, self.convert(node.child_by_field_name('value')))

    def _method(self, node):
        function = self._node(node, 'FunctionExpression', self._function_fields(node))
        return self._property(node, node.child_by_field_name('name'), function, method=True)

    def _shorthand_property(self, node):
        return self._property(node, node, self._identifier(node), shorthand=True)

    def _spread(self, node):
        return self._node(node, 'SpreadElement', {'argument': self.convert(self._named(node)[0])})

    def _array(self, node):
        return self._node(node, 'ArrayExpression', {'elements': self._convert_all(self._named(node))})

    # ─── expressions ───

    def _arguments(self, node) -> List[Dict[str, Any]]:
        arguments = node.child_by_field_name('arguments')
        if arguments is None:
            return []
        if arguments.type == 'arguments':
            return self._convert_all(self._named(arguments))
        # Tagged template
        return [self.convert(arguments)]

    def _call(self, node):
        return self._node(node, 'CallExpression', {
            'callee': self.convert(node.child_by_field_name('function')),
            'arguments': self._arguments(node),
            'optional': self._is_optional(node),
        })

    def _new(self, node):
        return self._node(node, 'NewExpression', {
            'callee': self.convert(node.child_by_field_name('constructor')),
            'arguments': self._arguments(node),
        })

    def _member(self, node):
        return self._node(node, 'MemberExpression', {
            'computed': False,
            'object': self.convert(node.child_by_field_name('object')),
            'property': self.convert(node.child_by_field_name('property')),
            'optional': self._is_optional(node),
        })

    def _subscript(self, node):
        return self._node(node, 'MemberExpression', {
            'computed': True,
            'object': self.convert(node.child_by_field_name('object')),
            'property': self.convert(node.child_by_field_name('index')),
            'optional': self._is_optional(node),
        })

    def _operator(self, node) -> str:
        operator = node.child_by_field_name('operator')
        return self._text(operator) if operator is not None else ''

    def _unary(self, node):
        return self._node(node, 'UnaryExpression', {
            'operator': self._operator(node),
            'argument': self.convert(node.child_by_field_name('argument')),
            'prefix': True,
        })

    def _binary(self, node):
        operator = self._operator(node)
        return self._node(node, 'LogicalExpression' if operator in LOGICAL_OPERATORS else 'BinaryExpression', {
            'operator': operator,
            'left': self.convert(node.child_by_field_name('left')),
            'right': self.convert(node.child_by_field_name('right')),
        })

    def _conditional(self, node):
        return self._node(node, 'ConditionalExpression', {
            'test': self.convert(node.child_by_field_name('condition')),
            'consequent': self.convert(node.child_by_field_name('consequence')),
            'alternate': self.convert(node.child_by_field_name('alternative')),
        })

    def _assignment(self, node):
        return self._node(node, 'AssignmentExpression', {
            'operator': self._operator(node) or '=',
            'left': self.convert(node.child_by_field_name('left')),
            'right': self.convert(node.child_by_field_name('right')),
        })

    def _await(self, node):
        return self._node(node, 'AwaitExpression', {'argument': self.convert(self._named(node)[0])})

    # ─── leaves ───

    def _identifier(self, node):
        return self._node(node, 'Identifier', {'name': self._text(node)})

    def _this(self, node):
        return self._node(node, 'ThisExpression', {})

    def _literal(self, node, value):
        return self._node(node, 'Literal', {'value': value, 'raw': self._text(node)})

    def _string(self, node):
        return self._literal(node, decode_escapes(self._text(node)[1:-1]))

    def _number(self, node):
        return self._literal(node, parse_number(self._text(node)))

    def _boolean(self, node):
        return self._literal(node, node.type == 'true')

    def _null(self, node):
        return self._literal(node, None)

    def _regex(self, node):
        pattern = node.child_by_field_name('pattern')
        flags = node.child_by_field_name('flags')
        result = self._literal(node, None)
        result['regex'] = {
            'pattern': self._text(pattern) if pattern is not None else '',
            'flags': self._text(flags) if flags is not None else '',
        }
        return result

    def _template(self, node):
        quasis = []
        expressions = []
        cursor = node.start_byte + 1

        for child in node.named_children:
            if child.type != 'template_substitution':
                continue
            raw = self._slice(cursor, child.start_byte)
            quasis.append({'type': 'TemplateElement', 'value': {'raw': raw, 'cooked': decode_escapes(raw)}, 'tail': False})
            inner = self._named(child)
            expressions.append(self.convert(inner[0]) if inner else None)
            cursor = child.end_byte

        raw = self._slice(cursor, node.end_byte - 1)
        quasis.append({'type': 'TemplateElement', 'value': {'raw': raw, 'cooked': decode_escapes(raw)}, 'tail': True})

        return self._node(node, 'TemplateLiteral', {'quasis': quasis, 'expressions': expressions})
