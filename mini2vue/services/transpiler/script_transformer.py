"""
Mini-program script to Vue component transformer.

Turns the structure of a Page/Component declaration into a Vue component
description: data, methods, lifecycle hooks, props, watchers and imports.

Method bodies are rebuilt from the original source slices rather than
re-emitted from the tree. Only two rewrites are applied to them:
``this.data.`` and ``this.props.`` become ``this.``, matching the flat
instance state of a Vue component. Any other use of ``this.data`` or
``this.props`` (e.g. destructuring ``this.data``) is copied unchanged.
"""
from typing import Dict, Any, Optional, List, Tuple
import logging
import re

from .script_parser import (
    JSParser,
    StructureAnalyzer,
    find_declaration_call,
    literal_value,
    property_key,
)
from .types import (
    ComponentDescription,
    MethodDefinition,
    ModuleBinding,
    ObserverEntry,
    PropDefinition,
    PropertyEntry,
    UtilityExport,
    UtilityModule,
    WatchDefinition,
)

logger = logging.getLogger(__name__)


# Mini-program lifecycle hook -> Vue lifecycle hook
LIFECYCLE_MAP: Dict[str, str] = {
    # Page
    'onLoad': 'created',
    'onShow': 'mounted',
    'onReady': 'mounted',
    'onHide': 'beforeDestroy',
    'onUnload': 'destroyed',
    # Component
    'didMount': 'mounted',
    'didUpdate': 'updated',
    'didUnmount': 'destroyed',
    'didHide': 'deactivated',
    'didShow': 'activated',
}

# Generated method that assigns fields directly on the instance
FIELD_ASSIGNMENT_HELPER = 'setData'

FLATTEN_RULES: List[Tuple["re.Pattern[str]", str]] = [
    (re.compile(r'\bthis\.data\.'), 'this.'),
    (re.compile(r'\bthis\.props\.'), 'this.'),
]

# Vue prop type for a JSON-compatible default value
VUE_PROP_TYPES = {
    str: 'String',
    bool: 'Boolean',
    int: 'Number',
    float: 'Number',
    list: 'Array',
    dict: 'Object',
}

# Keys of a prop descriptor object ({ type: String, default: '' })
PROP_DESCRIPTOR_KEYS = ('type', 'default', 'value', 'optionalTypes', 'observer')

UTILITY_STATEMENT_TYPES = (
    'ExportNamedDeclaration',
    'ExportDefaultDeclaration',
    'FunctionDeclaration',
    'VariableDeclaration',
)

INDENT = "  "

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_$][\w$]*$')
STRING_PATTERN = re.compile(r'''"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*'|`(?:\\.|[^`\\])*`''')
LINE_COMMENT_PATTERN = re.compile(r'//.*$')
LEADING_CLOSERS_PATTERN = re.compile(r'^[)\]}]*')


def flatten_instance_access(code: str) -> str:
    """Rewrite this.data.x and this.props.x to this.x."""
    for pattern, replacement in FLATTEN_RULES:
        code = pattern.sub(replacement, code)
    return code


def _brackets(line: str) -> Tuple[str, int]:
    """
    Collect the brackets of a code line, ignoring strings and line comments.

    Returns:
        Tuple of (bracket characters in order, closers at the start of the line)
    """
    code = LINE_COMMENT_PATTERN.sub('', STRING_PATTERN.sub('""', line))
    leading = len(LEADING_CLOSERS_PATTERN.match(code).group(0))
    return ''.join(c for c in code if c in '()[]{}'), leading


def _close_level(levels: List[int]):
    if levels:
        levels[-1] -= 1
        if not levels[-1]:
            levels.pop()


def reindent(code: str) -> List[str]:
    """
    Trim every line and re-indent by bracket nesting.

    Brackets opened on the same line share one indent step, so
    ``this.setData({`` indents the following lines once.

    Args:
        code: Source text

    Returns:
        Non-empty lines indented relative to depth 0
    """
    result = []
    # Unclosed bracket count of each indent step
    levels: List[int] = []
    for raw_line in code.split('\n'):
        line = raw_line.strip()
        if not line:
            continue
        brackets, leading = _brackets(line)
        for _ in range(leading):
            _close_level(levels)
        result.append(INDENT * len(levels) + line)

        opened = 0
        for char in brackets[leading:]:
            if char in '([{':
                opened += 1
            elif opened:
                opened -= 1
            else:
                _close_level(levels)
        if opened:
            levels.append(opened)
    return result


def extract_function_body(function: Dict[str, Any]) -> List[str]:
    """
    Rebuild the body of a function from its source text.

    Args:
        function: FunctionExpression or ArrowFunctionExpression node

    Returns:
        Body lines with instance access flattened
    """
    body = function.get('body') or {}

    if body.get('type') == 'BlockStatement':
        # Interior of the block, keeping comments between statements
        code = JSParser.source_of(body)[1:-1]
    else:
        code = f"return {JSParser.source_of(body)};"

    return reindent(flatten_instance_access(code))


def function_params(function: Dict[str, Any]) -> List[str]:
    """Get the parameter source texts of a function (defaults and patterns included)."""
    return [JSParser.source_of(param) for param in function.get('params', [])]


def build_method(name: str, function: Dict[str, Any]) -> MethodDefinition:
    """
    Build a method definition from a function node.

    Args:
        name: Target method name
        function: Function node

    Returns:
        MethodDefinition
    """
    return {
        'name': name,
        'params': function_params(function),
        'isAsync': bool(function.get('async')),
        'body': extract_function_body(function),
    }


def field_assignment_helper() -> MethodDefinition:
    """setData(data) assigning every key directly on the instance."""
    return {
        'name': FIELD_ASSIGNMENT_HELPER,
        'params': ['data'],
        'isAsync': False,
        'body': [
            'for (const key in data) {',
            f'{INDENT}this[key] = data[key];',
            '}',
        ],
    }


def vue_prop_type(value: Any) -> Optional[str]:
    """Infer the Vue prop type of a default value."""
    if value is None:
        return None
    return VUE_PROP_TYPES.get(type(value))


def generate_import_statement(node: Dict[str, Any]) -> str:
    """
    Regenerate an import statement.

    Relative sources ending in .js lose the extension.

    Args:
        node: ImportDeclaration node

    Returns:
        Import statement
    """
    source = node['source']['value']
    if source.startswith('.') and source.endswith('.js'):
        source = source[:-len('.js')]
    source = source.replace("'", "\\'")

    default = []
    namespace = []
    named = []
    for spec in node.get('specifiers', []):
        spec_type = spec.get('type')
        local = spec['local']['name']
        if spec_type == 'ImportDefaultSpecifier':
            default.append(local)
        elif spec_type == 'ImportNamespaceSpecifier':
            namespace.append(f"* as {local}")
        elif spec_type == 'ImportSpecifier':
            imported = spec['imported'].get('name') or spec['imported'].get('value')
            named.append(imported if imported == local else f"{imported} as {local}")

    clauses = default + namespace
    if named:
        clauses.append('{ ' + ', '.join(named) + ' }')

    if not clauses:
        return f"import '{source}';"
    return f"import {', '.join(clauses)} from '{source}';"


class ScriptTransformer:
    """
    Transforms a parsed mini-program script into a Vue component description.

    Example:
        ast = parse_script(text)
        description = ScriptTransformer().transform(ast, [{'from': './a.sjs', 'name': 'a'}])
    """

    def __init__(self):
        self.analyzer = StructureAnalyzer()

    def transform(
        self,
        ast: Dict[str, Any],
        module_bindings: Optional[List[ModuleBinding]] = None,
    ) -> Optional[ComponentDescription]:
        """
        Transform a parsed script.

        Args:
            ast: Parsed JavaScript AST
            module_bindings: Helper modules declared by the sibling markup file

        Returns:
            ComponentDescription, or None when the script has no Page/Component call
        """
        structure = self.analyzer.analyze(ast)
        if structure is None:
            return None

        module_bindings = list(module_bindings or [])

        description: ComponentDescription = {
            'imports': [],
            'statements': self._module_statements(ast),
            'data': dict(structure['data']),
            'methods': {FIELD_ASSIGNMENT_HELPER: field_assignment_helper()},
            'computed': {},
            'props': self.transform_properties(structure['properties']),
            'watch': self.transform_observers(structure['observers']),
            'lifeCycles': self.transform_lifecycles(structure['lifeCycles']),
            'sjsImports': module_bindings,
            'content': '',
        }

        for node in ast.get('body', []):
            if node.get('type') == 'ImportDeclaration':
                description['imports'].append(generate_import_statement(node))

        for binding in module_bindings:
            description['imports'].append(f"import {binding['name']}Module from '{binding['from']}';")

        for name, function in structure['methods'].items():
            description['methods'][name] = build_method(name, function)

        return description

    @staticmethod
    def _module_statements(ast: Dict[str, Any]) -> List[str]:
        """Top-level statements other than imports and the declaration call."""
        call = find_declaration_call(ast)
        call_start, call_end = call['range'] if call else (-1, -1)

        statements = []
        for node in ast.get('body', []):
            if node.get('type') == 'ImportDeclaration':
                continue
            start, end = node.get('range', (0, 0))
            if start <= call_start and call_end <= end:
                continue
            statements.append(JSParser.source_of(node))
        return statements

    @staticmethod
    def transform_lifecycles(hooks: Dict[str, Dict[str, Any]]) -> Dict[str, MethodDefinition]:
        """
        Rename lifecycle hooks to their Vue names.

        Hooks mapping to the same Vue hook are merged in source order. Each
        part runs as an arrow function called with the hook's arguments, so
        it keeps its own parameters and `this`, and an early return only
        ends that part.

        Args:
            hooks: Hook function nodes keyed by mini-program hook name

        Returns:
            MethodDefinitions keyed by Vue hook name
        """
        grouped: Dict[str, List[Tuple[str, Dict[str, Any]]]] = {}
        for hook, function in hooks.items():
            target = LIFECYCLE_MAP.get(hook, hook)
            grouped.setdefault(target, []).append((hook, function))

        result = {}
        for target, group in grouped.items():
            if len(group) == 1:
                result[target] = build_method(target, group[0][1])
                continue

            logger.info(f"Merging lifecycle hooks {[hook for hook, _ in group]} into '{target}'")
            body = []
            for hook, function in group:
                params = ', '.join(function_params(function))
                opener = f"await (async ({params}) => {{" if function.get('async') else f"(({params}) => {{"
                body.append(f"// {hook}")
                body.append(opener)
                body.extend(INDENT + line for line in extract_function_body(function))
                body.append('})(...arguments);')

            result[target] = {
                'name': target,
                'params': [],
                'isAsync': any(function.get('async') for _, function in group),
                'body': body,
            }

        return result

    @staticmethod
    def transform_properties(properties: List[PropertyEntry]) -> Dict[str, PropDefinition]:
        """
        Convert component properties to Vue props.

        Args:
            properties: Properties from the structural extraction

        Returns:
            PropDefinitions keyed by prop name
        """
        result = {}

        for entry in properties:
            value = entry['value']
            prop: PropDefinition = {'default': None, 'type': None}

            if value.get('type') == 'ObjectExpression' and any(
                property_key(p) in PROP_DESCRIPTOR_KEYS for p in value.get('properties', [])
            ):
                options = {property_key(p): p.get('value') for p in value.get('properties', [])}
                default_node = options.get('default') or options.get('value')
                is_literal, default = literal_value(default_node)
                if is_literal:
                    prop['default'] = default

                type_node = options.get('type') or {}
                if type_node.get('type') == 'Identifier':
                    prop['type'] = type_node['name']
                else:
                    prop['type'] = vue_prop_type(prop['default'])
            else:
                is_literal, default = literal_value(value)
                if is_literal:
                    prop['default'] = default
                    prop['type'] = vue_prop_type(default)
                elif entry['type'] != 'unknown':
                    prop['type'] = entry['type']

            result[entry['name']] = prop

        return result

    @staticmethod
    def transform_observers(observers: List[ObserverEntry]) -> Dict[str, WatchDefinition]:
        """
        Convert observers to Vue watchers.

        A single plain field keeps its handler. Dotted paths, wildcards and
        multi-field keys collapse to a deep watcher on each root field whose
        handler is a placeholder.

        Args:
            observers: Observers from the structural extraction

        Returns:
            WatchDefinitions keyed by watched field
        """
        result: Dict[str, WatchDefinition] = {}

        for observer in observers:
            fields = [field.strip() for field in observer['key'].split(',') if field.strip()]

            if len(fields) == 1 and IDENTIFIER_PATTERN.match(fields[0]):
                result[fields[0]] = {
                    'params': observer['params'],
                    'body': extract_function_body(observer['node']),
                    'deep': False,
                    'placeholder': False,
                }
                continue

            for field in fields:
                root = re.split(r'[.\[]', field, maxsplit=1)[0]
                if not IDENTIFIER_PATTERN.match(root):
                    logger.warning(f"Observer path '{field}' has no watchable root field, skipped")
                    continue
                if root in result:
                    continue
                logger.warning(f"Observer '{observer['key']}' converted to a placeholder deep watcher on '{root}'")
                result[root] = {
                    'params': ['newVal', 'oldVal'],
                    'body': [f"// observer '{observer['key']}' was not converted"],
                    'deep': True,
                    'placeholder': True,
                }

        return result


class UtilityModuleTransformer:
    """
    Transforms plain utility modules (no declaration call).

    Arrow-function constants are rebuilt with their parameter list and
    body; every other declaration is kept verbatim.
    """

    def transform(self, ast: Dict[str, Any]) -> Optional[UtilityModule]:
        """
        Transform a utility module.

        Args:
            ast: Parsed JavaScript AST

        Returns:
            UtilityModule, or None when the script is not a utility module
        """
        body = ast.get('body', [])
        if not body or any(node.get('type') not in UTILITY_STATEMENT_TYPES for node in body):
            return None
        if find_declaration_call(ast) is not None:
            return None

        items = []
        for node in body:
            exported = node.get('type') == 'ExportNamedDeclaration'
            declaration = node.get('declaration') if exported else node
            arrows = self._arrow_constants(declaration, exported)
            if arrows is None:
                items.append(JSParser.source_of(node))
            else:
                items.extend(arrows)

        return {'items': items, 'content': ''}

    @staticmethod
    def _arrow_constants(declaration: Optional[Dict[str, Any]], exported: bool) -> Optional[List[UtilityExport]]:
        """Rebuild `const f = (...) => ...` declarations, or None to keep the source."""
        if not declaration or declaration.get('type') != 'VariableDeclaration':
            return None
        if declaration.get('kind') != 'const':
            return None

        declarators = declaration.get('declarations', [])
        if not declarators or not all(
            (d.get('id') or {}).get('type') == 'Identifier'
            and (d.get('init') or {}).get('type') == 'ArrowFunctionExpression'
            for d in declarators
        ):
            return None

        return [
            {
                'name': d['id']['name'],
                'exported': exported,
                'params': function_params(d['init']),
                'isAsync': bool(d['init'].get('async')),
                'body': extract_function_body(d['init']),
            }
            for d in declarators
        ]


def transform_script(
    ast: Dict[str, Any],
    module_bindings: Optional[List[ModuleBinding]] = None,
) -> Optional[ComponentDescription]:
    """
    Transform a parsed script into a component description.

    Args:
        ast: Parsed JavaScript AST
        module_bindings: Helper modules declared by the sibling markup file

    Returns:
        ComponentDescription, or None when the script is not a page or component
    """
    return ScriptTransformer().transform(ast, module_bindings)


def transform_utility_module(ast: Dict[str, Any]) -> Optional[UtilityModule]:
    """
    Transform a plain utility module.

    Args:
        ast: Parsed JavaScript AST

    Returns:
        UtilityModule, or None when the script is not a utility module
    """
    return UtilityModuleTransformer().transform(ast)
