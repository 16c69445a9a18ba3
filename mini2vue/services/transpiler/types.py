"""
Type definitions for the mini-program to Vue transpiler
"""
from typing import Dict, Optional, List, Any, TypedDict, Literal, Union


class ExpressionParseError(TypedDict):
    """
    Placeholder stored on an attribute whose mustache expression did not parse.

    Attributes:
        type: Always "ParseError"
        raw: The raw attribute value
        error: Parser error message
    """
    type: Literal["ParseError"]
    raw: str
    error: str


class MarkupAttribute(TypedDict):
    """
    A single attribute of a markup element.

    Attributes:
        name: Attribute name with its original case
        value: Raw (entity-decoded) attribute value
        isMustache: True if the value contains at least one {{ ... }} span
        expression: Parsed inner expression, a ParseError placeholder,
                    or None for literal values
    """
    name: str
    value: str
    isMustache: bool
    expression: Optional[Union[Dict[str, Any], ExpressionParseError]]


class MarkupText(TypedDict):
    """Text node"""
    type: Literal["Text"]
    value: str
    isMustache: bool


class MarkupComment(TypedDict):
    """Comment node"""
    type: Literal["Comment"]
    value: str


class MarkupElement(TypedDict):
    """Element node"""
    type: Literal["Element"]
    tagName: str
    attributes: List[MarkupAttribute]
    children: List[Any]


class MarkupRoot(TypedDict):
    """Root of a parsed markup file"""
    type: Literal["Root"]
    children: List[Any]


MarkupNode = Union[MarkupElement, MarkupText, MarkupComment]


# Helper module referenced from markup via the import-sjs element:
# "from" is the module path as written, "name" the local name it is exposed under.
ModuleBinding = TypedDict("ModuleBinding", {"from": str, "name": str})


class TemplateAttribute(TypedDict):
    """
    Attribute of a transformed template element.

    Attributes:
        name: Target attribute name (e.g. "v-if", ":src", "@click")
        value: String value, boolean literal binding, or None for a bare attribute
        kind: Classification used for output ordering
    """
    name: str
    value: Union[str, bool, None]
    kind: Literal["directive", "static", "event"]


class TemplateElement(TypedDict):
    """Transformed element"""
    type: Literal["Element"]
    tag: str
    attributes: List[TemplateAttribute]
    children: List[Any]


class TemplateText(TypedDict):
    """Transformed text node"""
    type: Literal["Text"]
    value: str


class TemplateComment(TypedDict):
    """Comment marker emitted into the template"""
    type: Literal["Comment"]
    value: str


class TemplateRoot(TypedDict):
    """Root of a transformed template"""
    type: Literal["Root"]
    children: List[Any]


class TemplateTransformResult(TypedDict):
    """
    Result of transforming one markup file.

    Attributes:
        template: Transformed template tree
        moduleBindings: Helper modules declared by the markup, in document order
    """
    template: TemplateRoot
    moduleBindings: List[ModuleBinding]


class PropertyEntry(TypedDict):
    """
    Component property as found in the declaration object.

    Attributes:
        name: Property name
        type: Declared type identifier, or "unknown"
        value: Raw value node
    """
    name: str
    type: str
    value: Dict[str, Any]


class ObserverEntry(TypedDict):
    """
    Value-change watcher as found in the declaration object.

    Attributes:
        key: Observed path expression (e.g. "count", "user.name", "a, b")
        params: Parameter source texts of the watcher function
        node: The watcher function node
    """
    key: str
    params: List[str]
    node: Dict[str, Any]


class PageStructure(TypedDict):
    """
    Structural extraction of a declaration call.

    Attributes:
        kind: "Page" or "Component"
        data: Literal data values keyed by field name
        methods: Method nodes keyed by name
        lifeCycles: Lifecycle hook nodes keyed by hook name
        properties: Component inputs in declaration order
        observers: Watchers in declaration order
    """
    kind: str
    data: Dict[str, Any]
    methods: Dict[str, Dict[str, Any]]
    lifeCycles: Dict[str, Dict[str, Any]]
    properties: List[PropertyEntry]
    observers: List[ObserverEntry]


class MethodDefinition(TypedDict):
    """
    Rebuilt method or lifecycle hook.

    Attributes:
        name: Method name in the target component
        params: Parameter source texts
        isAsync: Whether the method is declared async
        body: Body lines, re-indented relative to the method body
    """
    name: str
    params: List[str]
    isAsync: bool
    body: List[str]


class PropDefinition(TypedDict):
    """Target prop definition"""
    default: Any
    type: Optional[str]


class WatchDefinition(TypedDict):
    """
    Target watcher.

    Attributes:
        params: Handler parameter names
        body: Handler body lines
        deep: Whether the watcher is deep
        placeholder: True when the handler body was not reconstructed
    """
    params: List[str]
    body: List[str]
    deep: bool
    placeholder: bool


class ComponentDescription(TypedDict):
    """
    Structured description of a generated component.

    Attributes:
        imports: Import statements, in order
        statements: Other top-level statements kept verbatim
        data: Literal data fields
        methods: Methods keyed by name (field-assignment helper first)
        computed: Reserved, always empty
        props: Props keyed by name
        watch: Watchers keyed by observed field
        lifeCycles: Lifecycle hooks keyed by target hook name
        sjsImports: Module bindings threaded from the template pass
        content: Serialized component module, filled in by the generator
    """
    imports: List[str]
    statements: List[str]
    data: Dict[str, Any]
    methods: Dict[str, MethodDefinition]
    computed: Dict[str, Any]
    props: Dict[str, PropDefinition]
    watch: Dict[str, WatchDefinition]
    lifeCycles: Dict[str, MethodDefinition]
    sjsImports: List[ModuleBinding]
    content: str


class UtilityExport(TypedDict):
    """
    Arrow-function constant of a utility module.

    Attributes:
        name: Constant name
        exported: Whether the constant was exported
        params: Parameter source texts
        isAsync: Whether the arrow function is async
        body: Reconstructed body lines
    """
    name: str
    exported: bool
    params: List[str]
    isAsync: bool
    body: List[str]


class UtilityModule(TypedDict):
    """
    Plain utility module (no declaration call).

    Attributes:
        items: Ordered top-level items: either an UtilityExport or a verbatim source string
        content: Serialized module, filled in by the generator
    """
    items: List[Union[UtilityExport, str]]
    content: str
