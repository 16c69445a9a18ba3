"""
Per-file conversion pipelines.

Markup:  parse_markup -> transform_markup -> generate_markup
Script:  parse_script -> transform_script -> generate_script
"""
from typing import List, Optional, TypedDict
import logging

from .markup_parser import parse_markup
from .script_parser import parse_script
from .script_generator import generate_script, generate_utility_module
from .script_transformer import transform_script, transform_utility_module
from .template_generator import generate_markup
from .template_transformer import transform_markup
from .types import ModuleBinding

logger = logging.getLogger(__name__)


class MarkupConversion(TypedDict):
    """
    Result of converting one markup file.

    Attributes:
        content: .vue file content
        moduleBindings: Helper modules to hand to the sibling script
    """
    content: str
    moduleBindings: List[ModuleBinding]


class ScriptConversion(TypedDict):
    """
    Result of converting one script file.

    Attributes:
        kind: "component" or "utility"
        content: Generated module text
    """
    kind: str
    content: str


def convert_markup(text: str, base_name: str) -> MarkupConversion:
    """
    Convert AXML text into a .vue file.

    Args:
        text: AXML source
        base_name: File name without extension

    Returns:
        MarkupConversion
    """
    result = transform_markup(parse_markup(text))
    return {
        'content': generate_markup(result['template'], base_name),
        'moduleBindings': result['moduleBindings'],
    }


def convert_script(
    text: str,
    module_bindings: Optional[List[ModuleBinding]] = None,
) -> Optional[ScriptConversion]:
    """
    Convert a mini-program script.

    Args:
        text: Script source
        module_bindings: Helper modules declared by the sibling markup file

    Returns:
        ScriptConversion, or None when the script should be copied verbatim

    Raises:
        ParseError: If the script cannot be parsed
    """
    ast = parse_script(text)

    description = transform_script(ast, module_bindings)
    if description is not None:
        description['content'] = generate_script(description)
        return {'kind': 'component', 'content': description['content']}

    module = transform_utility_module(ast)
    if module is not None:
        module['content'] = generate_utility_module(module)
        return {'kind': 'utility', 'content': module['content']}

    if module_bindings:
        logger.warning(f"Module bindings {[b['name'] for b in module_bindings]} dropped: script is not a page or component")
    return None
