"""
Mini-program to Vue Transpiler

Converts Alipay mini-program sources into Vue single-file components.

- Markup pipeline: AXML -> markup tree -> Vue template tree -> .vue file
- Script pipeline: Page/Component script -> AST -> component description -> component module

Helper modules declared in markup with <import-sjs> are returned by the
markup pipeline and handed to the script pipeline of the same base name.
"""

from .converter import convert_markup, convert_script, MarkupConversion, ScriptConversion
from .markup_parser import parse_markup
from .script_parser import parse_script, parse_expression, analyze_script, ParseError
from .script_transformer import transform_script, transform_utility_module
from .script_generator import generate_script, generate_utility_module
from .template_generator import generate_markup, render_template
from .template_transformer import transform_markup
from .types import (
    ComponentDescription,
    MarkupRoot,
    ModuleBinding,
    PageStructure,
    TemplateRoot,
    TemplateTransformResult,
    UtilityModule,
)

__all__ = [
    "convert_markup",
    "convert_script",
    "MarkupConversion",
    "ScriptConversion",
    "parse_markup",
    "parse_script",
    "parse_expression",
    "analyze_script",
    "ParseError",
    "transform_markup",
    "transform_script",
    "transform_utility_module",
    "generate_markup",
    "render_template",
    "generate_script",
    "generate_utility_module",
    "ComponentDescription",
    "MarkupRoot",
    "ModuleBinding",
    "PageStructure",
    "TemplateRoot",
    "TemplateTransformResult",
    "UtilityModule",
]

__version__ = "1.0.0"
