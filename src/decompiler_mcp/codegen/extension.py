"""Extension method wrappers for instance methods."""

from typing import Optional

from ..errors import GenerationError, WrongSymbolKindError
from ..model import (
    Accessibility,
    Symbol,
    SymbolKind,
    escape_keyword,
    make_symbol_id,
    render_type,
)
from ..resolver import SymbolResolver, summarize
from .detour import _parameter_names, _type_parameters
from .result import GeneratedCodeResult


EXTENSION_NAMESPACE = "ExtensionMethods"
EXTENSION_CLASS = "Extensions"


def generate_extension_wrapper(method: Symbol, session: Optional[str] = None) -> GeneratedCodeResult:
    """Generate a static extension method forwarding to an instance method.

    Raises:
        WrongSymbolKindError: if the symbol is not a method
        GenerationError: for static methods, constructors and explicit
            interface implementations
    """
    if method.kind is not SymbolKind.METHOD:
        raise WrongSymbolKindError(make_symbol_id(method), "Method", method.kind_label)
    declaring = method.declaring_type
    if declaring is None:
        raise GenerationError(f"Method has no declaring type: {method.name}")
    if method.is_constructor:
        raise GenerationError("Extension wrappers cannot target constructors")
    if method.is_static:
        raise GenerationError(f"Method must be an instance method: {method.full_name}")
    if "." in method.name:
        raise GenerationError(f"Explicit interface implementations cannot be called by name: {method.name}")

    names = _parameter_names(method)
    type_parameters = _type_parameters(method)
    has_result = method.return_type is not None and not method.return_type.is_void
    return_type = render_type(method.return_type) if has_result else "void"
    name = escape_keyword(method.name)

    lines = [
        "// Generated extension method wrapper",
        f"// Original: {method.full_name}",
        "",
        "using System;",
    ]
    if declaring.namespace and declaring.namespace != "System":
        lines.append(f"using {declaring.namespace};")
    lines += [
        "",
        f"namespace {EXTENSION_NAMESPACE}",
        "{",
        f"    public static class {EXTENSION_CLASS}",
        "    {",
    ]

    params = [f"this {render_type(declaring.as_type_ref())} instance"]
    arguments = []
    for param, param_name in zip(method.parameters, names):
        text = f"{render_type(param.type)} {param_name}"
        argument = param_name
        if param.modifier in ("ref", "out", "in"):
            text = f"{param.modifier} {text}"
            argument = f"{param.modifier} {param_name}"
        elif param.modifier == "params":
            text = f"params {text}"
        params.append(text)
        arguments.append(argument)

    type_parameter_list = f"<{', '.join(type_parameters)}>" if type_parameters else ""
    call = f"instance.{name}({', '.join(arguments)});"
    lines += [
        f"        public static {return_type} {name}{type_parameter_list}({', '.join(params)})",
        "        {",
        f"            {'return ' if has_result else ''}{call}",
        "        }",
        "    }",
        "}",
    ]

    notes = [
        "This extension method allows calling the instance method using extension syntax",
        f"Usage: instance.{method.name}(...) or {EXTENSION_NAMESPACE}.{EXTENSION_CLASS}.{method.name}(instance, ...)",
    ]
    if type_parameters:
        notes.append("Generic type parameters of the declaring type and method are preserved")
    if method.parameters:
        notes.append("Parameter names and ref/out/in modifiers are preserved from the original method")
    if method.accessibility is not Accessibility.PUBLIC or declaring.accessibility is not Accessibility.PUBLIC:
        notes.append(
            "Target or its declaring type is not public; "
            "the wrapper only compiles where the original is accessible"
        )

    return GeneratedCodeResult(
        target=summarize(method, session),
        code="\n".join(lines) + "\n",
        notes=tuple(notes),
    )


class ExtensionWrapperGenerator:
    def __init__(self, resolver: SymbolResolver):
        self.resolver = resolver

    def generate(self, member_id: str) -> GeneratedCodeResult:
        method = self.resolver.require_method(member_id)
        return generate_extension_wrapper(method, session=self.resolver.session)
