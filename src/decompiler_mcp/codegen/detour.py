"""Detour stub generation: a logging wrapper that calls the original by reflection."""

from typing import Optional

from ..errors import GenerationError, WrongSymbolKindError
from ..model import (
    Parameter,
    Symbol,
    SymbolKind,
    TypeRef,
    TypeShape,
    escape_keyword,
    make_symbol_id,
    render_type,
    render_type_definition,
    sanitize_identifier,
)
from ..resolver import SymbolResolver, summarize
from .result import GeneratedCodeResult


DETOUR_NAMESPACE = "DetourStubs"
DETOUR_CLASS = "DetourHelper"


def _parameter_names(method: Symbol) -> list[str]:
    return [
        escape_keyword(p.name) if p.name else f"param{i}"
        for i, p in enumerate(method.parameters)
    ]


def _type_parameters(method: Symbol) -> list[str]:
    """Generic parameters of the declaring type chain, then of the method."""
    names = []
    owner = method.declaring_type
    while owner is not None:
        names[:0] = owner.type_parameters
        owner = owner.declaring_type
    return names + list(method.type_parameters)


def _uses_method_parameters(type_ref: TypeRef) -> bool:
    if type_ref.shape is TypeShape.GENERIC_PARAMETER:
        return type_ref.method_owned
    if type_ref.element_type is not None and _uses_method_parameters(type_ref.element_type):
        return True
    return any(_uses_method_parameters(arg) for arg in type_ref.type_arguments)


def _param_typeof(param: Parameter) -> str:
    suffix = ".MakeByRefType()" if param.is_by_ref else ""
    return f"typeof({render_type(param.type)}){suffix}"


def _generic_lookup(method: Symbol, depth: str) -> list[str]:
    """Find a generic method definition and close it over the detour's parameters."""
    conditions = [
        f'm.Name == "{method.name}"',
        f"m.GetGenericArguments().Length == {len(method.type_parameters)}",
        f"p.Length == {len(method.parameters)}",
    ]
    for i, param in enumerate(method.parameters):
        if _uses_method_parameters(param.type):
            conditions.append(f"p[{i}].ParameterType.ContainsGenericParameters")
        else:
            conditions.append(f"p[{i}].ParameterType == {_param_typeof(param)}")

    lines = [
        f"{depth}var definition = type.GetMethods(AllDeclared).First(m =>",
        f"{depth}{{",
        f"{depth}    var p = m.GetParameters();",
        f"{depth}    return {conditions[0]}",
    ]
    lines += [f"{depth}        && {condition}" for condition in conditions[1:]]
    lines[-1] += ";"
    arguments = ", ".join(f"typeof({name})" for name in method.type_parameters)
    lines += [
        f"{depth}}});",
        f"{depth}var originalMethod = definition.MakeGenericMethod({arguments});",
    ]
    return lines


def generate_detour_stub(method: Symbol, session: Optional[str] = None) -> GeneratedCodeResult:
    """Generate a static detour method mirroring a method's signature.

    The detour logs entry and exit with Debug.WriteLine and invokes the
    original through reflection. Instance methods take the receiver as the
    first parameter. Targets on generic types or generic methods get a
    generic detour whose lookup is closed over its own type parameters.

    Raises:
        WrongSymbolKindError: if the symbol is not a method
        GenerationError: for constructors or methods without a declaring type
    """
    if method.kind is not SymbolKind.METHOD:
        raise WrongSymbolKindError(make_symbol_id(method), "Method", method.kind_label)
    declaring = method.declaring_type
    if declaring is None:
        raise GenerationError(f"Method has no declaring type: {method.name}")
    if method.is_constructor:
        raise GenerationError("Detour stubs cannot target constructors")

    declaring_ref = declaring.as_type_ref()
    names = _parameter_names(method)
    type_parameters = _type_parameters(method)
    generic = bool(type_parameters)
    has_result = method.return_type is not None and not method.return_type.is_void
    return_type = render_type(method.return_type) if has_result else "void"
    detour_name = sanitize_identifier(method.name) + "Detour"
    original = "originalMethod" if generic else "_originalMethod"

    lines = [
        "// Generated detour stub method",
        f"// Original: {method.full_name}",
        "// This method can be used for testing method interception",
        "",
        "using System;",
    ]
    if method.type_parameters:
        lines.append("using System.Linq;")
    lines += [
        "using System.Reflection;",
        "using System.Diagnostics;",
    ]
    if declaring.namespace and declaring.namespace != "System":
        lines.append(f"using {declaring.namespace};")
    lines += [
        "",
        f"namespace {DETOUR_NAMESPACE}",
        "{",
        f"    public static class {DETOUR_CLASS}",
        "    {",
    ]
    if method.type_parameters:
        lines += [
            "        private const BindingFlags AllDeclared = BindingFlags.Public | BindingFlags.NonPublic",
            "            | BindingFlags.Instance | BindingFlags.Static | BindingFlags.DeclaredOnly;",
            "",
        ]
    if not generic:
        lines += [
            "        // Cached original method for reflection-based calls",
            "        private static MethodInfo _originalMethod;",
            "",
        ]

    params = []
    if not method.is_static:
        params.append(f"{render_type(declaring_ref)} __instance")
    for param, name in zip(method.parameters, names):
        text = f"{render_type(param.type)} {name}"
        if param.modifier in ("ref", "out", "in"):
            text = f"{param.modifier} {text}"
        params.append(text)

    type_parameter_list = f"<{', '.join(type_parameters)}>" if generic else ""
    lines.append(
        f"        public static {return_type} {detour_name}{type_parameter_list}({', '.join(params)})"
    )
    lines += [
        "        {",
        "            // Log method entry",
        f'            Debug.WriteLine("Detour: Entering {method.name}");',
        "",
    ]

    if generic:
        depth = " " * 12
        lines += [
            "            // Resolved per call: each instantiation has its own MethodInfo",
            f"            var type = typeof({render_type(declaring_ref)});",
        ]
    else:
        depth = " " * 16
        lines += [
            "            // Initialize original method reflection info",
            "            if (_originalMethod == null)",
            "            {",
            f"                var type = typeof({render_type_definition(declaring_ref)});",
        ]

    if method.type_parameters:
        lines += _generic_lookup(method, depth)
    else:
        target = "var originalMethod" if generic else "_originalMethod"
        if method.parameters:
            lines.append(f"{depth}var paramTypes = new Type[] {{")
            for param in method.parameters:
                lines.append(f"{depth}    {_param_typeof(param)},")
            lines.append(f"{depth}}};")
            lines.append(f'{depth}{target} = type.GetMethod("{method.name}", paramTypes);')
        else:
            lines.append(f'{depth}{target} = type.GetMethod("{method.name}", Type.EmptyTypes);')
    if not generic:
        lines.append("            }")
    lines += [
        "",
        "            try",
        "            {",
    ]

    receiver = "null" if method.is_static else "__instance"
    call = f"{original}.Invoke({receiver}, {'args' if names else 'null'});"
    if has_result:
        call = f"var result = ({return_type}){call}"
    if names:
        lines.append("                var args = new object[] {")
        for name in names:
            lines.append(f"                    {name},")
        lines.append("                };")
    lines += [
        f"                {call}",
        "",
        "                // Log method exit",
        f'                Debug.WriteLine("Detour: Exiting {method.name}");',
    ]
    if has_result:
        lines.append("                return result;")
    lines += [
        "            }",
        "            catch (Exception ex)",
        "            {",
        f'                Debug.WriteLine($"Detour: Exception in {method.name}: {{ex}}");',
        "                throw;",
        "            }",
        "        }",
        "    }",
        "}",
    ]

    notes = [
        "This detour stub method provides logging and delegates to the original method via reflection",
        "Use this for testing method interception without changing the original behavior",
        "The method signature matches the original with optional instance parameter for non-static methods",
    ]
    if method.is_static:
        notes.append("Original method is static - no instance parameter needed")
    else:
        notes.append("Original method is instance - first parameter is the instance (__instance)")
    if generic:
        notes.append(
            "Generic type parameters are preserved as parameters of the detour; "
            "the original is looked up per call for the instantiation in use"
        )
    if method.parameters:
        notes.append("Parameter types are preserved for reflection-based method lookup")
    if any(p.modifier == "out" for p in method.parameters):
        # out arguments must be assigned before the call compiles
        notes.append("out parameters must be assigned before the reflection call and copied back from args")

    return GeneratedCodeResult(
        target=summarize(method, session),
        code="\n".join(lines) + "\n",
        notes=tuple(notes),
    )


class DetourStubGenerator:
    def __init__(self, resolver: SymbolResolver):
        self.resolver = resolver

    def generate(self, member_id: str) -> GeneratedCodeResult:
        method = self.resolver.require_method(member_id)
        return generate_detour_stub(method, session=self.resolver.session)
