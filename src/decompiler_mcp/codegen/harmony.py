"""Harmony patch skeleton generation.

The shape of every generated hook is derived from the target method's
signature: instance methods get an __instance receiver, non-void methods a
ref __result slot, finalizers an __exception slot.
"""

from typing import Iterable, Optional, Union

from ..errors import GenerationError, WrongSymbolKindError
from ..model import (
    Parameter,
    Symbol,
    SymbolKind,
    TypeKind,
    TypeRef,
    TypeShape,
    escape_keyword,
    make_symbol_id,
    render_type,
    render_type_definition,
    sanitize_identifier,
)
from ..resolver import SymbolResolver, overloads_of, render_signature, summarize
from .result import GeneratedCodeResult


PATCH_KINDS = ("Prefix", "Postfix", "Transpiler", "Finalizer")
DEFAULT_PATCH_KINDS = ",".join(PATCH_KINDS)

PATCH_NAMESPACE = "HarmonyPatches"

_HOOK_NOTES = {
    "Prefix": "Prefix: return false to skip the original method",
    "Postfix": "Postfix: runs after the original method and may replace the result",
    "Transpiler": "Transpiler: receives the original IL as CodeInstruction records",
    "Finalizer": "Finalizer: runs last; return null to swallow an exception or __exception to rethrow it",
}


def parse_patch_kinds(patch_kinds: Union[str, Iterable[str], None]) -> list[str]:
    """Select hook kinds from a comma-delimited string or a token sequence.

    Matching is case-insensitive. Unrecognized tokens are ignored and
    duplicates keep their first position.
    """
    if patch_kinds is None:
        return []
    tokens = patch_kinds.split(",") if isinstance(patch_kinds, str) else list(patch_kinds)

    known = {kind.lower(): kind for kind in PATCH_KINDS}
    selected = []
    for token in tokens:
        kind = known.get(token.strip().lower())
        if kind and kind not in selected:
            selected.append(kind)
    return selected


def _hook_type(type_ref: TypeRef) -> str:
    """Generic parameters cannot appear in a non-generic patch class."""
    if type_ref.contains_generic_parameters():
        return "object"
    return render_type(type_ref)


def _typeof(type_ref: TypeRef) -> str:
    return f"typeof({render_type(type_ref)})"


def _type_match(type_ref: TypeRef, expr: str) -> list[str]:
    """C# conditions under which the runtime Type `expr` is `type_ref`."""
    if not type_ref.contains_generic_parameters():
        return [f"{expr} == {_typeof(type_ref)}"]

    shape = type_ref.shape
    if shape is TypeShape.GENERIC_PARAMETER:
        return [f"{expr}.IsGenericParameter", f'{expr}.Name == "{type_ref.full_name}"']
    element = f"{expr}.GetElementType()"
    if shape is TypeShape.ARRAY:
        return [
            f"{expr}.IsArray",
            f"{expr}.GetArrayRank() == {type_ref.rank}",
            *_type_match(type_ref.element_type, element),
        ]
    if shape is TypeShape.POINTER:
        return [f"{expr}.IsPointer", *_type_match(type_ref.element_type, element)]

    conditions = [
        f"{expr}.IsGenericType",
        f"{expr}.GetGenericTypeDefinition() == typeof({render_type_definition(type_ref)})",
    ]
    for i, argument in enumerate(type_ref.type_arguments):
        conditions.extend(_type_match(argument, f"{expr}.GetGenericArguments()[{i}]"))
    return conditions


def _parameter_match(param: Parameter, expr: str) -> list[str]:
    if not param.is_by_ref:
        return _type_match(param.type, expr)
    if not param.type.contains_generic_parameters():
        return [f"{expr} == {_typeof(param.type)}.MakeByRefType()"]
    return [f"{expr}.IsByRef", *_type_match(param.type, f"{expr}.GetElementType()")]


class _SkeletonBuilder:
    """Accumulates the lines of one generated patch file."""

    def __init__(self, method: Symbol, kinds: list[str], precise: bool):
        self.method = method
        self.declaring = method.declaring_type
        self.kinds = kinds
        self.precise = precise
        self.lines: list[str] = []

        self.declaring_ref = self.declaring.as_type_ref()
        self.is_generic = bool(method.type_parameters) or self.declaring_ref.contains_generic_parameters()
        self.needs_linq = precise and (
            self.is_generic
            or any(p.type.contains_generic_parameters() for p in method.parameters)
        )

    @property
    def has_result(self) -> bool:
        return_type = self.method.return_type
        return return_type is not None and not return_type.is_void

    def emit(self, line: str = "", depth: int = 0) -> None:
        self.lines.append("    " * depth + line if line else "")

    # Parameter lists

    def receiver(self) -> Optional[str]:
        if self.method.is_static:
            return None
        text = f"{_hook_type(self.declaring_ref)} __instance"
        if self.declaring.type_kind is TypeKind.STRUCT:
            text = "ref " + text
        return text

    def parameters(self) -> list[str]:
        params = []
        for i, param in enumerate(self.method.parameters):
            name = escape_keyword(param.name) if param.name else f"__{i}"
            text = f"{_hook_type(param.type)} {name}"
            if param.is_by_ref:
                text = "ref " + text
            params.append(text)
        return params

    def result(self) -> Optional[str]:
        if not self.has_result:
            return None
        return f"ref {_hook_type(self.method.return_type)} __result"

    # Sections

    def header(self) -> None:
        method = self.method
        self.emit("// Harmony patch skeleton")
        self.emit(f"// Target: {make_symbol_id(method)}")
        self.emit(f"// Signature: {render_signature(method)}")
        self.emit()

        usings = ["System", "System.Collections.Generic"]
        if self.needs_linq:
            usings.append("System.Linq")
        usings.extend(["System.Reflection", "System.Reflection.Emit", "HarmonyLib"])
        namespace = self.declaring.namespace
        if namespace and namespace not in usings:
            usings.append(namespace)
        for using in usings:
            self.emit(f"using {using};")
        self.emit()

    def class_name(self) -> str:
        return sanitize_identifier(
            f"{self.declaring.display_name}_{self.method.display_name}"
        ) + "_Patch"

    def targeting_attribute(self) -> str:
        if self.precise:
            return "[HarmonyPatch]"
        target = f"typeof({render_type_definition(self.declaring_ref)})"
        if self.method.name == ".ctor":
            return f"[HarmonyPatch({target}, MethodType.Constructor)]"
        if self.method.name == ".cctor":
            return f"[HarmonyPatch({target}, MethodType.StaticConstructor)]"
        return f'[HarmonyPatch({target}, "{self.method.name}")]'

    def target_method(self, depth: int) -> None:
        method = self.method
        owner = f"typeof({render_type_definition(self.declaring_ref)})"

        self.emit("[HarmonyTargetMethod]", depth)
        self.emit("static MethodBase TargetMethod()", depth)
        self.emit("{", depth)
        if self.needs_linq:
            self.declared_lookup(owner, depth + 1)
        else:
            types = []
            for param in method.parameters:
                text = _typeof(param.type)
                if param.is_by_ref:
                    text += ".MakeByRefType()"
                types.append(text)
            type_array = f"new Type[] {{ {', '.join(types)} }}" if types else "Type.EmptyTypes"

            if method.name == ".cctor":
                self.emit(f"return AccessTools.Constructor({owner}, null, true);", depth + 1)
            elif method.name == ".ctor":
                self.emit(f"return AccessTools.Constructor({owner}, {type_array});", depth + 1)
            else:
                self.emit(f'return AccessTools.Method({owner}, "{method.name}", {type_array});', depth + 1)
        self.emit("}", depth)

    def declared_lookup(self, owner: str, depth: int) -> None:
        """Pick the overload from the declared members, one condition per parameter.

        typeof() cannot name a type built from open generic parameters, so
        those parameters are matched by their shape instead.
        """
        method = self.method
        if method.is_constructor:
            lookup = f"AccessTools.GetDeclaredConstructors({owner})"
            conditions = ["m.IsStatic" if method.name == ".cctor" else "!m.IsStatic"]
        else:
            lookup = f"AccessTools.GetDeclaredMethods({owner})"
            conditions = [
                f'm.Name == "{method.name}"',
                f"m.GetGenericArguments().Length == {len(method.type_parameters)}",
            ]
        conditions.append(f"p.Length == {len(method.parameters)}")
        for i, param in enumerate(method.parameters):
            conditions.extend(_parameter_match(param, f"p[{i}].ParameterType"))

        self.emit(f"return {lookup}.First(m =>", depth)
        self.emit("{", depth)
        self.emit("var p = m.GetParameters();", depth + 1)
        self.emit(f"return {conditions[0]}" + (";" if len(conditions) == 1 else ""), depth + 1)
        for i, condition in enumerate(conditions[1:], start=2):
            self.emit(f"&& {condition}" + (";" if i == len(conditions) else ""), depth + 2)
        self.emit("});", depth)

    def hook(self, kind: str, depth: int) -> None:
        receiver = self.receiver()
        params = self.parameters()
        result = self.result()

        self.emit(f"[Harmony{kind}]", depth)
        if kind == "Prefix":
            signature = [receiver, *params]
            self.emit(f"static bool Prefix({_join(signature)})", depth)
            self.emit("{", depth)
            self.emit("// Return false to skip the original method", depth + 1)
            self.emit("return true;", depth + 1)
        elif kind == "Postfix":
            signature = [receiver, *params, result]
            self.emit(f"static void Postfix({_join(signature)})", depth)
            self.emit("{", depth)
            self.emit("// Runs after the original method", depth + 1)
        elif kind == "Transpiler":
            self.emit(
                "static IEnumerable<CodeInstruction> Transpiler(IEnumerable<CodeInstruction> instructions)",
                depth,
            )
            self.emit("{", depth)
            self.emit("// Match and rewrite instructions here, e.g. with CodeMatcher", depth + 1)
            self.emit("foreach (var instruction in instructions)", depth + 1)
            self.emit("{", depth + 1)
            self.emit("yield return instruction;", depth + 2)
            self.emit("}", depth + 1)
        elif kind == "Finalizer":
            signature = [receiver, result, "Exception __exception"]
            self.emit(f"static Exception Finalizer({_join(signature)})", depth)
            self.emit("{", depth)
            self.emit("// null swallows the exception, a new exception replaces it", depth + 1)
            self.emit("return __exception;", depth + 1)
        else:
            raise GenerationError(f"Unknown patch kind: {kind}")
        self.emit("}", depth)

    def build(self) -> str:
        self.header()
        self.emit(f"namespace {PATCH_NAMESPACE}")
        self.emit("{")
        self.emit(self.targeting_attribute(), 1)
        self.emit(f"public static class {self.class_name()}", 1)
        self.emit("{", 1)

        sections = []
        if self.precise:
            sections.append(lambda: self.target_method(2))
        for kind in self.kinds:
            sections.append(lambda kind=kind: self.hook(kind, 2))
        for i, section in enumerate(sections):
            if i:
                self.emit()
            section()

        self.emit("}", 1)
        self.emit("}")
        return "\n".join(self.lines) + "\n"


def _join(parts: list[Optional[str]]) -> str:
    return ", ".join(part for part in parts if part)


def _notes(builder: _SkeletonBuilder, overloaded: bool, forced_precise: bool) -> list[str]:
    method = builder.method
    notes = [_HOOK_NOTES[kind] for kind in builder.kinds]

    if not builder.kinds:
        notes.append("No recognized patch kinds were requested; only the targeting block was generated")

    if method.is_static:
        notes.append("Target is a static method; no __instance parameter is available")
    else:
        notes.append("Target is an instance method; __instance is the receiver")
        if builder.declaring.type_kind is TypeKind.STRUCT:
            notes.append("Declaring type is a struct; __instance is passed by ref")

    if builder.has_result:
        notes.append(
            f"Target has a non-void return ({render_type(method.return_type)}); "
            "__result is available by ref in Postfix and Finalizer"
        )

    if any(not p.name for p in method.parameters):
        notes.append("Unnamed parameters are bound by position as __0, __1, ...")

    if builder.precise:
        notes.append("Precise targeting: TargetMethod binds the exact overload with AccessTools")
    if forced_precise:
        notes.append("Target is overloaded; precise targeting was used because a name cannot pick the overload")
    elif overloaded:
        notes.append("Target is overloaded; keep the parameter type list in TargetMethod in sync")

    if builder.is_generic:
        notes.append(
            "Target involves generic parameters; Harmony patches closed instantiations, "
            "so adjust TargetMethod to the instantiation you need"
        )
    return notes


def generate_patch_skeleton(
    method: Symbol,
    patch_kinds: Union[str, Iterable[str], None] = DEFAULT_PATCH_KINDS,
    include_reflection_targeting: bool = True,
    session: Optional[str] = None,
) -> GeneratedCodeResult:
    """Generate a Harmony patch file for a method symbol.

    Args:
        method: Resolved method symbol
        patch_kinds: Hook kinds, e.g. "Prefix,Postfix"; unknown tokens are ignored
        include_reflection_targeting: Bind the method by its parameter types
            (forced on for overloaded methods) instead of by name
        session: Load-session tag for the target summary's id

    Returns:
        GeneratedCodeResult with the target summary, code and notes

    Raises:
        WrongSymbolKindError: if the symbol is not a method
        GenerationError: if the method cannot be rendered
    """
    if method.kind is not SymbolKind.METHOD:
        raise WrongSymbolKindError(make_symbol_id(method), "Method", method.kind_label)
    if method.declaring_type is None:
        raise GenerationError(f"Method has no declaring type: {method.name}")

    kinds = parse_patch_kinds(patch_kinds)
    overloaded = len(overloads_of(method)) > 1
    forced_precise = overloaded and not include_reflection_targeting
    precise = include_reflection_targeting or overloaded

    builder = _SkeletonBuilder(method, kinds, precise)
    code = builder.build()
    notes = _notes(builder, overloaded, forced_precise)

    return GeneratedCodeResult(target=summarize(method, session), code=code, notes=tuple(notes))


class HarmonyPatchGenerator:
    """Resolves member ids and generates patch skeletons for them."""

    def __init__(self, resolver: SymbolResolver):
        self.resolver = resolver

    def generate(
        self,
        member_id: str,
        patch_kinds: Union[str, Iterable[str], None] = DEFAULT_PATCH_KINDS,
        include_reflection_targeting: bool = True,
    ) -> GeneratedCodeResult:
        method = self.resolver.require_method(member_id)
        return generate_patch_skeleton(
            method, patch_kinds, include_reflection_targeting, session=self.resolver.session
        )
