"""Static symbol resolution over Tree-sitter syntax trees.

A :class:`SymbolTable` indexes every parsed module once (lexical scopes,
classes, object literals, imports and exports) and then answers two
questions for the reachability engine:

- what is the qualified name of a declaration node, and
- which declaration, if any, does a call's callee expression denote.

Resolution is deliberately conservative. Any expression that cannot be
followed statically (computed members, call results, external packages,
``require``) resolves to ``None`` instead of a guess.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union

from .models import SourceFile

logger = logging.getLogger(__name__)

FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
FUNCTION_EXPRESSIONS = frozenset({"function_expression", "function", "generator_function", "arrow_function"})
FUNCTION_LIKE = FUNCTION_DECLARATIONS | FUNCTION_EXPRESSIONS | {"method_definition"}
CLASS_NODES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
NAMESPACE_NODES = frozenset({"internal_module", "module"})
BLOCK_SCOPES = frozenset({"statement_block", "for_statement", "for_in_statement", "catch_clause"})
FIELD_NODES = frozenset({"public_field_definition", "field_definition"})

MODULE_SCOPE = "<module>"
RESOLVE_DEPTH_LIMIT = 32
JS_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs")
RESOLVE_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs")

NodeKey = Tuple[int, int, str]


def node_key(node: Any) -> NodeKey:
    return (node.start_byte, node.end_byte, node.type)


def walk(node: Any) -> Iterator[Any]:
    """Depth-first, document-order traversal of named nodes."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def _string_value(module: "ModuleSymbols", node: Any) -> str:
    text = module.source.text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _same(a: Any, b: Any) -> bool:
    return a is not None and b is not None and node_key(a) == node_key(b)


def _named_children_of_type(node: Any, types: Iterable[str]) -> List[Any]:
    wanted = set(types)
    return [c for c in node.named_children if c.type in wanted]


# ---------------------------------------------------------------------------
# Symbols and bindings
# ---------------------------------------------------------------------------

@dataclass
class FunctionSymbol:
    qualified_name: str


@dataclass
class ClassSymbol:
    qualified_name: str
    module: "ModuleSymbols" = field(repr=False)
    node: Any = field(repr=False)
    methods: Dict[str, str] = field(default_factory=dict)
    # field name -> node carrying its type annotation or ``new`` initializer
    fields: Dict[str, Any] = field(default_factory=dict, repr=False)
    heritage: Any = field(default=None, repr=False)


@dataclass
class ObjectSymbol:
    qualified_name: str
    module: "ModuleSymbols" = field(repr=False)
    # member name -> method_definition node, or the value expression to resolve
    members: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class NamespaceSymbol:
    module: "ModuleSymbols" = field(repr=False)


@dataclass
class ImportBinding:
    specifier: str
    imported: str  # exported name, "default", or "*" for a namespace import


@dataclass
class VariableBinding:
    type_node: Any = field(default=None, repr=False)
    value_node: Any = field(default=None, repr=False)


Symbol = Union[FunctionSymbol, ClassSymbol, ObjectSymbol, NamespaceSymbol]
Binding = Union[FunctionSymbol, ClassSymbol, ObjectSymbol, ImportBinding, VariableBinding]


@dataclass
class ModuleSymbols:
    """Per-file index: scopes, class/object tables and the export surface."""

    source: SourceFile
    scopes: Dict[NodeKey, Dict[str, Binding]] = field(default_factory=dict)
    classes: Dict[NodeKey, ClassSymbol] = field(default_factory=dict)
    objects: Dict[NodeKey, ObjectSymbol] = field(default_factory=dict)
    exports: Dict[str, str] = field(default_factory=dict)  # exported name -> local name
    exported_locals: Set[str] = field(default_factory=set)
    reexports: Dict[str, Tuple[str, str]] = field(default_factory=dict)  # name -> (specifier, imported)
    star_exports: List[str] = field(default_factory=list)

    @property
    def module_id(self) -> str:
        return self.source.module_id

    @property
    def rel_path(self) -> str:
        return self.source.rel_path

    def bind(self, scope_node: Any, name: str, binding: Binding) -> None:
        self.scopes.setdefault(node_key(scope_node), {}).setdefault(name, binding)

    def program_binding(self, name: str) -> Optional[Binding]:
        return self.scopes.get(node_key(self.source.root), {}).get(name)


# ---------------------------------------------------------------------------
# Symbol table
# ---------------------------------------------------------------------------

class SymbolTable:
    """Whole-program symbol index built from one set of parsed files."""

    def __init__(self, files: Iterable[SourceFile]) -> None:
        self.modules: Dict[str, ModuleSymbols] = {}
        for source_file in files:
            module = ModuleSymbols(source=source_file)
            self.modules[source_file.rel_path] = module
            self._index_module(module)

    def module_for(self, source_file: SourceFile) -> ModuleSymbols:
        return self.modules[source_file.rel_path]

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def _own_name(self, module: ModuleSymbols, node: Any) -> Optional[str]:
        """Name a container or declaration node contributes to a qualified name.

        ``None`` means the node cannot be named (computed member, anonymous
        class or object literal). Anonymous functions get a positional label.
        """
        t = node.type
        if t in FUNCTION_DECLARATIONS or t in NAMESPACE_NODES or t in ("class_declaration", "abstract_class_declaration"):
            name = node.child_by_field_name("name")
            return module.source.text(name) if name is not None else None
        if t == "method_definition":
            name = node.child_by_field_name("name")
            if name is None or name.type == "computed_property_name":
                return None
            if name.type == "string":
                return _string_value(module, name)
            return module.source.text(name)

        bound = self._bound_name(module, node)
        if bound is not None:
            return bound
        if t in FUNCTION_EXPRESSIONS:
            return f"<anonymous:{node.start_point[0] + 1}:{node.start_point[1]}>"
        return None

    def _bound_name(self, module: ModuleSymbols, node: Any) -> Optional[str]:
        """Name an expression takes from where it is bound (variable, field, property, default export)."""
        parent = node.parent
        if parent is None:
            return None
        if parent.type == "variable_declarator":
            name = parent.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                return module.source.text(name)
            return None
        if parent.type in FIELD_NODES:
            name = parent.child_by_field_name("name") or parent.child_by_field_name("property")
            if name is not None and name.type in ("property_identifier", "private_property_identifier"):
                return module.source.text(name)
            return None
        if parent.type == "pair" and _same(parent.child_by_field_name("value"), node):
            key = parent.child_by_field_name("key")
            if key is not None and key.type == "property_identifier":
                return module.source.text(key)
            if key is not None and key.type == "string":
                return _string_value(module, key)
            return None
        if parent.type == "export_statement":
            return "default"
        return None

    def qualified_name(self, module: ModuleSymbols, node: Any) -> Optional[str]:
        """Fully qualified symbol path of *node*, or ``None`` when unnameable."""
        own = self._own_name(module, node)
        if own is None:
            return None
        segments = [own]
        parent = node.parent
        while parent is not None and parent.type != "program":
            if parent.type in FUNCTION_LIKE or parent.type in CLASS_NODES or parent.type in NAMESPACE_NODES or parent.type == "object":
                segment = self._own_name(module, parent)
                if segment is None:
                    return None
                segments.append(segment)
            parent = parent.parent
        return f'"{module.module_id}".' + ".".join(reversed(segments))

    def module_scope_name(self, module: ModuleSymbols) -> str:
        return f'"{module.module_id}".{MODULE_SCOPE}'

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def _scope_for(self, node: Any, function_scope: bool = False) -> Any:
        """Nearest scope-introducing ancestor strictly above *node*."""
        parent = node.parent
        while parent is not None:
            if parent.type == "program" or parent.type in FUNCTION_LIKE:
                return parent
            if not function_scope and parent.type in BLOCK_SCOPES:
                return parent
            parent = parent.parent
        return node

    def _index_module(self, module: ModuleSymbols) -> None:
        for node in walk(module.source.root):
            t = node.type
            if t in FUNCTION_DECLARATIONS:
                self._index_function(module, node)
            elif t in CLASS_NODES:
                self._index_class(module, node)
            elif t == "object":
                self._index_object(module, node)
            elif t == "variable_declarator":
                self._index_declarator(module, node)
            elif t == "formal_parameters":
                self._index_parameters(module, node)
            elif t == "arrow_function":
                param = node.child_by_field_name("parameter")
                if param is not None and param.type == "identifier":
                    module.bind(node, module.source.text(param), VariableBinding())
            elif t == "catch_clause":
                param = node.child_by_field_name("parameter")
                if param is not None:
                    self._bind_pattern(module, node, param)
            elif t == "for_in_statement":
                left = node.child_by_field_name("left")
                # `for (x of xs)` without a declaration kind assigns an outer variable
                if left is not None and node.child_by_field_name("kind") is not None:
                    self._bind_pattern(module, node, left)
            elif t == "import_statement":
                self._index_import(module, node)
            elif t == "export_statement":
                self._index_export(module, node)
            elif t == "assignment_expression":
                self._index_commonjs_export(module, node)

    def _index_function(self, module: ModuleSymbols, node: Any) -> None:
        name = node.child_by_field_name("name")
        qname = self.qualified_name(module, node)
        if name is None or qname is None:
            return
        module.bind(self._scope_for(node), module.source.text(name), FunctionSymbol(qname))

    def _index_class(self, module: ModuleSymbols, node: Any) -> None:
        if node_key(node) in module.classes:
            return
        qname = self.qualified_name(module, node)
        if qname is None:
            return
        cls = ClassSymbol(qualified_name=qname, module=module, node=node, heritage=self._heritage(node))
        body = node.child_by_field_name("body")
        for member in body.named_children if body is not None else ():
            if member.type == "method_definition":
                method_name = self._own_name(module, member)
                method_qname = self.qualified_name(module, member)
                if method_name is None or method_qname is None:
                    continue
                cls.methods.setdefault(method_name, method_qname)
                if method_name == "constructor":
                    self._index_constructor_fields(module, cls, member)
            elif member.type in FIELD_NODES:
                field_name = member.child_by_field_name("name") or member.child_by_field_name("property")
                typed = member.child_by_field_name("type") or member.child_by_field_name("value")
                if field_name is not None and typed is not None:
                    cls.fields.setdefault(module.source.text(field_name), typed)
        module.classes[node_key(node)] = cls

        if node.type != "class":
            name = node.child_by_field_name("name")
            if name is not None:
                module.bind(self._scope_for(node), module.source.text(name), cls)
        elif node.parent is not None and node.parent.type == "export_statement":
            module.bind(module.source.root, "default", cls)

    @staticmethod
    def _heritage(class_node: Any) -> Any:
        for child in class_node.named_children:
            if child.type != "class_heritage":
                continue
            for clause in child.named_children:
                if clause.type == "extends_clause":
                    return clause.child_by_field_name("value") or (clause.named_children or [None])[0]
                if clause.type == "implements_clause":
                    continue
                return clause
        return None

    def _index_constructor_fields(self, module: ModuleSymbols, cls: ClassSymbol, ctor: Any) -> None:
        params = ctor.child_by_field_name("parameters")
        for param in params.named_children if params is not None else ():
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            is_property = any(
                c.type in ("accessibility_modifier", "override_modifier") or c.type == "readonly"
                for c in param.children
            )
            pattern = param.child_by_field_name("pattern")
            type_node = param.child_by_field_name("type")
            if is_property and pattern is not None and pattern.type == "identifier" and type_node is not None:
                cls.fields.setdefault(module.source.text(pattern), type_node)

        body = ctor.child_by_field_name("body")
        for node in walk(body) if body is not None else ():
            if node.type != "assignment_expression":
                continue
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if left is None or right is None or left.type != "member_expression" or right.type != "new_expression":
                continue
            obj = left.child_by_field_name("object")
            prop = left.child_by_field_name("property")
            if obj is not None and obj.type == "this" and prop is not None:
                cls.fields.setdefault(module.source.text(prop), right)

    def _index_object(self, module: ModuleSymbols, node: Any) -> None:
        if node_key(node) in module.objects:
            return
        qname = self.qualified_name(module, node)
        if qname is None:
            return
        obj = ObjectSymbol(qualified_name=qname, module=module)
        for member in node.named_children:
            if member.type == "method_definition":
                name = self._own_name(module, member)
                if name is not None:
                    obj.members.setdefault(name, member)
            elif member.type == "shorthand_property_identifier":
                obj.members.setdefault(module.source.text(member), member)
            elif member.type == "pair":
                key = member.child_by_field_name("key")
                value = member.child_by_field_name("value")
                if key is not None and value is not None and key.type in ("property_identifier", "string"):
                    obj.members.setdefault(_string_value(module, key), value)
        module.objects[node_key(node)] = obj

    def _index_declarator(self, module: ModuleSymbols, node: Any) -> None:
        name = node.child_by_field_name("name")
        if name is None:
            return
        declaration = node.parent
        function_scope = declaration is not None and declaration.type == "variable_declaration"
        scope = self._scope_for(declaration if declaration is not None else node, function_scope=function_scope)
        if name.type != "identifier":
            self._bind_pattern(module, scope, name)
            return
        value = node.child_by_field_name("value")
        # the value is visited after its declarator in document order, so index it now
        symbol: Optional[Binding] = None
        if value is not None and value.type == "class":
            self._index_class(module, value)
            symbol = module.classes.get(node_key(value))
        elif value is not None and value.type == "object":
            self._index_object(module, value)
            symbol = module.objects.get(node_key(value))
        if symbol is not None:
            module.bind(scope, module.source.text(name), symbol)
            return
        module.bind(scope, module.source.text(name), VariableBinding(node.child_by_field_name("type"), value))

    def _index_parameters(self, module: ModuleSymbols, node: Any) -> None:
        function = node.parent
        if function is None:
            return
        for param in node.named_children:
            if param.type in ("required_parameter", "optional_parameter"):
                pattern = param.child_by_field_name("pattern")
                if pattern is not None and pattern.type == "identifier":
                    module.bind(function, module.source.text(pattern), VariableBinding(param.child_by_field_name("type")))
                elif pattern is not None:
                    self._bind_pattern(module, function, pattern)
            else:
                self._bind_pattern(module, function, param)

    def _bind_pattern(self, module: ModuleSymbols, scope: Any, pattern: Any) -> None:
        """Bind every identifier introduced by a (possibly destructuring) pattern as opaque.

        Default values and property keys are not bindings and are not descended into.
        """
        stack = [pattern]
        while stack:
            node = stack.pop()
            t = node.type
            if t in ("identifier", "shorthand_property_identifier_pattern"):
                module.bind(scope, module.source.text(node), VariableBinding())
            elif t in ("assignment_pattern", "object_assignment_pattern"):
                left = node.child_by_field_name("left")
                if left is not None:
                    stack.append(left)
            elif t == "pair_pattern":
                value = node.child_by_field_name("value")
                if value is not None:
                    stack.append(value)
            elif t in ("required_parameter", "optional_parameter"):
                inner = node.child_by_field_name("pattern")
                if inner is not None:
                    stack.append(inner)
            elif t in ("object_pattern", "array_pattern", "rest_pattern"):
                stack.extend(node.named_children)

    def _index_import(self, module: ModuleSymbols, node: Any) -> None:
        source = node.child_by_field_name("source")
        if source is None:
            return
        specifier = _string_value(module, source)
        root = module.source.root
        for clause in _named_children_of_type(node, ["import_clause"]):
            for item in clause.named_children:
                if item.type == "identifier":
                    module.bind(root, module.source.text(item), ImportBinding(specifier, "default"))
                elif item.type == "namespace_import":
                    for ident in _named_children_of_type(item, ["identifier"]):
                        module.bind(root, module.source.text(ident), ImportBinding(specifier, "*"))
                elif item.type == "named_imports":
                    for spec in _named_children_of_type(item, ["import_specifier"]):
                        name = spec.child_by_field_name("name")
                        alias = spec.child_by_field_name("alias")
                        if name is None:
                            continue
                        imported = _string_value(module, name)
                        local = module.source.text(alias) if alias is not None else imported
                        module.bind(root, local, ImportBinding(specifier, imported))

    def _index_export(self, module: ModuleSymbols, node: Any) -> None:
        source = node.child_by_field_name("source")
        clauses = _named_children_of_type(node, ["export_clause"])
        if source is not None:
            specifier = _string_value(module, source)
            namespace = _named_children_of_type(node, ["namespace_export"])
            if namespace:
                for ident in namespace[0].named_children:
                    module.reexports[_string_value(module, ident)] = (specifier, "*")
            elif not clauses:
                module.star_exports.append(specifier)
            for clause in clauses:
                for spec in _named_children_of_type(clause, ["export_specifier"]):
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    if name is not None:
                        imported = _string_value(module, name)
                        exported = _string_value(module, alias) if alias is not None else imported
                        module.reexports[exported] = (specifier, imported)
            return

        for clause in clauses:
            for spec in _named_children_of_type(clause, ["export_specifier"]):
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                if name is None:
                    continue
                local = module.source.text(name)
                module.exported_locals.add(local)
                module.exports[_string_value(module, alias) if alias is not None else local] = local

        is_default = any(c.type == "default" for c in node.children)
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            for local in self._declared_names(module, declaration):
                module.exports["default" if is_default else local] = local
        value = node.child_by_field_name("value")
        if value is not None and is_default:
            if value.type == "identifier":
                local = module.source.text(value)
                module.exported_locals.add(local)
                module.exports["default"] = local
            elif value.type in FUNCTION_EXPRESSIONS:
                qname = self.qualified_name(module, value)
                if qname is not None:
                    module.bind(module.source.root, "default", FunctionSymbol(qname))
                    module.exports["default"] = "default"
            elif value.type in ("class", "object"):
                if value.type == "object":
                    self._index_object(module, value)
                    obj = module.objects.get(node_key(value))
                    if obj is not None:
                        module.bind(module.source.root, "default", obj)
                module.exports["default"] = "default"

    def _declared_names(self, module: ModuleSymbols, declaration: Any) -> List[str]:
        if declaration.type in ("lexical_declaration", "variable_declaration"):
            names = []
            for declarator in _named_children_of_type(declaration, ["variable_declarator"]):
                name = declarator.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    names.append(module.source.text(name))
            return names
        target = declaration
        if declaration.type == "expression_statement" and declaration.named_children:
            target = declaration.named_children[0]
        name = target.child_by_field_name("name")
        return [module.source.text(name)] if name is not None else []

    def _index_commonjs_export(self, module: ModuleSymbols, node: Any) -> None:
        """``module.exports = ...`` / ``exports.name = ...`` mark local names as exported."""
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None or left.type != "member_expression":
            return
        target = module.source.text(left)
        if target != "module.exports" and not target.startswith(("exports.", "module.exports.")):
            return
        if right.type == "identifier":
            module.exported_locals.add(module.source.text(right))
        elif right.type == "object":
            for member in right.named_children:
                if member.type == "shorthand_property_identifier":
                    module.exported_locals.add(module.source.text(member))
                elif member.type == "pair":
                    value = member.child_by_field_name("value")
                    if value is not None and value.type == "identifier":
                        module.exported_locals.add(module.source.text(value))

    # ------------------------------------------------------------------
    # Declaration properties
    # ------------------------------------------------------------------

    def is_exported(self, module: ModuleSymbols, node: Any) -> bool:
        """True when *node* or an enclosing class/namespace/object carries an export marker.

        The walk stops at the first enclosing function: a function nested in
        an exported function is not itself reachable from outside.
        """
        current = node
        while current is not None and current.type != "program":
            if current is not node and current.type in FUNCTION_LIKE:
                return False
            parent = current.parent
            if parent is None:
                return False
            if parent.type == "export_statement":
                return True
            if self._is_top_level(current) and any(
                local in module.exported_locals for local in self._local_names(module, current)
            ):
                return True
            current = parent
        return False

    @staticmethod
    def _is_top_level(node: Any) -> bool:
        parent = node.parent
        if parent is None:
            return False
        if node.type == "variable_declarator":
            return parent.parent is not None and parent.parent.type == "program"
        return parent.type == "program" and node.type not in ("lexical_declaration", "variable_declaration")

    def _local_names(self, module: ModuleSymbols, node: Any) -> List[str]:
        if node.type == "variable_declarator":
            name = node.child_by_field_name("name")
            return [module.source.text(name)] if name is not None and name.type == "identifier" else []
        return self._declared_names(module, node)

    @staticmethod
    def is_annotated(node: Any) -> bool:
        """True when a decorator is attached to *node*.

        Depending on the grammar, decorators are children of the method node
        or siblings preceding it in the class body.
        """
        if any(child.type == "decorator" for child in node.named_children):
            return True
        sibling = node.prev_named_sibling
        while sibling is not None and sibling.type == "comment":
            sibling = sibling.prev_named_sibling
        return sibling is not None and sibling.type == "decorator"

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def lookup(self, module: ModuleSymbols, name: str, at: Any) -> Optional[Binding]:
        """Innermost binding of *name* visible from node *at*."""
        node = at
        while node is not None:
            scope = module.scopes.get(node_key(node))
            if scope is not None and name in scope:
                return scope[name]
            node = node.parent
        return None

    def resolve_module(self, importer: ModuleSymbols, specifier: str) -> Optional[ModuleSymbols]:
        """Map a relative import specifier to a module in the analyzed set."""
        if not specifier.startswith("."):
            return None
        base = posixpath.normpath(posixpath.join(posixpath.dirname(importer.rel_path), specifier))
        if base in self.modules:
            return self.modules[base]
        stem = base
        for ext in JS_EXTENSIONS:
            if base.endswith(ext):
                stem = base[: -len(ext)]
                break
        for candidate_base in (stem, posixpath.join(base, "index")):
            for ext in RESOLVE_EXTENSIONS:
                candidate = candidate_base + ext
                if candidate in self.modules:
                    return self.modules[candidate]
        return None

    def resolve_export(
        self,
        module: ModuleSymbols,
        name: str,
        depth: int = 0,
        seen: Optional[Set[Tuple[str, str]]] = None,
    ) -> Optional[Symbol]:
        seen = set() if seen is None else seen
        if (module.rel_path, name) in seen or depth > RESOLVE_DEPTH_LIMIT:
            return None
        seen.add((module.rel_path, name))

        local = module.exports.get(name)
        if local is not None:
            binding = module.program_binding(local)
            return self._resolve_binding(module, binding, depth + 1) if binding is not None else None

        if name in module.reexports:
            specifier, imported = module.reexports[name]
            target = self.resolve_module(module, specifier)
            if target is None:
                return None
            if imported == "*":
                return NamespaceSymbol(target)
            return self.resolve_export(target, imported, depth + 1, seen)

        if name != "default":
            for specifier in module.star_exports:
                target = self.resolve_module(module, specifier)
                if target is None:
                    continue
                symbol = self.resolve_export(target, name, depth + 1, seen)
                if symbol is not None:
                    return symbol
        return None

    def _resolve_binding(self, module: ModuleSymbols, binding: Binding, depth: int) -> Optional[Symbol]:
        if depth > RESOLVE_DEPTH_LIMIT:
            return None
        if isinstance(binding, (FunctionSymbol, ClassSymbol, ObjectSymbol)):
            return binding
        if isinstance(binding, ImportBinding):
            target = self.resolve_module(module, binding.specifier)
            if target is None:
                return None
            if binding.imported == "*":
                return NamespaceSymbol(target)
            return self.resolve_export(target, binding.imported, depth + 1)
        if isinstance(binding, VariableBinding):
            if binding.type_node is not None:
                return self.resolve_type(module, binding.type_node, depth + 1)
            value = binding.value_node
            if value is not None and value.type == "new_expression":
                return self._resolve_instance(module, value, depth + 1)
            # const run = helper; const run = utils.helper;
            if value is not None and value.type in ("identifier", "member_expression"):
                return self.resolve_value(module, value, depth + 1)
        return None

    def _resolve_instance(self, module: ModuleSymbols, new_expr: Any, depth: int) -> Optional[ClassSymbol]:
        constructor = new_expr.child_by_field_name("constructor")
        if constructor is None:
            return None
        symbol = self.resolve_value(module, constructor, depth + 1)
        return symbol if isinstance(symbol, ClassSymbol) else None

    def resolve_type(self, module: ModuleSymbols, type_node: Any, depth: int = 0) -> Optional[ClassSymbol]:
        """Resolve a type annotation naming a class (``Foo``, ``Foo<T>``, ``ns.Foo``)."""
        if depth > RESOLVE_DEPTH_LIMIT:
            return None
        node = type_node
        if node.type == "type_annotation" and node.named_children:
            node = node.named_children[0]
        if node.type == "generic_type":
            node = node.child_by_field_name("name") or (node.named_children or [None])[0]
            if node is None:
                return None
        if node.type == "type_identifier":
            binding = self.lookup(module, module.source.text(node), node)
            symbol = self._resolve_binding(module, binding, depth + 1) if binding is not None else None
            return symbol if isinstance(symbol, ClassSymbol) else None
        if node.type == "nested_type_identifier":
            scope_node = node.child_by_field_name("module")
            name = node.child_by_field_name("name")
            if scope_node is None or name is None:
                return None
            container = self.resolve_value(module, scope_node, depth + 1)
            symbol = self.member(container, module.source.text(name), depth + 1)
            return symbol if isinstance(symbol, ClassSymbol) else None
        return None

    def _enclosing_class(self, module: ModuleSymbols, node: Any) -> Optional[Union[ClassSymbol, ObjectSymbol]]:
        """Owner of ``this`` at *node*: the class or object literal of the enclosing method."""
        parent = node.parent
        while parent is not None:
            t = parent.type
            if t == "arrow_function":
                parent = parent.parent
                continue
            if t == "method_definition":
                owner = parent.parent
                if owner is not None and owner.type == "class_body" and owner.parent is not None:
                    return module.classes.get(node_key(owner.parent))
                if owner is not None and owner.type == "object":
                    return module.objects.get(node_key(owner))
                return None
            if t == "class_body":
                return module.classes.get(node_key(parent.parent)) if parent.parent is not None else None
            if t in FUNCTION_LIKE or t == "program":
                return None
            parent = parent.parent
        return None

    def superclass(self, cls: ClassSymbol, depth: int = 0) -> Optional[ClassSymbol]:
        if cls.heritage is None:
            return None
        symbol = self.resolve_value(cls.module, cls.heritage, depth + 1)
        return symbol if isinstance(symbol, ClassSymbol) and symbol is not cls else None

    def member(self, container: Optional[Symbol], name: str, depth: int = 0) -> Optional[Symbol]:
        """Look up member *name* on a resolved container symbol."""
        if container is None or depth > RESOLVE_DEPTH_LIMIT:
            return None
        if isinstance(container, NamespaceSymbol):
            return self.resolve_export(container.module, name, depth + 1)
        if isinstance(container, ObjectSymbol):
            target = container.members.get(name)
            if target is None:
                return None
            if target.type == "method_definition":
                qname = self.qualified_name(container.module, target)
                return FunctionSymbol(qname) if qname is not None else None
            if target.type == "object":
                return container.module.objects.get(node_key(target))
            return self.resolve_value(container.module, target, depth + 1)
        if isinstance(container, ClassSymbol):
            if name in container.methods:
                return FunctionSymbol(container.methods[name])
            typed = container.fields.get(name)
            if typed is not None:
                if typed.type == "new_expression":
                    return self._resolve_instance(container.module, typed, depth + 1)
                return self.resolve_type(container.module, typed, depth + 1)
            return self.member(self.superclass(container, depth + 1), name, depth + 1)
        return None

    def resolve_value(self, module: ModuleSymbols, expr: Any, depth: int = 0) -> Optional[Symbol]:
        """Statically resolve an expression to the symbol it denotes."""
        if depth > RESOLVE_DEPTH_LIMIT:
            return None
        t = expr.type
        if t == "parenthesized_expression" and expr.named_children:
            return self.resolve_value(module, expr.named_children[0], depth + 1)
        if t in ("identifier", "shorthand_property_identifier"):
            binding = self.lookup(module, module.source.text(expr), expr)
            return self._resolve_binding(module, binding, depth + 1) if binding is not None else None
        if t == "new_expression":
            return self._resolve_instance(module, expr, depth + 1)
        if t == "this":
            return self._enclosing_class(module, expr)
        if t == "super":
            owner = self._enclosing_class(module, expr)
            return self.superclass(owner, depth + 1) if isinstance(owner, ClassSymbol) else None
        if t == "member_expression":
            obj = expr.child_by_field_name("object")
            prop = expr.child_by_field_name("property")
            if obj is None or prop is None or prop.type not in ("property_identifier", "private_property_identifier"):
                return None
            container = self.resolve_value(module, obj, depth + 1)
            return self.member(container, module.source.text(prop), depth + 1)
        return None

    def resolve_callee(self, module: ModuleSymbols, callee: Any) -> Optional[str]:
        """Qualified name of the function a call targets, or ``None`` when unresolved."""
        symbol = self.resolve_value(module, callee)
        if isinstance(symbol, FunctionSymbol):
            return symbol.qualified_name
        logger.debug("Unresolved callee %r in %s", module.source.text(callee), module.rel_path)
        return None
