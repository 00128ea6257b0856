"""Tests for constant path resolution and mixin lookup."""

from rbdoc.mixin import Mixin, MixinKind
from rbdoc.models import Constant, NamespaceKind
from rbdoc.name_resolver import NameResolver, _outer_scopes
from rbdoc.nesting_stack import NestingStack
from rbdoc.store import Store


def _resolver() -> tuple[Store, NestingStack, NameResolver]:
    store = Store()
    stack = NestingStack(store.add_file("a.rb"))
    return store, stack, NameResolver(stack)


def test_path_segments_are_created_as_modules() -> None:
    """Verify that missing segments are created, the last one with the given kind."""
    store, _, resolver = _resolver()
    leaf = resolver.find_or_create_namespace_path("A::B::C", NamespaceKind.CLASS)
    assert leaf.full_name == "A::B::C"
    assert leaf.kind is NamespaceKind.CLASS
    assert store.namespaces["A::B"].kind is NamespaceKind.MODULE
    assert all(ns.ignored for ns in store.namespaces.values())


def test_first_segment_is_found_in_enclosing_frames() -> None:
    """Verify that a relative path starts from the innermost frame that knows it."""
    store, stack, resolver = _resolver()
    outer = stack.top_level.add_namespace("Outer", NamespaceKind.MODULE)
    helper = outer.add_namespace("Helper", NamespaceKind.MODULE)
    with stack.enter(outer):
        assert resolver.find_or_create_namespace_path("Helper", NamespaceKind.MODULE) is helper
        created = resolver.find_or_create_namespace_path("Fresh", NamespaceKind.MODULE)
    assert created.full_name == "Outer::Fresh"
    assert "Helper" not in store.namespaces


def test_constant_first_segment_gives_detached_namespace() -> None:
    """Verify that a path through a plain constant does not touch the registry."""
    store, stack, resolver = _resolver()
    stack.top_level.add_constant(Constant(name="VALUE", value="1"))
    found = resolver.find_or_create_namespace_path("VALUE::Thing", NamespaceKind.MODULE)
    assert found.detached
    assert "VALUE" not in store.namespaces


def test_resolve_constant_path() -> None:
    """Verify qualification of relative and absolute paths."""
    _, stack, resolver = _resolver()
    outer = stack.top_level.add_namespace("Outer", NamespaceKind.MODULE)
    outer.add_namespace("Inner", NamespaceKind.MODULE)
    with stack.enter(outer):
        assert resolver.resolve_constant_path("Inner::Deep") == "Outer::Inner::Deep"
        assert resolver.resolve_constant_path("Outer") == "Outer"
        assert resolver.resolve_constant_path("::Anything") == "::Anything"
        assert resolver.resolve_constant_path("Unknown") is None


def test_constant_owner() -> None:
    """Verify how the owner of a constant assignment is chosen."""
    _, stack, resolver = _resolver()
    foo = stack.top_level.add_namespace("Foo", NamespaceKind.CLASS)
    with stack.enter(foo):
        assert resolver.find_or_create_constant_owner("X") == (foo, "X")
        assert resolver.find_or_create_constant_owner("::Y") == (stack.top_level, "Y")
        owner, name = resolver.find_or_create_constant_owner("Sub::Z")
        assert owner.full_name == "Foo::Sub"
        assert name == "Z"
        with stack.enter(foo, singleton=True):
            assert resolver.find_or_create_constant_owner("X") == (None, "X")


def test_outer_scopes_order() -> None:
    """Verify that enclosing names are tried innermost first and the top level last."""
    scopes = list(_outer_scopes("A::B::C", ("A::B::C", "X::Y")))
    assert scopes == ["A::B", "A", "X::Y", "X", ""]


def _mixin(owner, name: str, kind: MixinKind = MixinKind.INCLUDE) -> Mixin:
    return owner.add_mixin(
        Mixin(name=name, kind=kind, scope_chain=(owner.full_name,) if owner.full_name else ())
    )


def test_mixin_prefers_owner_children() -> None:
    """Verify that a child of the owner wins over a top-level namespace."""
    store = Store()
    top = store.add_file("a.rb")
    top.add_namespace("Util", NamespaceKind.MODULE)
    app = top.add_namespace("App", NamespaceKind.MODULE)
    nested = app.add_namespace("Util", NamespaceKind.MODULE)
    assert _mixin(app, "Util").module is nested


def test_mixin_searches_earlier_mixins_last_first() -> None:
    """Verify lookup through the namespaces of earlier includes."""
    store = Store()
    top = store.add_file("a.rb")
    first = top.add_namespace("First", NamespaceKind.MODULE)
    second = top.add_namespace("Second", NamespaceKind.MODULE)
    first.add_namespace("Shared", NamespaceKind.MODULE)
    from_second = second.add_namespace("Shared", NamespaceKind.MODULE)
    host = top.add_namespace("Host", NamespaceKind.CLASS)
    _mixin(host, "First")
    _mixin(host, "Second")
    assert _mixin(host, "Shared").module is from_second


def test_extend_searches_included_namespaces() -> None:
    """Verify that an extend looks inside the owner's includes, not its earlier extends."""
    store = Store()
    top = store.add_file("a.rb")
    helpers = top.add_namespace("Helpers", NamespaceKind.MODULE)
    class_methods = helpers.add_namespace("ClassMethods", NamespaceKind.MODULE)
    extras = top.add_namespace("Extras", NamespaceKind.MODULE)
    extras.add_namespace("Hidden", NamespaceKind.MODULE)
    host = top.add_namespace("Host", NamespaceKind.CLASS)
    _mixin(host, "Extras", MixinKind.EXTEND)
    _mixin(host, "Helpers")
    assert _mixin(host, "ClassMethods", MixinKind.EXTEND).module is class_methods
    assert _mixin(host, "Hidden", MixinKind.EXTEND).module == "Hidden"


def test_include_ignores_later_includes() -> None:
    """Verify that an include only searches the includes declared before it."""
    store = Store()
    top = store.add_file("a.rb")
    late = top.add_namespace("Late", NamespaceKind.MODULE)
    late.add_namespace("Inner", NamespaceKind.MODULE)
    host = top.add_namespace("Host", NamespaceKind.CLASS)
    inner = _mixin(host, "Inner")
    _mixin(host, "Late")
    assert inner.module == "Inner"


def test_mixin_walks_outward_then_top_level() -> None:
    """Verify lookup through enclosing namespaces."""
    store = Store()
    top = store.add_file("a.rb")
    outer = top.add_namespace("Outer", NamespaceKind.MODULE)
    sibling = outer.add_namespace("Sibling", NamespaceKind.MODULE)
    inner = outer.add_namespace("Inner", NamespaceKind.CLASS)
    assert _mixin(inner, "Sibling").module is sibling
    assert _mixin(inner, "Kernel").module == "Kernel"


def test_mixin_absolute_name_uses_registry_only() -> None:
    """Verify that ::Name skips the lexical lookup."""
    store = Store()
    top = store.add_file("a.rb")
    top_util = top.add_namespace("Util", NamespaceKind.MODULE)
    app = top.add_namespace("App", NamespaceKind.MODULE)
    app.add_namespace("Util", NamespaceKind.MODULE)
    assert _mixin(app, "::Util").module is top_util


def test_failed_lookup_is_retried() -> None:
    """Verify that an unresolved mixin resolves once its target exists."""
    store = Store()
    top = store.add_file("a.rb")
    host = top.add_namespace("Host", NamespaceKind.CLASS)
    mixin = _mixin(host, "Later", MixinKind.EXTEND)
    assert mixin.resolved_namespace_or_raw_name() == "Later"
    later = store.add_file("b.rb").add_namespace("Later", NamespaceKind.MODULE)
    assert mixin.resolved_namespace_or_raw_name() is later
