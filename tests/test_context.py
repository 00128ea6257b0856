"""Tests for member containers: namespaces, top levels and the store."""

from rbdoc.models import (
    Alias,
    Attribute,
    Comment,
    Constant,
    Method,
    NamespaceKind,
    Visibility,
)
from rbdoc.store import Store


def test_module_reopened_as_class_becomes_class() -> None:
    """Verify that add_namespace is a find-or-create that upgrades modules."""
    store = Store()
    top = store.add_file("a.rb")
    first = top.add_namespace("Thing", NamespaceKind.MODULE)
    second = store.add_file("b.rb").add_namespace("Thing", NamespaceKind.CLASS)
    assert first is second
    assert first.is_class
    assert first.superclass == "Object"
    assert list(store.namespaces) == ["Thing"]


def test_method_redeclaration_merges() -> None:
    """Verify that a method added twice is stored once with the newer comment."""
    store = Store()
    foo = store.add_file("a.rb").add_namespace("Foo", NamespaceKind.CLASS)
    first = foo.add_method(Method(name="run", comment=Comment("Old.")))
    second = foo.add_method(Method(name="run", comment=Comment("New.")))
    assert first is second
    assert first.comment.text == "New."
    assert first.full_name == "Foo#run"
    assert len(foo.method_list) == 1


def test_pending_alias_resolves_when_method_arrives() -> None:
    """Verify that an alias written before its method is linked once the method is added."""
    store = Store()
    foo = store.add_file("a.rb").add_namespace("Foo", NamespaceKind.CLASS)
    foo.add_alias(Alias(name="to_s", old_name="inspect"))
    assert foo.find_method("to_s", False) is None
    inspect = foo.add_method(Method(name="inspect", params="(depth)"))
    alias = foo.find_method("to_s", False)
    assert alias is not None
    assert alias.is_alias_for is inspect
    assert alias.params == "(depth)"
    assert alias.comment.text == "Alias for #inspect"


def test_attribute_modes_merge() -> None:
    """Verify that a reader and a writer of one name become a read-write attribute."""
    store = Store()
    foo = store.add_file("a.rb").add_namespace("Foo", NamespaceKind.CLASS)
    foo.add_attribute(Attribute(name="size", rw="R"))
    merged = foo.add_attribute(Attribute(name="size", rw="W"))
    assert merged.rw == "RW"
    assert merged.full_name == "Foo#size"
    assert len(foo.attributes) == 1


def test_visibility_groups() -> None:
    """Verify grouping of members by singleton flag and visibility."""
    store = Store()
    foo = store.add_file("a.rb").add_namespace("Foo", NamespaceKind.CLASS)
    foo.add_method(Method(name="a"))
    foo.add_method(Method(name="b", visibility=Visibility.PRIVATE))
    foo.add_method(Method(name="c", singleton=True))
    foo.set_visibility_for(["a"], Visibility.PROTECTED)
    groups = foo.method_groups()
    assert [m.name for m in groups[(False, Visibility.PROTECTED)]] == ["a"]
    assert [m.name for m in groups[(False, Visibility.PRIVATE)]] == ["b"]
    assert [m.name for m in groups[(True, Visibility.PUBLIC)]] == ["c"]


def test_sections_apply_to_later_members() -> None:
    """Verify that members added after a section starts belong to it."""
    store = Store()
    foo = store.add_file("a.rb").add_namespace("Foo", NamespaceKind.CLASS)
    before = foo.add_method(Method(name="before"))
    foo.set_current_section("Helpers", Comment("Small helpers."))
    after = foo.add_constant(Constant(name="LIMIT", value="3"))
    assert before.section is None
    assert after.section == "Helpers"
    assert foo.sections["Helpers"].text == "Small helpers."


def test_namespace_comments_per_file() -> None:
    """Verify that each file contributes one comment and they are merged in order."""
    store = Store()
    foo = store.add_file("a.rb").add_namespace("Foo", NamespaceKind.MODULE)
    foo.add_comment(Comment("First.", file="a.rb"), "a.rb")
    foo.add_comment(Comment("Second.", file="b.rb"), "b.rb")
    foo.add_comment(Comment("First again.", file="a.rb"), "a.rb")
    assert foo.comment.text == "First again.\n\nSecond."


def test_store_warnings_and_aliases() -> None:
    """Verify warning accumulation and namespace alias lookup."""
    store = Store()
    top = store.add_file("a.rb")
    target = top.add_namespace("Target", NamespaceKind.CLASS)
    top.add_namespace_alias("Other", target)
    store.warn("a.rb", 4, "something odd")
    assert store.find_namespace("::Other") is target
    assert str(store.warnings[0]) == "a.rb:4: something odd"
