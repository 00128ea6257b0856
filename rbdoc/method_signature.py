"""Reading a method definition's parameters, yields and ``super`` calls."""

from __future__ import annotations

from rbdoc.syntax_tree import Node, node_text, unwrap_parentheses

NESTED_DEFINITION_TYPES = frozenset({"method", "singleton_method"})
SIGNATURE_FIELDS = ("name", "parameters", "object")


def scan_signature(def_node: Node) -> tuple[str, str | None, bool]:
    """Return ``(params, block_params, calls_super)`` for a ``def`` node.

    ``block_params`` is the argument text of the first ``yield`` in the body.
    Bodies of nested definitions are not searched.
    """
    parameters = def_node.child_by_field_name("parameters")
    params = "()"
    if parameters is not None:
        params = f"({unwrap_parentheses(node_text(parameters))})"

    skipped = set()
    for name in SIGNATURE_FIELDS:
        child = def_node.child_by_field_name(name)
        if child is not None:
            skipped.add(child.id)

    yields: list[str] = []
    calls_super = False
    pending = [c for c in reversed(def_node.named_children) if c.id not in skipped]
    while pending:
        node = pending.pop()
        if node.type in NESTED_DEFINITION_TYPES:
            continue
        if node.type == "yield":
            arguments = next(
                (c for c in node.named_children if c.type == "argument_list"), None
            )
            yields.append(unwrap_parentheses(node_text(arguments)))
        elif node.type == "super":
            calls_super = True
        pending.extend(reversed(node.named_children))

    return params, (yields[0] if yields else None), calls_super
