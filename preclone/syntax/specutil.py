# -*- coding: utf-8 -*-
"""Destructure the binding list of a clone[] invocation into BindingSpecs."""

__all__ = ["ismut", "isalias", "canonize_specs"]

from ast import Name, Subscript

from mcpyrate import unparse
from mcpyrate.core import Done

from unpythonic.syntax.letdoutil import isenvassign, UnexpandedEnvAssignView
from unpythonic.syntax.nameutil import getname, isx, is_unexpanded_expr_macro

from ..bindings import MalformedSpec, NameSource, ExprSource, BindingSpec

def ismut(tree, expander=None):
    """Detect a ``mut[...]`` marker.

    Return the tree inside the brackets, or `False` if `tree` is not a marker.

    If `expander` is given, the marker is recognized by the macro its name is
    bound to in that expander, so as-imports and hygienic captures work.
    Without an expander, the bare name ``mut`` is recognized.
    """
    if type(tree) is not Subscript:
        return False
    if expander is not None:
        from .clone import mut  # the macro interface imports us
        return is_unexpanded_expr_macro(mut, expander, tree)
    if isx(tree.value, "mut", accept_attr=False):
        return tree.slice
    return False

def isalias(tree):
    """Detect the expression-alias form ``name << expr``.

    Same shape as an `unpythonic` env-assignment.
    """
    return isenvassign(tree)

def canonize_specs(elts, expander=None):
    """Convert the macro arguments of a clone[] into a `list` of `BindingSpec`.

    elts: `list` of AST nodes, each one of::

        name                 # NameSource, immutable
        mut[name]            # NameSource, mutable
        name << expr         # ExprSource, immutable
        mut[name << expr]    # ExprSource, mutable

    The `expression` of each `ExprSource` is the AST of `expr`.

    Raise `MalformedSpec` on anything else. `expander` is passed to `ismut`.
    """
    return [_canonize_spec(tree, expander) for tree in elts]

def _canonize_spec(tree, expander):
    mutable = False
    inner = ismut(tree, expander)
    if inner is not False:
        if ismut(inner, expander) is not False:
            raise MalformedSpec(f"nested mut[] in binding `{unparse(tree)}`")
        mutable = True
        tree = inner

    if isalias(tree):
        view = UnexpandedEnvAssignView(tree)
        return BindingSpec(ExprSource(view.value, view.name), mutable)

    # `Done` wraps names produced by expanded `@namemacro`s.
    if type(tree) is Name or (isinstance(tree, Done) and type(tree.body) is Name):
        return BindingSpec(NameSource(getname(tree, accept_attr=False)), mutable)

    raise MalformedSpec(f"unrecognized binding `{unparse(tree)}`; "
                        "expected name, mut[name], name << expr, or mut[name << expr]")
