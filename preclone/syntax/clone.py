# -*- coding: utf-8 -*-
"""Duplicate values before handing them to a closure."""

__all__ = ["clone", "mut"]

from ast import (Assign, Delete, Name, Store, Del, FunctionDef, AsyncFunctionDef, ClassDef,
                 Lambda, Await, Yield, YieldFrom, comprehension, arg)

from mcpyrate.quotes import macros, q, u, n, a, h  # noqa: F401

from mcpyrate import gensym, parametricmacro
from mcpyrate.walkers import ASTVisitor

from unpythonic import namelambda

from ..bindings import (NameSource, ExprSource, ExpansionRequest,
                        ImmutableRebinding, final_mutability)
from ..duplicate import dup

from .rebinding import find_rebindings
from .specutil import canonize_specs

# --------------------------------------------------------------------------------
# Macro interface

@parametricmacro
def clone(tree, *, args, syntax, expander, **kw):
    """[syntax, expr/decorator] Bind duplicates of values, then evaluate a body.

    Usage::

        clone[b0, ...][body]
        clone[body]            # no bindings; just a fresh scope

    where each binding ``b`` is one of::

        x                      # duplicate of x, bound as x (shadowing it)
        mut[x]                 # same, and the body may rebind it
        y << expr              # duplicate of the value of expr, bound as y
        mut[y << expr]         # same, and the body may rebind it

    A trailing comma in the binding list is fine. The bindings take effect
    sequentially, like in ``letseq``: the ``expr`` of a binding sees the
    duplicates made by the earlier bindings. The body sees all of them.

    The point is to hand copies to a closure, keeping the originals intact::

        s = ["hello"]
        f = clone[s][lambda: s.append("world") or s]
        assert f() == ["hello", "world"]
        assert s == ["hello"]

    The duplicates are made by ``preclone.dup`` (by default, `copy.deepcopy`;
    see ``preclone.duplicate``) when the ``clone`` expression is evaluated.

    Rebinding a duplicate not declared ``mut[]`` is a `SyntaxError` at macro
    expansion time. In the expression form, rebinding means ``x := ...``
    anywhere in the body, unless a lambda parameter of the same name shadows
    the duplicate::

        f = clone[a, mut[b], d][lambda: (b := 42 - a - d)]
        assert f() == 23

    Decorator form, for "clone over def". Here the function can keep state
    across calls by declaring a ``mut[]`` duplicate ``nonlocal``; declaring a
    non-``mut`` duplicate ``nonlocal`` is an error::

        total = 0
        @clone[mut[total]]
        def add(x):
            nonlocal total
            total += x
            return total
        assert add(2) == 2
        assert add(3) == 5
        assert total == 0

    The decorator form applies to ``def`` only. `mcpyrate` does not expand
    decorator macros on an ``async def``.

    Expands to nested lambdas (expression form) or nested scope functions
    (decorator form), one per binding; the innermost one receives the body.
    Hence in the expression form, the body (and the expression of each
    binding after the first) cannot ``await`` or ``yield``; this is a
    `SyntaxError` at macro expansion time. The duplicates of bare names are
    made up front, so ``clone`` also works in a class body, as long as the
    binding expressions after the first refer only to earlier bindings and
    to globals.
    """
    if syntax not in ("expr", "decorator"):
        raise SyntaxError("clone is an expr and decorator macro only")  # pragma: no cover

    specs = canonize_specs(args, expander)

    # Expand inside out, so that the rebinding analysis sees nested
    # clones (and other macros) in their expanded form.
    for spec in specs:
        if isinstance(spec.source, ExprSource):
            spec.source.expression = expander.visit(spec.source.expression)
    tree = expander.visit(tree)

    request = ExpansionRequest(specs, tree)
    if syntax == "expr":
        return _clone_expr(request)
    return _clone_decorator(request)

def mut(tree, *, syntax, **kw):
    """[syntax] Declare a clone[] binding as mutable.

    Usage::

        clone[mut[x]][body]
        clone[mut[y << expr]][body]

    Only meaningful in the binding list of a ``clone[]``.
    """
    if syntax != "expr":
        raise SyntaxError("mut is an expr macro only")  # pragma: no cover
    raise SyntaxError("mut[] is only meaningful in the binding list of a clone[]")  # pragma: no cover

# --------------------------------------------------------------------------------
# Syntax transformers

def _clone_expr(request):
    """Lower an `ExpansionRequest` whose body is an expression.

    clone[a, mut[b], c << f(a)][body]
    --> (lambda a, b_XXX: (lambda a, b, c: body)(a, b_XXX, dup(f(a))))(dup(a), dup(b))

    Duplicates of bare names that no earlier binding shadows are made in the
    outermost call (see `_precopy`). The innermost lambda takes every bound
    name as a parameter, so the body can rebind any of them (walrus) without
    making it local to some scope where it is also read.
    """
    specs, body = request.specs, request.body
    _check_rebindings(specs, body)
    _check_suspensions(specs, body)
    if not specs:
        return q[h[namelambda]("clone_body")(lambda: a[body])()]

    tmps = _precopy(specs)
    def value(j):
        if j in tmps:
            return q[n[tmps[j]]]
        return _duplicate(specs[j])

    last = len(specs) - 1
    names = list(final_mutability(specs))  # unique, in order of first appearance
    values = [value(last) if name == specs[last].name else q[n[name]]
              for name in names]
    tree = q[a[_named(_lambda(names, body), "clone_body")](a[values])]
    if not last:
        return tree

    for j in reversed(range(1, last)):
        lam = _named(_lambda([specs[j].name], tree), f"clone_{specs[j].name}")
        tree = q[a[lam](a[value(j)])]

    first = specs[0]
    params = [first.name] + list(tmps.values())
    values = [_duplicate(first)] + [_duplicate(specs[j]) for j in tmps]
    lam = _named(_lambda(params, tree), f"clone_{first.name}")
    return q[a[lam](a[values])]

def _clone_decorator(request):
    """Lower an `ExpansionRequest` whose body is a function definition.

    @clone[a, mut[b]]
    def f(...): ...

    -->

    def clone_a_XXX(a, b_XXX):
        def clone_b_XXX(b):
            def f(...): ...
            return f
        return clone_b_XXX(b_XXX)
    f = clone_a_XXX(dup(a), dup(b))
    del clone_a_XXX
    """
    specs, fdef = request.specs, request.body
    if type(fdef) is not FunctionDef:
        raise SyntaxError("clone as a decorator expects a function definition")
    _check_rebindings(specs, fdef)
    if not specs:
        return fdef

    tmps = _precopy(specs)
    fname = fdef.name
    statements = [fdef]
    result = q[n[fname]]
    for j in reversed(range(len(specs))):
        spec = specs[j]
        scopename = gensym(f"clone_{spec.name}")
        with q as quoted:
            def _scope(_):
                __paste_here__  # noqa: F821, just a splicing marker.
                return a[result]
        thescope = quoted[0]
        thescope.name = scopename
        params = [spec.name]
        if not j:
            params += list(tmps.values())
        thescope.args.args = [arg(arg=x) for x in params]
        thescope.body[0:1] = statements
        statements = [thescope]
        if not j:
            values = [_duplicate(spec)] + [_duplicate(specs[k]) for k in tmps]
        else:
            values = [q[n[tmps[j]]] if j in tmps else _duplicate(spec)]
        result = q[n[scopename](a[values])]
    return statements + [Assign(targets=[Name(id=fname, ctx=Store())], value=result),
                         Delete(targets=[Name(id=scopename, ctx=Del())])]

def _precopy(specs):
    """Map the index of each binding whose duplicate is made up front to a fresh name.

    The source of each binding after the first is evaluated in a nested
    scope, which does not see the names of an enclosing class body. A bare
    name that no earlier binding shadows means the same there as outside, so
    its duplicate is made in the outermost call, and handed inward under the
    fresh name.
    """
    tmps = {}
    bound = set()
    for j, spec in enumerate(specs):
        if j and isinstance(spec.source, NameSource) and spec.name not in bound:
            tmps[j] = gensym(f"clone_{spec.name}")
        bound.add(spec.name)
    return tmps

def _duplicate(spec):
    """AST for the duplicate of the source value of `spec`."""
    if isinstance(spec.source, NameSource):
        source = q[n[spec.source.identifier]]
    else:
        source = spec.source.expression
    return q[h[dup](a[source])]

def _lambda(names, body):
    lam = q[lambda: a[body]]
    lam.args.args = [arg(arg=x) for x in names]
    return lam

def _named(lam, name):
    return q[h[namelambda](u[name])(a[lam])]

def _check_rebindings(specs, body):
    """Raise `ImmutableRebinding` if code rebinds a duplicate that is not `mut[]`.

    A binding's own expression is checked against the bindings before it;
    the body, against all of them.
    """
    for j, spec in enumerate(specs):
        if isinstance(spec.source, ExprSource):
            _reject_immutable(find_rebindings(spec.source.expression), specs[:j],
                              f"the expression of binding `{spec.name}`")
    _reject_immutable(find_rebindings(body), specs, "the body")

def _reject_immutable(rebound, specs, where):
    mutability = final_mutability(specs)
    for name in rebound:
        if name in mutability and not mutability[name]:
            raise ImmutableRebinding(f"{where} rebinds `{name}`, which is not mutable in this clone[]; "
                                     f"declare it as mut[{name}]")

def _check_suspensions(specs, body):
    """Raise `SyntaxError` if code that ends up inside a lambda awaits or yields.

    That is the body, and the expressions of the bindings after the first.
    """
    for spec in specs[1:]:
        if isinstance(spec.source, ExprSource) and _find_suspensions(spec.source.expression):
            raise SyntaxError(f"clone[]: the expression of binding `{spec.name}` is evaluated inside a lambda, "
                              "so it cannot await or yield")
    if _find_suspensions(body):
        raise SyntaxError("clone[]: the body is evaluated inside a lambda, so it cannot await or yield; "
                          "consider the decorator form on a def")

def _find_suspensions(tree):
    """Return the `await`/`yield` nodes, and async comprehensions, in the scope of `tree`."""
    class SuspensionFinder(ASTVisitor):
        def examine(self, tree):
            if type(tree) in (Await, Yield, YieldFrom):
                self.collect(tree)
            elif type(tree) is comprehension and tree.is_async:
                self.collect(tree)
            if type(tree) in (FunctionDef, AsyncFunctionDef, Lambda, ClassDef):
                return  # new scope
            self.generic_visit(tree)
    finder = SuspensionFinder()
    finder.visit(tree)
    return finder.collected
