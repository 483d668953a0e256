# -*- coding: utf-8 -*-
"""Duplicate values before handing them to a closure."""

from unpythonic.syntax import macros, test, test_raises, the  # noqa: F401
from unpythonic.test.fixtures import session, testset

from ...syntax import macros, clone, mut  # noqa: F401, F811

from copy import copy
from textwrap import dedent

from mcpyrate.compiler import run, temporary_module
from mcpyrate.core import MacroExpansionError

from unpythonic import dyn

from ...bindings import MalformedSpec, ImmutableRebinding

def expansion_error(source):
    """Compile and run `source` in a temporary module.

    Return the exception that caused macro expansion to fail, or `None` if
    it didn't.
    """
    try:
        with temporary_module(filename="tests in preclone.syntax.tests.test_clone") as module:
            run(dedent(source), module)
    except MacroExpansionError as err:
        cause = err
        while cause.__cause__ is not None:
            cause = cause.__cause__
        return cause
    return None

def runtests():
    with testset("empty binding list"):
        test[clone[42] == 42]
        test[clone[lambda: "hi"]() == "hi"]

        # fresh scope
        z = 1
        r = clone[(z := 5)]
        test[r == 5]
        test[z == 1]

    with testset("shadowing for bare names"):
        xs = [1]
        f = clone[xs][lambda: xs.append(2) or xs]
        test[the[f()] == [1, 2]]
        test[the[xs] == [1]]

        # the duplicate is made once, when the clone expression is evaluated
        test[the[f()] == [1, 2, 2]]
        test[the[xs] == [1]]

        # the original name is rebound only inside
        d = {"k": [1]}
        g = clone[d][lambda: d["k"].append(2) or d]
        test[g() == {"k": [1, 2]}]
        test[d == {"k": [1]}]

    with testset("aliasing for the expression form"):
        s = "hello"
        test[clone[n << len(s)][n] == 5]  # noqa: F821, `clone` defines `n`.
        test[s.upper() == "HELLO"]  # still usable

        # the duplicate is of the value of the expression
        xs = [1, 2]
        head = clone[first << xs][first]  # noqa: F821
        test[head == xs]
        test[head is not xs]

    with testset("sequential bindings, in order"):
        x = 10
        test[clone[x, y << x + 1][(x, y)] == (10, 11)]  # noqa: F821

        # an item's expression sees the duplicates made by the items before it
        xs = [1]
        ys, zs = clone[mut[xs], zs << (xs.append(2) or xs)][(xs, zs)]  # noqa: F821
        test[ys == [1, 2]]
        test[zs == [1, 2]]
        test[xs == [1]]

        # but not those made by the items after it
        c = "outer"
        test[clone[v << c, c << "inner"][(v, c)] == ("outer", "inner")]  # noqa: F821

        # the same name may be bound several times; later bindings shadow earlier ones
        a = 1
        test[clone[a, a << a + 1, a << 10 * a][a] == 20]

    with testset("mutability"):
        x = 1
        r = clone[mut[x]][(x := x + 1)]
        test[r == 2]
        test[x == 1]

        y = 2
        r = clone[mut[x], y][(x := x + y)]
        test[r == 3]
        test[x == 1]

        # in-place mutation of an immutable duplicate is not a rebinding
        xs = []
        test[clone[xs][xs.append(42) or xs] == [42]]
        test[xs == []]

    with testset("independence over repeated expansions"):
        xs = [0]
        for _ in range(3):
            clone[mut[xs]][(xs := xs + [1])]
            clone[xs][xs.append(1)]
        test[the[xs] == [0]]

    with testset("trailing comma"):
        a, b = [1], [2]
        test[clone[a, b,][(a, b)] == clone[a, b][(a, b)]]

    with testset("nesting"):
        a = 7
        test[clone[a][clone[mut[a]][(a := a + 1)]] == 8]
        test[a == 7]

        xs = [1]
        f = clone[xs][lambda: clone[ys << xs][ys.append(2) or (xs, ys)]]  # noqa: F821
        test[f() == ([1], [1, 2])]

    with testset("example scenario"):
        a, b, d = 7, 0, 12
        f = clone[a, mut[b], d][lambda: (b := 42 - a - d)]
        test[f() == 23]
        test[(a, b, d) == (7, 0, 12)]

        r = clone[a, mut[b], d][(b := 42 - a - d)]
        test[r == 23]
        test[(a, b, d) == (7, 0, 12)]

        @clone[a, mut[b], d]
        def e():
            nonlocal b
            b = 42 - a - d
            return b
        test[e() == 23]
        test[(a, b, d) == (7, 0, 12)]

    with testset("decorator form"):
        count = 10

        @clone[mut[count]]
        def bump(k):
            nonlocal count
            count += k
            return count
        test[bump(2) == 12]
        test[bump(3) == 15]  # state persists across calls
        test[count == 10]
        test[bump.__name__ == "bump"]

        def twice(f):
            return lambda x: 2 * f(x)
        k = 3

        @clone[k, m << k + 1]  # noqa: F821
        @twice
        def scale(x):
            return k * m * x  # noqa: F821
        test[scale(1) == 24]

        xs = [1]

        @clone[xs]
        def grow():
            xs.append(len(xs) + 1)
            return list(xs)
        test[grow() == [1, 2]]
        test[grow() == [1, 2, 3]]
        test[xs == [1]]

    with testset("in a class body"):
        class C:
            a = [1]
            b = [2]
            f = clone[a, b][lambda: a + b]
            abc = clone[a, mut[b], c << a + b][(a, b, c)]  # noqa: F821
        test[C.f() == [1, 2]]
        test[C.abc == ([1], [2], [1, 2])]
        test[C.abc[0] is not C.a]

        class Grower:
            xs = [1]
            k = 2

            @clone[xs, k]
            def grow(self):
                xs.append(k)
                return list(xs)
        g = Grower()
        test[g.grow() == [1, 2]]
        test[g.grow() == [1, 2, 2]]
        test[Grower.xs == [1]]
        # no helper scopes are left in the class namespace
        test[the[[name for name in vars(Grower) if name.startswith("clone_")]] == []]

    with testset("duplication strategy"):
        xs = [[1]]
        with dyn.let(clone_copier=copy):
            f = clone[xs][lambda: xs]
        test[f() is not xs]
        test[f()[0] is xs[0]]

        g = clone[xs][lambda: xs]
        test[g()[0] is not xs[0]]

        class Uncopyable:
            def __deepcopy__(self, memo):
                raise TypeError("nope")
        u = Uncopyable()
        test_raises[TypeError, clone[u][u], "the copier's error should propagate"]

    with testset("rebinding an immutable duplicate"):
        def rejected(source):
            return isinstance(expansion_error(source), ImmutableRebinding)

        test[rejected("""
            from preclone.syntax import macros, clone
            a = 7
            clone[a][(a := 1)]
            """)]
        test[rejected("""
            from preclone.syntax import macros, clone, mut
            a, b, d = 7, 0, 12
            f = clone[a, b, d][lambda: (b := 42 - a - d)]
            """)]
        test[rejected("""
            from preclone.syntax import macros, clone
            a = 7
            clone[a, c << (a := 2)][c]
            """)]
        test[rejected("""
            from preclone.syntax import macros, clone
            a, b = 1, 2
            clone[a][clone[b][(a := 1)]]
            """)]
        test[rejected("""
            from preclone.syntax import macros, clone
            count = 0
            @clone[count]
            def bump():
                nonlocal count
                count += 1
            """)]
        test[rejected("""
            from preclone.syntax import macros, clone
            count = 0
            @clone[count]
            def outer():
                def inner():
                    nonlocal count
                    count += 1
                return inner
            """)]
        # the last binding of a name decides
        test[rejected("""
            from preclone.syntax import macros, clone, mut
            a = 7
            clone[mut[a], a][(a := 1)]
            """)]
        test[expansion_error("""
            from preclone.syntax import macros, clone, mut
            a = 7
            clone[a, mut[a]][(a := 1)]
            """) is None]
        # shadowed by a lambda parameter
        test[expansion_error("""
            from preclone.syntax import macros, clone
            a = 7
            clone[a][lambda a: (a := 1)]
            """) is None]

    with testset("malformed bindings"):
        def malformed(source):
            return isinstance(expansion_error(source), MalformedSpec)

        test[malformed("""
            from preclone.syntax import macros, clone
            clone[f(x)][1]
            """)]
        test[malformed("""
            from preclone.syntax import macros, clone
            clone[42][1]
            """)]
        test[malformed("""
            from preclone.syntax import macros, clone, mut
            a = 1
            clone[mut[mut[a]]][a]
            """)]
        test[malformed("""
            from preclone.syntax import macros, clone
            s = ""
            clone[s.upper()][1]
            """)]

    with testset("misuse"):
        def misused(source):
            err = expansion_error(source)
            return type(err) is SyntaxError
        test[misused("""
            from preclone.syntax import macros, mut
            x = 1
            mut[x]
            """)]
        test[misused("""
            from preclone.syntax import macros, clone
            with clone:
                pass
            """)]
        test[misused("""
            from preclone.syntax import macros, clone
            a = 1
            @clone[a]
            class C:
                pass
            """)]

    with testset("await and yield"):
        test[misused("""
            from preclone.syntax import macros, clone
            async def f(x):
                return clone[x][await x]
            """)]
        test[misused("""
            from preclone.syntax import macros, clone
            async def f(x):
                return clone[[y async for y in x]]
            """)]
        test[misused("""
            from preclone.syntax import macros, clone
            def g(x):
                clone[x][(yield x)]
            """)]
        test[misused("""
            from preclone.syntax import macros, clone
            def g(x):
                clone[x, y << (yield x)][y]
            """)]
        # the first binding is evaluated outside of the lambdas
        test[expansion_error("""
            from preclone.syntax import macros, clone
            async def f(x):
                return clone[y << await x][y]
            """) is None]
        # a lambda in the body is its own scope
        test[expansion_error("""
            from preclone.syntax import macros, clone
            def g(x):
                return clone[x][lambda: (yield x)]
            """) is None]

if __name__ == '__main__':  # pragma: no cover
    with session(__file__):
        runtests()
