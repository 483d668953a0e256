# -*- coding: utf-8 -*-
"""Find where a tree rebinds names from an enclosing scope.

Python has no immutable local variables, so `clone` enforces the absence of
``mut`` at macro expansion time, by looking for the ways a piece of code can
rebind a name that lives in a lexically surrounding scope:

  - an assignment expression ``name := value`` that is not inside a lambda
    or comprehension having `name` as a parameter or target;
  - a ``nonlocal name`` declaration that is not inside a function that
    itself binds `name` locally.

The assignment-expression rule is deliberately coarse: ``name := ...``
inside a nested ``lambda`` creates a new local in that lambda, but it reads
as a rebinding of the captured duplicate, so we treat it as one.

In-place mutation (``x.append(42)``) is not rebinding, and is not detected.
"""

__all__ = ["find_rebindings"]

from ast import (Name, NamedExpr, Nonlocal, Lambda, FunctionDef, AsyncFunctionDef,
                 ListComp, SetComp, GeneratorExp, DictComp)

from mcpyrate.walkers import ASTVisitor

from unpythonic.syntax.scopeanalyzer import get_lexical_variables

def find_rebindings(tree):
    """Return the names `tree` rebinds in its enclosing scope, in order of appearance.

    `tree` is an expression, a statement, or a list of statements. When
    `tree` is itself a function definition, its body is analyzed as the body
    of a function nested in the scope of interest (so ``nonlocal x`` in it
    reaches that scope).
    """
    class RebindingFinder(ASTVisitor):
        def examine(self, tree):
            shadowed = self.state.shadowed
            if type(tree) is NamedExpr:
                if type(tree.target) is Name and tree.target.id not in shadowed:
                    self.collect(tree.target.id)
                self.visit(tree.value)
            elif type(tree) is Nonlocal:
                for name in tree.names:
                    if name not in shadowed:
                        self.collect(name)
            elif type(tree) is Lambda:
                self.visit(tree.args)  # defaults live in the surrounding scope
                params, _ = get_lexical_variables(tree)
                self.withstate(tree.body, shadowed=(shadowed | set(params)))
                self.visit(tree.body)
            elif type(tree) in (ListComp, SetComp, GeneratorExp, DictComp):
                targets, _ = get_lexical_variables(tree)
                self.generic_withstate(tree, shadowed=(shadowed | set(targets)))
                self.generic_visit(tree)
            elif type(tree) in (FunctionDef, AsyncFunctionDef):
                # Decorators, defaults and annotations live in the surrounding scope.
                self.visit(tree.decorator_list)
                self.visit(tree.args)
                if tree.returns is not None:
                    self.visit(tree.returns)
                # Parameters and locals shadow, except those declared nonlocal
                # (or global) here, which refer outward.
                localnames, declared = get_lexical_variables(tree)
                newshadowed = shadowed | (set(localnames) - set(declared))
                self.withstate(tree.body, shadowed=newshadowed)
                self.visit(tree.body)
            else:
                self.generic_visit(tree)

    finder = RebindingFinder(shadowed=frozenset())
    finder.visit(tree)
    return finder.collected
