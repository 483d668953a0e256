# -*- coding: utf-8 -*-
"""Clonython: Python with the binding-list syntax of clone.

Powered by `mcpyrate` and `preclone`.
"""

__all__ = ["Clonython"]

from mcpyrate.quotes import macros, q  # noqa: F401

from mcpyrate.dialects import Dialect
from mcpyrate.splicing import splice_dialect

from ..srcexpand import expand_source

class Clonython(Dialect):
    """**Copy first, ask questions later.**

    Enables the list syntax::

        f = clone([a, mut b, {s.upper()} as t,], lambda: ...)

    in the whole module. The invocations are rewritten at the source level
    into ``clone[...][...]`` macro invocations, and the macros ``clone`` and
    ``mut`` are imported automatically.
    """

    def transform_source(self, text):
        return expand_source(text, filename=self.expander.filename)

    def transform_ast(self, tree):  # tree is an ast.Module
        with q as template:
            __lang__ = "Clonython"  # noqa: F841, just provide it to user code.
            from preclone.syntax import macros, clone, mut  # noqa: F401, F811
            __paste_here__  # noqa: F821, just a splicing marker.

        # Mark the template lines as coming from the dialect-import in the user source.
        tree.body = splice_dialect(tree.body, template, "__paste_here__",
                                   lineno=self.lineno, col_offset=self.col_offset)
        return tree
