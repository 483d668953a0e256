# -*- coding: utf-8 -*-
"""Run-time part of clone: produce the duplicates.

The duplication strategy is a dynamic variable, so it can be overridden
for the dynamic extent of a block::

    from copy import copy
    from unpythonic import dyn

    with dyn.let(clone_copier=copy):
        f = clone[xs][lambda: xs]  # shallow duplicate of xs

The default is `copy.deepcopy`, which produces a value with no shared
structure, deferring to the type's own ``__deepcopy__`` (or ``__copy__``,
or pickle protocol) where defined.
"""

__all__ = ["dup"]

from copy import deepcopy

from unpythonic import dyn, make_dynvar

make_dynvar(clone_copier=deepcopy)

def dup(value):
    """Return an independent duplicate of `value`.

    Uses the copier currently in ``dyn.clone_copier``. Whatever the copier
    raises (e.g. `TypeError` for an uncopyable object) propagates.
    """
    return dyn.clone_copier(value)
