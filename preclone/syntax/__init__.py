# -*- coding: utf-8 -*-
"""preclone.syntax: the clone[] macro.

Requires `mcpyrate`.

Usage::

    from preclone.syntax import macros, clone, mut

This module only re-exports the macro interfaces, so that the macros can be
imported from here. The submodules contain the macro interfaces (and their
docstrings), the syntax transformers, and the utilities the transformers use
to analyze ASTs.
"""

from .clone import *  # noqa: F401, F403
from .rebinding import *  # noqa: F401, F403
from .specutil import *  # noqa: F401, F403
