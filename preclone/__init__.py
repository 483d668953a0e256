# -*- coding: utf-8 -*-
"""Duplicate values before handing them to a closure.

The macro interface lives in ``preclone.syntax`` (requires `mcpyrate`);
the whole-module dialect in ``preclone.dialects``. This top-level package
only carries the regular-code parts, so it can be imported without
activating the macro expander.
"""

__version__ = '0.1.0'

from .bindings import *  # noqa: F401, F403
from .duplicate import *  # noqa: F401, F403
from .srcexpand import *  # noqa: F401, F403
