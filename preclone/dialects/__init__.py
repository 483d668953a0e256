# -*- coding: utf-8 -*-
"""Dialects: the binding-list syntax of clone, as a whole-module transformation.

Powered by `mcpyrate`'s dialect subsystem. The user manual is at:
    https://github.com/Technologicat/mcpyrate/blob/master/doc/dialects.md

For an example of how to use the dialect, see the unit tests.
"""

# re-exports
from .clonython import *  # noqa: F401, F403
