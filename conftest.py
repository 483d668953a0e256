# -*- coding: utf-8 -*-
"""Let pytest drive the `runtests()` functions of the test modules.

The test modules use macros, so the macro expander must be active before
pytest imports them. Run with ``--assert=plain`` (see ``pytest.ini``), so
that pytest's assertion rewriter does not take over importing them.

The `unpythonic` test framework reports failures by counting them, not by
raising, so each `runtests()` runs in its own test session, and fails in
pytest if any of its tests failed or errored.
"""

import pytest

import mcpyrate.activate  # noqa: F401

from unpythonic import unbox
from unpythonic.test.fixtures import session, tests_failed, tests_errored

@pytest.fixture(autouse=True)
def unpythonic_session(request):
    failed, errored = unbox(tests_failed), unbox(tests_errored)
    with session(request.node.nodeid):
        yield
    newly_failed = unbox(tests_failed) - failed
    newly_errored = unbox(tests_errored) - errored
    if newly_failed or newly_errored:
        pytest.fail(f"{newly_failed} test(s) failed, {newly_errored} errored; see the captured output")
