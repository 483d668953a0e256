# -*- coding: utf-8 -*-

from unpythonic.syntax import macros, test, test_raises, the  # noqa: F401
from unpythonic.test.fixtures import session, testset

from copy import copy
import threading

from unpythonic import dyn

from ..duplicate import dup

def runtests():
    with testset("default: deep copy"):
        xs = [[1, 2], [3]]
        ys = dup(xs)
        test[the[ys] == the[xs]]
        test[ys is not xs]
        test[ys[0] is not xs[0]]
        ys[0].append(42)
        test[xs == [[1, 2], [3]]]

        # immutable values may come back as-is; that's fine, nothing can tell.
        test[dup(42) == 42]
        test[dup("hello") == "hello"]

    with testset("type-provided duplication"):
        class Counter:
            def __init__(self):
                self.n = 0
                self.copies = 0
            def __deepcopy__(self, memo):
                other = Counter()
                other.n = self.n
                other.copies = self.copies + 1
                return other
        c = Counter()
        c.n = 3
        d = dup(c)
        test[d.n == 3]
        test[d.copies == 1]
        test[c.copies == 0]

    with testset("override with dyn"):
        xs = [[1, 2], [3]]
        with dyn.let(clone_copier=copy):
            ys = dup(xs)
        test[ys is not xs]
        test[ys[0] is xs[0]]  # shallow
        test[dup(xs)[0] is not xs[0]]  # back to deep

        with dyn.let(clone_copier=lambda x: x):
            test[dup(xs) is xs]

    with testset("uncopyable values"):
        lock = threading.Lock()
        test_raises[TypeError, dup(lock), "a lock cannot be deep-copied"]

if __name__ == '__main__':  # pragma: no cover
    with session(__file__):
        runtests()
