# -*- coding: utf-8 -*-
"""Binding specifications: what to duplicate, under which name, how mutable.

Both front ends produce these. The macro layer (``preclone.syntax``)
stores AST nodes in `ExprSource.expression`; the source layer
(``preclone.srcexpand``) stores source text. Nothing here cares which.
"""

__all__ = ["MalformedSpec", "ImmutableRebinding",
           "NameSource", "ExprSource", "BindingSpec",
           "ExpansionRequest",
           "final_mutability"]

class MalformedSpec(SyntaxError):
    """A binding list item, or the invocation around it, has the wrong shape.

    Raised at expansion time. There is no partial expansion; the whole
    invocation is rejected.
    """

class ImmutableRebinding(SyntaxError):
    """The body rebinds a duplicate that was not declared ``mut``."""

class NameSource:
    """Source value is the existing binding `identifier`.

    The emitted binding reuses the identifier, shadowing the original.
    """
    def __init__(self, identifier):
        self.identifier = identifier

    def __eq__(self, other):
        return type(other) is NameSource and other.identifier == self.identifier

    def __repr__(self):  # pragma: no cover
        return f"NameSource({self.identifier!r})"

class ExprSource:
    """Source value is the result of evaluating `expression`, bound as `alias`.

    `expression` is an opaque payload; an AST node or source text, depending
    on the layer that built it.
    """
    def __init__(self, expression, alias):
        self.expression = expression
        self.alias = alias

    def __eq__(self, other):
        return (type(other) is ExprSource and
                other.expression == self.expression and other.alias == self.alias)

    def __repr__(self):  # pragma: no cover
        return f"ExprSource({self.expression!r}, {self.alias!r})"

class BindingSpec:
    """One item of a binding list.

    `source`: `NameSource` or `ExprSource`.
    `mutable`: bool; whether the body may rebind the duplicate.
    """
    def __init__(self, source, mutable=False):
        if not isinstance(source, (NameSource, ExprSource)):
            raise TypeError(f"Expected NameSource or ExprSource, got {type(source)} with value {repr(source)}")
        self.source = source
        self.mutable = bool(mutable)

    @property
    def name(self):
        """The identifier the emitted declaration binds."""
        if isinstance(self.source, NameSource):
            return self.source.identifier
        return self.source.alias

    def __eq__(self, other):
        return (type(other) is BindingSpec and
                other.source == self.source and other.mutable == self.mutable)

    def __repr__(self):  # pragma: no cover
        return f"BindingSpec({self.source!r}, mutable={self.mutable})"

class ExpansionRequest:
    """An ordered list of `BindingSpec`, plus exactly one trailing expression.

    Order matters: a spec may refer to duplicates declared by earlier specs.
    """
    def __init__(self, specs, body):
        self.specs = list(specs)
        self.body = body

    def __repr__(self):  # pragma: no cover
        return f"ExpansionRequest({self.specs!r}, {self.body!r})"

def final_mutability(specs):
    """Map each name bound by `specs` to its mutability.

    When the same name is bound more than once, the last binding shadows the
    earlier ones, so it decides.
    """
    result = {}
    for spec in specs:
        result[spec.name] = spec.mutable
    return result
