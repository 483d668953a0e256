# -*- coding: utf-8 -*-
"""Source-level expansion of the binding-list syntax.

This is the token-level front end. It reads the list syntax::

    clone([a, mut b, {s.upper()} as t, mut {xs[0]} as head,], body)
    clone(body)  # same as an empty binding list

where each item is one of::

    name                      # duplicate of `name`, shadowing it
    mut name                  # same, but the body may rebind it
    {expr} as name            # duplicate of the value of `expr`, bound as `name`
    mut {expr} as name        # same, but the body may rebind it

and rewrites each invocation into the macro syntax of ``preclone.syntax``::

    clone[a, mut[b], t << (s.upper()), mut[head << (xs[0])]][(body)]
    clone[(body)]

Everything else in the text is left alone, byte for byte. Invocations nest:
`clone(...)` inside a trailing expression, or inside the braces of an item,
is rewritten too.

This needs no macro expander; the output needs one. To use the syntax in a
module, see the dialect ``preclone.dialects.Clonython``, which runs this as a
source transformer and then arranges the macro-imports.

The matcher works on the token stream of the standard `tokenize` module, so
the input only has to tokenize as Python; ``mut b`` and ``{...} as t`` need
not parse.
"""

__all__ = ["expand_source", "parse_invocation", "emit"]

from io import StringIO
from keyword import iskeyword
import tokenize
from tokenize import NAME, OP, COMMENT, NL, NEWLINE, INDENT, DEDENT, ENDMARKER

from .bindings import (MalformedSpec, NameSource, ExprSource,
                       BindingSpec, ExpansionRequest)

_insignificant = (COMMENT, NL, NEWLINE, INDENT, DEDENT, ENDMARKER)
_openers = {"(": ")", "[": "]", "{": "}"}
_closers = (")", "]", "}")

# Reserved inside a binding list.
_mut = "mut"

def expand_source(text, filename="<unknown>", macroname="clone"):
    """Rewrite every `clone(...)` invocation in the source `text`.

    `filename` is used in error messages only. `macroname` is the name that
    marks an invocation, both in the input and in the output.

    Return the rewritten text. Raise `MalformedSpec` if an invocation, or one
    of its binding list items, has the wrong shape.

    Text that has no invocations is returned unchanged.
    """
    if macroname not in text:  # fast path for modules that don't use the syntax
        return text
    expander = _Expander(text, filename, macroname)
    return expander.rewrite(0, len(expander.tokens), 0, len(text))

def parse_invocation(text, filename="<unknown>", macroname="clone"):
    """Parse one invocation, which must span all of `text`, into an `ExpansionRequest`.

    Example::

        r = parse_invocation("clone([a, mut {f()} as b], g(a, b))")
        [s.name for s in r.specs]  # --> ['a', 'b']
        r.body                     # --> 'g(a, b)'

    The `ExprSource` expressions and the body are source text, with any
    invocations nested inside them already rewritten.
    """
    expander = _Expander(text, filename, macroname)
    if not expander.isinvocation(0):
        if not expander.tokens:
            raise MalformedSpec(f"expected {macroname}(...), got empty input")
        raise expander.error(f"expected {macroname}(...)", 0)
    request, closing = expander.parse_invocation(0)
    if closing != len(expander.tokens) - 1:
        raise expander.error(f"unexpected text after {macroname}(...)", closing + 1)
    return request

def emit(request, macroname="clone"):
    """Render `request` in the macro syntax of ``preclone.syntax``.

    The specs of `request` must carry source text in their `ExprSource`
    expressions, and `request.body` must be source text.
    """
    body = f"({request.body})"  # a bare generator expression needs the parentheses
    if not request.specs:
        return f"{macroname}[{body}]"
    items = ", ".join(_emit_spec(spec) for spec in request.specs)
    return f"{macroname}[{items}][{body}]"

def _emit_spec(spec):
    if isinstance(spec.source, NameSource):
        item = spec.source.identifier
    else:
        item = f"{spec.source.alias} << ({spec.source.expression})"
    if spec.mutable:
        return f"{_mut}[{item}]"
    return item

# --------------------------------------------------------------------------------

def _tokenize(text, filename):
    try:
        return [tok for tok in tokenize.generate_tokens(StringIO(text).readline)
                if tok.type not in _insignificant]
    except (tokenize.TokenError, SyntaxError) as err:
        raise MalformedSpec(f"{filename}: cannot tokenize source: {err}") from err

class _Expander:
    """Recursive-descent matcher over the significant tokens of `text`.

    Token indices are used throughout; `partner` maps each bracket token to
    its matching bracket. Text is reproduced by slicing `text` at token
    offsets, so comments and layout inside expressions survive.
    """
    def __init__(self, text, filename, macroname):
        self.text = text
        self.filename = filename
        self.macroname = macroname
        self.tokens = _tokenize(text, filename)
        self.partner = self._match_brackets()

        # tokenize reports (row, col); we need absolute offsets into `text`.
        self._linestarts = [0]
        for line in StringIO(text).readlines():
            self._linestarts.append(self._linestarts[-1] + len(line))

    # --------------------------------------------------------------------------------
    # Token utilities

    def _offset(self, position):
        row, col = position
        return self._linestarts[row - 1] + col
    def start(self, k):
        return self._offset(self.tokens[k].start)
    def end(self, k):
        return self._offset(self.tokens[k].end)

    def error(self, message, k):
        """Create a `MalformedSpec` pointing at token `k`."""
        tok = self.tokens[min(k, len(self.tokens) - 1)]
        row, col = tok.start
        return MalformedSpec(message, (self.filename, row, col + 1, tok.line))

    def isop(self, k, string):
        return (k < len(self.tokens) and
                self.tokens[k].type == OP and self.tokens[k].string == string)
    def isname(self, k, string):
        return (k < len(self.tokens) and
                self.tokens[k].type == NAME and self.tokens[k].string == string)
    def isidentifier(self, k):
        """Whether token `k` can be the name of a binding."""
        if k >= len(self.tokens) or self.tokens[k].type != NAME:
            return False
        name = self.tokens[k].string
        return not iskeyword(name) and name != _mut

    def _match_brackets(self):
        partner = {}
        stack = []
        for k, tok in enumerate(self.tokens):
            if tok.type != OP:
                continue
            if tok.string in _openers:
                stack.append(k)
            elif tok.string in _closers:
                if not stack or _openers[self.tokens[stack[-1]].string] != tok.string:
                    raise self.error(f"unbalanced {tok.string!r}", k)
                j = stack.pop()
                partner[j] = k
                partner[k] = j
        if stack:
            raise self.error(f"unbalanced {self.tokens[stack[-1]].string!r}", stack[-1])
        return partner

    # --------------------------------------------------------------------------------
    # Rewriting

    def isinvocation(self, k):
        """Whether an invocation starts at token `k`."""
        if not (self.isname(k, self.macroname) and self.isop(k + 1, "(")):
            return False
        if k > 0:
            prev = self.tokens[k - 1]
            if prev.type == OP and prev.string == ".":  # obj.clone(...)
                return False
            if prev.type == NAME and prev.string in ("def", "class"):
                return False
        return True

    def rewrite(self, lo, hi, startoffset, endoffset):
        """Return `text[startoffset:endoffset]`, with invocations in tokens `lo..hi-1` expanded."""
        out = []
        pos = startoffset
        k = lo
        while k < hi:
            if self.isinvocation(k):
                request, closing = self.parse_invocation(k)
                out.append(self.text[pos:self.start(k)])
                out.append(emit(request, self.macroname))
                pos = self.end(closing)
                k = closing + 1
            else:
                k += 1
        out.append(self.text[pos:endoffset])
        return "".join(out)

    def span(self, lo, hi):
        """Rewritten text of the nonempty token range `lo..hi-1`."""
        return self.rewrite(lo, hi, self.start(lo), self.end(hi - 1))

    # --------------------------------------------------------------------------------
    # Matching

    def parse_invocation(self, k):
        """Match the invocation starting at token `k`.

        Return `(request, closing)`, where `closing` is the index of the
        closing parenthesis of the invocation.
        """
        opening = k + 1
        closing = self.partner[opening]
        args = self.split_args(opening + 1, closing)
        for lo, hi in args:
            if hi - lo >= 2 and self.tokens[lo].type == NAME and self.isop(lo + 1, "="):
                raise self.error(f"{self.macroname}() takes no keyword arguments", lo)
        if not args:
            raise self.error(f"{self.macroname}() needs a trailing expression", closing)
        if len(args) == 1:  # clone(body)
            lo, hi = args[0]
            return ExpansionRequest([], self.span(lo, hi)), closing
        if len(args) == 2:  # clone([...], body)
            (llo, lhi), (blo, bhi) = args
            if not (self.isop(llo, "[") and self.partner[llo] == lhi - 1):
                raise self.error(f"expected a bracketed binding list as the first argument of {self.macroname}()", llo)
            specs = self.parse_items(llo + 1, lhi - 1)
            return ExpansionRequest(specs, self.span(blo, bhi)), closing
        raise self.error(f"{self.macroname}() takes a binding list and a trailing expression, got {len(args)} arguments", args[2][0])

    def split_args(self, lo, hi):
        """Split tokens `lo..hi-1` at top-level commas, like a call's argument list.

        Return a list of `(lo, hi)` token ranges. A trailing comma is dropped.
        """
        args = []
        start = k = lo
        while k < hi:
            tok = self.tokens[k]
            if tok.type == OP and tok.string in _openers:
                k = self.partner[k] + 1
                continue
            if self.isname(k, "lambda"):  # the parameter list of a lambda has commas
                k = self._skip_lambda_parameters(k, hi)
                continue
            if self.isop(k, ","):
                if k == start:
                    raise self.error("unexpected ','", k)
                args.append((start, k))
                start = k + 1
            k += 1
        if start < hi:
            args.append((start, hi))
        return args

    def _skip_lambda_parameters(self, k, hi):
        """Return the index just past the colon that ends the lambda starting at `k`."""
        pending = 0
        while k < hi:
            tok = self.tokens[k]
            if tok.type == OP and tok.string in _openers:
                k = self.partner[k] + 1
                continue
            if self.isname(k, "lambda"):
                pending += 1
            elif self.isop(k, ":"):
                pending -= 1
                if not pending:
                    return k + 1
            k += 1
        raise self.error("lambda without ':'", hi)

    def parse_items(self, lo, hi):
        """Match the binding list in tokens `lo..hi-1`.

        Consume one item, then recurse on the remainder; an empty remainder
        ends the list.
        """
        if lo == hi:
            return []
        spec, k = self.parse_item(lo, hi)
        if k < hi:
            if not self.isop(k, ","):
                raise self.error(f"expected ',' after binding {spec.name!r}, got {self.tokens[k].string!r}", k)
            k += 1
        return [spec] + self.parse_items(k, hi)

    def parse_item(self, k, hi):
        """Match one item starting at token `k`. Return `(spec, next_k)`."""
        mutable = False
        if self.isname(k, _mut):
            if k + 1 < hi and (self.isop(k + 1, "{") or self.isidentifier(k + 1)):
                mutable = True
                k += 1
            else:
                raise self.error(f"'{_mut}' must be followed by a name or a braced expression", k)

        if self.isop(k, "{"):  # {expr} as name
            closing = self.partner[k]
            if closing == k + 1:
                raise self.error("empty braces; expected {expr} as name", k)
            asword, alias = closing + 1, closing + 2
            if not (asword < hi and self.isname(asword, "as")):
                raise self.error("expected 'as name' after a braced expression", min(asword, hi))
            if not (alias < hi and self.isidentifier(alias)):
                raise self.error("expected a name after 'as'", min(alias, hi))
            expression = self.span(k + 1, closing)
            source = ExprSource(expression, self.tokens[alias].string)
            return BindingSpec(source, mutable), alias + 1

        if self.isidentifier(k):  # name
            if k + 1 < hi and self.isname(k + 1, "as"):
                raise self.error("'as' needs a braced expression on its left: {expr} as name", k + 1)
            return BindingSpec(NameSource(self.tokens[k].string), mutable), k + 1

        raise self.error(f"unrecognized binding starting with {self.tokens[k].string!r}; "
                         "expected name, mut name, {expr} as name, or mut {expr} as name", k)
