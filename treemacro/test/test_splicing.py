# -*- coding: utf-8 -*-
"""Test unquote substitution."""

from ..core import UnresolvedPlaceholder
from ..nodes import NIL, Atom, Call, Literal, Placeholder, call, name
from ..quotes import quote, u
from ..splicing import get_placeholders, splice, substitute


def test_substitute():
    template = quote(call("f", call("g", u("a")), Call(call("h", u("op")), [])))
    result = substitute(template, {"a": name("y"), "op": name("k")})
    assert result == call("f", call("g", name("y")), Call(call("h", name("k")), []))
    assert not get_placeholders(result)

    # Substituted nodes are spliced in as-is.
    arg = call("expensive", 1, 2)
    result = substitute(quote(call("f", u("x"))), {"x": arg})
    assert result.args[0] is arg

    # Entries the template doesn't use are ignored.
    assert substitute(quote(call("f", u("x"))), {"x": 1, "y": 2}) == call("f", 1)

    assert splice(quote(call("f", u("x"), u("y"))), x=1, y="two") == call("f", 1, "two")

    # Metadata of the template survives.
    template = quote(call("f", u("x"), line=3))
    assert substitute(template, {"x": 1}).metadata["line"] == 3


def test_literal_values():
    template = quote(u("x"))
    for value in (42, 1.5, True, "hello", Atom("ok"), (1, Atom("ok"))):
        result = substitute(template, {"x": value})
        assert type(result) is Literal
        assert result == Literal(value)
    assert substitute(template, {"x": None}) == Literal(NIL)

    try:
        substitute(template, {"x": [1, 2]})
    except TypeError:
        pass
    else:
        assert False


def test_single_pass():
    # The value contains the same placeholder it replaces. No rescan, so no loop.
    template = quote(call("f", u("x")))
    result = substitute(template, {"x": call("g", Placeholder("x"))})
    assert result == call("f", call("g", Placeholder("x")))
    assert get_placeholders(result) == [Placeholder("x")]


def test_unresolved():
    template = quote(call("f", u("x"), u("y")))
    try:
        substitute(template, {"x": 1, "z": 3})
    except UnresolvedPlaceholder as err:
        assert err.target == "y"
        assert err.available == ("x", "z")
    else:
        assert False


def test_get_placeholders():
    template = quote(call("f", u("b"), call("g", u("a")), u("c")))
    assert [p.target for p in get_placeholders(template)] == ["b", "a", "c"]
    assert get_placeholders(call("f", 1)) == []


def runtests():
    test_substitute()
    test_literal_values()
    test_single_pass()
    test_unresolved()
    test_get_placeholders()

if __name__ == '__main__':
    runtests()
