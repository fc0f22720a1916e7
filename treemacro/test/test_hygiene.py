# -*- coding: utf-8 -*-
"""Test macro hygiene: names introduced by a macro never capture names at its use site."""

from ..core import InvariantViolation
from ..expander import expand_macros, expand_once
from ..hygiene import (CALLER, TEMPLATE, check_no_pending_scopes, flatten_scopes,
                       get_pending_scopes, max_scope, same_binding, sanitize)
from ..nodes import BindingName, Call, call, lit, name
from ..quotes import quote, u, unhygienic
from ..registry import MacroRegistry
from ..splicing import substitute

from .macros import evaluate, make_hygiene_registry


def test_sanitize():
    template = quote(call("let", name("x"), u("value"), call("+", name("x"), unhygienic("it"))))
    tree = substitute(template, {"value": name("x")})  # the caller's x
    assert len(get_pending_scopes(tree)) == 5  # 3 template names, 2 template calls

    result = sanitize(tree, 7)
    assert result == call("let", name("x", 7), name("x"), call("+", name("x", 7), name("it")))
    assert result.metadata["scope"] == 7
    assert result.args[2].metadata["scope"] == 7
    assert not get_pending_scopes(result)
    check_no_pending_scopes(result)

    # Unhygienic names land in the scope of the call site.
    result = sanitize(tree, 8, 3)
    assert result.args[2].args[1] == name("it", 3)
    assert result.args[1] == name("x")

    # Without pending scopes, there is nothing to do.
    plain = call("let", name("x"), 1, name("x", 2))
    assert sanitize(plain, 9) is plain

    for badtag in (0, -1, True, "1", None):
        try:
            sanitize(tree, badtag)
        except ValueError:
            pass
        else:
            assert False, f"should have rejected tag {badtag!r}"

    try:
        sanitize(tree, 1, 0)
    except ValueError:
        pass
    else:
        assert False

    try:
        check_no_pending_scopes(tree)
    except InvariantViolation:
        pass
    else:
        assert False


def test_same_binding():
    assert same_binding(name("x"), name("x"))
    assert same_binding(name("x", 2), name("x", 2))
    assert not same_binding(name("x"), name("x", 2))
    assert not same_binding(name("x", 1), name("x", 2))
    assert not same_binding(name("x"), name("y"))
    assert not same_binding(name("x"), lit("x"))
    assert TEMPLATE is not CALLER


def test_no_capture():
    registry = make_hygiene_registry()

    # The macro binds its own `x`; the user's `x` passes through untouched.
    tree = expand_macros(call("with_x", name("x")), registry)
    assert tree == call("let", name("x", 1), 1, name("x"))
    assert evaluate(tree, {("x", None): 42}) == 42

    # A `tmp` at the use site is not the macro's `tmp`.
    tree = expand_macros(call("twice", name("tmp")), registry)
    assert evaluate(tree, {("tmp", None): 5}) == 10

    # Each expansion gets its own tag.
    tree = expand_macros(call("+", call("with_x", name("x")), call("twice", 21), call("with_x", name("x"))),
                         registry)
    tags = [arg.args[0].scope for arg in tree.args]
    assert len(set(tags)) == 3
    assert all(type(tag) is int for tag in tags)
    assert evaluate(tree, {("x", None): 1}) == 1 + 42 + 1

    # Nested expansions, too.
    tree = expand_macros(call("with_x", call("with_x", name("x"))), registry)
    outer, inner = tree, tree.args[2]
    assert outer.args[0].scope != inner.args[0].scope
    assert evaluate(tree, {("x", None): 42}) == 42


def test_opt_out():
    registry = make_hygiene_registry()

    # Anaphoric macro: the body sees the `it` bound by the macro.
    tree = expand_macros(call("with_it", name("it")), registry)
    assert tree == call("let", name("it"), 1, name("it"))
    assert evaluate(tree) == 1

    # A macro built out of an anaphoric macro. The `it` in the template belongs
    # to the outer macro's expansion, and the inner macro binds `it` in that
    # same scope, so they still refer to the same binding.
    template = quote(call("with_it", call("+", name("it"), u("n"))))
    def add_it(n, **kw):
        return substitute(template, {"n": n})
    registry.register("add_it", 1, add_it)
    tree = expand_macros(call("add_it", name("it")), registry)
    letname, value, body = tree.args
    assert letname == body.args[0]
    assert letname.scope is not None
    assert body.args[1] == name("it")  # the user's own `it`
    assert evaluate(tree, {("it", None): 41}) == 42

    # A macro that builds its output by hand, without `quote`, is unhygienic.
    def with_x_raw(body, **kw):
        return call("let", name("x"), 1, body)
    registry.register("with_x_raw", 1, with_x_raw)
    tree = expand_macros(call("with_x_raw", name("x")), registry)
    assert evaluate(tree, {("x", None): 42}) == 1


def test_flatten_scopes():
    tree = call("let", name("x", 1), 1, call("+", name("x", 1), name("x")))
    assert flatten_scopes(tree) == call("let", name("x_1"), 1, call("+", name("x_1"), name("x")))

    # Don't collide with names already in use.
    tree = call("let", name("x", 1), name("x_1"), name("x", 1))
    flat = flatten_scopes(tree)
    assert flat == call("let", name("x__1"), name("x_1"), name("x__1"))
    assert all(type(node) is not BindingName or node.scope is None for node in flat.args)

    assert flatten_scopes(call("let", name("x", 2), 1, name("x", 2)), sep="$") == call("let", name("x$2"), 1, name("x$2"))

    try:
        flatten_scopes(quote(call("f", name("x"))))
    except InvariantViolation:
        pass
    else:
        assert False


def test_registry_terminals_are_not_renamed():
    # Hygiene is about names, not operators; a terminal in a template stays as-is.
    registry = MacroRegistry(terminals=["let"])
    template = quote(call("let", name("y"), u("v"), name("y")))
    registry.register("id", 1, lambda v, **kw: substitute(template, {"v": v}))
    tree = expand_macros(call("id", 3), registry)
    assert type(tree) is Call and tree.op == "let"
    assert evaluate(tree) == 3


def test_separate_expansions_never_share_tags():
    # `outer` binds `x` to 1 and calls `inner`, which binds its own `x` to 2
    # around the outer `x`. Expanded one layer at a time, each step runs in a
    # new context; the tags of the earlier step must stay taken.
    registry = MacroRegistry(terminals=["let"])
    outer_template = quote(call("let", name("x"), 1, call("inner", name("x"))))
    inner_template = quote(call("let", name("x"), 2, u("v")))
    registry.register("outer", 0, lambda **kw: substitute(outer_template, {}))
    registry.register("inner", 1, lambda v, **kw: substitute(inner_template, {"v": v}))

    step1 = expand_once(call("outer"), registry)
    assert max_scope(step1) == 1
    step2 = expand_once(step1, registry)
    outer_x, inner_x = step2.args[0], step2.args[2].args[0]
    assert not same_binding(outer_x, inner_x)
    assert max_scope(step2) == 2
    assert evaluate(step2) == 1

    tree = expand_macros(step1, registry)
    assert tree == step2
    assert evaluate(tree) == 1

    # Finishing the job in one go gives the same meaning.
    assert evaluate(expand_macros(call("outer"), registry)) == 1


def test_max_scope():
    assert max_scope(call("f", 1, name("x"))) == 0
    assert max_scope(call("f", name("x", 3), call("g", name("y", 7)))) == 7
    assert max_scope(call("f", name("x", 2), scope=9)) == 9
    assert max_scope(quote(call("f", name("x")))) == 0  # pending scopes are not tags


def runtests():
    test_sanitize()
    test_same_binding()
    test_no_capture()
    test_opt_out()
    test_flatten_scopes()
    test_registry_terminals_are_not_renamed()
    test_separate_expansions_never_share_tags()
    test_max_scope()

if __name__ == '__main__':
    runtests()
