# -*- coding: utf-8 -*-
"""Test the expansion driver."""

import sys
import threading

from ..core import (ExpansionContext, ExpansionDepthExceeded, InvariantViolation,
                    MacroApplicationError, NoMatchingClause, UnresolvedPlaceholder)
from ..expander import (DEFAULT_MAX_DEPTH, ExpansionState, MacroExpander,
                        expand_macros, expand_once, find_macro_calls, global_postprocess)
from ..nodes import NIL, Call, Placeholder, call, lit, name
from ..quotes import quote, u
from ..registry import MacroRegistry, anyargs, arity
from ..splicing import substitute

from .macros import evaluate, make_control_flow_registry


def test_control_flow():
    registry = make_control_flow_registry()
    tree = call("unless", False, call("do_block", "entered"))

    expander = MacroExpander(registry)
    result = expander.visit_recursively(tree)
    global_postprocess(result, registry=expander.registry)
    # unless -> if -> case (terminal).
    assert expander.transitions == 2
    assert result == call("case", call("!", False),
                          call("->", True, "entered"),
                          call("->", False, NIL))
    assert evaluate(result) == "entered"

    result = expand_macros(call("unless", True, call("do_block", "entered")), registry)
    assert evaluate(result) is None

    result = expand_macros(call("if", True, call("do_block", 1), call("else_block", 2)), registry)
    assert result.op == "case"
    assert evaluate(result) == 1
    result = expand_macros(call("if", False, call("do_block", 1), call("else_block", 2)), registry)
    assert evaluate(result) == 2

    # Macro invocations in arguments of non-macro calls are expanded, too.
    result = expand_macros(call("do_block", call("unless", False, call("do_block", 1)), 2), registry)
    assert result.op == "do_block"
    assert result.args[0].op == "case"
    assert not find_macro_calls(result, registry)

    # ...as are those in operator position.
    result = expand_macros(Call(call("unless", False, call("do_block", 1)), [lit(2)]), registry)
    assert result.op.op == "case"


def test_fixpoint():
    registry = make_control_flow_registry()
    expanded = expand_macros(call("unless", False, call("do_block", "entered")), registry)

    # Expanding an already expanded tree does nothing at all.
    assert expand_macros(expanded, registry) is expanded
    expander = MacroExpander(registry)
    assert expander.visit_recursively(expanded) is expanded
    assert expander.transitions == 0

    tree = call("case", name("x"), call("->", True, 1))
    assert expand_macros(tree, registry) is tree
    tree = lit(42)
    assert expand_macros(tree, registry) is tree


def test_expand_once():
    registry = make_control_flow_registry()
    tree = call("unless", False, call("do_block", "entered"))

    step1 = expand_once(tree, registry)
    assert step1 == call("if", call("!", False), call("do_block", "entered"))
    assert [macroname for macroname, _ in find_macro_calls(step1, registry)] == ["if"]

    step2 = expand_once(step1, registry)
    assert step2 == expand_macros(tree, registry)
    assert not find_macro_calls(step2, registry)


def test_depth_guard():
    registry = MacroRegistry(terminals=[])

    def loop(**kw):
        return call("loop")
    registry.register("loop", arity(0), loop)

    try:
        expand_macros(call("loop"), registry, max_depth=10)
    except ExpansionDepthExceeded as err:
        assert err.limit == 10
        assert len(err.path) == 11
        assert all(macroname == "loop" for macroname, _ in err.path)
        assert "deeper than 10 levels" in str(err)
    else:
        assert False

    try:
        expand_macros(call("loop"), registry)
    except ExpansionDepthExceeded as err:
        assert err.limit == DEFAULT_MAX_DEPTH
    else:
        assert False

    # Growing expansions are caught too, along the deepest path.
    def grow(*args, **kw):
        return call("grow", call("grow"), *args)
    registry.register("grow", anyargs(), grow)
    try:
        expand_macros(call("grow"), registry, max_depth=5)
    except ExpansionDepthExceeded:
        pass
    else:
        assert False

    # The limit is on nesting, not on the total number of expansions.
    registry = make_control_flow_registry()
    tree = call("do_block", *[call("unless", False, call("do_block", k)) for k in range(10)])
    expander = MacroExpander(registry, max_depth=2)
    expander.visit_recursively(tree)
    assert expander.transitions == 20

    for bad in (0, -1, 1.5):
        try:
            expand_macros(call("loop"), registry, max_depth=bad)
        except ValueError:
            pass
        else:
            assert False, f"should have rejected max_depth {bad!r}"


def test_transformer_errors():
    registry = MacroRegistry(terminals=[])

    def crash(**kw):
        raise ValueError("ouch")
    def notanode(**kw):
        return 42
    def unresolved(**kw):
        return substitute(quote(call("f", u("missing"))), {})

    registry.register("crash", arity(0), crash)
    registry.register("notanode", arity(0), notanode)
    registry.register("unresolved", arity(0), unresolved)

    try:
        expand_macros(call("crash", line=5), registry, filename="example.tm")
    except MacroApplicationError as err:
        assert type(err.__cause__) is ValueError
        assert "example.tm:5: crash()" in str(err)
        assert "in macro invocation for 'crash'" in str(err)
    else:
        assert False

    try:
        expand_macros(call("notanode"), registry)
    except MacroApplicationError as err:
        assert type(err.__cause__) is TypeError
    else:
        assert False

    # Our own error types pass through as-is.
    try:
        expand_macros(call("unresolved"), registry)
    except UnresolvedPlaceholder as err:
        assert err.target == "missing"
    else:
        assert False

    # A macro that expands its arguments inside-out gets a telescoped report.
    def outer(body, *, expander, **kw):
        return call("wrapped", expander.visit_recursively(body))
    registry.register("outer", arity(1), outer)
    try:
        expand_macros(call("outer", call("crash")), registry)
    except MacroApplicationError as err:
        assert type(err.__cause__) is ValueError
        msg = str(err)
        assert msg.startswith("An exception occurred during macro expansion.")
        assert msg.index("'outer'") < msg.index("'crash'")
    else:
        assert False

    # Expanding a template before it is sanitized would split its bindings.
    # Expand the arguments first, and substitute afterwards.
    template = quote(call("let", name("x"), 1, u("body")))
    def eager(body, *, expander, **kw):
        return expander.visit_recursively(substitute(template, {"body": body}))
    def patient(body, *, expander, **kw):
        return substitute(template, {"body": expander.visit_recursively(body)})
    registry.register("eager", arity(1), eager)
    registry.register("patient", arity(1), patient)
    try:
        expand_macros(call("eager", name("x")), registry)
    except InvariantViolation as err:
        assert "unsanitized" in str(err)
    else:
        assert False
    tree = expand_macros(call("patient", name("x")), registry)
    assert tree.args[0] == name("x", 1)
    assert tree.args[2] == name("x")


def test_deep_tree():
    # The walk is recursive; a tree deeper than the Python recursion limit
    # is reported as such, even when it contains no macros.
    tree = lit(0)
    for _ in range(2 * sys.getrecursionlimit()):
        tree = call("f", tree)
    try:
        expand_macros(tree, MacroRegistry(terminals=[]))
    except ExpansionDepthExceeded as err:
        assert "nested too deeply" in str(err)
        assert type(err.__cause__) is RecursionError
    else:
        assert False


def test_invariants():
    registry = make_control_flow_registry()

    for bad in (call("f", Placeholder("x")), call("f", u("x"))):
        try:
            expand_macros(bad, registry)
        except InvariantViolation:
            pass
        else:
            assert False

    # A template that was never substituted must not leak.
    template = quote(call("f", name("x")))
    try:
        global_postprocess(template)
    except InvariantViolation:
        pass
    else:
        assert False

    try:
        global_postprocess(call("unless", False, call("do_block", 1)), registry=registry)
    except InvariantViolation:
        pass
    else:
        assert False

    try:
        expand_macros("not a tree", registry)
    except TypeError:
        pass
    else:
        assert False

    try:
        ExpansionContext(registry, max_depth=10)
    except ValueError:  # not frozen
        pass
    else:
        assert False


def test_expander_state():
    registry = make_control_flow_registry()

    expander = MacroExpander(registry)
    assert expander.phase is ExpansionState.SCANNING
    assert expander.registry.frozen
    assert not registry.frozen

    try:
        expander.visit_recursively(call("if", 1, 2, 3, 4))
    except NoMatchingClause as err:
        assert err.macroname == "if"
        assert len(err.patterns) == 2
    else:
        assert False
    assert expander.phase is ExpansionState.FAILED

    expander = MacroExpander(registry)
    expander.visit_recursively(call("unless", False, call("do_block", 1)))

    # Tags count up over the lifetime of an expander.
    assert expander.context.last_tag == 2
    assert expander.context.fresh_tag() == 3


def test_debughook():
    registry = make_control_flow_registry()
    expander = MacroExpander(registry)

    log = []
    phases = []
    def hook(invocation, expansion, macroname, transformer):
        log.append((macroname, invocation, expansion, transformer.__name__))
        phases.append(expander.phase)

    with expander.debughook(hook):
        expander.visit_recursively(call("unless", False, call("do_block", "entered")))
    assert [entry[0] for entry in log] == ["unless", "if"]
    assert log[0][1] == call("unless", False, call("do_block", "entered"))
    assert log[0][2] == call("if", call("!", False), call("do_block", "entered"))
    assert [entry[3] for entry in log] == ["unless", "if_"]
    assert phases == [ExpansionState.SUBSTITUTED] * 2

    # Uninstalled when the context exits.
    expander.visit_recursively(call("unless", False, call("do_block", "entered")))
    assert len(log) == 2


def test_threads():
    registry = make_control_flow_registry()
    tree = call("unless", False, call("do_block", "entered"))
    expected = expand_macros(tree, registry)

    results = []
    def worker():
        for _ in range(20):
            results.append(expand_macros(tree, registry))
    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(results) == 80
    assert all(result == expected for result in results)


def runtests():
    test_control_flow()
    test_fixpoint()
    test_expand_once()
    test_depth_guard()
    test_transformer_errors()
    test_deep_tree()
    test_invariants()
    test_expander_state()
    test_debughook()
    test_threads()

if __name__ == '__main__':
    runtests()
