# -*- coding: utf-8; -*-
"""Hygienic macros, and how to opt out of hygiene: a `swap`, and an anaphoric `aif`.

Run as `python3 -m demo.hygiene` from the project top level.
"""

from treemacro import MacroRegistry, call, expand_macros, name, quote, substitute, u, unhygienic, unparse
from treemacro.hygiene import flatten_scopes

registry = MacroRegistry(terminals=["let", "set", "case", "->", "do_block"])

# `tmp` belongs to the macro. The user's own `tmp` is a different variable.
SWAP = quote(call("let", name("tmp"), u("a"),
                  call("do_block", call("set", u("a2"), u("b")),
                                   call("set", u("b2"), name("tmp")))))

@registry.macro("swap", [None, None])
def swap(a, b, **kw):
    return substitute(SWAP, {"a": a, "a2": a, "b": b, "b2": b})

# `it` is deliberately visible to the branches, so they can refer to the test result.
AIF = quote(call("let", unhygienic("it"), u("test"),
                 call("case", name("it"),
                      call("->", False, u("otherwise")),
                      call("->", name("_"), u("then")))))

@registry.macro("aif", 3)
def aif(test, then, otherwise, **kw):
    return substitute(AIF, {"test": test, "then": then, "otherwise": otherwise})


def main():
    for tree in (call("swap", name("tmp"), name("x")),
                 call("aif", call("lookup", "key"), call("print", name("it")), call("print", "not found"))):
        print(unparse(tree))
        expanded = expand_macros(tree, registry)
        print(f"  --> {unparse(expanded, color=True, registry=registry)}")
        print(f"  --> {unparse(flatten_scopes(expanded))}")

if __name__ == '__main__':
    main()
