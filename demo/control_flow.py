# -*- coding: utf-8; -*-
"""Layered control flow: `unless` is a macro over `if`, which is a macro over the terminal `case`.

Run as `python3 -m demo.control_flow` from the project top level.
"""

from treemacro import MacroRegistry, NIL, argop, call, quote, shape, substitute, u
from treemacro.debug import format_registry, step_expansion

registry = MacroRegistry(terminals=["case"])

IF = quote(call("case", u("cond"),
                call("->", True, u("body")),
                call("->", False, NIL)))

@registry.macro("if", shape(None, argop("do_block", arity=1)))
def if_(cond, block, **kw):
    """[cond, do_block(body)] Run `body` if `cond` is true."""
    return substitute(IF, {"cond": cond, "body": block.args[0]})

UNLESS = quote(call("if", call("!", u("cond")),
                    call("do_block", u("body"))))

@registry.macro("unless", shape(None, argop("do_block", arity=1)))
def unless(cond, block, **kw):
    """[cond, do_block(body)] Run `body` if `cond` is false."""
    return substitute(UNLESS, {"cond": cond, "body": block.args[0]})


def main():
    print(format_registry(registry, color=True))
    tree = call("unless", False, call("do_block", "entered"), line=1)
    step_expansion(tree, registry, filename="control_flow", detailed=True)
    step_expansion(tree, registry, mode="dump", filename="control_flow")

if __name__ == '__main__':
    main()
