# -*- coding: utf-8; -*-
"""Tree walkers.

These have a state stack and a node collector. Otherwise they work like
`ast.NodeVisitor` and `ast.NodeTransformer`, but for `treemacro` nodes.
Since nodes are immutable, a transformer rebuilds each node whose children
changed; unchanged subtrees are returned as-is (the same objects).

Basic usage summary::

    def shout(mytree):
        class Shouter(NodeTransformer):
            def transform(self, tree):
                if type(tree) is Literal and type(tree.value) is str:
                    self.collect(tree.value)
                    return Literal(tree.value.upper())
                return self.generic_visit(tree)  # recurse
        w = Shouter()
        mytree = w.visit(mytree)
        print(w.collected)  # collected values, in the order visited
        return mytree

    def getcalls(mytree, opname):
        class CallCollector(NodeVisitor):
            def examine(self, tree):
                if type(tree) is Call and tree.op == opname:
                    self.collect(tree)
                self.generic_visit(tree)
        w = CallCollector()
        w.visit(mytree)
        return w.collected
"""

__all__ = ["NodeVisitor", "NodeTransformer"]

from abc import ABCMeta, abstractmethod
from contextlib import contextmanager
from types import SimpleNamespace

from .nodes import Call, Node, iter_children


class BaseNodeWalker:
    """Tree walker base class, providing a state stack and a node collector."""
    def __init__(self, **bindings):
        """Bindings are loaded into the initial `self.state` as attributes."""
        self.reset(**bindings)

    def reset(self, **bindings):
        """Clear everything. Load new bindings into a blank `self.state`."""
        self._stack = [SimpleNamespace(**bindings)]
        self.collected = []

    @property
    def state(self):
        """The current state. Mutable."""
        return self._stack[-1]

    @contextmanager
    def withstate(self, **bindings):
        """Context manager. Walk with a temporarily replaced, updated state.

        Bindings update a copy of `self.state`; the old state is restored
        when the context exits. Example::

            with self.withstate(depth=self.state.depth + 1):
                tree = self.visit(tree)
        """
        newstate = SimpleNamespace(**vars(self.state))
        for k, v in bindings.items():
            setattr(newstate, k, v)
        self._stack.append(newstate)
        try:
            yield newstate
        finally:
            self._stack.pop()

    def collect(self, value):
        """Collect a value. The values are placed in the list `self.collected`."""
        self.collected.append(value)
        return value


class NodeVisitor(BaseNodeWalker, metaclass=ABCMeta):
    """Tree visitor. If you want to edit the tree, use `NodeTransformer` instead."""

    def visit(self, tree):
        """Start visiting `tree`. **Do not override this method; see `examine` instead.**

        A `list` or `tuple` of nodes is visited element by element.
        """
        if isinstance(tree, (list, tuple)):
            for elt in tree:
                self.visit(elt)
            return
        return self.examine(tree)

    def generic_visit(self, tree):
        """Visit all children of `tree`. Always returns `None`."""
        for child in iter_children(tree):
            self.visit(child)

    @abstractmethod
    def examine(self, tree):
        """Examine one node. **Abstract method, override this.**

        There is only one `examine` method. To detect node type, use `type(tree)`.

        This method must recurse explicitly where needed, by calling
        `self.generic_visit(tree)` or `self.visit(...)`.
        """


class NodeTransformer(BaseNodeWalker, metaclass=ABCMeta):
    """Tree transformer. If you only want to examine the tree, consider `NodeVisitor` instead."""

    def visit(self, tree):
        """Start transforming `tree`. **Do not override this method; see `transform` instead.**"""
        if isinstance(tree, list):
            return [self.visit(elt) for elt in tree]
        return self.transform(tree)

    def generic_visit(self, tree):
        """Transform all children of `tree`, and return the rebuilt `tree`.

        If no child changed, return `tree` itself.
        """
        if type(tree) is Call:
            op = self.visit(tree.op) if isinstance(tree.op, Node) else tree.op
            args = tuple(self.visit(arg) for arg in tree.args)
            if op is tree.op and all(new is old for new, old in zip(args, tree.args)):
                return tree
            return Call(op, args, tree.metadata)
        changes = {}
        for k in tree._fields:
            v = getattr(tree, k)
            if isinstance(v, Node):
                newv = self.visit(v)
                if newv is not v:
                    changes[k] = newv
        if changes:
            return tree.replace(**changes)
        return tree

    @abstractmethod
    def transform(self, tree):
        """Transform one node. **Abstract method, override this.**

        There is only one `transform` method. To detect node type, use `type(tree)`.

        This method must recurse explicitly where needed, by calling
        `self.generic_visit(tree)` or `self.visit(...)`.

        Return the new node. If you don't want to make changes, `return tree`.
        """
