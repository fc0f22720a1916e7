"""treemacro: Hygienic macro expander over a uniform, inspectable syntax tree."""

from .core import (MacroExpansionError, DuplicateUnquoteTarget, UnresolvedPlaceholder,  # noqa: F401
                   NoMatchingClause, ExpansionDepthExceeded, InvariantViolation,
                   RegistryFrozenError, MacroApplicationError)
from .dumper import dump  # noqa: F401
from .expander import expand_macros, expand_once, find_macro_calls  # noqa: F401
from .nodes import (Atom, NIL, Literal, Call, Placeholder, BindingName,  # noqa: F401
                    lit, call, name)
from .quotes import quote, u, unhygienic  # noqa: F401
from .registry import MacroRegistry, Pattern, arity, shape, argop  # noqa: F401
from .splicing import substitute, splice  # noqa: F401
from .unparser import unparse  # noqa: F401

# For public API inspection, import modules that wouldn't otherwise get imported.
from . import debug  # noqa: F401
from . import hygiene  # noqa: F401

__version__ = "1.0.0"
