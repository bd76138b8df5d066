"""Expression capability: how watch expressions and tasks get evaluated.

An expression is either a plain callable taking the scope (and, when
given, a locals mapping), or any object with an ``evaluate(scope, locals)``
method, e.g. the output of an expression compiler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Mapping, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from digestx.scope import Scope


@runtime_checkable
class Expression(Protocol):
    def evaluate(self, scope: Scope, locals: Mapping[str, Any] | None) -> Any: ...


ExpressionLike = Union[Expression, Callable[..., Any]]


def evaluate(
    expression: ExpressionLike,
    scope: Scope,
    locals: Mapping[str, Any] | None = None,
) -> Any:
    """Evaluate expression against scope.

    Plain callables get ``locals`` only when it was passed, so the common
    ``lambda scope: scope.value`` form works everywhere.
    """
    evaluate_fn = getattr(expression, "evaluate", None)
    if evaluate_fn is not None:
        return evaluate_fn(scope, locals)
    if locals is None:
        return expression(scope)
    return expression(scope, locals)
