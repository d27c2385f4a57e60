"""
Minimal action pipeline.

Each action is built with the next step as its ``app`` and exposes
``call(env)``; actions may also define ``recover(env, error)``. When an
error escapes the chain, every action that was entered gets a chance to
recover, innermost first, and the original error is re-raised.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger("provisioner")

ActionFactory = Callable[[Callable[[Any], Any]], Any]


def _done(env: Any) -> None:
    return None


class Pipeline:
    """Runs a fixed sequence of actions against one env.

    Args:
        *factories: Callables taking the next step and returning an action,
            typically action classes or :func:`functools.partial` of them.
    """

    def __init__(self, *factories: ActionFactory) -> None:
        self.factories = factories

    def run(self, env: Any) -> Any:
        """Run the chain and return the first action's result."""
        entered: list[Any] = []

        def build(index: int) -> Callable[[Any], Any]:
            if index == len(self.factories):
                return _done
            action = self.factories[index](build(index + 1))

            def step(env: Any) -> Any:
                entered.append(action)
                return action.call(env)

            return step

        try:
            return build(0)(env)
        except Exception as error:
            for action in reversed(entered):
                recover = getattr(action, "recover", None)
                if recover is None:
                    continue
                try:
                    recover(env, error)
                except Exception:
                    logger.exception("Recovery of %s failed", type(action).__name__)
            raise
