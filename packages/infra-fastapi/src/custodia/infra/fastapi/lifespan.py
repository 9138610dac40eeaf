"""Lifespan composition for the custodia app factory.

Packages contribute :class:`~custodia.foundation.application.LifespanContribution`
hooks; the factory folds them into the single lifespan FastAPI accepts.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence

    from custodia.foundation.application import LifespanContribution

logger = logging.getLogger(__name__)


def _hook_name(hook: Any) -> str:
    return getattr(hook, "__qualname__", None) or repr(hook)


def compose_lifespan(
    hooks: Sequence[LifespanContribution],
) -> Callable[[Any], Any]:
    """Fold ``hooks`` into one lifespan context manager factory.

    Hooks start in ascending priority and stop in reverse order, so a
    service hook (100) is torn down before the database (75) it uses.
    If a hook fails on startup, the hooks already entered are unwound.

    Args:
        hooks: Lifespan contributions, in any order.

    Returns:
        A factory suitable for FastAPI's ``lifespan`` parameter.
    """
    ordered = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: Any) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contribution in ordered:
                name = _hook_name(contribution.hook)
                logger.info("lifespan_hook_entering: %s (priority=%d)", name, contribution.priority)
                await stack.enter_async_context(contribution.hook(app))
            logger.info("lifespan_ready: %d hook(s) active", len(ordered))
            yield
        logger.info("lifespan_stopped")

    return lifespan
