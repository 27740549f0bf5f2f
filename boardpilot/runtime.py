"""Construction of the process-wide orchestration pipeline."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

import httpx

from boardpilot.config.settings import Settings, load_settings
from boardpilot.core.dispatcher import MutationDispatcher
from boardpilot.core.pipeline import OrchestrationPipeline
from boardpilot.core.resolver import CachePolicy, HierarchicalResolver
from boardpilot.services.calendar import CalendarClient
from boardpilot.services.trello import TrelloClient


def build_pipeline(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> OrchestrationPipeline:
    """Wire the Trello and calendar clients, resolver and dispatcher together."""

    trello = TrelloClient.from_settings(settings, transport=transport)
    resolver = HierarchicalResolver(
        trello,
        CachePolicy(
            ttl_seconds=settings.board_cache_ttl,
            invalidate_on_mutation=settings.board_cache_invalidate_on_mutation,
        ),
    )
    dispatcher = MutationDispatcher(trello, on_mutation=resolver.notify_mutation)
    return OrchestrationPipeline(
        resolver=resolver,
        dispatcher=dispatcher,
        calendar=CalendarClient.from_settings(settings, transport=transport),
    )


@lru_cache(maxsize=1)
def get_pipeline() -> OrchestrationPipeline:
    """Return the pipeline shared by every request in this process."""

    return build_pipeline(load_settings())
