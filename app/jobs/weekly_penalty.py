"""Weekly incomplete-quota penalty scheduled job."""

from __future__ import annotations

import asyncio
import logging

from app.services.registry import default_services

logger = logging.getLogger(__name__)


async def weekly_penalty_reconciliation() -> None:
    """Apply last week's penalties once the week has ended and not yet been reconciled."""
    penalties = default_services().penalties
    if not await asyncio.to_thread(penalties.is_reconciliation_needed):
        logger.debug("weekly_penalty_reconciliation: nothing to do")
        return

    # Storage calls and retry backoff block, so keep them off the event loop.
    results = await asyncio.to_thread(penalties.run)
    penalised = sum(1 for result in results if result.had_penalties)
    logger.info(
        "weekly_penalty_reconciliation completed for %s people (%s penalised)",
        len(results),
        penalised,
    )
