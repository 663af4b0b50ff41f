# gigsim/simulation.py
from __future__ import annotations

import asyncio
import random
from typing import Optional

from gigsim.config import RNG_POSITION_STRIDE
from gigsim.engine import PerformanceEngine, entries_to_requests
from gigsim.errors import DuplicatePerformanceError, GigNotFoundError, MissingEntityError
from gigsim.log import get_logger
from gigsim.models import GigRun

logger = get_logger(__name__)


def position_rng(
    seed: Optional[int],
    position: int,
    gig_id: Optional[str] = None,
) -> random.Random:
    """
    Independent stream per position. Deterministic when a seed is given;
    otherwise still one fresh stream per position. With a gig id, the same
    seed gives each gig its own streams.
    """
    if seed is None:
        seed = random.randrange(1_000_000_000)
    if gig_id is not None:
        return random.Random(f"{seed}:{gig_id}:{position}")
    return random.Random(seed + position * RNG_POSITION_STRIDE)


async def run_setlist(
    engine: PerformanceEngine,
    gig_id: str,
    *,
    seed: Optional[int] = None,
    abort: Optional[asyncio.Event] = None,
) -> GigRun:
    """
    Drive the engine over a gig's setlist in position order.

    A position that hard-fails is noted in `failures` and the run moves on.
    Once `abort` is set no further positions are started; records already
    written stay where they are.
    """
    store = engine.store
    gig = await store.get_gig(gig_id)
    if gig is None:
        raise GigNotFoundError(gig_id)

    entries = await store.list_setlist_entries(gig.setlist_id)
    requests = entries_to_requests(gig, entries)
    run = GigRun(gig_id=gig.id)

    for i, request in enumerate(requests):
        if abort is not None and abort.is_set():
            run.aborted = True
            run.skipped_positions = [r.position for r in requests[i:]]
            logger.info("gig_aborted", gig_id=gig.id, skipped=len(run.skipped_positions))
            break
        try:
            result = await engine.process_position(request, position_rng(seed, request.position, gig.id))
        except (MissingEntityError, DuplicatePerformanceError) as exc:
            run.failures[request.position] = str(exc)
            continue
        run.records.append(result.record)

    run.stage_events = await store.list_stage_events(gig.id)
    logger.info(
        "setlist_finished",
        gig_id=gig.id,
        performed=len(run.records),
        failed=len(run.failures),
        aborted=run.aborted,
    )
    return run
