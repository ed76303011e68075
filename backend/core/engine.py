import logging
from collections import defaultdict
from typing import Callable, Dict, Iterator, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

# ==== Rates / pity ====
BASE_RATE = 0.006
SOFT_PITY_START = 72     # last pity count at the base rate
SOFT_PITY_STEP = 0.06
PITY_CEILING = 89        # pity saturates here; next draw is a certain rare drop

# Banner mechanics
FEATURED_SPLIT = 0.5     # featured share of an unguaranteed rare drop

# Query limits
MIN_TARGET = 1
MAX_TARGET = 7

PRUNE_EPSILON = 1e-12


class InvalidArgument(ValueError):
    pass


class PityState(NamedTuple):
    pity: int
    guaranteed: bool
    featured: int


Distribution = Dict[PityState, float]
StepCallback = Callable[[int, Distribution, Dict[int, float]], None]


def step_rate(pity: int) -> float:
    """Probability that the next draw is a rare drop, given the current pity count."""
    if pity <= SOFT_PITY_START:
        return BASE_RATE
    if pity >= PITY_CEILING:
        return 1.0
    return BASE_RATE + SOFT_PITY_STEP * (pity - SOFT_PITY_START)


def check_target(target: int) -> None:
    if target < MIN_TARGET or target > MAX_TARGET:
        logger.warning("rejected target count %s", target)
        raise InvalidArgument(f"target must be between {MIN_TARGET} and {MAX_TARGET}, got {target}")


def transition(state: PityState, mass: float, ceiling: int, rate: float) -> Iterator[Tuple[PityState, float]]:
    """
    Successors of one draw from `state`, with their share of `mass`.
    Featured counts saturate at `ceiling`. Zero-mass successors are not produced.
    """
    n, g, c = state

    # no rare drop: pity advances, everything else stays
    w_miss = mass * (1.0 - rate)
    if w_miss:
        yield PityState(min(n + 1, PITY_CEILING), g, c), w_miss

    w_rare = mass * rate
    if not w_rare:
        return

    if g:
        # guaranteed featured
        yield PityState(0, False, min(c + 1, ceiling)), w_rare
    else:
        # 50/50: losing sets the guarantee
        yield PityState(0, True, c), w_rare * (1.0 - FEATURED_SPLIT)
        yield PityState(0, False, min(c + 1, ceiling)), w_rare * FEATURED_SPLIT


def step(dist: Distribution, ceiling: int, rates: Dict[int, float],
         epsilon: float = PRUNE_EPSILON) -> Tuple[Distribution, Dict[int, float], float]:
    """
    Advance a distribution by one draw.

    States lighter than `epsilon` are frozen: carried over unchanged instead of
    being expanded, so no mass is lost and no featured count goes backwards.

    Returns the new distribution, the mass that moved into each featured count
    on this draw, and the mass that was frozen.
    """
    nxt = defaultdict(float)
    entered = defaultdict(float)
    frozen = 0.0

    for state, w in dist.items():
        if w == 0.0:
            continue
        if w < epsilon:
            nxt[state] += w
            frozen += w
            continue

        r = rates.get(state.pity)
        if r is None:
            r = rates[state.pity] = step_rate(state.pity)

        for nxt_state, nw in transition(state, w, ceiling, r):
            nxt[nxt_state] += nw
            if nxt_state.featured != state.featured:
                entered[nxt_state.featured] += nw

    return nxt, entered, frozen


def total_mass(dist: Distribution) -> float:
    return sum(dist.values())


def propagate(pity: int, guaranteed: bool, draws: int, ceiling: int,
              on_step: Optional[StepCallback] = None, epsilon: float = PRUNE_EPSILON) -> Distribution:
    """
    Run `draws` draws from a single starting state and return the final distribution.
    `on_step(draw, dist, entered)` is called after each draw, `draw` counting from 1.
    """
    dist: Distribution = {PityState(pity, bool(guaranteed), 0): 1.0}
    rates: Dict[int, float] = {}
    frozen = 0.0

    for k in range(1, draws + 1):
        dist, entered, frozen = step(dist, ceiling, rates, epsilon)
        if on_step is not None:
            on_step(k, dist, entered)

    logger.debug("propagated %d draws from %s: %d states, total mass %.12f, %.3g mass frozen",
                 draws, (pity, guaranteed), len(dist), total_mass(dist), frozen)
    return dist
