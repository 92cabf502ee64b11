"""Viewport density filter - Pure functions.

Decides which records the map actually renders for a zoom level and a
visible rectangle. Three stages run in order:

1. Magnitude floor: small events are hidden at coarse zoom.
2. Candidate cap: the strongest events nationwide, capped per zoom.
3. Viewport admission: candidates inside the visible bounds up to a render
   cap, backfilled with off-screen candidates at moderate zoom so the marker
   count stays stable while panning.

All functions are pure, deterministic and never modify their inputs.
"""

import math
from dataclasses import dataclass

from src.core.earthquake import CanonicalRecord
from src.core.geo import BoundingBox


# (minimum zoom, value) tiers, checked top to bottom
Tiers = tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class DensityPolicy:
    """Zoom-dependent thresholds of the density filter.

    Each table is a tuple of (minimum zoom, value) pairs ordered from the
    finest zoom down; the first pair whose minimum the zoom reaches wins,
    otherwise the matching default applies.

    Attributes:
        magnitude_floors: Minimum magnitude shown per zoom tier
        default_floor: Floor below the last tier
        candidate_caps: Maximum candidates per zoom tier
        default_candidate_cap: Candidate cap below the last tier
        render_caps: Maximum rendered markers per zoom tier
        default_render_cap: Render cap below the last tier
        backfill_min_zoom: Backfill off-screen candidates from this zoom up
    """
    magnitude_floors: Tiers = (
        (8.0, 0.0),
        (7.0, 2.5),
        (6.0, 3.0),
        (5.0, 3.5),
    )
    default_floor: float = 4.0
    candidate_caps: Tiers = (
        (7.0, 2000),
        (6.0, 1000),
        (5.0, 500),
    )
    default_candidate_cap: int = 200
    render_caps: Tiers = (
        (8.0, 1500),
        (7.0, 800),
        (6.0, 400),
    )
    default_render_cap: int = 200
    backfill_min_zoom: float = 6.0


DEFAULT_POLICY = DensityPolicy()


def _lookup(tiers: Tiers, zoom: float, default: float) -> float:
    # NaN fails every comparison and lands on the default (coarsest) tier
    for min_zoom, value in tiers:
        if zoom >= min_zoom:
            return value
    return default


def magnitude_floor(zoom: float, policy: DensityPolicy = DEFAULT_POLICY) -> float:
    """Minimum magnitude displayed at a zoom level.

    Pure function. Coarser zoom never has a lower floor.
    """
    return _lookup(policy.magnitude_floors, zoom, policy.default_floor)


def candidate_cap(zoom: float, policy: DensityPolicy = DEFAULT_POLICY) -> int:
    """Maximum number of display candidates at a zoom level.

    Pure function.
    """
    return int(_lookup(policy.candidate_caps, zoom, policy.default_candidate_cap))


def render_cap(zoom: float, policy: DensityPolicy = DEFAULT_POLICY) -> int:
    """Maximum number of rendered markers at a zoom level.

    Pure function.
    """
    return int(_lookup(policy.render_caps, zoom, policy.default_render_cap))


def select_candidates(
    records: list[CanonicalRecord],
    zoom: float,
    policy: DensityPolicy = DEFAULT_POLICY,
) -> list[CanonicalRecord]:
    """Apply the magnitude floor and the candidate cap.

    Pure function. Candidates are ordered by magnitude, strongest first;
    equal magnitudes keep their input order.

    Args:
        records: Full deduplicated record set
        zoom: Current zoom level
        policy: Density thresholds

    Returns:
        Capped candidate list
    """
    floor = magnitude_floor(zoom, policy)
    above_floor = [r for r in records if r.magnitude >= floor]
    ranked = sorted(above_floor, key=lambda r: r.magnitude, reverse=True)
    return ranked[:candidate_cap(zoom, policy)]


def admit_to_viewport(
    candidates: list[CanonicalRecord],
    zoom: float,
    visible_bounds: BoundingBox,
    policy: DensityPolicy = DEFAULT_POLICY,
) -> list[CanonicalRecord]:
    """Pick the candidates to render for the visible bounds.

    Pure function. In-viewport candidates are admitted first, up to the
    render cap; when the cap is not reached and the zoom is at or above the
    backfill threshold, off-screen candidates fill the rest in candidate
    order. The result keeps candidate order and contains no duplicates.

    Args:
        candidates: Output of select_candidates
        zoom: Current zoom level
        visible_bounds: Visible map rectangle
        policy: Density thresholds

    Returns:
        Records to render
    """
    limit = render_cap(zoom, policy)
    admitted: set[int] = set()

    for index, record in enumerate(candidates):
        if len(admitted) >= limit:
            break
        if visible_bounds.contains(record.latitude, record.longitude):
            admitted.add(index)

    if len(admitted) < limit and zoom >= policy.backfill_min_zoom:
        for index in range(len(candidates)):
            if len(admitted) >= limit:
                break
            admitted.add(index)

    return [record for index, record in enumerate(candidates) if index in admitted]


def filter_for_display(
    records: list[CanonicalRecord],
    zoom: float,
    visible_bounds: BoundingBox,
    policy: DensityPolicy = DEFAULT_POLICY,
) -> list[CanonicalRecord]:
    """Reduce the full record set to what the map should render.

    Pure function. Same inputs always give the same output, in the same
    order. Out-of-range zoom or degenerate bounds give a smaller or empty
    result rather than an error.

    Args:
        records: Full deduplicated record set
        zoom: Current zoom level
        visible_bounds: Visible map rectangle
        policy: Density thresholds

    Returns:
        Visible subset, strongest first
    """
    if not records:
        return []
    if zoom is None or (isinstance(zoom, float) and math.isnan(zoom)):
        zoom = float("-inf")

    candidates = select_candidates(records, zoom, policy)
    return admit_to_viewport(candidates, zoom, visible_bounds, policy)
