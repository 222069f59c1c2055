"""Mesh-wide sweeps over cell footprints.

These loops sit between the recharge engine and the flow solver: they walk
the top faces of boundary cells, collect stream overlaps and flag cells for
refinement. Turning results into right-hand-side entries stays with the
solver.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np

from gwflow.streams.catalog import StreamCatalog
from gwflow.streams.recharge import IntersectionResult, StreamRecharge
from gwflow.streams.utils import safe_build_kdtree

logger = logging.getLogger(__name__)

Cells = Union[Mapping[Hashable, Any], Iterable[Any]]


def _keyed(cells: Cells) -> List[Tuple[Hashable, Any]]:
    if isinstance(cells, Mapping):
        return list(cells.items())
    return list(enumerate(cells))


def collect_recharge(engine: StreamRecharge, cells: Cells,
                     workers: Optional[int] = None) -> Dict[Hashable, List[IntersectionResult]]:
    """Run `recharge_for_cell` over many cell footprints.

    Parameters:
    - engine: `StreamRecharge`
    - cells: mapping cell_key -> footprint, or an iterable of footprints
      (keys are then the positions)
    - workers: thread count; None or 1 runs serially

    Returns: dict cell_key -> results, holding only cells with at least one
    overlap. Insertion order follows `cells`.
    """
    items = _keyed(cells)

    def run(item):
        key, footprint = item
        _, results = engine.recharge_for_cell(footprint)
        return key, results

    if workers is None or workers <= 1:
        pairs = [run(item) for item in items]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            pairs = list(pool.map(run, items))

    out = {key: results for key, results in pairs if results}
    logger.info('Stream recharge: %d of %d cells intersect streams', len(out), len(items))
    return out


def flag_cells_for_refinement(engine: StreamRecharge, cells: Cells) -> np.ndarray:
    """Boolean mask, one entry per cell, True where a stream overlaps the cell."""
    items = _keyed(cells)
    flags = np.zeros(len(items), dtype=bool)
    for i, (_, footprint) in enumerate(items):
        _, results = engine.recharge_for_cell(footprint)
        flags[i] = bool(results)
    logger.info('Flagged %d of %d cells for refinement', int(flags.sum()), flags.size)
    return flags


def total_recharge(results_by_cell: Mapping[Hashable, List[IntersectionResult]]) -> float:
    """Sum of weighted rates over all cells (mass balance check)."""
    return float(sum(r.weighted_rate for results in results_by_cell.values() for r in results))


def recharge_by_stream(results_by_cell: Mapping[Hashable, List[IntersectionResult]]) -> Dict[int, float]:
    """Weighted rate per stream id summed over all cells."""
    out: Dict[int, float] = {}
    for results in results_by_cell.values():
        for r in results:
            out[r.stream_id] = out.get(r.stream_id, 0.0) + r.weighted_rate
    return out


def nearest_stream_midpoint(catalog: StreamCatalog, point) -> Tuple[Optional[int], float]:
    """Usable stream whose segment midpoint is closest to `point`.

    The distance is to the midpoint, not to the segment or its footprint, so
    for long segments it overstates how far the point is from the water.

    Returns ``(None, inf)`` when the catalog has no usable segment. Meant for
    diagnostics, e.g. reporting which stream a dry point was expected to hit.
    """
    ids = catalog.complete_ids()
    mids = np.array([[(catalog[i].a[0] + catalog[i].b[0]) * 0.5,
                      (catalog[i].a[1] + catalog[i].b[1]) * 0.5] for i in ids], dtype=float).reshape(-1, 2)
    tree = safe_build_kdtree(mids, name='stream_midpoint_tree')
    if tree is None:
        return None, float('inf')
    dist, idx = tree.query([float(point[0]), float(point[1])], k=1)
    return int(ids[int(idx)]), float(dist)
