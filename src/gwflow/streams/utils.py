"""
utils.py

Small helpers shared across the stream modules: robust exception logging,
a one-call logging setup for scripts and a defensive KDTree builder.

The public helpers:
- `configure_logging(level)` : attach a console handler to the `gwflow` logger
- `safe_log_exception(msg, exc, **ctx)` : logs exceptions robustly
- `safe_build_kdtree(points, name='KDTree')` : returns a cKDTree or None

"""

from typing import Any, Optional
import sys
import logging
import numpy as np

logger = logging.getLogger(__name__)

_LOG_FORMAT = "[%(levelname)s] %(message)s"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
	"""Attach a console handler to the package logger once.

	Calling this repeatedly only updates the level; it never stacks handlers.
	"""
	log = logging.getLogger('gwflow')
	if not log.handlers:
		h = logging.StreamHandler(sys.stdout)
		h.setFormatter(logging.Formatter(_LOG_FORMAT))
		log.addHandler(h)
	for h in log.handlers:
		h.setLevel(level)
	log.setLevel(level)
	return log


def safe_log_exception(msg: str, exc: Exception, **ctx: Any) -> None:
	"""Log a per-stream failure with its context and keep going.

	The recharge engine calls this when one stream/cell overlap cannot be
	computed, passing e.g. ``stream_id`` and ``cell_bbox`` as context so the
	offending geometry can be found in the stream file. The traceback goes
	to the module logger; if the logging machinery itself breaks, a single
	line is written to `sys.stderr` so the sweep is not aborted by it.
	"""
	detail = ' | '.join(f"{k}={v!r}" for k, v in ctx.items())
	try:
		if detail:
			logger.exception('%s | %s | %s', msg, exc, detail)
		else:
			logger.exception('%s | %s', msg, exc)
	except Exception:
		try:
			sys.stderr.write(f'LOGGING FAILURE: {msg} {exc} {detail}\n')
		except Exception:
			pass


def safe_build_kdtree(points: Any, name: str = 'KDTree') -> Optional[object]:
	"""Build a `scipy.spatial.cKDTree` over (n,2) stream points.

	Used for diagnostic lookups such as the stream closest to a dry point.
	A catalog with no usable segment yields no points, so ``None`` or an
	empty array returns ``None`` instead of a tree; callers treat that as
	"no stream". Malformed input (wrong type or shape) is logged and also
	returns ``None``. Anything else is logged under `name` and re-raised.
	"""
	if points is None:
		logger.debug('%s: no points, not building tree', name)
		return None
	try:
		pts = np.asarray(points, dtype=float)
		if pts.size == 0:
			logger.debug('%s: no points, not building tree', name)
			return None
		if pts.ndim != 2:
			raise ValueError(f'expected (n,k) points, got shape {pts.shape}')
		from scipy.spatial import cKDTree

		return cKDTree(pts)
	except (ValueError, TypeError, IndexError):
		logger.exception('%s: failed to build cKDTree for provided points', name)
		return None
	except Exception:
		logger.exception('%s: unexpected error while building cKDTree; re-raising', name)
		raise
