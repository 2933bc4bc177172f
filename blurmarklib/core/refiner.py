#!/usr/bin/env python3

from tqdm import tqdm
from blurmarklib.core.scanner import ScanMode
from blurmarklib.core.scanner import scan
from blurmarklib.core.series import generate_series
from blurmarklib.core.timepoints import Interval

DEFAULT_REFINE_STEPS = (2.0, 0.5, 0.1)

#============================================

def _bounded(probe, lower: float = None, upper: float = None):
	"""
	Wrap a probe so seconds outside [lower, upper] read as no match.
	"""
	if lower is None and upper is None:
		return probe
	def bounded_probe(second: float):
		if lower is not None and second < lower:
			return None
		if upper is not None and second > upper:
			return None
		return probe(second)
	return bounded_probe

#============================================

def refine_interval(interval: Interval, probe, coarse_step: float,
	steps=DEFAULT_REFINE_STEPS, lower: float = None, upper: float = None,
	reporter=None, label: str = "") -> Interval:
	"""
	Sharpen both boundaries of a coarse interval.

	Each pass scans the window [start - previous_step, end + previous_step]
	at the next, finer step in single mode. A side the pass did not find
	keeps its previous value and is retried by the next pass. A pass that
	finds nothing at all ends refinement.

	Args:
		interval: Coarse interval from a multi-mode scan.
		probe: Predicate callable second -> Location | None.
		coarse_step: Step that produced the coarse interval.
		steps: Descending refinement step schedule.
		lower: Optional first probed second (usually 0).
		upper: Optional last probed second (usually the duration).
		reporter: Optional Reporter for progress messages.
		label: Prefix for progress messages.

	Returns:
		Interval: The refined interval.
	"""
	bounded_probe = _bounded(probe, lower, upper)
	previous_step = coarse_step
	current = interval
	for step in steps:
		# the window stays centred on the interval; out of range samples miss
		window_start = current.start.second - previous_step
		window_end = current.end.second + previous_step
		if reporter is not None:
			reporter.message(
				f"{label}scanning template for every {step:.1f} seconds "
				f"from {window_start:.1f} to {window_end:.1f}"
			)
		result = scan(generate_series(window_start, window_end, step),
			bounded_probe, ScanMode.SINGLE)
		if not result.found:
			if reporter is not None:
				reporter.message(f"{label}no match in refinement window, keeping {current}")
			break
		start = current.start
		end = current.end
		if result.forward_boundary is not None:
			start = result.forward_boundary
		if result.backward_boundary is not None:
			end = result.backward_boundary
		if start.second <= end.second:
			current = Interval(start, end)
		if reporter is not None:
			reporter.verbose_message(f"{label}range: {current}")
		previous_step = step
	return current

#============================================

def refine_intervals(intervals: list, probe, coarse_step: float,
	steps=DEFAULT_REFINE_STEPS, lower: float = None, upper: float = None,
	reporter=None) -> list:
	"""
	Refine every coarse interval in order, one at a time.
	"""
	quiet_mode = reporter is None or reporter.quiet
	indexed = list(enumerate(intervals))
	if quiet_mode:
		iter_parts = indexed
	else:
		iter_parts = tqdm(indexed, desc="refining", unit="part")
	refined = []
	for part_no, interval in iter_parts:
		refined.append(refine_interval(interval, probe, coarse_step,
			steps=steps, lower=lower, upper=upper, reporter=reporter,
			label=f"part#{part_no}: "))
	return refined
