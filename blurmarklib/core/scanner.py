#!/usr/bin/env python3

"""
Dual-direction scan over a sample series.

The series is split at its midpoint. One worker walks the first half
from the start, the other walks the second half from the end, so at most
two probes are in flight at any time. In single mode each worker stops at
its first hit, which gives the first and last appearance in the window.
In multi mode each worker collects every run of consecutive hits.
"""

import enum
from concurrent.futures import ThreadPoolExecutor
from blurmarklib.core.timepoints import Interval
from blurmarklib.core.timepoints import ScanResult
from blurmarklib.core.timepoints import TimePoint

#============================================

class ScanMode(enum.Enum):
	SINGLE = "single"
	MULTI = "multi"

#============================================

class EdgeState(enum.Enum):
	OUTSIDE = "outside"
	INSIDE = "inside"

#============================================

class EdgeTracker():
	"""
	Two-state machine that turns a stream of probe results into runs.

	Pairs are kept in scan order: pair[0] is the first hit of a run as the
	worker met it, pair[1] the latest. For a worker walking backward in
	time pair[0] is therefore the later timestamp.
	"""
	def __init__(self):
		self.state = EdgeState.OUTSIDE
		self.pairs = []
		self.first_hit = None

	#============================
	def feed(self, point: TimePoint) -> EdgeState:
		if point.matched:
			if self.first_hit is None:
				self.first_hit = point
			if self.state == EdgeState.OUTSIDE:
				# open
				self.pairs.append([point, point])
			else:
				# extend
				self.pairs[-1][1] = point
			self.state = EdgeState.INSIDE
		else:
			# close; the open pair simply stops growing
			self.state = EdgeState.OUTSIDE
		return self.state

#============================================

def split_samples(samples: list) -> tuple:
	"""
	Split samples into (forward, backward) halves in scan order.

	The backward half is returned reversed, latest timestamp first.
	"""
	half = len(samples) // 2
	forward = list(samples[:half])
	backward = list(reversed(samples[half:]))
	return (forward, backward)

#============================================

def _scan_half(seconds: list, probe, mode: ScanMode) -> EdgeTracker:
	tracker = EdgeTracker()
	for second in seconds:
		point = TimePoint(second, probe(second))
		tracker.feed(point)
		if mode == ScanMode.SINGLE and point.matched:
			break
	return tracker

#============================================

def _backward_intervals(pairs: list) -> list:
	intervals = []
	for later, earlier in reversed(pairs):
		intervals.append(Interval(earlier, later))
	return intervals

#============================================

def scan(samples: list, probe, mode: ScanMode = ScanMode.MULTI) -> ScanResult:
	"""
	Probe every sample from both ends toward the middle.

	Args:
		samples: Ascending timestamps.
		probe: Callable second -> Location | None, safe to call from two
			threads at once.
		mode: ScanMode.SINGLE to stop each half at its first hit,
			ScanMode.MULTI to collect every run of hits.

	Returns:
		ScanResult: Raw first hits of both workers and the ascending,
			non-overlapping intervals.
	"""
	if len(samples) == 0:
		return ScanResult()
	forward_seconds, backward_seconds = split_samples(samples)
	with ThreadPoolExecutor(max_workers=2) as executor:
		forward_future = executor.submit(_scan_half, forward_seconds, probe, mode)
		backward_future = executor.submit(_scan_half, backward_seconds, probe, mode)
		forward = forward_future.result()
		backward = backward_future.result()
	result = ScanResult(
		forward_boundary=forward.first_hit,
		backward_boundary=backward.first_hit,
	)
	if mode == ScanMode.SINGLE:
		first, last = result.boundaries()
		if first is None:
			return result
		return ScanResult(
			forward_boundary=result.forward_boundary,
			backward_boundary=result.backward_boundary,
			intervals=(Interval(first, last),),
		)
	forward_pairs = [list(pair) for pair in forward.pairs]
	backward_pairs = [list(pair) for pair in backward.pairs]
	if forward.state == EdgeState.INSIDE and backward.state == EdgeState.INSIDE:
		# both workers ended on a hit at adjacent samples: one run spans the split
		joined = forward_pairs.pop()
		backward_pairs[-1][1] = joined[0]
	intervals = []
	for start, end in forward_pairs:
		intervals.append(Interval(start, end))
	intervals.extend(_backward_intervals(backward_pairs))
	return ScanResult(
		forward_boundary=result.forward_boundary,
		backward_boundary=result.backward_boundary,
		intervals=tuple(intervals),
	)
