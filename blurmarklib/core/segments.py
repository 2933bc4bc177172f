#!/usr/bin/env python3

from blurmarklib.core.timepoints import Interval
from blurmarklib.core.timepoints import Segment
from blurmarklib.core.timepoints import SegmentKind
from blurmarklib.core.timepoints import TimePoint

#============================================

def _clamp_point(point: TimePoint, lower: float, upper: float) -> TimePoint:
	second = min(max(point.second, lower), upper)
	if second == point.second:
		return point
	return TimePoint(second, point.location)

#============================================

def normalize_intervals(intervals: list, duration: float) -> list:
	"""
	Clamp intervals to [0, duration], sort them and merge overlaps.

	Zero-width intervals are dropped. Neighbouring coarse intervals can
	overlap once refined. Overlapping or touching intervals with the same
	location are merged. When the locations differ, the later interval is
	trimmed to start where the earlier one ends, and dropped if nothing of
	it is left.

	Args:
		intervals: Refined intervals, any order.
		duration: Total media duration.

	Returns:
		list: Ascending, non-overlapping intervals.
	"""
	clamped = []
	for interval in intervals:
		start = _clamp_point(interval.start, 0.0, duration)
		end = _clamp_point(interval.end, 0.0, duration)
		if end.second <= start.second:
			# zero width, or entirely outside the media
			continue
		clamped.append(Interval(start, end))
	if len(clamped) == 0:
		return []
	clamped.sort(key=lambda item: item.start.second)
	merged = []
	current = clamped[0]
	for interval in clamped[1:]:
		if interval.start.second > current.end.second:
			merged.append(current)
			current = interval
			continue
		if interval.end.second <= current.end.second:
			# contained
			continue
		if interval.location == current.location:
			current = Interval(current.start,
				TimePoint(interval.end.second, current.location))
			continue
		merged.append(current)
		current = Interval(TimePoint(current.end.second, interval.location),
			interval.end)
	merged.append(current)
	return merged

#============================================

def assemble_segments(intervals: list, duration: float) -> list:
	"""
	Turn ascending, non-overlapping intervals into a gap-free segment plan.

	The plan alternates keep and change segments, starting and ending with
	a keep segment, and covers [0, duration] exactly. A keep segment may
	have zero length when an interval starts at 0 or two intervals touch.

	Args:
		intervals: Ascending, non-overlapping intervals within [0, duration].
		duration: Total media duration.

	Returns:
		list: Ordered Segment list.
	"""
	segments = []
	current = 0.0
	index = 0
	for interval in intervals:
		if interval.start.second < current:
			raise RuntimeError("intervals must be ascending and non-overlapping")
		location = interval.location
		if location is None:
			raise RuntimeError(f"interval {interval} has no detected location")
		segments.append(Segment(index, SegmentKind.KEEP, current, interval.start.second))
		segments.append(Segment(index, SegmentKind.CHANGE,
			interval.start.second, interval.end.second, location))
		current = interval.end.second
		index += 1
	segments.append(Segment(index, SegmentKind.KEEP, current, max(current, duration)))
	return segments

#============================================

def has_changes(segments: list) -> bool:
	for segment in segments:
		if segment.kind == SegmentKind.CHANGE:
			return True
	return False

#============================================

def split_times(segments: list) -> list:
	"""
	Return the formatted boundary times between segments.
	"""
	times = []
	for segment in segments[1:]:
		times.append(f"{segment.start:.2f}")
	return times
