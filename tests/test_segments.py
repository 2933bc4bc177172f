#!/usr/bin/env python3

"""
Pytest coverage for interval normalization and segment assembly.
"""

# Standard Library
import os
import random
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from blurmarklib.core.segments import assemble_segments
from blurmarklib.core.segments import has_changes
from blurmarklib.core.segments import normalize_intervals
from blurmarklib.core.segments import split_times
from blurmarklib.core.timepoints import Interval
from blurmarklib.core.timepoints import Location
from blurmarklib.core.timepoints import Segment
from blurmarklib.core.timepoints import SegmentKind
from blurmarklib.core.timepoints import TimePoint

BOX = Location(10, 20, 64, 32)
OTHER_BOX = Location(200, 100, 32, 16)

#============================================

def _interval(start: float, end: float, location: Location = BOX) -> Interval:
	return Interval(TimePoint(start, location), TimePoint(end, location))

#============================================

def _plan(segments: list) -> list:
	return [(segment.kind, segment.start, segment.end) for segment in segments]

#============================================

def test_single_interval_plan() -> None:
	segments = assemble_segments([_interval(40.0, 45.0)], 100.0)
	assert _plan(segments) == [
		(SegmentKind.KEEP, 0.0, 40.0),
		(SegmentKind.CHANGE, 40.0, 45.0),
		(SegmentKind.KEEP, 45.0, 100.0),
	]
	assert segments[1].location == BOX
	assert [segment.index for segment in segments] == [0, 0, 1]
	assert has_changes(segments)

#============================================

def test_no_intervals_is_one_keep() -> None:
	segments = assemble_segments([], 100.0)
	assert _plan(segments) == [(SegmentKind.KEEP, 0.0, 100.0)]
	assert not has_changes(segments)

#============================================

def test_interval_at_zero_leaves_empty_keep() -> None:
	segments = assemble_segments([_interval(0.0, 5.0)], 30.0)
	assert _plan(segments)[0] == (SegmentKind.KEEP, 0.0, 0.0)
	assert segments[0].duration == 0.0

#============================================

def test_plan_alternates_and_covers_duration() -> None:
	rng = random.Random(1234)
	duration = 600.0
	for _ in range(25):
		points = sorted(rng.uniform(0.0, duration) for _ in range(2 * rng.randint(1, 6)))
		raw = [_interval(points[i], points[i + 1]) for i in range(0, len(points), 2)]
		intervals = normalize_intervals(raw, duration)
		segments = assemble_segments(intervals, duration)
		assert segments[0].start == 0.0
		assert segments[-1].end == duration
		assert segments[0].kind == SegmentKind.KEEP
		assert segments[-1].kind == SegmentKind.KEEP
		for previous, current in zip(segments, segments[1:]):
			assert previous.end == current.start
			assert previous.kind != current.kind
		assert sum(segment.duration for segment in segments) == pytest.approx(duration)

#============================================

def test_assemble_rejects_overlap() -> None:
	with pytest.raises(RuntimeError):
		assemble_segments([_interval(10.0, 20.0), _interval(15.0, 25.0)], 100.0)

#============================================

def test_normalize_merges_same_location() -> None:
	raw = [
		_interval(30.0, 35.0),
		_interval(10.0, 20.0),
		_interval(18.0, 25.0),
		_interval(25.0, 28.0),
	]
	merged = normalize_intervals(raw, 100.0)
	assert [(item.start.second, item.end.second) for item in merged] == [
		(10.0, 28.0),
		(30.0, 35.0),
	]

#============================================

def test_normalize_trims_overlap_with_other_location() -> None:
	raw = [
		_interval(10.0, 20.0),
		_interval(18.0, 25.0, OTHER_BOX),
		_interval(25.0, 28.0, OTHER_BOX),
	]
	merged = normalize_intervals(raw, 100.0)
	assert [(item.start.second, item.end.second) for item in merged] == [
		(10.0, 20.0),
		(20.0, 28.0),
	]
	# each box keeps its own span
	assert merged[0].location == BOX
	assert merged[1].location == OTHER_BOX
	segments = assemble_segments(merged, 100.0)
	changes = [segment for segment in segments if segment.kind == SegmentKind.CHANGE]
	assert [segment.location for segment in changes] == [BOX, OTHER_BOX]

#============================================

def test_normalize_clamps_and_drops_zero_width() -> None:
	raw = [
		_interval(-5.0, 3.0),
		_interval(50.0, 50.0),
		_interval(95.0, 120.0),
		_interval(130.0, 140.0),
	]
	merged = normalize_intervals(raw, 100.0)
	assert [(item.start.second, item.end.second) for item in merged] == [
		(0.0, 3.0),
		(95.0, 100.0),
	]
	assert merged[1].end.location == BOX

#============================================

def test_normalize_contained_interval() -> None:
	merged = normalize_intervals([_interval(10.0, 50.0), _interval(20.0, 30.0)], 100.0)
	assert [(item.start.second, item.end.second) for item in merged] == [(10.0, 50.0)]

#============================================

def test_change_segment_requires_location() -> None:
	with pytest.raises(ValueError):
		Segment(0, SegmentKind.CHANGE, 1.0, 2.0)
	with pytest.raises(ValueError):
		Segment(0, SegmentKind.KEEP, 2.0, 1.0)

#============================================

def test_interval_rejects_inverted_bounds() -> None:
	with pytest.raises(ValueError):
		_interval(5.0, 4.0)

#============================================

def test_split_times_and_plan_dict() -> None:
	segments = assemble_segments([_interval(40.0, 45.5)], 100.0)
	assert split_times(segments) == ["40.00", "45.50"]
	data = segments[1].as_dict()
	assert data['kind'] == "change"
	assert data['start_tc'] == "00:00:40"
	assert data['location'] == {'x': 10, 'y': 20, 'width': 64, 'height': 32}
	assert 'location' not in segments[0].as_dict()
