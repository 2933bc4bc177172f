#!/usr/bin/env python3

"""
Pytest coverage for boundary refinement.
"""

# Standard Library
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)
TESTS_DIR = os.path.dirname(__file__)
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)

# local repo modules
from blurmarklib.core import utils
from blurmarklib.core.refiner import refine_interval
from blurmarklib.core.refiner import refine_intervals
from blurmarklib.core.scanner import ScanMode
from blurmarklib.core.scanner import scan
from blurmarklib.core.series import generate_series
from blurmarklib.core.timepoints import Interval
from blurmarklib.core.timepoints import TimePoint
from probe_utils import DEFAULT_LOCATION
from probe_utils import IntervalProbe

# one refinement step plus float slack
TOLERANCE = 0.1 + 1e-6

#============================================

def _interval(start: float, end: float) -> Interval:
	return Interval(TimePoint(start, DEFAULT_LOCATION), TimePoint(end, DEFAULT_LOCATION))

#============================================

def test_coarse_then_refine_converges() -> None:
	probe = IntervalProbe([(40.0, 45.0)])
	coarse = scan(generate_series(0.0, 100.0, 20.0), probe, ScanMode.MULTI)
	assert [(item.start.second, item.end.second) for item in coarse.intervals] == [(40.0, 40.0)]
	refined = refine_interval(coarse.intervals[0], probe, 20.0,
		lower=0.0, upper=100.0)
	assert abs(refined.start.second - 40.0) <= TOLERANCE
	assert abs(refined.end.second - 45.0) <= TOLERANCE
	assert refined.location == DEFAULT_LOCATION

#============================================

def test_refine_unaligned_boundaries() -> None:
	probe = IntervalProbe([(37.33, 52.71)])
	refined = refine_interval(_interval(40.0, 40.0), probe, 20.0,
		lower=0.0, upper=100.0)
	assert 37.33 <= refined.start.second <= 37.33 + TOLERANCE
	assert 52.71 - TOLERANCE <= refined.end.second <= 52.71

#============================================

def test_missing_side_keeps_previous_value() -> None:
	# the forward half of [20, 60] at step 2 ends at 38 and misses the pattern
	probe = IntervalProbe([(40.0, 45.0)])
	refined = refine_interval(_interval(40.0, 40.0), probe, 20.0,
		steps=(2.0,), lower=0.0, upper=100.0)
	assert refined.start.second == 40.0
	assert refined.end.second == 44.0

#============================================

def test_refine_without_match_keeps_interval() -> None:
	probe = IntervalProbe([])
	coarse = _interval(40.0, 40.0)
	refined = refine_interval(coarse, probe, 20.0, lower=0.0, upper=100.0)
	assert refined == coarse
	# the first empty pass ends refinement
	assert sorted(probe.calls) == generate_series(20.0, 60.0, 2.0)

#============================================

def test_refine_interval_at_media_edges() -> None:
	probe = IntervalProbe([(0.0, 3.0), (97.0, 100.0)])
	first = refine_interval(_interval(0.0, 0.0), probe, 20.0,
		lower=0.0, upper=100.0)
	last = refine_interval(_interval(100.0, 100.0), probe, 20.0,
		lower=0.0, upper=100.0)
	# seconds outside the media are never handed to the probe
	assert min(probe.calls) >= 0.0
	assert max(probe.calls) <= 100.0
	assert first.start.second == 0.0
	assert abs(first.end.second - 3.0) <= TOLERANCE
	assert abs(last.start.second - 97.0) <= TOLERANCE
	assert last.end.second == 100.0

#============================================

def test_intro_overlay_converges_from_coarse_pass() -> None:
	probe = IntervalProbe([(0.0, 9.5)])
	coarse = scan(generate_series(0.0, 100.0, 20.0), probe, ScanMode.MULTI)
	refined = refine_interval(coarse.intervals[0], probe, 20.0,
		lower=0.0, upper=100.0)
	assert refined.start.second == 0.0
	assert abs(refined.end.second - 9.5) <= TOLERANCE

#============================================

def test_outro_overlay_converges_from_coarse_pass() -> None:
	probe = IntervalProbe([(90.5, 100.0)])
	coarse = scan(generate_series(0.0, 100.0, 20.0), probe, ScanMode.MULTI)
	refined = refine_interval(coarse.intervals[0], probe, 20.0,
		lower=0.0, upper=100.0)
	assert abs(refined.start.second - 90.5) <= TOLERANCE
	assert refined.end.second == 100.0

#============================================

def test_refined_interval_never_inverted() -> None:
	probe = IntervalProbe([(10.0, 10.05)])
	refined = refine_interval(_interval(10.0, 10.0), probe, 5.0,
		lower=0.0, upper=20.0)
	assert refined.start.second <= refined.end.second

#============================================

def test_refine_intervals_preserves_order() -> None:
	probe = IntervalProbe([(12.0, 15.0), (61.0, 70.0)])
	coarse = scan(generate_series(0.0, 100.0, 4.0), probe, ScanMode.MULTI)
	reporter = utils.Reporter(quiet=True)
	refined = refine_intervals(list(coarse.intervals), probe, 4.0,
		lower=0.0, upper=100.0, reporter=reporter)
	assert len(refined) == 2
	assert abs(refined[0].start.second - 12.0) <= TOLERANCE
	assert abs(refined[0].end.second - 15.0) <= TOLERANCE
	assert abs(refined[1].start.second - 61.0) <= TOLERANCE
	assert abs(refined[1].end.second - 70.0) <= TOLERANCE

#============================================

def test_refine_reports_progress(capsys) -> None:
	probe = IntervalProbe([(40.0, 45.0)])
	reporter = utils.Reporter()
	refine_interval(_interval(40.0, 40.0), probe, 20.0, steps=(2.0,),
		lower=0.0, upper=100.0, reporter=reporter, label="part#0: ")
	captured = capsys.readouterr()
	assert "part#0: scanning template for every 2.0 seconds from 20.0 to 60.0" in captured.out
