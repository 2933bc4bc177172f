#!/usr/bin/env python3

import enum
from dataclasses import dataclass
from dataclasses import field
from blurmarklib.core import utils

#============================================

@dataclass(frozen=True)
class Location():
	"""Bounding box of one detected pattern instance, in frame pixels."""
	x: int
	y: int
	width: int
	height: int

#============================================

@dataclass(frozen=True)
class TimePoint():
	"""Result of one predicate evaluation; location is None for no match."""
	second: float
	location: Location = None

	#============================
	@property
	def matched(self) -> bool:
		return self.location is not None

	#============================
	def __str__(self) -> str:
		text = utils.format_timecode(self.second)
		if self.location is None:
			return f"{text}@(none)"
		return f"{text}@({self.location.x},{self.location.y})"

#============================================

@dataclass(frozen=True)
class Interval():
	"""One maximal span where the pattern is present."""
	start: TimePoint
	end: TimePoint

	def __post_init__(self):
		if self.start.second > self.end.second:
			raise ValueError(
				f"interval start {self.start.second} is after end {self.end.second}"
			)

	#============================
	@property
	def duration(self) -> float:
		return self.end.second - self.start.second

	#============================
	@property
	def location(self) -> Location:
		if self.start.location is not None:
			return self.start.location
		return self.end.location

	#============================
	def __str__(self) -> str:
		return f"[{self.start} - {self.end}]"

#============================================

class SegmentKind(enum.Enum):
	KEEP = "keep"
	CHANGE = "change"

#============================================

@dataclass(frozen=True)
class Segment():
	"""A contiguous span of the output plan, either copied or blurred."""
	index: int
	kind: SegmentKind
	start: float
	end: float
	location: Location = None

	def __post_init__(self):
		if self.end < self.start:
			raise ValueError("segment end must not precede start")
		if self.kind == SegmentKind.CHANGE and self.location is None:
			raise ValueError("change segments require a location")

	#============================
	@property
	def interval(self) -> tuple:
		return (self.start, self.end)

	#============================
	@property
	def duration(self) -> float:
		return self.end - self.start

	#============================
	def as_dict(self) -> dict:
		data = {
			'index': self.index,
			'kind': self.kind.value,
			'start': round(self.start, 3),
			'end': round(self.end, 3),
			'start_tc': utils.format_timecode(self.start),
			'end_tc': utils.format_timecode(self.end),
		}
		if self.location is not None:
			data['location'] = {
				'x': self.location.x,
				'y': self.location.y,
				'width': self.location.width,
				'height': self.location.height,
			}
		return data

#============================================

@dataclass(frozen=True)
class ScanResult():
	"""
	Merged output of one dual-direction scan.

	forward_boundary and backward_boundary are the first hits of each
	worker exactly as found; boundaries() applies the one-sided fallback.
	"""
	forward_boundary: TimePoint = None
	backward_boundary: TimePoint = None
	intervals: tuple = field(default_factory=tuple)

	#============================
	@property
	def found(self) -> bool:
		if self.forward_boundary is not None or self.backward_boundary is not None:
			return True
		return len(self.intervals) > 0

	#============================
	def boundaries(self) -> tuple:
		"""
		Return (first, last) hits, substituting a missing side with the other.

		A pattern seen in only one half collapses to a zero-width pair.
		"""
		forward = self.forward_boundary
		backward = self.backward_boundary
		if forward is None and backward is not None:
			forward = backward
		elif forward is not None and backward is None:
			backward = forward
		return (forward, backward)
