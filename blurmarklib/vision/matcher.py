#!/usr/bin/env python3

import os
import cv2
import numpy
from blurmarklib.core.errors import ConfigurationError
from blurmarklib.core.errors import ProbeError
from blurmarklib.core.timepoints import Location
from blurmarklib.media import frames

DEFAULT_THRESHOLD = 0.9

#============================================

def load_templates(template_files: list) -> list:
	"""
	Load reference pattern images as grayscale arrays.

	Args:
		template_files: Image paths, at least one.

	Returns:
		list: numpy.ndarray templates in the given order.
	"""
	if len(template_files) == 0:
		raise ConfigurationError("please provide template files")
	templates = []
	for template_file in template_files:
		if not os.path.isfile(template_file):
			raise ConfigurationError(f"template file not found: {template_file}")
		try:
			template = frames.load_grayscale_image(template_file)
		except (OSError, ValueError) as exc:
			raise ConfigurationError(f"invalid template file {template_file}") from exc
		if template.size == 0:
			raise ConfigurationError(f"invalid template file {template_file}")
		templates.append(template)
	return templates

#============================================

def match_location(frame: numpy.ndarray, templates: list,
	threshold: float = DEFAULT_THRESHOLD):
	"""
	Find the first template whose best normalized match beats the threshold.

	Args:
		frame: Grayscale frame.
		templates: Grayscale templates, tried in order.
		threshold: Minimum TM_CCOEFF_NORMED score, exclusive.

	Returns:
		tuple | None: (Location, score) or None when nothing matches.
	"""
	frame_h, frame_w = frame.shape[:2]
	for template in templates:
		tpl_h, tpl_w = template.shape[:2]
		if tpl_h > frame_h or tpl_w > frame_w:
			continue
		result = cv2.matchTemplate(frame, template, cv2.TM_CCOEFF_NORMED)
		_, max_val, _, max_loc = cv2.minMaxLoc(result)
		if max_val > threshold:
			location = Location(int(max_loc[0]), int(max_loc[1]), int(tpl_w), int(tpl_h))
			return (location, float(max_val))
	return None

#============================================

class FrameProbe():
	"""
	Predicate "is the pattern visible at second t" over one media file.

	Every failure is read as "not visible"; probe() never raises for a
	bad or missing frame. Instances hold no mutable state, so the two scan
	workers can share one.
	"""
	def __init__(self, input_file: str, templates: list,
		threshold: float = DEFAULT_THRESHOLD, reporter=None,
		extractor=None):
		self.input_file = input_file
		self.templates = tuple(templates)
		self.threshold = threshold
		self.reporter = reporter
		self.extractor = extractor or frames.extract_frame

	#============================
	def __call__(self, second: float):
		return self.probe(second)

	#============================
	def probe(self, second: float):
		location = None
		try:
			data = self.extractor(self.input_file, second)
			frame = frames.decode_grayscale(data)
			match = match_location(frame, self.templates, self.threshold)
			if match is not None:
				location = match[0]
		except ProbeError as exc:
			self._verbose(f"probe at {second:.2f} failed: {exc}")
		except cv2.error as exc:
			self._verbose(f"template match at {second:.2f} failed: {exc}")
		if self.reporter is not None:
			self.reporter.probe_event(second, location)
		return location

	#============================
	def _verbose(self, text: str) -> None:
		if self.reporter is not None:
			self.reporter.verbose_message(text)
