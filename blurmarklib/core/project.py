#!/usr/bin/env python3

import os
import shutil
import tempfile
from dataclasses import dataclass
from dataclasses import field
from blurmarklib.core import config
from blurmarklib.core import utils
from blurmarklib.core.errors import ConfigurationError
from blurmarklib.core.refiner import refine_intervals
from blurmarklib.core.scanner import ScanMode
from blurmarklib.core.scanner import scan
from blurmarklib.core.segments import assemble_segments
from blurmarklib.core.segments import has_changes
from blurmarklib.core.segments import normalize_intervals
from blurmarklib.core.segments import split_times
from blurmarklib.core.series import generate_series
from blurmarklib.media import ffprobe
from blurmarklib.media import pipeline
from blurmarklib.vision.matcher import FrameProbe
from blurmarklib.vision.matcher import load_templates

STATUS_DONE = "done"
STATUS_DRY_RUN = "dry_run"
STATUS_NO_OCCURRENCE = "no_occurrence"

#============================================

@dataclass
class RunResult():
	status: str
	segments: list = field(default_factory=list)
	intervals: list = field(default_factory=list)
	output_file: str = None
	commands: list = field(default_factory=list)

	#============================
	@property
	def found(self) -> bool:
		return self.status != STATUS_NO_OCCURRENCE

#============================================

class BlurmarkProject():
	"""
	One blur run over one input file.

	probe and media_info can be injected; otherwise they are built from
	ffmpeg, ffprobe and the configured templates.
	"""
	def __init__(self, input_file: str, output_file: str = None,
		settings: dict = None, dry_run: bool = False, keep_temp: bool = False,
		cache_dir: str = None, reporter: utils.Reporter = None,
		probe=None, media_info: dict = None):
		self.input_file = input_file
		self.output_file = output_file
		if settings is None:
			settings = config.build_settings(config.default_config(), "<code defaults>")
		self.settings = settings
		self.dry_run = dry_run
		self.keep_temp = keep_temp
		self.cache_dir = cache_dir
		self.cache_dir_created = False
		if reporter is None:
			reporter = utils.Reporter()
		self.reporter = reporter
		self.probe = probe
		self.media_info = media_info
		self.scan_from = None
		self.scan_to = None

	#============================
	def validate(self) -> None:
		"""
		Check inputs and prepare the probe; raises ConfigurationError.
		"""
		if self.input_file is None or str(self.input_file).strip() == "":
			raise ConfigurationError("please provide input file")
		if self.media_info is None or self.probe is None:
			utils.ensure_file_exists(self.input_file)
			utils.check_dependency("ffmpeg")
			utils.check_dependency("ffprobe")
		if self.probe is None:
			templates = load_templates(self.settings["match"]["templates"])
			self.reporter.message(f"using {len(templates)} templates")
			self.probe = FrameProbe(self.input_file, templates,
				threshold=self.settings["match"]["threshold"],
				reporter=self.reporter)
		if self.media_info is None:
			self.media_info = ffprobe.probe_media(self.input_file, reporter=self.reporter)
			self.reporter.verbose_message(f"ffprobe result: {self.media_info}")
		self.scan_from, self.scan_to = config.resolve_scan_range(
			self.settings, self.media_info["duration"])

	#============================
	@property
	def duration(self) -> float:
		return self.media_info["duration"]

	#============================
	def find_intervals(self) -> list:
		"""
		Run the coarse pass and refine every interval it found.
		"""
		coarse_step = self.settings["scan"]["coarse_step"]
		self.reporter.message(
			f"scanning template for every {coarse_step:.1f} seconds "
			f"from {self.scan_from:.1f} ({utils.format_timecode(self.scan_from)}) "
			f"to {self.scan_to:.1f} ({utils.format_timecode(self.scan_to)})"
		)
		samples = generate_series(self.scan_from, self.scan_to, coarse_step)
		coarse = scan(samples, self.probe, ScanMode.MULTI)
		parts = list(coarse.intervals)
		if len(parts) > 0:
			text = ", ".join(str(part) for part in parts)
			self.reporter.verbose_message(f"found {len(parts)} parts: {text}")
		if len(parts) == 0:
			return []
		refined = refine_intervals(parts, self.probe, coarse_step,
			steps=self.settings["scan"]["refine_steps"],
			lower=0.0, upper=self.duration, reporter=self.reporter)
		return normalize_intervals(refined, self.duration)

	#============================
	def plan_segments(self) -> tuple:
		"""
		Returns:
			tuple: (intervals, segments)
		"""
		if self.media_info is None or self.probe is None or self.scan_from is None:
			self.validate()
		intervals = self.find_intervals()
		segments = assemble_segments(intervals, self.duration)
		return (intervals, segments)

	#============================
	def run(self) -> RunResult:
		if self.output_file is None or str(self.output_file).strip() == "":
			raise ConfigurationError("please provide output file")
		intervals, segments = self.plan_segments()
		if not has_changes(segments):
			self.reporter.message("no template is found in the video")
			self.reporter.message("all done")
			return RunResult(STATUS_NO_OCCURRENCE, segments=segments,
				intervals=intervals, output_file=None)
		self.reporter.message(f"splitting videos at time: {split_times(segments)}")
		cache_dir = self._prepare_cache_dir()
		plan = pipeline.build_pipeline(segments, self.input_file, self.output_file,
			cache_dir, self.settings, self.media_info["video_codec"])
		pipeline.run_pipeline(plan, reporter=self.reporter, dry_run=self.dry_run)
		if not self.keep_temp:
			pipeline.cleanup_files(plan.cleanup_targets(),
				reporter=self.reporter, dry_run=self.dry_run)
			if self.cache_dir_created:
				shutil.rmtree(cache_dir, ignore_errors=True)
		self.reporter.message("all done")
		status = STATUS_DONE
		if self.dry_run:
			status = STATUS_DRY_RUN
		return RunResult(status, segments=segments, intervals=intervals,
			output_file=self.output_file, commands=plan.commands)

	#============================
	def _prepare_cache_dir(self) -> str:
		if self.dry_run:
			# commands are only printed, nothing is written
			if self.cache_dir is None:
				return os.path.join(tempfile.gettempdir(), f"blurmark-{utils.make_timestamp()}")
			return self.cache_dir
		if self.cache_dir is None:
			self.cache_dir = tempfile.mkdtemp(prefix=f"blurmark-{utils.make_timestamp()}-")
			self.cache_dir_created = True
		elif not os.path.exists(self.cache_dir):
			os.makedirs(self.cache_dir)
		return self.cache_dir
