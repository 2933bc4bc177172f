#!/usr/bin/env python3

import os
import shlex
import shutil
import subprocess
import threading
import time
from blurmarklib.core.errors import ConfigurationError
from blurmarklib.core.errors import PipelineError

#============================================

class Reporter():
	"""
	Console and event sink shared by one run.

	Each run carries its own verbosity and callbacks, so a TUI run and a
	CLI run never share printing state.
	"""
	def __init__(self, quiet: bool = False, verbose: bool = False,
		command_reporter=None, probe_reporter=None):
		self.quiet = quiet
		self.verbose = verbose
		self.command_reporter = command_reporter
		self.probe_reporter = probe_reporter
		self.command_index = 0
		self.command_total = None
		self._lock = threading.Lock()

	#============================
	def message(self, text: str) -> None:
		if self.quiet:
			return
		with self._lock:
			print(text, flush=True)

	#============================
	def verbose_message(self, text: str) -> None:
		if not self.verbose:
			return
		self.message(text)

	#============================
	def command_event(self, event: dict) -> None:
		if self.command_reporter is None:
			return
		self.command_reporter(event)

	#============================
	def probe_event(self, second: float, location) -> None:
		# called from scan worker threads
		if location is not None:
			self.verbose_message(
				f"found template at: {second:.2f} ({format_timecode(second)}) "
				f"position: ({location.x}, {location.y})"
			)
		if self.probe_reporter is None:
			return
		self.probe_reporter(second, location)

#============================================

def command_prefix(index: int, total) -> str:
	if index <= 0:
		return ""
	if total is None or total <= 0:
		return f"[{index}]"
	return f"[{index}/{total}]"

#============================================

def run_process(cmd: list, reporter: Reporter = None, dry_run: bool = False,
	capture_output: bool = True) -> subprocess.CompletedProcess:
	"""
	Run a subprocess command.

	Args:
		cmd: Command list to execute.
		reporter: Run reporter; a silent one is used when None.
		dry_run: Print the command to stdout instead of running it.
		capture_output: Capture stdout and stderr when True.

	Returns:
		subprocess.CompletedProcess: Completed process (empty for dry runs).
	"""
	if reporter is None:
		reporter = Reporter(quiet=True)
	showcmd = shlex.join(cmd)
	if dry_run:
		if reporter.command_reporter is None:
			print(showcmd, flush=True)
		reporter.command_event({'event': 'dry_run', 'command': showcmd})
		reporter.verbose_message(f"command {showcmd}")
		return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
	reporter.command_index += 1
	prefix = command_prefix(reporter.command_index, reporter.command_total)
	reporter.message(f"{prefix} CMD: '{showcmd}'".strip())
	reporter.command_event({
		'event': 'start',
		'command': showcmd,
		'index': reporter.command_index,
		'total': reporter.command_total,
	})
	t0 = time.time()
	proc = subprocess.run(cmd, capture_output=capture_output, text=True)
	reporter.command_event({
		'event': 'end',
		'command': showcmd,
		'returncode': proc.returncode,
		'seconds': time.time() - t0,
	})
	if proc.returncode != 0:
		stderr_text = (proc.stderr or "").strip()
		raise PipelineError(f"command failed: {showcmd}\n{stderr_text}")
	return proc

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.isfile(filepath):
		raise ConfigurationError(f"file not found: {filepath}")
	return

#============================================

def check_dependency(cmd_name: str) -> None:
	if shutil.which(cmd_name) is None:
		raise ConfigurationError(f"missing dependency: {cmd_name}")
	return

#============================================

def parse_time_seconds(value):
	"""
	Parse a time value into seconds.

	Args:
		value: None, seconds string, or HH:MM:SS[.ms].

	Returns:
		float | None: Parsed seconds, None for empty input.
	"""
	if value is None:
		return None
	text = str(value).strip()
	if text == "":
		return None
	try:
		if ":" not in text:
			return float(text)
		parts = text.split(":")
		if len(parts) != 3:
			raise ConfigurationError("time must be seconds or HH:MM:SS[.ms]")
		hours = float(parts[0])
		minutes = float(parts[1])
		seconds = float(parts[2])
	except ValueError as exc:
		raise ConfigurationError(f"invalid time value: {text}") from exc
	if hours < 0 or minutes < 0 or seconds < 0:
		raise ConfigurationError("time components must be non-negative")
	return hours * 3600.0 + minutes * 60.0 + seconds

#============================================

def parse_time_range(value) -> tuple:
	"""
	Split a "from-to" range into two optional second values.

	Either side may be empty; "-90" means from the start to 90 seconds.
	"""
	if value is None:
		return (None, None)
	text = str(value).strip()
	if text == "":
		return (None, None)
	if "-" not in text:
		raise ConfigurationError("time range must look like from-to")
	from_text, to_text = text.split("-", 1)
	return (parse_time_seconds(from_text), parse_time_seconds(to_text))

#============================================

def format_timecode(seconds: float) -> str:
	"""
	Format whole seconds as HH:MM:SS.
	"""
	total = int(seconds)
	if total < 0:
		total = 0
	hours = total // 3600
	minutes = (total % 3600) // 60
	secs = total % 60
	return f"{hours:02d}:{minutes:02d}:{secs:02d}"

#============================================

def make_timestamp() -> str:
	datestamp = time.strftime("%y%b%d").lower()
	uppercase = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
	hourstamp = uppercase[(time.localtime()[3]) % 26]
	minstamp = f"{time.localtime()[4]:02d}"
	secstamp = uppercase[(time.localtime()[5]) % 26]
	timestamp = datestamp + hourstamp + minstamp + secstamp
	return timestamp
