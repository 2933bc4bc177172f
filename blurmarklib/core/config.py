#!/usr/bin/env python3

import os
import shlex
import yaml
from blurmarklib.core import utils
from blurmarklib.core.errors import ConfigurationError

#============================================

TOOL_CONFIG_HEADER_KEY = "blurmark"
TOOL_CONFIG_HEADER_VALUE = 1

#============================================

def default_config_path(input_file: str) -> str:
	return f"{input_file}.blurmark.config.yaml"

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default config.
	"""
	return {
		TOOL_CONFIG_HEADER_KEY: TOOL_CONFIG_HEADER_VALUE,
		"settings": {
			"scan": {
				"coarse_step": 20.0,
				"refine_steps": [2.0, 0.5, 0.1],
				"range": None,
			},
			"match": {
				"threshold": 0.9,
				"templates": [],
			},
			"filter": {
				"boxblur": "20",
			},
			"ffmpeg": {
				"command": "ffmpeg -loglevel warning -y",
				"max_muxing_queue_size": None,
			},
		},
	}

#============================================

def _yaml_lines(key: str, value, indent: str) -> list:
	"""
	Emit one key with PyYAML so quotes and backslashes are escaped.
	"""
	text = yaml.safe_dump({key: value}, default_flow_style=False, width=4096)
	return [indent + line for line in text.splitlines()]

#============================================

def build_config_text(config: dict) -> str:
	"""
	Build YAML text for the config file.

	Args:
		config: Config dictionary.

	Returns:
		str: YAML content.
	"""
	settings = config.get("settings", {})
	scan = settings.get("scan", {})
	match = settings.get("match", {})
	blur = settings.get("filter", {})
	ffmpeg = settings.get("ffmpeg", {})
	steps = ", ".join(str(step) for step in scan.get("refine_steps", [2.0, 0.5, 0.1]))
	lines = []
	lines.append(f"{TOOL_CONFIG_HEADER_KEY}: {TOOL_CONFIG_HEADER_VALUE}")
	lines.append("settings:")
	lines.append("  scan:")
	lines.append(f"    coarse_step: {scan.get('coarse_step', 20.0)}")
	lines.append(f"    refine_steps: [{steps}]")
	lines += _yaml_lines("range", scan.get("range"), "    ")
	lines.append("  match:")
	lines.append(f"    threshold: {match.get('threshold', 0.9)}")
	lines += _yaml_lines("templates", list(match.get("templates", [])), "    ")
	lines.append("  filter:")
	lines += _yaml_lines("boxblur", str(blur.get("boxblur", "20")), "    ")
	lines.append("  ffmpeg:")
	lines += _yaml_lines("command", ffmpeg.get("command", "ffmpeg -loglevel warning -y"), "    ")
	queue_size = ffmpeg.get("max_muxing_queue_size")
	if queue_size is None:
		lines.append("    max_muxing_queue_size: null")
	else:
		lines.append(f"    max_muxing_queue_size: {queue_size}")
	lines.append("")
	return "\n".join(lines)

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	text = build_config_text(config)
	os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)
	with open(config_path, "w", encoding="utf-8") as handle:
		handle.write(text)
	return

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config mapping.
	"""
	with open(config_path, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle)
	if not isinstance(data, dict):
		raise ConfigurationError("config file must be a mapping")
	if data.get(TOOL_CONFIG_HEADER_KEY) != TOOL_CONFIG_HEADER_VALUE:
		raise ConfigurationError(
			f"config file must set {TOOL_CONFIG_HEADER_KEY}: {TOOL_CONFIG_HEADER_VALUE}"
		)
	return data

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise ConfigurationError(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError as exc:
			raise ConfigurationError(
				f"config {config_path}: {key_path} must be a number"
			) from exc
	raise ConfigurationError(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_str(value, config_path: str, key_path: str) -> str:
	if isinstance(value, (int, float)) and not isinstance(value, bool):
		return str(value)
	if isinstance(value, str):
		return value
	raise ConfigurationError(f"config {config_path}: {key_path} must be a string")

#============================================

def coerce_float_list(value, config_path: str, key_path: str) -> list:
	if isinstance(value, (int, float, str)) and not isinstance(value, bool):
		value = [value]
	if not isinstance(value, (list, tuple)):
		raise ConfigurationError(f"config {config_path}: {key_path} must be a list of numbers")
	return [coerce_float(item, config_path, key_path) for item in value]

#============================================

def coerce_str_list(value, config_path: str, key_path: str) -> list:
	if value is None:
		return []
	if isinstance(value, str):
		value = [value]
	if not isinstance(value, (list, tuple)):
		raise ConfigurationError(f"config {config_path}: {key_path} must be a list of strings")
	return [coerce_str(item, config_path, key_path) for item in value]

#============================================

def build_settings(config: dict, config_path: str, environ: dict = None) -> dict:
	"""
	Normalize settings with defaults and validate them.

	Args:
		config: Raw config mapping.
		config_path: Config file path, used in error messages.
		environ: Environment mapping for MAX_MUXING_QUEUE_SIZE; os.environ
			when None.

	Returns:
		dict: Normalized settings.
	"""
	if environ is None:
		environ = os.environ
	defaults = default_config()["settings"]
	overrides = {}
	if isinstance(config, dict):
		overrides = config.get("settings", {}) or {}
	scan = overrides.get("scan", {}) or {}
	match = overrides.get("match", {}) or {}
	blur = overrides.get("filter", {}) or {}
	ffmpeg = overrides.get("ffmpeg", {}) or {}
	coarse_step = coerce_float(scan.get("coarse_step", defaults["scan"]["coarse_step"]),
		config_path, "settings.scan.coarse_step")
	refine_steps = coerce_float_list(
		scan.get("refine_steps", defaults["scan"]["refine_steps"]),
		config_path, "settings.scan.refine_steps")
	range_value = scan.get("range", defaults["scan"]["range"])
	if range_value is not None:
		range_value = coerce_str(range_value, config_path, "settings.scan.range")
	range_from, range_to = utils.parse_time_range(range_value)
	threshold = coerce_float(match.get("threshold", defaults["match"]["threshold"]),
		config_path, "settings.match.threshold")
	templates = coerce_str_list(match.get("templates", defaults["match"]["templates"]),
		config_path, "settings.match.templates")
	boxblur = coerce_str(blur.get("boxblur", defaults["filter"]["boxblur"]),
		config_path, "settings.filter.boxblur")
	ffmpeg_command = coerce_str(ffmpeg.get("command", defaults["ffmpeg"]["command"]),
		config_path, "settings.ffmpeg.command")
	queue_size = ffmpeg.get("max_muxing_queue_size")
	if queue_size is None:
		queue_size = environ.get("MAX_MUXING_QUEUE_SIZE")
	if queue_size is not None and str(queue_size).strip() == "":
		queue_size = None
	if queue_size is not None:
		queue_size = coerce_str(queue_size, config_path, "settings.ffmpeg.max_muxing_queue_size")
	if coarse_step <= 0:
		raise ConfigurationError("scan.coarse_step must be positive")
	if len(refine_steps) == 0:
		raise ConfigurationError("scan.refine_steps must not be empty")
	for step in refine_steps:
		if step <= 0:
			raise ConfigurationError("scan.refine_steps must all be positive")
	for previous, step in zip(refine_steps, refine_steps[1:]):
		if step >= previous:
			raise ConfigurationError("scan.refine_steps must be strictly descending")
	if threshold <= 0 or threshold > 1:
		raise ConfigurationError("match.threshold must be > 0 and <= 1")
	if range_from is not None and range_from < 0:
		raise ConfigurationError("invalid time range")
	if range_from is not None and range_to is not None and range_from > range_to:
		raise ConfigurationError("invalid time range")
	if boxblur.strip() == "":
		raise ConfigurationError("filter.boxblur must not be empty")
	ffmpeg_argv = shlex.split(ffmpeg_command)
	if len(ffmpeg_argv) == 0:
		raise ConfigurationError("ffmpeg.command must not be empty")
	return {
		"scan": {
			"coarse_step": coarse_step,
			"refine_steps": refine_steps,
			"range": range_value,
			"range_from": range_from,
			"range_to": range_to,
		},
		"match": {
			"threshold": threshold,
			"templates": templates,
		},
		"filter": {
			"boxblur": boxblur,
		},
		"ffmpeg": {
			"command": ffmpeg_command,
			"argv": ffmpeg_argv,
			"max_muxing_queue_size": queue_size,
		},
	}

#============================================

def apply_overrides(config: dict, overrides: dict) -> dict:
	"""
	Layer non-None CLI values over a raw config mapping.

	Args:
		config: Raw config mapping (defaults or loaded file).
		overrides: Mapping of "section.key" to value; None values are skipped.

	Returns:
		dict: New raw config mapping.
	"""
	merged = {TOOL_CONFIG_HEADER_KEY: TOOL_CONFIG_HEADER_VALUE, "settings": {}}
	for section, values in (config.get("settings", {}) or {}).items():
		if isinstance(values, dict):
			merged["settings"][section] = dict(values)
		else:
			merged["settings"][section] = values
	for key_path, value in overrides.items():
		if value is None:
			continue
		section, key = key_path.split(".", 1)
		merged["settings"].setdefault(section, {})
		merged["settings"][section][key] = value
	return merged

#============================================

def resolve_scan_range(settings: dict, duration: float) -> tuple:
	"""
	Resolve the first-pass window against the probed duration.

	Returns:
		tuple: (from_seconds, to_seconds).
	"""
	range_from = settings["scan"]["range_from"]
	range_to = settings["scan"]["range_to"]
	if range_from is None:
		range_from = 0.0
	if range_to is None:
		range_to = duration
	if range_from < 0 or range_from > range_to:
		raise ConfigurationError("invalid time range")
	if range_to > duration:
		raise ConfigurationError(
			f"time range is over video duration {int(duration)}"
		)
	return (range_from, range_to)
