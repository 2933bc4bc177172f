#!/usr/bin/env python3

import json
from blurmarklib.core import utils
from blurmarklib.core.errors import ConfigurationError
from blurmarklib.core.errors import PipelineError

#============================================

def probe_media(input_file: str, reporter=None) -> dict:
	"""
	Probe container duration and the video codec using ffprobe.

	Args:
		input_file: Media file path.
		reporter: Optional run Reporter.

	Returns:
		dict: duration (float seconds), video_codec, width, height.
	"""
	cmd = [
		"ffprobe", "-v", "quiet",
		"-print_format", "json",
		"-show_format", "-show_streams",
		input_file,
	]
	proc = utils.run_process(cmd, reporter=reporter, capture_output=True)
	try:
		data = json.loads(proc.stdout)
	except json.JSONDecodeError as exc:
		raise PipelineError(f"ffprobe returned invalid json for {input_file}") from exc
	return parse_probe_data(data)

#============================================

def parse_probe_data(data: dict) -> dict:
	"""
	Pick the fields the scan and pipeline need out of ffprobe json.
	"""
	video_stream = None
	for stream in data.get("streams", []):
		if not isinstance(stream, dict):
			continue
		if stream.get("codec_type") == "video":
			video_stream = stream
			break
	if video_stream is None or not video_stream.get("codec_name"):
		raise ConfigurationError("unknown video codec")
	duration_text = data.get("format", {}).get("duration")
	if duration_text is None:
		raise ConfigurationError("ffprobe did not return duration")
	try:
		duration = float(duration_text)
	except ValueError as exc:
		raise ConfigurationError(f"invalid duration from ffprobe: {duration_text}") from exc
	if duration <= 0:
		raise ConfigurationError("ffprobe returned non-positive duration")
	return {
		"duration": duration,
		"video_codec": video_stream["codec_name"],
		"width": int(video_stream.get("width", 0)),
		"height": int(video_stream.get("height", 0)),
	}
