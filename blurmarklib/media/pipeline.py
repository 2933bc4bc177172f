#!/usr/bin/env python3

"""
ffmpeg command plan for a segment list.

Keep segments are stream-copied out of the input, change segments are
copied out, blurred over their detected box and re-encoded, then every
piece is joined back with the concat protocol in plan order. MPEG-TS is
used for the pieces because the concat protocol can join it byte-wise.
"""

import os
from dataclasses import dataclass
from dataclasses import field
from blurmarklib.core import utils
from blurmarklib.core.errors import PipelineError
from blurmarklib.core.timepoints import SegmentKind

#============================================

@dataclass
class PipelinePlan():
	commands: list = field(default_factory=list)
	intermediate_files: list = field(default_factory=list)
	files_to_merge: list = field(default_factory=list)
	output_file: str = None

	#============================
	def cleanup_targets(self) -> list:
		return list(self.intermediate_files) + list(self.files_to_merge)

#============================================

def keep_file_name(index: int) -> str:
	return f"part-{index:02d}.ts"

#============================================

def change_file_name(index: int) -> str:
	return f"change-{index:02d}.ts"

#============================================

def changed_file_name(index: int) -> str:
	return f"changed-{index:02d}.ts"

#============================================

def add_input(ffmpeg: list, input_file: str, max_muxing_queue_size=None) -> list:
	cmd = list(ffmpeg) + ["-i", input_file]
	if max_muxing_queue_size is not None:
		cmd += ["-max_muxing_queue_size", str(max_muxing_queue_size)]
	return cmd

#============================================

def _segment_file(segment, cache_dir: str) -> str:
	if segment.kind == SegmentKind.KEEP:
		return os.path.join(cache_dir, keep_file_name(segment.index))
	return os.path.join(cache_dir, change_file_name(segment.index))

#============================================

def _is_final_keep(segment, segments: list) -> bool:
	return segment is segments[-1] and segment.kind == SegmentKind.KEEP

#============================================

def build_split_command(ffmpeg: list, input_file: str, segments: list,
	cache_dir: str, kind: SegmentKind, max_muxing_queue_size=None) -> list:
	"""
	Build one ffmpeg call that stream-copies every segment of one kind.

	Args:
		ffmpeg: Base ffmpeg argv.
		input_file: Source media.
		segments: Full segment plan.
		cache_dir: Directory for the pieces.
		kind: SegmentKind to cut.
		max_muxing_queue_size: Optional ffmpeg muxing queue size.

	Returns:
		list: ffmpeg argv, or an empty list when nothing is cut.
	"""
	cmd = add_input(ffmpeg, input_file, max_muxing_queue_size)
	outputs = 0
	for segment in segments:
		if segment.kind != kind:
			continue
		if segment.duration <= 0:
			continue
		out_file = _segment_file(segment, cache_dir)
		if _is_final_keep(segment, segments):
			# runs to the end of the input
			cmd += ["-ss", f"{segment.start:.2f}", "-codec", "copy", out_file]
			outputs += 1
			continue
		cmd += [
			"-ss", f"{segment.start:.2f}",
			"-t", f"{segment.duration:.2f}",
			"-codec", "copy",
			out_file,
		]
		outputs += 1
	if outputs == 0:
		return []
	return cmd

#============================================

def build_blur_filter(location, boxblur: str) -> str:
	return (
		f"[0:v]crop={location.width}:{location.height}:{location.x}:{location.y},"
		f"boxblur={boxblur}[fg]; "
		f"[0:v][fg]overlay={location.x}:{location.y}[v]"
	)

#============================================

def build_blur_command(ffmpeg: list, segment, cache_dir: str, boxblur: str,
	video_codec: str, max_muxing_queue_size=None) -> list:
	"""
	Build the ffmpeg call that blurs one change piece over its location.
	"""
	in_file = os.path.join(cache_dir, change_file_name(segment.index))
	out_file = os.path.join(cache_dir, changed_file_name(segment.index))
	cmd = add_input(ffmpeg, in_file, max_muxing_queue_size)
	cmd += [
		"-filter_complex", build_blur_filter(segment.location, boxblur),
		"-map", "[v]", "-map", "0:a?",
		"-c:v", video_codec, "-c:a", "copy",
		out_file,
	]
	return cmd

#============================================

def build_concat_command(ffmpeg: list, files_to_merge: list, output_file: str,
	max_muxing_queue_size=None) -> list:
	cmd = add_input(ffmpeg, "concat:" + "|".join(files_to_merge), max_muxing_queue_size)
	cmd += ["-c", "copy", output_file]
	return cmd

#============================================

def build_pipeline(segments: list, input_file: str, output_file: str,
	cache_dir: str, settings: dict, video_codec: str) -> PipelinePlan:
	"""
	Build every command needed to turn the segment plan into the output.

	Args:
		segments: Assembled segment plan.
		input_file: Source media.
		output_file: Final output path.
		cache_dir: Directory for intermediate pieces.
		settings: Normalized settings from config.build_settings().
		video_codec: Codec used to re-encode blurred pieces.

	Returns:
		PipelinePlan: Ordered commands and the files they produce.
	"""
	ffmpeg = settings["ffmpeg"]["argv"]
	queue_size = settings["ffmpeg"]["max_muxing_queue_size"]
	boxblur = settings["filter"]["boxblur"]
	plan = PipelinePlan(output_file=output_file)
	for kind in (SegmentKind.KEEP, SegmentKind.CHANGE):
		cmd = build_split_command(ffmpeg, input_file, segments, cache_dir, kind,
			max_muxing_queue_size=queue_size)
		if len(cmd) > 0:
			plan.commands.append(cmd)
	for segment in segments:
		if segment.duration <= 0:
			continue
		if segment.kind == SegmentKind.KEEP:
			keep_file = os.path.join(cache_dir, keep_file_name(segment.index))
			plan.files_to_merge.append(keep_file)
			continue
		plan.commands.append(build_blur_command(ffmpeg, segment, cache_dir,
			boxblur, video_codec, max_muxing_queue_size=queue_size))
		plan.intermediate_files.append(os.path.join(cache_dir, change_file_name(segment.index)))
		plan.files_to_merge.append(os.path.join(cache_dir, changed_file_name(segment.index)))
	plan.commands.append(build_concat_command(ffmpeg, plan.files_to_merge,
		output_file, max_muxing_queue_size=queue_size))
	return plan

#============================================

def run_pipeline(plan: PipelinePlan, reporter=None, dry_run: bool = False) -> None:
	if reporter is not None:
		reporter.command_total = reporter.command_index + len(plan.commands)
	for cmd in plan.commands:
		utils.run_process(cmd, reporter=reporter, dry_run=dry_run)
	if not dry_run and not os.path.isfile(plan.output_file):
		raise PipelineError(f"merge failed, no output file: {plan.output_file}")
	return

#============================================

def cleanup_files(files: list, reporter=None, dry_run: bool = False) -> list:
	"""
	Remove intermediate pieces; failures are reported and skipped.

	Returns:
		list: Files that could not be removed.
	"""
	failed = []
	for filepath in files:
		if reporter is not None:
			reporter.verbose_message(f"removing {filepath}")
		if dry_run:
			continue
		try:
			os.remove(filepath)
		except OSError as exc:
			failed.append(filepath)
			if reporter is not None:
				reporter.message(f"error removing file: {filepath} {exc}")
	return failed
