#!/usr/bin/env python3

#============================================

class ConfigurationError(RuntimeError):
	"""
	Missing or invalid run inputs; raised before any scanning starts.
	"""

#============================================

class PipelineError(RuntimeError):
	"""
	An external ffmpeg or ffprobe command exited with an error.
	"""

#============================================

class ProbeError(RuntimeError):
	"""
	A single frame could not be extracted or decoded.

	Never escapes FrameProbe.probe(); a failed probe counts as no match.
	"""
