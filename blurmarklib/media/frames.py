#!/usr/bin/env python3

import io
import subprocess
import numpy
import PIL.Image
from blurmarklib.core.errors import ProbeError

#============================================

def extract_frame(input_file: str, second: float) -> bytes:
	"""
	Grab one frame at a timestamp as PNG bytes.

	Args:
		input_file: Media file path.
		second: Seek position in seconds.

	Returns:
		bytes: Encoded PNG image.
	"""
	cmd = [
		"ffmpeg", "-hide_banner", "-loglevel", "error",
		"-ss", f"{second:.2f}",
		"-i", input_file,
		"-frames:v", "1",
		"-an", "-sn",
		"-f", "image2pipe", "-vcodec", "png",
		"-",
	]
	try:
		proc = subprocess.run(cmd, capture_output=True)
	except OSError as exc:
		raise ProbeError(f"could not run ffmpeg: {exc}") from exc
	if proc.returncode != 0:
		stderr_text = proc.stderr.decode("utf-8", errors="replace").strip()
		raise ProbeError(f"frame extraction failed at {second:.2f}: {stderr_text}")
	if len(proc.stdout) == 0:
		raise ProbeError(f"no frame at {second:.2f}")
	return proc.stdout

#============================================

def decode_grayscale(data: bytes) -> numpy.ndarray:
	"""
	Decode encoded image bytes into an 8-bit grayscale array.
	"""
	try:
		with PIL.Image.open(io.BytesIO(data)) as image:
			gray = image.convert("L")
	except (OSError, ValueError) as exc:
		raise ProbeError(f"could not decode frame: {exc}") from exc
	return numpy.asarray(gray, dtype=numpy.uint8)

#============================================

def load_grayscale_image(image_file: str) -> numpy.ndarray:
	with PIL.Image.open(image_file) as image:
		gray = image.convert("L")
	return numpy.asarray(gray, dtype=numpy.uint8)
