#!/usr/bin/env python3

#============================================

def generate_series(start: float, stop: float, step: float) -> list:
	"""
	Build the ascending list of timestamps to probe.

	Values are computed as start + i * step so float error does not
	accumulate across long series. The series stops before the first
	value greater than stop.

	Args:
		start: First timestamp, in seconds.
		stop: Inclusive upper bound, in seconds.
		step: Distance between samples, must be positive.

	Returns:
		list: Timestamps in seconds; empty when start > stop.
	"""
	if step <= 0:
		raise ValueError("series step must be positive")
	series = []
	index = 0
	while True:
		value = start + index * step
		if value > stop:
			break
		series.append(value)
		index += 1
	return series
