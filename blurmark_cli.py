#!/usr/bin/env python3

import argparse
import os
import sys
import yaml
from blurmarklib.core import config
from blurmarklib.core import utils
from blurmarklib.core.project import BlurmarkProject

#============================================

def parse_args(argv: list = None):
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Find a pattern in a video and blur it where it appears")
	parser.add_argument('-i', '--input', dest='input_file', required=True,
		help='input media file')
	parser.add_argument('-o', '--output', dest='output_file',
		help='output media file')
	parser.add_argument('-t', '--template', dest='templates', action='append',
		help='template image file, repeat for more than one')
	parser.add_argument('-c', '--config', dest='config_file',
		help='config yaml (defaults are written there if it does not exist)')
	parser.add_argument('--write-default-config', dest='write_default_config',
		action='store_true', help='write the default config for this input and exit')
	parser.add_argument('-s', '--step', dest='step', type=float,
		help='first pass step in seconds (default 20)')
	parser.add_argument('-r', '--range', dest='time_range',
		help='time range for the first pass, hh:mm:ss-hh:mm:ss or sec-sec')
	parser.add_argument('--threshold', dest='threshold', type=float,
		help='template match threshold (default 0.9)')
	parser.add_argument('--boxblur', dest='boxblur',
		help='ffmpeg boxblur parameters (default 20)')
	parser.add_argument('--ffmpeg', dest='ffmpeg_command',
		help='ffmpeg base command (default "ffmpeg -loglevel warning -y")')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='print commands to stdout but do not run them')
	parser.add_argument('-C', '--cache-dir', dest='cache_dir',
		help='directory for intermediate files')
	parser.add_argument('-k', '--keep-temp', dest='keep_temp', action='store_true',
		help='do not remove intermediate files')
	parser.add_argument('-p', '--dump-plan', dest='dump_plan', action='store_true',
		help='print the segment plan as yaml and exit')
	parser.add_argument('-v', '--verbose', dest='verbose', action='store_true',
		help='print every probe and command detail')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='only print errors and dry-run commands')
	parser.set_defaults(keep_temp=False)
	parser.set_defaults(dry_run=False)
	parser.set_defaults(write_default_config=False)
	args = parser.parse_args(argv)
	return args

#============================================

def cli_overrides(args) -> dict:
	return {
		'scan.coarse_step': args.step,
		'scan.range': args.time_range,
		'match.threshold': args.threshold,
		'match.templates': args.templates,
		'filter.boxblur': args.boxblur,
		'ffmpeg.command': args.ffmpeg_command,
	}

#============================================

def load_settings(args, reporter: utils.Reporter = None) -> dict:
	"""
	Layer code defaults, the optional config file and CLI flags.
	"""
	raw_config = config.default_config()
	config_path = "<code defaults>"
	if args.config_file is not None:
		config_path = args.config_file
		if not os.path.exists(config_path):
			config.write_config_file(config_path, config.default_config())
			if reporter is not None:
				reporter.message(f"Wrote default config: {config_path}")
		raw_config = config.load_config(config_path)
	raw_config = config.apply_overrides(raw_config, cli_overrides(args))
	return config.build_settings(raw_config, config_path)

#============================================

def build_project(args, reporter: utils.Reporter) -> BlurmarkProject:
	settings = load_settings(args, reporter)
	project = BlurmarkProject(args.input_file,
		output_file=args.output_file,
		settings=settings,
		dry_run=args.dry_run,
		keep_temp=args.keep_temp,
		cache_dir=args.cache_dir,
		reporter=reporter)
	return project

#============================================

def main(argv: list = None) -> int:
	args = parse_args(argv)
	if args.write_default_config:
		config_path = config.default_config_path(args.input_file)
		if os.path.exists(config_path):
			print(f"default config already exists: {config_path}", file=sys.stderr)
			return 1
		config.write_config_file(config_path, config.default_config())
		print(f"Wrote default config: {config_path}")
		return 0
	reporter = utils.Reporter(quiet=args.quiet, verbose=args.verbose)
	try:
		project = build_project(args, reporter)
		if args.dump_plan:
			_, segments = project.plan_segments()
			plan = {
				'input': args.input_file,
				'duration': project.duration,
				'segments': [segment.as_dict() for segment in segments],
			}
			print(yaml.safe_dump(plan, sort_keys=False))
			return 0
		project.run()
	except RuntimeError as exc:
		print(f"error: {exc}", file=sys.stderr)
		return 1
	return 0

#============================================

if __name__ == '__main__':
	sys.exit(main())
