#!/usr/bin/env python3

"""
Pytest coverage for the blurmark command line.
"""

# Standard Library
import os
import sys

# PIP3 modules
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)
TESTS_DIR = os.path.dirname(__file__)
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)

# local repo modules
import blurmark_cli
from blurmarklib.core.project import BlurmarkProject
from probe_utils import IntervalProbe

#============================================

def test_parse_args_defaults() -> None:
	args = blurmark_cli.parse_args(["-i", "clip.mp4"])
	assert args.input_file == "clip.mp4"
	assert args.output_file is None
	assert args.templates is None
	assert args.dry_run is False
	assert args.keep_temp is False

#============================================

def test_flags_override_settings() -> None:
	args = blurmark_cli.parse_args([
		"-i", "clip.mp4", "-t", "a.png", "-t", "b.png",
		"-s", "5", "-r", "10-90", "--threshold", "0.8", "--boxblur", "8",
	])
	settings = blurmark_cli.load_settings(args)
	assert settings["match"]["templates"] == ["a.png", "b.png"]
	assert settings["scan"]["coarse_step"] == 5.0
	assert settings["scan"]["range_from"] == 10.0
	assert settings["scan"]["range_to"] == 90.0
	assert settings["match"]["threshold"] == 0.8
	assert settings["filter"]["boxblur"] == "8"

#============================================

def test_write_default_config(tmp_path, capsys) -> None:
	input_file = str(tmp_path / "clip.mp4")
	assert blurmark_cli.main(["-i", input_file, "--write-default-config"]) == 0
	config_path = input_file + ".blurmark.config.yaml"
	assert os.path.isfile(config_path)
	with open(config_path, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle)
	assert data["blurmark"] == 1
	assert data["settings"]["scan"]["coarse_step"] == 20.0
	# refuses to overwrite
	assert blurmark_cli.main(["-i", input_file, "--write-default-config"]) == 1
	assert "already exists" in capsys.readouterr().err

#============================================

def test_missing_config_file_is_created(tmp_path) -> None:
	config_path = str(tmp_path / "run.yaml")
	args = blurmark_cli.parse_args(["-i", "clip.mp4", "-c", config_path, "-s", "7"])
	settings = blurmark_cli.load_settings(args)
	assert os.path.isfile(config_path)
	assert settings["scan"]["coarse_step"] == 7.0

#============================================

def test_missing_output_is_an_error(tmp_path, capsys) -> None:
	code = blurmark_cli.main(["-i", str(tmp_path / "clip.mp4"), "-q"])
	assert code == 1
	assert "error: please provide output file" in capsys.readouterr().err

#============================================

def test_missing_input_is_an_error(tmp_path, capsys) -> None:
	code = blurmark_cli.main(["-i", str(tmp_path / "clip.mp4"),
		"-o", str(tmp_path / "out.ts"), "-t", "logo.png", "-q"])
	assert code == 1
	assert "file not found" in capsys.readouterr().err

#============================================

def test_dump_plan(monkeypatch, capsys) -> None:
	def build_project(args, reporter):
		return BlurmarkProject(args.input_file, reporter=reporter,
			probe=IntervalProbe([(40.0, 45.0)]),
			media_info={"duration": 100.0, "video_codec": "h264"})
	monkeypatch.setattr(blurmark_cli, "build_project", build_project)
	assert blurmark_cli.main(["-i", "clip.mp4", "-p", "-q"]) == 0
	plan = yaml.safe_load(capsys.readouterr().out)
	assert plan["input"] == "clip.mp4"
	assert plan["duration"] == 100.0
	assert [item["kind"] for item in plan["segments"]] == ["keep", "change", "keep"]
	assert plan["segments"][1]["location"]["width"] == 64
