#!/usr/bin/env python3

"""
Textual TUI wrapper for blurmark runs.

The top panel counts template probes and matches while the scan runs, the
log below lists found boxes and the ffmpeg commands of the blur pipeline.
"""

# Standard Library
import os
import sys
import threading
import time
import traceback

script_dir = os.path.dirname(os.path.abspath(__file__))
if script_dir not in sys.path:
	sys.path.insert(0, script_dir)

# PIP3 modules
from textual.app import App, ComposeResult
from textual.widgets import RichLog, Static
from rich.text import Text

# local repo modules
import blurmark_cli
from blurmarklib.core import utils
from blurmarklib.core.project import STATUS_NO_OCCURRENCE

STYLES = {
	'label': "grey50",
	'value': "bold cyan",
	'match': "green",
	'command': "white",
	'failed': "bold red",
}

#============================================

class BlurmarkTuiApp(App):
	BINDINGS = [
		("q", "quit", "Quit"),
	]

	CSS = """
	#status {
		height: auto;
		padding: 0 1;
		border: round $accent;
	}

	#log {
		height: 1fr;
		border: round $primary;
	}
	"""

	def __init__(self, args, debug_log: bool = False):
		super().__init__()
		self.args = args
		self.probe_count = 0
		self.match_count = 0
		self.command_count = 0
		self.command_total = None
		self.current_summary = ""
		self.start_time = None
		self.finish_time = None
		self.error_text = None
		self.result_status = None
		self.status_widget = None
		self.log_widget = None
		self.log_path = None
		self.log_lock = threading.Lock()
		if debug_log:
			self.log_path = os.path.join(os.getcwd(), "blurmark_tui.log")
			# start every debug session with an empty file
			open(self.log_path, "w", encoding="utf-8").close()

	#============================
	def compose(self) -> ComposeResult:
		yield Static("", id="status")
		yield RichLog(id="log", wrap=True, highlight=True)

	#============================
	def on_mount(self) -> None:
		self.title = f"blurmark: {os.path.basename(self.args.input_file)}"
		self.status_widget = self.query_one("#status", Static)
		self.log_widget = self.query_one(RichLog)
		self.start_time = time.time()
		threading.Thread(target=self._run_project, daemon=True).start()
		self.set_interval(0.5, self._update_status)

	#============================
	def _run_project(self) -> None:
		reporter = utils.Reporter(quiet=True,
			command_reporter=lambda event: self.call_from_thread(self._handle_command_event, event),
			probe_reporter=lambda second, location: self.call_from_thread(
				self._handle_probe_event, second, location))
		try:
			project = blurmark_cli.build_project(self.args, reporter)
			self.result_status = project.run().status
		except Exception as exc:
			self.call_from_thread(self._set_error, str(exc), traceback.format_exc())
		finally:
			self.call_from_thread(self._finish)

	#============================
	def _handle_probe_event(self, second: float, location) -> None:
		self.probe_count += 1
		self.current_summary = f"probe {utils.format_timecode(second)} ({second:.2f}s)"
		if location is None:
			return
		self.match_count += 1
		message = (f"match at {second:.2f}s: ({location.x}, {location.y}) "
			f"{location.width}x{location.height}")
		if self.log_widget is not None:
			self.log_widget.write(Text(message, style=STYLES['match']))
		self._write_log(message)

	#============================
	def _handle_command_event(self, event: dict) -> None:
		command = event.get('command', '')
		kind = event.get('event')
		if kind == 'start':
			self.command_count = event.get('index', self.command_count + 1)
			self.command_total = event.get('total', self.command_total)
			self.current_summary = self._summarize_command(command)
			prefix = utils.command_prefix(self.command_count, self.command_total)
			if prefix and self.log_widget is not None:
				self.log_widget.write(Text(prefix, style=STYLES['value']))
		if kind in ('start', 'dry_run'):
			if self.log_widget is not None:
				self.log_widget.write(Text(command, style=STYLES['command']))
			self._write_log(f"{kind}: {command}")
			return
		code = event.get('returncode', 0)
		if code != 0 and self.log_widget is not None:
			self.log_widget.write(Text(f"error ({code}): {self._summarize_command(command)}",
				style=STYLES['failed']))
		self._write_log(f"end {code} ({event.get('seconds', 0.0):.3f}s): {command}")

	#============================
	def _set_error(self, text: str, trace_text: str = None) -> None:
		self.error_text = text
		self._write_log(trace_text or text)
		if self.log_widget is not None:
			self.log_widget.write(Text(f"error: {text}", style=STYLES['failed']))

	#============================
	def _finish(self) -> None:
		if self.start_time is not None:
			self.finish_time = time.time() - self.start_time
		if self.error_text is not None:
			message = "complete with errors"
		elif self.result_status == STATUS_NO_OCCURRENCE:
			message = "no template is found in the video"
		else:
			message = f"complete: {self.args.output_file}"
		if self.log_widget is not None:
			self.log_widget.write(message)
		self._write_log(message)
		self._update_status()

	#============================
	def _summarize_command(self, command: str) -> str:
		if not command:
			return "command"
		parts = command.split()
		tool = os.path.basename(parts[0])
		if len(parts) > 1:
			return f"{tool}: {os.path.basename(parts[-1])}"
		return tool

	#============================
	def _elapsed_text(self) -> str:
		if self.finish_time is not None:
			elapsed = self.finish_time
		elif self.start_time is not None:
			elapsed = time.time() - self.start_time
		else:
			elapsed = 0.0
		return utils.format_timecode(elapsed)

	#============================
	def _status_text(self) -> Text:
		if self.error_text is not None:
			state = "failed"
		elif self.finish_time is not None:
			state = "done"
		else:
			state = "running"
		commands = str(self.command_count)
		if self.command_total:
			commands += f"/{self.command_total}"
		text = Text()
		fields = [
			("state", state),
			("elapsed", self._elapsed_text()),
			("probes", str(self.probe_count)),
			("matches", str(self.match_count)),
			("commands", commands),
		]
		for label, value in fields:
			text.append(f"{label} ", style=STYLES['label'])
			text.append(value, style=STYLES['failed'] if value == "failed" else STYLES['value'])
			text.append("  ")
		text.append("\n")
		text.append(self.current_summary or "starting", style=STYLES['label'])
		return text

	#============================
	def _update_status(self) -> None:
		if self.status_widget is not None:
			self.status_widget.update(self._status_text())

	#============================
	def _write_log(self, message: str) -> None:
		if self.log_path is None:
			return
		with self.log_lock:
			with open(self.log_path, "a", encoding="utf-8") as handle:
				handle.write(f"[{time.strftime('%H:%M:%S')}] {message}\n")

#============================================

def main():
	argv = sys.argv[1:]
	debug_log = "-d" in argv or "--debug" in argv
	argv = [arg for arg in argv if arg not in ("-d", "--debug")]
	args = blurmark_cli.parse_args(argv)
	BlurmarkTuiApp(args, debug_log=debug_log).run()

#============================================

if __name__ == '__main__':
	main()
