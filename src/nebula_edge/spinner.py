import sys
import threading
from typing import TextIO

from nebula_edge.models import SessionSnapshot

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


class Spinner:
    """Thread-based spinner that renders on the current line using \\r."""

    def __init__(self, prefix: str = "", label: str = " Thinking...", stream: TextIO | None = None):
        self._prefix = prefix
        self._label = label
        self._stream = stream
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._frame_width = 1 + len(label)

    @property
    def running(self) -> bool:
        return self._thread is not None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None
        out = self._out()
        clear = self._prefix + " " * self._frame_width
        out.write("\r" + clear + "\r")
        out.flush()

    def _out(self) -> TextIO:
        return self._stream or sys.stdout

    def _run(self) -> None:
        out = self._out()
        i = 0
        try:
            while not self._stop.is_set():
                frame = _SPINNER_FRAMES[i % len(_SPINNER_FRAMES)] + self._label
                out.write("\r" + self._prefix + frame)
                out.flush()
                self._stop.wait(0.08)
                i += 1
        except (UnicodeEncodeError, OSError):
            pass  # Terminal doesn't support these characters; fail silently


class BusyIndicator:
    """Session listener that shows the spinner while a response is pending."""

    def __init__(self, spinner: Spinner):
        self._spinner = spinner
        self._busy = False

    def __call__(self, snapshot: SessionSnapshot) -> None:
        if snapshot.is_awaiting_response == self._busy:
            return
        self._busy = snapshot.is_awaiting_response
        if self._busy:
            self._spinner.start()
        else:
            self._spinner.stop()
