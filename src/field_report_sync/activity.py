# -*- coding: utf-8 -*-
"""
Activity trace for submissions and diagnostics.

Each line is stamped with the operational wall-clock time and echoed to the
console, so the trace a caller renders and the console output stay identical.
"""

import threading

from .utils import DEFAULT_TIME_ZONE, now_in_zone


class ActivityLog:
    """Linear, timestamped list of progress messages"""

    def __init__(self, time_zone=DEFAULT_TIME_ZONE, echo=True):
        self.time_zone = time_zone
        self.echo = echo
        self.lines = []
        self._lock = threading.Lock()

    def add(self, message):
        """
        Append a message to the trace.

        Args:
            message (str): Message text

        Returns:
            str: The stamped line as stored
        """
        line = f"{now_in_zone(self.time_zone).strftime('%H:%M:%S')}: {message}"
        with self._lock:
            self.lines.append(line)
        if self.echo:
            print(line)
        return line

    def warn(self, message):
        return self.add(f"Warning: {message}")

    def clear(self):
        with self._lock:
            self.lines = []

    def messages(self):
        """Lines without their timestamps (handy when asserting on the trace)."""
        with self._lock:
            return [line.split(": ", 1)[1] for line in self.lines]

    def __len__(self):
        return len(self.lines)
