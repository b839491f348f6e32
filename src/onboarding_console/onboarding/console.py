"""Line oriented operator console."""

from __future__ import annotations

import sys
from typing import TextIO


class PromptCancelled(Exception):
    """The operator closed the input stream or interrupted a prompt."""


class Console:
    """Blocking prompts and report output.

    Streams default to the process's stdin/stdout, looked up at call time.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin
        self._stdout = stdout

    @property
    def stdin(self) -> TextIO:
        return self._stdin or sys.stdin

    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    def write(self, line: str) -> None:
        self.stdout.write(line + "\n")
        self.stdout.flush()

    def ask(self, prompt: str) -> str:
        """Show `prompt` and block until a line is entered.

        Raises:
            PromptCancelled: End of input or keyboard interrupt.
        """
        self.write(prompt)
        try:
            line = self.stdin.readline()
        except KeyboardInterrupt:
            raise PromptCancelled("Prompt interrupted") from None
        if not line:
            raise PromptCancelled("End of input")
        return line.rstrip("\r\n")
