"""Interactive prompts for maiass.

All blocking reads from the terminal go through ``Prompter`` so that silent
mode and tests can answer them without a TTY.
"""

from collections.abc import Callable, Sequence

from rich.console import Console
from rich.markup import escape

MULTILINE_TERMINATOR = 3


class Prompter:
    """Ask yes/no, choice and multi-line questions.

    Args:
        console: Console used for questions and echoed answers
        silent: Answer confirm/choose prompts automatically
        reader: Line reader; defaults to ``console.input``. Raises EOFError at end of input.
    """

    def __init__(
        self,
        console: Console,
        silent: bool = False,
        reader: Callable[[str], str] | None = None,
    ) -> None:
        self.console = console
        self.silent = silent
        self._reader = reader

    def _read(self, prompt: str) -> str:
        if self._reader is not None:
            return self._reader(prompt)
        return self.console.input(prompt, markup=False)

    def confirm(self, question: str, default: bool = False, silent_answer: bool = True) -> bool:
        """Ask a yes/no question.

        Args:
            question: Question text without the ``[y/N]`` suffix
            default: Answer for empty input
            silent_answer: Answer used in silent mode
        """
        suffix = "[Y/n]" if default else "[y/N]"
        if self.silent:
            answer = "y" if silent_answer else "n"
            self.console.print(f"{escape(question)} {escape(suffix)} {answer} [dim](silent)[/dim]")
            return silent_answer
        try:
            reply = self._read(f"{question} {suffix} ").strip().lower()
        except EOFError:
            return default
        if not reply:
            return default
        return reply in ("y", "yes")

    def choose(
        self,
        question: str,
        choices: Sequence[str],
        default: str,
        silent_answer: str | None = None,
    ) -> str:
        """Ask for one of several single-word answers (matched on first letter)."""
        if self.silent:
            answer = silent_answer or default
            self.console.print(f"{escape(question)} {answer} [dim](silent)[/dim]")
            return answer
        try:
            reply = self._read(f"{question} ").strip().lower()
        except EOFError:
            return default
        if not reply:
            return default
        for choice in choices:
            if reply == choice or reply == choice[0]:
                return choice
        return default

    def multiline(self, intro: str) -> str:
        """Read lines until three consecutive empty lines or end of input."""
        self.console.print(intro)
        lines: list[str] = []
        empty_run = 0
        while True:
            try:
                line = self._read("")
            except EOFError:
                break
            if line.strip() == "":
                empty_run += 1
                if empty_run >= MULTILINE_TERMINATOR:
                    break
            else:
                empty_run = 0
            lines.append(line.rstrip())
        while lines and not lines[-1]:
            lines.pop()
        while lines and not lines[0]:
            lines.pop(0)
        return "\n".join(lines)
