"""Text rendering for the list and show modes."""

from pygments import highlight as _pygments_highlight
from pygments.formatters import TerminalFormatter as _TerminalFormatter
from pygments.lexers import DiffLexer as _DiffLexer

from ..diff_parser import Patch

_pygments_formatter = _TerminalFormatter()
_diff_lexer = _DiffLexer()


def status_letter(patch: Patch) -> str:
    """``A`` added, ``D`` deleted, ``R`` renamed, ``M`` modified."""
    if patch.is_added:
        return "A"
    if patch.is_removed:
        return "D"
    if patch.old_filename != patch.new_filename:
        return "R"
    return "M"


def render_list_entry(patch: Patch, body_lines: int) -> str:
    """One summary line, e.g. ``M  src/lib.rs  (12 lines)``."""
    status = status_letter(patch)
    if status == "R":
        names = f"{patch.old_filename} -> {patch.new_filename}"
    else:
        names = patch.name or ""
    return f"{status}  {names}  ({body_lines} lines)"


def render_patch(patch: Patch, color: bool = False) -> str:
    """Header plus body of *patch*, optionally highlighted for a terminal.

    Drains the patch's body.
    """
    text = patch.header + "".join(f"{line}\n" for line in patch.lines())
    if color:
        return _pygments_highlight(text, _diff_lexer, _pygments_formatter)
    return text
