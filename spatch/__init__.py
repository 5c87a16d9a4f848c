"""Split multi-file git diffs into per-file patches."""

from .diff_parser import DiffParser, LineSource, Patch, PatchLines

__version__ = "0.1.0"

__all__ = ["DiffParser", "LineSource", "Patch", "PatchLines", "__version__"]
