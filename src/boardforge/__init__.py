"""BoardForge - storyboard project export and archive builder."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("boardforge")
except PackageNotFoundError:
    __version__ = "unknown"
