"""Git Fusion URL and configuration resolution."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gitfusion-cli")
except PackageNotFoundError:
    __version__ = "0.0.0"
