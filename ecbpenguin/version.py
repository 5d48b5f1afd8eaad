"""Installed version of ecbpenguin."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ecbpenguin")
except PackageNotFoundError:
    # source checkout without an install
    __version__ = "0.0.0+local"

__all__ = ["__version__"]
