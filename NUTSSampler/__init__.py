from importlib.metadata import PackageNotFoundError, version

from NUTSSampler import NUTSSampler  # noqa: F401

try:
    __version__ = version("nutssampler")
except PackageNotFoundError:
    # package is not installed
    pass
