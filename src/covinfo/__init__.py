"""covinfo: turn gcc coverage data files into LCOV tracefiles."""

__version__ = "0.1.0"
