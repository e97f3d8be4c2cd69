"""aptsync — converge a Debian/Ubuntu system onto a declared apt package list."""

__version__ = "0.1.0"
