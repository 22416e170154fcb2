"""hostkit — generic services for plugins running inside a host application."""

__version__ = "0.4.0"
