"""hudori-desktop — Python bridge between the hudori frontend and its backend."""

__version__ = "0.1.0"
