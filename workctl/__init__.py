"""workctl: Markdown task boards and work logs with a tool-using assistant."""

__version__ = "0.1.0"
