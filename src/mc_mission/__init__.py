"""Mission tracking, command overrides and task coordination for Minecraft agents."""

__version__ = "0.1.0"
