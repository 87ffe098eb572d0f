"""PageCraft Engine: prompt-driven web page design orchestration."""

__version__ = "0.1.0"
