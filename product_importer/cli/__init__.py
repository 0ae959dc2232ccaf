from .__main__ import EXIT_BLOCKED, EXIT_FATAL, EXIT_SUCCESS, main

__all__ = ["EXIT_BLOCKED", "EXIT_FATAL", "EXIT_SUCCESS", "main"]
