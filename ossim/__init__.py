"""A small operating-system simulator: slot clock, MLQ scheduling, paged memory and system calls."""

__version__ = "0.1.0"