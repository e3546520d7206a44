"""Teaching-workload allocation for university course instances."""

__version__ = "0.1.0"
