"""edutrack - learner progress tracking and assessment scoring."""

__version__ = "0.1.0"
