"""Leave Engine — leave requests, overlap checks, approval tracks and summaries."""

__version__ = "1.0.0"
