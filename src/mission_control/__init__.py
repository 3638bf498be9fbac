"""Mission control core: run events, task graphs, workspace diffs and redaction."""

__version__ = "0.1.0"
