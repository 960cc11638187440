"""Export GitLab merge request references (number + head SHA) to CSV."""

__version__ = "0.1.0"
