"""Billboard: post short messages, vote on them, and rank them by net score."""

__version__ = "0.1.0"
