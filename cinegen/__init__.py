"""CineGen Studio: prompt-enhanced image and video generation."""

__version__ = "1.0.0"
