"""
Core logic for video summarization.

This package doesn't import ffmpeg wrappers, HTTP clients or Pillow.
Those are handed in through the protocols defined here, which keeps the
pipeline testable with plain fakes.
"""
