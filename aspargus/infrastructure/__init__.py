"""
Infrastructure layer - external tool and service integrations.

Each subdirectory wraps an external dependency:
- video: ffprobe and ffmpeg subprocesses
- ollama: model server HTTP API
- images: Pillow thumbnail resizing
- files: folder listing and JSON export

These wrappers translate between external formats and our domain models.
"""
