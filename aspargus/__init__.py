"""
Aspargus - batch video summarizer backed by local vision and text models.

This package contains the complete application:
- core: Video catalog, summarization pipeline and rename engine
- infrastructure: External tool and service integrations (ffmpeg, Ollama, Pillow)
- config: Settings persistence and application folders
"""

__version__ = "0.1.0"
