"""Streaming API - upload a video, stream it back as adaptive-bitrate HLS"""

__version__ = "1.0.0"
