"""Frame extraction for animated and video media (Pillow and ffmpeg)."""
