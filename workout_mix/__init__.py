"""
Workout Mix - builds catalog playlists whose tracks follow a workout's intensity.
"""

__version__ = "0.1.0"
