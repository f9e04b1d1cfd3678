"""Capture and transcription service: recording.* and transcription.run commands."""
