"""Feedhub backend: posts with realtime change notifications."""
