"""Saviora dream dialogue backend: admission control and rolling summaries."""
