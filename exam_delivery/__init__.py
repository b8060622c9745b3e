"""Exam delivery engine: timed, sequential exam attempts with pluggable question types."""
