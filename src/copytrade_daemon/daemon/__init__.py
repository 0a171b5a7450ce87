"""Daemon runtime: socket server and mock trade feed."""
