"""Processor plugins discovered through the signvideo.processors entry point group."""
