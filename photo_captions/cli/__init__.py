"""
Command-line interface package for batch captioning.
"""
from .main import cli, process_images

__all__ = ['cli', 'process_images']
