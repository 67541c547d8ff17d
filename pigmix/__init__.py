"""
pigmix - pigment mixture search

Finds a weighting of a fixed pigment palette whose physical mix matches a
target color, and tunes the configuration of the search algorithms themselves.
"""

__version__ = "0.1.0"
