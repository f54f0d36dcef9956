"""RoadWatch: community hazard reporting with a token rewards store."""

__version__ = "0.1.0"
