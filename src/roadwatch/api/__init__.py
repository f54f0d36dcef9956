"""HTTP API for the RoadWatch service."""
