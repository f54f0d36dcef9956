"""Operator and deployment scripts."""
