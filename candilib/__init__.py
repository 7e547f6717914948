"""Driving exam appointment booking service."""
