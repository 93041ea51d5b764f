"""Layers - Sense, intelligence and action components."""
