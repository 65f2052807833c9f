"""Plotting utilities for cavity solver results."""
