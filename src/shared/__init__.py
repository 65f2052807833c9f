"""Shared helpers (plotting) used across solvers."""
