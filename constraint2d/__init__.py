"""Planar rigid-body simulation: matrices, integrators, linear solvers, constraints, forces and systems."""

__version__ = "0.1.0"