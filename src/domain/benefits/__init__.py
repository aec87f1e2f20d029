"""Benefit claims: eligibility, calculation and lifecycle."""
