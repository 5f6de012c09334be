"""
CLI Commands for the loyalty engine.

Usage:
    flask loyalty check-levels                # Validate the level table
    flask loyalty recompute-levels --dry-run  # Report level drift
    flask loyalty seed-perks                  # Seed demo brands and perks
"""
from .loyalty import init_app as init_loyalty_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_loyalty_commands(app)
