"""
CLI Commands for the loyalty engine.

    flask loyalty check-levels               # Validate the level table
    flask loyalty recompute-levels --dry-run # Report users whose stored level drifted
    flask loyalty recompute-levels           # Repair drift through the atomic update path
    flask loyalty seed-perks                 # Insert demo brands and perks
"""
import sys

import click
from flask.cli import with_appcontext

from ..services.level_rules import LEVEL_DEFINITIONS, evaluate_level, validate_level_table
from ..services.loyalty_engine import get_engine
from ..services.perk_seed import seed_perk_catalog
from ..utils.exceptions import LoyaltyError


@click.group('loyalty')
def loyalty_cli():
    """Loyalty engine commands."""
    pass


@loyalty_cli.command('check-levels')
@with_appcontext
def check_levels():
    """Validate the level table (coverage, floor, non-decreasing requirements)."""
    for definition in LEVEL_DEFINITIONS:
        req = definition.requirements
        tier = req.min_categorical_tier.value if req.min_categorical_tier else '-'
        click.echo(
            f"  L{definition.level} {definition.name:<18} points>={req.points} "
            f"activity>={req.activity_count} spend>={req.cumulative_spend} tier>={tier}"
        )

    problems = validate_level_table()
    if problems:
        click.echo(f"\n{len(problems)} problem(s) found:")
        for problem in problems:
            click.echo(f"  - {problem}")
        sys.exit(1)

    click.echo("\nLevel table OK")


@loyalty_cli.command('recompute-levels')
@click.option('--dry-run', is_flag=True, help='Report drift without writing')
@with_appcontext
def recompute_levels(dry_run):
    """
    Find users whose stored level differs from the evaluated level.

    Repairs go through the processor so they are serialized with live actions.
    """
    engine = get_engine()
    checked = 0
    drifted = 0
    errors = 0

    for user_id in engine.store.list_user_ids():
        checked += 1
        vector = engine.store.get_vector(user_id)
        expected = evaluate_level(vector)
        if expected == vector.derived_level:
            continue

        drifted += 1
        click.echo(f"  {user_id}: stored {vector.derived_level}, evaluated {expected}")
        if dry_run:
            continue

        try:
            result = engine.processor.recompute_level(user_id)
            click.echo(f"    repaired -> {result.new_level}")
        except LoyaltyError as e:
            errors += 1
            click.echo(f"    failed: {e.message}")

    prefix = '[DRY RUN] ' if dry_run else ''
    click.echo(f"\n{prefix}Checked {checked} users, {drifted} drifted, {errors} errors")
    if errors:
        sys.exit(1)


@loyalty_cli.command('seed-perks')
@with_appcontext
def seed_perks():
    """Insert the demo partner brands and perks (idempotent)."""
    result = seed_perk_catalog()
    click.echo(f"Brands created: {result['brands_created']}")
    click.echo(f"Perks created: {result['perks_created']}")


def init_app(app):
    """Register loyalty commands with Flask app."""
    app.cli.add_command(loyalty_cli)
