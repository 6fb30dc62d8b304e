import logging

import click
from flask.cli import with_appcontext

from camrent import db
from camrent.models import ROLES, Equipment, UserProfile

STARTER_CATALOG = [
    {
        "name": "Canon EOS R5",
        "category": "Mirrorless",
        "image_url": "https://images.pexels.com/photos/90946/pexels-photo-90946.jpeg",
        "description": "45MP full-frame mirrorless with 8K video.",
        "rate_12hr": 1200,
        "rate_24hr": 2000,
    },
    {
        "name": "Sony A7 III",
        "category": "Mirrorless",
        "image_url": "https://images.pexels.com/photos/51383/photo-camera-subject-photographer-51383.jpeg",
        "description": "24MP full-frame body, a reliable all-rounder.",
        "rate_12hr": 800,
        "rate_24hr": 1400,
    },
    {
        "name": "Nikon D850",
        "category": "DSLR",
        "image_url": "https://images.pexels.com/photos/243757/pexels-photo-243757.jpeg",
        "description": "45.7MP DSLR for stills and landscape work.",
        "rate_12hr": 900,
        "rate_24hr": 1500,
    },
    {
        "name": "Sigma 24-70mm f/2.8",
        "category": "Lens",
        "image_url": "https://images.pexels.com/photos/3602258/pexels-photo-3602258.jpeg",
        "description": "Standard zoom for events and portraits.",
        "rate_12hr": 500,
        "rate_24hr": 800,
    },
    {
        "name": "DJI RS 3 Gimbal",
        "category": "Stabilizer",
        "image_url": "https://images.pexels.com/photos/2873486/pexels-photo-2873486.jpeg",
        "description": "3-axis stabilizer for mirrorless rigs.",
        "rate_12hr": 400,
        "rate_24hr": 700,
    },
    {
        "name": "Godox SL60W LED",
        "category": "Lighting",
        "image_url": "https://images.pexels.com/photos/1405773/pexels-photo-1405773.jpeg",
        "description": "Continuous daylight LED with Bowens mount.",
        "rate_12hr": 300,
        "rate_24hr": 500,
    },
    {
        "name": "Rode VideoMic Pro+",
        "category": "Audio",
        "image_url": "https://images.pexels.com/photos/3783471/pexels-photo-3783471.jpeg",
        "description": "On-camera shotgun microphone.",
        "rate_12hr": 200,
        "rate_24hr": 350,
    },
]


@click.group("catalog")
def catalog_cli() -> None:
    """Equipment catalog commands."""


@catalog_cli.command("seed")
@with_appcontext
@click.option("--force", is_flag=True, help="Seed even if equipment already exists")
def seed_command(force: bool) -> None:
    """Load the starter catalog into an empty equipment table."""
    if Equipment.query.count() and not force:
        click.echo("Equipment table is not empty; use --force to seed anyway.")
        return
    db.session.add_all(Equipment(**row) for row in STARTER_CATALOG)
    db.session.commit()
    logging.info("seeded %s equipment rows", len(STARTER_CATALOG))
    click.echo(f"Seeded {len(STARTER_CATALOG)} items.")


@catalog_cli.command("list")
@with_appcontext
def list_command() -> None:
    for eq in Equipment.query.order_by(Equipment.category, Equipment.name):
        flag = "" if eq.available else " (unavailable)"
        click.echo(
            f"{eq.id}  {eq.category:<14} {eq.name}  "
            f"12h={eq.rate_12hr:.2f} 24h={eq.rate_24hr:.2f}{flag}"
        )


@click.group("users")
def users_cli() -> None:
    """User profile commands."""


@users_cli.command("set-role")
@with_appcontext
@click.argument("email")
@click.argument("role", type=click.Choice(ROLES))
def set_role_command(email: str, role: str) -> None:
    """Grant ROLE to the profile registered under EMAIL."""
    profile = UserProfile.query.filter_by(email=email).first()
    if profile is None:
        raise click.ClickException(f"No profile for {email}; sign in once first.")
    profile.role = role
    db.session.commit()
    click.echo(f"{email} is now {role}.")
