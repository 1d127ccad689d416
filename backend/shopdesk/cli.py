# Overview: Flask CLI command groups for bootstrap and inspection.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--shop "Main Shop"]
#   Idempotent bootstrap: creates tables, an owner, a demo shop and
#   manager/cashier/staff profiles.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Shop management:
# - python -m flask shops list
# - python -m flask shops create --owner-email owner@shopdesk.local --name "Second Shop" [--slug second-shop]
#
# Profile management:
# - python -m flask users list [--shop-id 1]
# - python -m flask users create --email cashier2@shopdesk.local --role cashier --shop-id 1
#   Prompts for the password when --password is omitted.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Profile, Shop
from .models.auth import ROLE_CASHIER, ROLE_MANAGER, ROLE_OWNER, ROLE_STAFF, ROLES
from .services import auth_service, shop_service
from .services.auth_service import PasswordValidationError
from .validation import ConflictError, ValidationError


DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--shop', 'shop_name', default='Main Shop', help='Demo shop name')
@click.option('--slug', default='main-shop', help='Demo shop login slug')
@with_appcontext
def init_system(shop_name, slug):
    """
    Initialize ShopDesk: tables, an owner, a demo shop and one profile per role.

    All passwords default to "Password123!". Change them in production.
    """
    click.echo("START Initializing ShopDesk...")
    db.create_all()

    owner = db.session.query(Profile).filter_by(email="owner@shopdesk.local").first()
    if not owner:
        owner = auth_service.create_profile(
            email="owner@shopdesk.local",
            password=DEFAULT_PASSWORD,
            role=ROLE_OWNER,
            shop_id=None,
            full_name="Shop Owner",
        )
        click.echo(f"PASS Created owner: {owner.email} (ID: {owner.id})")
    else:
        click.echo(f"PASS Using existing owner: {owner.email} (ID: {owner.id})")

    shop = db.session.query(Shop).filter_by(slug=slug).first()
    if not shop:
        shop = shop_service.create_shop_for(owner, {"name": shop_name, "slug": slug})
        click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id}, slug: {shop.slug})")
    else:
        click.echo(f"PASS Using existing shop: {shop.name} (ID: {shop.id})")

    click.echo("\nUSERS Creating default profiles...")
    for role in (ROLE_MANAGER, ROLE_CASHIER, ROLE_STAFF):
        email = f"{role}@shopdesk.local"
        if db.session.query(Profile).filter_by(email=email).first():
            click.echo(f"WARN  Profile '{email}' already exists, skipping...")
            continue
        try:
            profile = auth_service.create_profile(
                email=email,
                password=DEFAULT_PASSWORD,
                role=role,
                shop_id=shop.id,
                full_name=role.title(),
            )
            click.echo(f"PASS Created profile: {profile.email} with role '{role}'")
        except (PasswordValidationError, ValidationError, ConflictError) as e:
            click.echo(f"FAIL Failed to create '{email}': {e}")

    click.echo("\n" + "=" * 60)
    click.echo("DONE ShopDesk initialized")
    click.echo("=" * 60)
    click.echo(f"\nShop: {shop.name} (ID: {shop.id}) -> /api/auth/shops/{shop.slug}/login")
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for role in (ROLE_OWNER, ROLE_MANAGER, ROLE_CASHIER, ROLE_STAFF):
        click.echo(f"   {role:<8} -> {role}@shopdesk.local / {DEFAULT_PASSWORD}")
    click.echo("")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DANGER: Drop all tables and recreate the schema."""
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD  Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('shops')
def shops_group():
    """Shop management commands."""


@shops_group.command('list')
@with_appcontext
def list_shops():
    shops = db.session.query(Shop).order_by(Shop.id).all()
    if not shops:
        click.echo("No shops found.")
        return
    click.echo(f"{'ID':<5} {'Slug':<24} {'Owner':<6} {'Active':<8} {'Name'}")
    for shop in shops:
        click.echo(f"{shop.id:<5} {shop.slug:<24} {shop.owner_id or '-':<6} {'Yes' if shop.is_active else 'No':<8} {shop.name}")


@shops_group.command('create')
@click.option('--owner-email', required=True, help='Email of an existing owner profile')
@click.option('--name', required=True, help='Shop name')
@click.option('--slug', help='Login slug (derived from the name when omitted)')
@click.option('--address', help='Shop address')
@click.option('--gst-number', help='Shop GSTIN')
@with_appcontext
def create_shop_cli(owner_email, name, slug, address, gst_number):
    owner = db.session.query(Profile).filter_by(email=owner_email.strip().lower(), role=ROLE_OWNER).first()
    if not owner:
        raise click.ClickException(f"No owner profile with email {owner_email}")
    try:
        shop = shop_service.create_shop_for(owner, {
            "name": name, "slug": slug, "address": address, "gst_number": gst_number,
        })
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id}, slug: {shop.slug})")


@click.group('users')
def users_group():
    """Profile management commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@click.option('--shop-id', type=int, help='Shop ID (required for every role but owner)')
@click.option('--full-name', help='Display name')
@with_appcontext
def create_user_cli(email, password, role, shop_id, full_name):
    if role != ROLE_OWNER and not db.session.get(Shop, shop_id or 0):
        raise click.ClickException("A valid --shop-id is required for this role")
    try:
        profile = auth_service.create_profile(
            email=email,
            password=password,
            role=role,
            shop_id=shop_id,
            full_name=full_name,
        )
    except (PasswordValidationError, ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created profile: {profile.email} (ID: {profile.id}) with role '{role}'")


@users_group.command('list')
@click.option('--shop-id', type=int, help='Filter by shop ID')
@with_appcontext
def list_users(shop_id):
    """List profiles with role and active status."""
    query = db.session.query(Profile)
    if shop_id:
        query = query.filter_by(shop_id=shop_id)
    profiles = query.order_by(Profile.id).all()

    if not profiles:
        click.echo("No profiles found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'Shop':<6} {'Email':<36} {'Role':<10} {'Active':<8} {'Custom role'}")
    click.echo("=" * 90)
    for p in profiles:
        custom = p.custom_role.name if p.custom_role else "-"
        click.echo(f"{p.id:<5} {p.shop_id or '-':<6} {p.email:<36} {p.role:<10} {'Yes' if p.is_active else 'No':<8} {custom}")
    click.echo("=" * 90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(shops_group)
    app.cli.add_command(users_group)
