"""
Flask CLI commands for store setup.

Commands:
- flask init-db: Create tables (optionally dropping them first)
- flask create-admin: Create or promote an admin user
- flask seed-products: Load a sample catalog
"""

import click
import re
from decimal import Decimal

from storefront import database
from storefront.models import Product
from storefront.services.auth_service import ensure_admin
from storefront.services.settings_service import get_store_settings

SAMPLE_PRODUCTS = [
    ('Premium Wireless Headphones', 'High-quality wireless headphones with active noise cancellation.',
     '4999', 'Electronics', 50),
    ('Smart Watch Pro', 'Fitness tracking, notifications and a week of battery life.', '7999', 'Electronics', 30),
    ('Organic Cotton T-Shirt', 'Soft, breathable everyday tee made from organic cotton.', '999', 'Clothing', 100),
    ('Leather Messenger Bag', 'Full-grain leather bag with a padded laptop sleeve.', '3499', 'Accessories', 25),
    ('Stainless Steel Water Bottle', 'Double-walled bottle that keeps drinks cold for 24 hours.',
     '699', 'Lifestyle', 75),
    ('Mechanical Keyboard', 'Tactile switches, RGB backlight and a detachable cable.', '5499', 'Electronics', 40),
    ('Running Shoes Ultra', 'Lightweight cushioned trainers for long distances.', '4299', 'Footwear', 60),
    ('Portable Bluetooth Speaker', 'Waterproof speaker with 12 hours of playback.', '2999', 'Electronics', 45),
    ('Minimalist Wallet', 'Slim RFID-blocking wallet for cards and cash.', '1299', 'Accessories', 80),
    ('Yoga Mat Premium', 'Non-slip 6mm mat with a carrying strap.', '1499', 'Fitness', 55),
]

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop all tables first')
    def init_db_command(drop):
        """Create database tables and the store settings row."""
        if drop:
            click.confirm('This deletes ALL data. Continue?', abort=True)
            database.drop_all()
        database.create_all()
        settings = get_store_settings(database.db_session)
        click.echo(click.style('Database initialized.', fg='green', bold=True))
        click.echo(f'   Reward: {settings.discount_percent}% every {settings.nth_order_discount} orders')

    @app.cli.command('create-admin')
    @click.option('--name', default='Admin', help='Display name')
    @click.option('--email', prompt=True, help='Admin email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
    def create_admin(name, email, password):
        """Create (or promote) a store administrator."""
        if not re.match(EMAIL_PATTERN, email):
            click.echo(click.style('Invalid email. Use the format user@example.com', fg='red'))
            return

        if len(password) < 6:
            click.echo(click.style('Password must be at least 6 characters.', fg='red'))
            return

        try:
            admin = ensure_admin(database.db_session, name, email, password)
        except Exception as e:
            database.db_session.rollback()
            click.echo(click.style(f'Error creating admin: {e}', fg='red'))
            return

        click.echo(click.style('\nAdmin ready!', fg='green', bold=True))
        click.echo(f'   Email: {admin.email}')
        click.echo(f'   ID: {admin.id}')

    @app.cli.command('seed-products')
    def seed_products():
        """Insert the sample catalog, skipping names that already exist."""
        session = database.db_session
        created = 0
        for name, description, price, category, stock in SAMPLE_PRODUCTS:
            if session.query(Product.id).filter_by(name=name).first():
                continue
            session.add(Product(
                name=name,
                description=description,
                price=Decimal(price),
                category=category,
                stock=stock,
                active=True,
            ))
            created += 1
        session.commit()
        click.echo(click.style(f'Seeded {created} products.', fg='green'))
