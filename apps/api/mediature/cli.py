"""CLI tools for Médiature administration."""

import click

from mediature.db.enums import AuthorityType
from mediature.db.models import Admin, Authority, User
from mediature.db.session import SessionLocal


@click.group()
def cli():
    """Médiature CLI tools."""
    pass


@cli.command()
@click.option("--email", required=True, help="Admin email address")
@click.option("--firstname", required=True)
@click.option("--lastname", required=True)
@click.password_option(help="Password used to sign in")
def create_admin(email: str, firstname: str, lastname: str, password: str):
    """
    Create the first platform admin.

    This is the bootstrap command: further admins are invited from the interface.

    Example:
        python -m mediature.cli create-admin --email "admin@example.com" --firstname Jean --lastname Derrien
    """
    from mediature.core.security import hash_password

    db = SessionLocal()
    try:
        email = email.lower().strip()
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(
                email=email,
                firstname=firstname,
                lastname=lastname,
                password_hash=hash_password(password),
            )
            db.add(user)
            db.flush()
            click.echo(f"✓ Created user: {email}")
        elif user.admin is not None:
            click.echo(f"❌ {email} is already an admin")
            return

        db.add(Admin(user_id=user.id))
        db.commit()

        click.echo(f"✓ {email} is now admin")
        click.echo(f"  User ID: {user.id}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--name", required=True, help="Authority name")
@click.option("--slug", required=True, help="URL-friendly slug (lowercase, no spaces)")
@click.option(
    "--type",
    "authority_type",
    type=click.Choice([t.value for t in AuthorityType]),
    default=AuthorityType.CITY.value,
    show_default=True,
)
def create_authority(name: str, slug: str, authority_type: str):
    """
    Create an authority without going through the API.

    Example:
        python -m mediature.cli create-authority --name "Ville de Paris" --slug "paris"
    """
    db = SessionLocal()
    try:
        slug = slug.lower().strip()
        if not slug.replace("-", "").isalnum():
            click.echo("❌ Slug must be alphanumeric (with optional hyphens)")
            return

        existing = db.query(Authority).filter(Authority.slug == slug).first()
        if existing:
            click.echo(f"❌ Authority with slug '{slug}' already exists")
            return

        authority = Authority(name=name, slug=slug, type=authority_type)
        db.add(authority)
        db.commit()

        click.echo(f"✓ Created authority: {name}")
        click.echo(f"  ID: {authority.id}")
        click.echo(f"  Slug: {slug}")
        click.echo("→ Invite its main agent from the admin interface")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m mediature.cli revoke-sessions --email "user@example.com"
    """
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            click.echo(f"❌ User not found: {email}")
            return

        old_version = user.token_version
        user.token_version += 1
        db.commit()

        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
