"""Tests for CLI bootstrap commands."""
from click.testing import CliRunner

from mediature.cli import cli
from mediature.db.models import Admin, Authority, User


def test_create_admin(db):
    result = CliRunner().invoke(
        cli,
        [
            "create-admin",
            "--email", "Boss@Example.com",
            "--firstname", "Bruno",
            "--lastname", "Boss",
            "--password", "a-long-password",
        ],
    )

    assert result.exit_code == 0, result.output
    user = db.query(User).filter(User.email == "boss@example.com").one()
    assert db.query(Admin).filter(Admin.user_id == user.id).count() == 1


def test_create_admin_twice_is_refused(db, admin):
    result = CliRunner().invoke(
        cli,
        [
            "create-admin",
            "--email", admin.email,
            "--firstname", "Alice",
            "--lastname", "Admin",
            "--password", "a-long-password",
        ],
    )

    assert "already an admin" in result.output
    assert db.query(Admin).count() == 1


def test_create_authority(db):
    result = CliRunner().invoke(
        cli, ["create-authority", "--name", "Ville de Lille", "--slug", "Lille"]
    )

    assert result.exit_code == 0, result.output
    authority = db.query(Authority).filter(Authority.slug == "lille").one()
    assert authority.type == "CITY"


def test_revoke_sessions(db, outsider):
    result = CliRunner().invoke(cli, ["revoke-sessions", "--email", outsider.email])

    assert result.exit_code == 0, result.output
    db.expire_all()
    assert db.get(User, outsider.id).token_version == 2
