import pytest

from stocksync.services import auth_service


def test_default_admin_is_seeded_once(db, seeded_admin):
    assert seeded_admin.role == "admin"
    assert seeded_admin.password != "admin123"
    assert auth_service.verify_password("admin123", seeded_admin.password)

    auth_service.ensure_default_admin(db)
    assert [u.username for u in auth_service.list_users(db)] == ["admin"]


def test_authenticate(db, seeded_admin):
    assert auth_service.authenticate(db, "admin", "admin123").username == "admin"
    assert auth_service.authenticate(db, "admin", "wrong") is None
    assert auth_service.authenticate(db, "nobody", "admin123") is None


def test_verify_password_rejects_non_bcrypt_hash():
    assert auth_service.verify_password("secret", "plain-text") is False


def test_create_user_rejects_duplicates(db):
    auth_service.create_user(db, "linh", "pw", "staff")
    with pytest.raises(ValueError):
        auth_service.create_user(db, "linh", "other", "admin")


def test_update_user_keeps_password_when_blank(db):
    user = auth_service.create_user(db, "linh", "pw1", "staff")
    old_hash = user.password

    auth_service.update_user(db, "linh", "admin", "  ")
    user = auth_service.get_user(db, "linh")
    assert user.role == "admin"
    assert user.password == old_hash

    auth_service.update_user(db, "linh", "staff", "pw2")
    assert auth_service.authenticate(db, "linh", "pw2") is not None
    assert auth_service.authenticate(db, "linh", "pw1") is None


def test_admin_account_cannot_be_deleted(db, seeded_admin):
    assert auth_service.delete_user(db, "admin") is False
    assert auth_service.get_user(db, "admin") is not None


def test_delete_user(db):
    auth_service.create_user(db, "temp", "pw")
    assert auth_service.delete_user(db, "temp") is True
    assert auth_service.get_user(db, "temp") is None
    assert auth_service.delete_user(db, "temp") is False


def test_session_token_round_trip():
    token = auth_service.create_session_token("admin", "admin")
    payload = auth_service.decode_session_token(token)
    assert payload["sub"] == "admin"
    assert payload["role"] == "admin"
    assert auth_service.decode_session_token(token + "x") is None
    assert auth_service.decode_session_token("garbage") is None
