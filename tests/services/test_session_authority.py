# tests/services/test_session_authority.py
from datetime import datetime, timedelta, timezone

import pytest

from forgeblock.core.errors import AuthError, ConflictError, StorageError, ValidationError
from forgeblock.services.session_authority import SessionAuthority


# --- register ---

def test_register_then_login_embeds_username(authority, signer):
    message = authority.register("alice", "alice@x.com", "pass1234")
    assert "successful" in message

    grant = authority.login("alice", "pass1234", remember_long=False)
    claims = signer.validate(grant.token)
    assert claims.username == "alice"
    assert claims.user_id == grant.user_id

def test_register_does_not_log_in(authority):
    authority.register("alice", "alice@x.com", "pass1234")
    user = authority.store.get_user_by_username("alice")
    assert user.auth_token is None
    assert user.last_login_at is None
    assert user.hashed_password != "pass1234"

@pytest.mark.parametrize("username", ["alice", "ALICE", "Alice"])
def test_register_duplicate_username_any_case(authority, username):
    authority.register("alice", "alice@x.com", "pass1234")
    with pytest.raises(ConflictError):
        authority.register(username, "someone.else@x.com", "pass1234")
    assert authority.store.count_users() == 1

def test_register_duplicate_email_any_case(authority):
    authority.register("alice", "alice@x.com", "pass1234")
    with pytest.raises(ConflictError):
        authority.register("alice_two", "ALICE@X.COM", "pass1234")

@pytest.mark.parametrize("username,email,password,expected", [
    ("", "alice@x.com", "pass1234", "All fields are required"),
    ("alice", "", "pass1234", "All fields are required"),
    ("alice", "alice@x.com", "", "All fields are required"),
    ("al", "alice@x.com", "pass1234", "3-24 characters"),
    ("a" * 25, "alice@x.com", "pass1234", "3-24 characters"),
    ("alice!", "alice@x.com", "pass1234", "letters, numbers and underscore"),
    ("alice smith", "alice@x.com", "pass1234", "letters, numbers and underscore"),
    ("alice", "not-an-email", "pass1234", "Invalid email format"),
    ("alice", "alice@x.com", "abc", "at least 4 characters"),
])
def test_register_rejects_invalid_input(authority, username, email, password, expected):
    with pytest.raises(ValidationError) as exc_info:
        authority.register(username, email, password)
    assert expected in exc_info.value.message
    assert authority.store.count_users() == 0

@pytest.mark.parametrize("username", [" alice", "alice ", " alice "])
def test_register_rejects_surrounding_whitespace_in_username(authority, username):
    with pytest.raises(ValidationError):
        authority.register(username, "alice@x.com", "pass1234")
    assert authority.store.count_users() == 0

def test_register_accepts_boundary_usernames(authority):
    authority.register("abc", "abc@x.com", "pass1234")
    authority.register("A_" + "b" * 22, "long@x.com", "pass1234")
    assert authority.store.count_users() == 2

def test_register_conflict_from_store_when_precheck_is_raced(authority, mocker):
    authority.register("alice", "alice@x.com", "pass1234")
    # Simulate the other request committing between our check and insert
    mocker.patch.object(authority.store, "username_taken", return_value=False)
    mocker.patch.object(authority.store, "email_taken", return_value=False)
    with pytest.raises(ConflictError):
        authority.register("ALICE", "alice2@x.com", "pass1234")
    assert authority.store.count_users() == 1


# --- login ---

def test_login_unknown_user_and_wrong_password_look_alike(authority, registered_user):
    with pytest.raises(AuthError) as unknown:
        authority.login("nobody", "pass1234")
    with pytest.raises(AuthError) as wrong_password:
        authority.login("alice", "wrong-pass")
    assert unknown.value.message == wrong_password.value.message == "Invalid username or password"

def test_login_banned_user_is_told(authority, registered_user):
    authority.ban_user(registered_user.id)
    with pytest.raises(AuthError) as exc_info:
        authority.login("alice", "pass1234")
    assert exc_info.value.message == "Account is banned"

def test_login_requires_fields(authority):
    with pytest.raises(ValidationError):
        authority.login("", "")

def test_login_records_session(authority, registered_user):
    grant = authority.login("alice", "pass1234", remember_long=True)
    user = authority.store.get_user(registered_user.id)
    assert user.auth_token == grant.token
    assert user.token_expires_at == grant.expires_at
    assert user.last_login_at is not None
    assert grant.expires_at - datetime.now(timezone.utc) > timedelta(days=29)

def test_login_without_remember_is_one_day(authority, registered_user):
    grant = authority.login("alice", "pass1234", remember_long=False)
    remaining = grant.expires_at - datetime.now(timezone.utc)
    assert timedelta(hours=23) < remaining <= timedelta(days=1)


# --- verify ---

def test_second_login_supersedes_first_token(authority, registered_user):
    token_a = authority.login("alice", "pass1234", remember_long=True).token
    assert authority.verify(token_a) is not None

    token_b = authority.login("alice", "pass1234", remember_long=True).token
    assert token_a != token_b
    assert authority.verify(token_a) is None
    session = authority.verify(token_b)
    assert session.username == "alice"
    assert session.user_id == registered_user.id

def test_verify_rejects_tampered_and_foreign_tokens(authority, registered_user, test_settings, store):
    from forgeblock.core.security import TokenSigner

    grant = authority.login("alice", "pass1234")
    header, payload, signature = grant.token.split(".")
    assert authority.verify(f"{header}.{payload}.{signature[::-1]}") is None

    # Correct user id, wrong key, even when planted as the stored token
    forged = TokenSigner("attacker-key").issue(registered_user.id, "alice", remember_long=True)
    store.set_session(registered_user.id, forged.token, forged.expires_at)
    assert authority.verify(forged.token) is None

@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_verify_rejects_missing_or_garbage(authority, token):
    assert authority.verify(token) is None

def test_verify_rejects_banned_user(authority, registered_user):
    token = authority.login("alice", "pass1234").token
    authority.ban_user(registered_user.id)
    assert authority.verify(token) is None

def test_verify_rejects_stored_expiry_even_if_signature_is_fresh(authority, registered_user, store):
    grant = authority.login("alice", "pass1234")
    store.set_session(registered_user.id, grant.token, datetime.now(timezone.utc) - timedelta(seconds=1))
    assert authority.verify(grant.token) is None

def test_verify_rejects_deleted_user(authority, registered_user, store):
    token = authority.login("alice", "pass1234").token
    store.delete_user(registered_user.id)
    assert authority.verify(token) is None

def test_verify_degrades_to_invalid_on_storage_failure(authority, registered_user, mocker):
    token = authority.login("alice", "pass1234").token
    mocker.patch.object(authority.store, "get_user", side_effect=StorageError())
    assert authority.verify(token) is None


# --- logout ---

def test_logout_keeps_server_token_by_default(authority, registered_user):
    token = authority.login("alice", "pass1234").token
    assert authority.logout(token) is False
    assert authority.verify(token) is not None

def test_logout_revokes_when_configured(store, signer, test_settings, registered_user):
    settings = test_settings.model_copy(update={"LOGOUT_REVOKES_SERVER_TOKEN": True})
    authority = SessionAuthority(store, signer, settings)
    token = authority.login("alice", "pass1234").token

    assert authority.logout(token) is True
    assert authority.verify(token) is None
    assert authority.logout(token) is False  # Nothing left to revoke


# --- change_username ---

def test_change_username_reissues_token(authority, registered_user, signer):
    token_b = authority.login("alice", "pass1234", remember_long=True).token
    grant = authority.change_username(registered_user.id, "alice2", "pass1234")

    assert grant.username == "alice2"
    assert signer.validate(grant.token).username == "alice2"
    assert authority.verify(token_b) is None
    assert authority.verify(grant.token).username == "alice2"
    # The remembered session stays long
    assert grant.expires_at - datetime.now(timezone.utc) > timedelta(days=29)
    # The new name is what logs in now
    assert authority.login("alice2", "pass1234").username == "alice2"

def test_change_username_requires_password(authority, registered_user):
    token = authority.login("alice", "pass1234").token
    with pytest.raises(AuthError):
        authority.change_username(registered_user.id, "alice2", "wrong-pass")
    assert authority.verify(token).username == "alice"

def test_change_username_rejects_taken_and_invalid_names(authority, registered_user):
    authority.register("bob", "bob@x.com", "pass1234")
    with pytest.raises(ConflictError):
        authority.change_username(registered_user.id, "BOB", "pass1234")
    with pytest.raises(ValidationError):
        authority.change_username(registered_user.id, "no spaces", "pass1234")

def test_change_username_allows_recasing_own_name(authority, registered_user):
    grant = authority.change_username(registered_user.id, "Alice", "pass1234")
    assert grant.username == "Alice"

def test_change_username_without_prior_session_is_short(authority, registered_user):
    grant = authority.change_username(registered_user.id, "alice2", "pass1234")
    assert grant.expires_at - datetime.now(timezone.utc) <= timedelta(days=1)

def test_login_does_not_trim_the_username(authority, registered_user):
    with pytest.raises(AuthError) as exc_info:
        authority.login("  ALICE ", "pass1234")
    assert exc_info.value.message == "Invalid username or password"

def test_change_username_rejects_surrounding_whitespace(authority, registered_user):
    with pytest.raises(ValidationError):
        authority.change_username(registered_user.id, " alice2 ", "pass1234")
    assert authority.store.get_user(registered_user.id).username == "alice"
