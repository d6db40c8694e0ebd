import json
import os
import stat

from minimall_server.auth import AuthManager


def test_token_persists_across_instances(session_file):
    AuthManager(session_file).save_token("abc", {"email": "ana@example.com", "full_name": "Ana Cruz"})

    reloaded = AuthManager(session_file)

    assert reloaded.is_authenticated()
    assert reloaded.get_token() == "abc"
    assert reloaded.get_user().full_name == "Ana Cruz"


def test_session_file_is_private(auth_manager, session_file):
    auth_manager.save_token("abc")

    mode = stat.S_IMODE(os.stat(session_file).st_mode)
    assert mode == 0o600
    with open(session_file) as f:
        assert json.load(f)["access_token"] == "abc"


def test_corrupt_file_starts_fresh(session_file):
    with open(session_file, "w") as f:
        f.write("{not json")

    manager = AuthManager(session_file)

    assert not manager.is_authenticated()


def test_pending_signup_round_trip(auth_manager):
    auth_manager.set_pending_signup({"email": "new@example.com", "password": "secret1"})

    assert auth_manager.get_pending_signup()["email"] == "new@example.com"

    auth_manager.clear_pending_signup()
    assert auth_manager.get_pending_signup() is None


def test_last_order_is_read_once(auth_manager):
    auth_manager.set_last_order({"order_number": "ORD-1", "total": "120.00"})

    assert auth_manager.pop_last_order()["order_number"] == "ORD-1"
    assert auth_manager.pop_last_order() is None


def test_clear_session_removes_everything(auth_manager, session_file):
    auth_manager.save_token("abc", {"email": "ana@example.com"})
    auth_manager.set_pending_signup({"email": "x@example.com"})

    auth_manager.clear_session()

    assert not auth_manager.is_authenticated()
    assert auth_manager.get_user() is None
    assert auth_manager.get_pending_signup() is None
    assert not os.path.exists(session_file)


def test_clear_session_without_file(auth_manager):
    auth_manager.clear_session()

    assert not auth_manager.is_authenticated()
