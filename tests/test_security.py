import time

from resource_ledger import security


def test_password_roundtrip() -> None:
    stored = security.hash_password("correct horse")
    assert security.verify_password("correct horse", stored)
    assert not security.verify_password("wrong horse", stored)


def test_hashes_are_salted() -> None:
    assert security.hash_password("same") != security.hash_password("same")


def test_session_token_carries_user_id() -> None:
    token = security.issue_session_token(42, "secret")
    assert security.read_session_token(token, "secret", max_age=60) == 42


def test_session_token_rejects_other_secret() -> None:
    token = security.issue_session_token(42, "secret")
    assert security.read_session_token(token, "other", max_age=60) is None


def test_session_token_rejects_tampering() -> None:
    token = security.issue_session_token(42, "secret")
    payload, signature = token.rsplit(".", 1)
    forged = payload.replace("42:", "1:", 1) + "." + signature
    assert security.read_session_token(forged, "secret", max_age=60) is None
    assert security.read_session_token("garbage", "secret", max_age=60) is None


def test_session_token_expires() -> None:
    issued = int(time.time()) - 120
    token = security.issue_session_token(7, "secret", issued_at=issued)
    assert security.read_session_token(token, "secret", max_age=60) is None
    assert security.read_session_token(token, "secret", max_age=600) == 7
