from tourcrm.utils.token_crypto import (
    TOKEN_PREFIX,
    build_token_string,
    digest_secret,
    generate_token,
    hash_password,
    parse_token,
    password_needs_rehash,
    verify_password,
    verify_secret,
)


def test_parse_token_and_build_roundtrip():
    tid = "abc123def4567890"
    secret = "s3cr3t_part_with_underscores"
    token = build_token_string(tid, secret)
    parsed = parse_token(token)
    assert parsed and parsed.token_id == tid and parsed.secret == secret

    assert parse_token("") is None
    assert parse_token("notvalid") is None
    assert parse_token(TOKEN_PREFIX + "nounderscore") is None
    assert parse_token(TOKEN_PREFIX + "_secretonly") is None


def test_password_hash_verifies_only_the_right_password():
    h = hash_password("topsecret")
    assert h != "topsecret"
    assert verify_password("topsecret", h) is True
    assert verify_password("wrong", h) is False
    assert verify_password("", h) is False
    assert verify_password("topsecret", "not-an-argon2-hash") is False
    assert password_needs_rehash(h) is False


def test_secret_digest_is_keyed_by_token_id():
    digest = digest_secret("sec", "tid1")
    assert verify_secret("sec", "tid1", digest) is True
    assert verify_secret("sec", "tid2", digest) is False
    assert verify_secret("other", "tid1", digest) is False
    assert verify_secret("", "tid1", digest) is False


def test_generate_token_parses_back():
    tid, sec, token = generate_token()
    assert token.startswith(TOKEN_PREFIX)
    assert "_" not in tid
    parsed = parse_token(token)
    assert parsed.token_id == tid and parsed.secret == sec
