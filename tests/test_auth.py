import jwt
import pytest

from core.auth import TOKEN_AUDIENCE, TOKEN_TTL_SECONDS, issuer_for, mint_token
from core.errors import MeshesTransportError
from core.models import MeshesConfig

ISSUED_AT = 1_760_000_000


def _decode(token: str, secret: str) -> dict:
    return jwt.decode(
        token,
        secret.encode("utf-8"),
        algorithms=["HS256"],
        audience=TOKEN_AUDIENCE,
        options={"verify_exp": False},
    )


def test_token_is_compact_jws(config):
    token = mint_token(config, now=ISSUED_AT)
    segments = token.split(".")
    assert len(segments) == 3
    assert all(segments)


def test_token_header_identifies_access_key(config):
    header = jwt.get_unverified_header(mint_token(config, now=ISSUED_AT))
    assert header["alg"] == "HS256"
    assert header["typ"] == "JWT"
    assert header["kid"] == config.access_key


def test_token_claims(config):
    claims = _decode(mint_token(config, now=ISSUED_AT), config.secret_key)

    assert claims["org"] == config.org_id
    assert claims["iss"] == f"urn:meshes:m2m:{config.access_key}"
    assert claims["aud"] == "meshes-api"
    assert claims["iat"] == ISSUED_AT
    assert claims["exp"] - claims["iat"] == TOKEN_TTL_SECONDS == 30


def test_issuer_for():
    assert issuer_for("mk_abc") == "urn:meshes:m2m:mk_abc"


def test_token_defaults_to_current_time(config):
    claims = jwt.decode(
        mint_token(config),
        config.secret_key.encode("utf-8"),
        algorithms=["HS256"],
        audience=TOKEN_AUDIENCE,
        issuer=issuer_for(config.access_key),
    )
    assert claims["exp"] - claims["iat"] == 30


def test_tokens_minted_a_second_apart_differ(config):
    first = mint_token(config, now=ISSUED_AT)
    second = mint_token(config, now=ISSUED_AT + 1)
    assert first != second


def test_token_signed_with_secret_only(config):
    token = mint_token(config, now=ISSUED_AT)
    with pytest.raises(jwt.InvalidSignatureError):
        _decode(token, "some-other-secret-that-is-also-long-enough-to-sign")
    assert config.secret_key not in token


def test_unencodable_secret_fails_loudly():
    bad = MeshesConfig(
        access_key="mk_test",
        secret_key="\ud800",
        org_id="org",
        base_url="https://api.meshes.test",
    )
    with pytest.raises(MeshesTransportError, match="Could not mint Meshes token"):
        mint_token(bad)


def test_config_repr_hides_secret(config):
    assert config.secret_key not in repr(config)
    assert config.access_key in repr(config)
