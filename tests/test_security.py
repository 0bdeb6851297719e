"""
Real Estate API - Authentication Unit Tests
============================================

What:  Credential checks plus JWT issue/verify round trips.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from realestate.config import DEFAULT_JWT_SECRET, Settings
from realestate.exceptions import UnauthorizedError
from realestate.security import authenticate, issue_token, verify_token


class TestAuthenticate:

    def test_valid_credentials(self, settings):
        user = authenticate(settings, "admin", "admin123")
        assert user.username == "admin"
        assert user.role == "Admin"

    def test_wrong_password(self, settings):
        with pytest.raises(UnauthorizedError, match="Invalid username or password"):
            authenticate(settings, "admin", "nope")

    def test_unknown_user(self, settings):
        with pytest.raises(UnauthorizedError):
            authenticate(settings, "mallory", "admin123")


class TestTokens:

    def test_round_trip(self, settings):
        token = issue_token(settings, settings.demo_users["user"])
        user = verify_token(settings, token)
        assert user.username == "user"
        assert user.role == "User"

    def test_claims(self, settings):
        issued_at = datetime(2030, 1, 1, tzinfo=timezone.utc)
        token = issue_token(settings, settings.demo_users["admin"], now=issued_at)

        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            options={"verify_exp": False, "verify_iat": False},
        )

        assert claims["sub"] == "admin"
        assert claims["role"] == "Admin"
        assert claims["exp"] - claims["iat"] == settings.jwt_expire_minutes * 60

    def test_expired_token(self, settings):
        long_ago = datetime.now(timezone.utc) - timedelta(days=2)
        token = issue_token(settings, settings.demo_users["admin"], now=long_ago)
        with pytest.raises(UnauthorizedError, match="expired"):
            verify_token(settings, token)

    def test_foreign_signature(self, settings):
        other = Settings(jwt_secret="another-secret-entirely-123456", log_level="WARNING")
        token = issue_token(other, other.demo_users["admin"])
        with pytest.raises(UnauthorizedError, match="Invalid bearer token"):
            verify_token(settings, token)

    def test_missing_subject(self, settings):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError):
            verify_token(settings, token)

    def test_garbage(self, settings):
        with pytest.raises(UnauthorizedError):
            verify_token(settings, "not.a.jwt")


class TestSettings:

    def test_demo_users_parsing(self):
        settings = Settings(auth_users="a:pw:Admin, b:pw2 ,broken,:x:y", log_level="WARNING")
        assert set(settings.demo_users) == {"a", "b"}
        assert settings.demo_users["b"].role == "User"

    def test_default_secret_flagged(self):
        settings = Settings(jwt_secret=DEFAULT_JWT_SECRET, log_level="WARNING")
        with pytest.raises(ValueError, match="JWT_SECRET"):
            settings.validate_required_for_production()

    def test_configured_secret_passes(self, settings):
        settings.validate_required_for_production()

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"
