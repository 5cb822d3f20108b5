"""
Auth flow tests
- POST /auth/signup: creates user, duplicate email (any case) returns 409
- POST /auth/signin: returns accessToken + refreshToken, bad credentials return 401
- POST /auth/refresh-token: rotates the pair, rejects forged/expired/revoked tokens
- Bearer access token guards /users/profile
"""
import hashlib
import importlib
from datetime import datetime, timezone, timedelta

import bcrypt
import jwt

from orgauth.core.config import JWT_SECRET, JWT_REFRESH_SECRET, JWT_ALGORITHM
from conftest import DB_MODULES, TEST_PASSWORD, auth_headers, run, wait_for


class TestSignup:
    """Tests for POST /auth/signup"""

    def test_signup_success(self, client, mock_db):
        """Signup stores a lowercase email, a hashed password and a verification token"""
        response = client.post("/auth/signup", json={
            "name": "Alice",
            "email": "Alice@Example.com",
            "password": TEST_PASSWORD,
        })
        assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.text}"
        data = response.json()
        assert data == {"message": "User created successfully"}
        assert "accessToken" not in data

        user = run(mock_db.users.find_one({"email": "alice@example.com"}))
        assert user is not None
        assert user["password"] != TEST_PASSWORD
        assert user["password"].startswith("$2")
        assert user["email_verification_token"]
        assert user["is_email_verified"] is False
        assert user["refresh_tokens"] == []
        print("✓ signup stores normalized user")

    def test_signup_duplicate_email_case_insensitive(self, client):
        """Second signup with the same email in different case returns 409"""
        first = client.post("/auth/signup", json={"name": "Bob", "email": "bob@example.com", "password": TEST_PASSWORD})
        assert first.status_code == 200

        second = client.post("/auth/signup", json={"name": "Bob 2", "email": "BOB@EXAMPLE.COM", "password": TEST_PASSWORD})
        assert second.status_code == 409, f"Expected 409, got {second.status_code}: {second.text}"
        assert "detail" in second.json()
        print("✓ duplicate signup rejected with 409")

    def test_signup_sends_verification_email(self, client, mock_db, sent_emails):
        """Signup dispatches a verification email carrying the stored token"""
        client.post("/auth/signup", json={"name": "Carol", "email": "carol@example.com", "password": TEST_PASSWORD})
        assert wait_for(lambda: len(sent_emails) == 1)

        user = run(mock_db.users.find_one({"email": "carol@example.com"}))
        mail = sent_emails[0]
        assert mail["template"] == "verify-email"
        assert mail["to"] == "carol@example.com"
        assert user["email_verification_token"] in mail["context"]["verify_link"]

    def test_signup_short_password(self, client):
        """Signup with a password under 8 characters fails validation"""
        response = client.post("/auth/signup", json={"name": "Dan", "email": "dan@example.com", "password": "short"})
        assert response.status_code == 422

    def test_signup_invalid_email(self, client):
        response = client.post("/auth/signup", json={"name": "Eve", "email": "not-an-email", "password": TEST_PASSWORD})
        assert response.status_code == 422


class TestSignin:
    """Tests for POST /auth/signin"""

    def test_signin_returns_token_pair(self, client, mock_db):
        client.post("/auth/signup", json={"name": "Frank", "email": "frank@example.com", "password": TEST_PASSWORD})

        response = client.post("/auth/signin", json={"email": "FRANK@example.com", "password": TEST_PASSWORD})
        assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.text}"
        data = response.json()
        assert data["message"] == "Logged in successfully"
        assert data["accessToken"]
        assert data["refreshToken"]

        user = run(mock_db.users.find_one({"email": "frank@example.com"}))
        access = jwt.decode(data["accessToken"], JWT_SECRET, algorithms=[JWT_ALGORITHM])
        refresh = jwt.decode(data["refreshToken"], JWT_REFRESH_SECRET, algorithms=[JWT_ALGORITHM])
        assert access["sub"] == user["id"] == refresh["sub"]
        assert access["email"] == "frank@example.com"
        assert len(user["refresh_tokens"]) == 1
        assert user["refresh_tokens"][0] != data["refreshToken"]
        assert user["last_login"] is not None
        print("✓ signin issues pair and stores refresh token digest")

    def test_token_lifetimes(self, client):
        """Access token lives 15 minutes, refresh token 7 days"""
        client.post("/auth/signup", json={"name": "Gina", "email": "gina@example.com", "password": TEST_PASSWORD})
        data = client.post("/auth/signin", json={"email": "gina@example.com", "password": TEST_PASSWORD}).json()

        access = jwt.decode(data["accessToken"], JWT_SECRET, algorithms=[JWT_ALGORITHM])
        refresh = jwt.decode(data["refreshToken"], JWT_REFRESH_SECRET, algorithms=[JWT_ALGORITHM])
        assert access["exp"] - access["iat"] == 15 * 60
        assert refresh["exp"] - refresh["iat"] == 7 * 24 * 3600

    def test_signin_wrong_password(self, client):
        client.post("/auth/signup", json={"name": "Hank", "email": "hank@example.com", "password": TEST_PASSWORD})
        response = client.post("/auth/signin", json={"email": "hank@example.com", "password": "WrongPassword123"})
        assert response.status_code == 401, f"Expected 401, got {response.status_code}: {response.text}"
        print("✓ signin with wrong password returns 401")

    def test_signin_unknown_email(self, client):
        response = client.post("/auth/signin", json={"email": "nobody@example.com", "password": TEST_PASSWORD})
        assert response.status_code == 401

    def test_signin_deactivated_user(self, client, make_user):
        """A deactivated account can no longer sign in"""
        user = make_user()
        assert client.delete("/users/profile", headers=user["headers"]).status_code == 200

        response = client.post("/auth/signin", json={"email": user["email"], "password": user["password"]})
        assert response.status_code == 401


class TestRefreshToken:
    """Tests for POST /auth/refresh-token"""

    def test_refresh_returns_new_pair_for_same_subject(self, client, make_user, mock_db):
        user = make_user()

        response = client.post("/auth/refresh-token", json={"refreshToken": user["refresh_token"]})
        assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.text}"
        data = response.json()
        assert data["message"] == "Token refreshed successfully"
        assert data["refreshToken"] != user["refresh_token"]
        assert data["accessToken"] != user["access_token"]

        payload = jwt.decode(data["accessToken"], JWT_SECRET, algorithms=[JWT_ALGORITHM])
        assert payload["sub"] == user["id"]

        # New access token works against a protected route
        profile = client.get("/users/profile", headers=auth_headers(data["accessToken"]))
        assert profile.status_code == 200
        assert profile.json()["id"] == user["id"]
        print("✓ refresh chain keeps subject")

    def test_refresh_appends_digests(self, client, make_user, mock_db):
        """Old digests are kept; each refresh adds one"""
        user = make_user()
        client.post("/auth/refresh-token", json={"refreshToken": user["refresh_token"]})

        stored = run(mock_db.users.find_one({"id": user["id"]}))
        assert len(stored["refresh_tokens"]) == 2

    def test_refresh_with_access_token_rejected(self, client, make_user):
        """Access tokens are signed with a different secret and cannot be used to refresh"""
        user = make_user()
        response = client.post("/auth/refresh-token", json={"refreshToken": user["access_token"]})
        assert response.status_code == 401

    def test_refresh_malformed_token(self, client):
        response = client.post("/auth/refresh-token", json={"refreshToken": "not.a.jwt"})
        assert response.status_code == 401

    def test_refresh_expired_token(self, client, make_user):
        user = make_user()
        past = datetime.now(timezone.utc) - timedelta(days=1)
        expired = jwt.encode(
            {"sub": user["id"], "email": user["email"], "iat": past - timedelta(days=7), "exp": past},
            JWT_REFRESH_SECRET,
            algorithm=JWT_ALGORITHM,
        )
        response = client.post("/auth/refresh-token", json={"refreshToken": expired})
        assert response.status_code == 401

    def test_refresh_after_user_deleted(self, client, make_user, mock_db):
        """Replay of a valid refresh token after the user is gone returns 401"""
        user = make_user()
        run(mock_db.users.delete_one({"id": user["id"]}))

        response = client.post("/auth/refresh-token", json={"refreshToken": user["refresh_token"]})
        assert response.status_code == 401, f"Expected 401, got {response.status_code}: {response.text}"
        print("✓ refresh for deleted user returns 401")

    def test_refresh_token_not_issued_by_server(self, client, make_user):
        """A correctly signed token whose digest was never stored is rejected"""
        user = make_user()
        now = datetime.now(timezone.utc)
        forged = jwt.encode(
            {"sub": user["id"], "email": user["email"], "iat": now, "exp": now + timedelta(days=1), "jti": "x"},
            JWT_REFRESH_SECRET,
            algorithm=JWT_ALGORITHM,
        )
        response = client.post("/auth/refresh-token", json={"refreshToken": forged})
        assert response.status_code == 401


class TestBearerAuth:
    """Access-token guard on protected routes"""

    def test_missing_token(self, client):
        response = client.get("/users/profile")
        assert response.status_code in (401, 403)

    def test_refresh_token_as_bearer_rejected(self, client, make_user):
        user = make_user()
        response = client.get("/users/profile", headers=auth_headers(user["refresh_token"]))
        assert response.status_code == 401

    def test_expired_access_token(self, client, make_user):
        user = make_user()
        past = datetime.now(timezone.utc) - timedelta(minutes=1)
        expired = jwt.encode({"sub": user["id"], "email": user["email"], "exp": past}, JWT_SECRET, algorithm=JWT_ALGORITHM)
        response = client.get("/users/profile", headers=auth_headers(expired))
        assert response.status_code == 401
        assert response.json()["detail"] == "Token expired"


class TestRefreshLookup:
    """Refresh matches the presented token with one indexed lookup, however many sessions exist"""

    def test_stored_entry_is_sha256_digest(self, client, make_user, mock_db):
        user = make_user()
        stored = run(mock_db.users.find_one({"id": user["id"]}))
        assert stored["refresh_tokens"] == [hashlib.sha256(user["refresh_token"].encode("utf-8")).hexdigest()]

    def test_many_sessions_no_bcrypt_per_refresh(self, client, make_user, mock_db, monkeypatch):
        user = make_user()
        tokens = [user["refresh_token"]]
        for _ in range(15):
            data = client.post("/auth/signin", json={"email": user["email"], "password": user["password"]}).json()
            tokens.append(data["refreshToken"])
        assert len(run(mock_db.users.find_one({"id": user["id"]}))["refresh_tokens"]) == 16

        checks = []
        real_checkpw = bcrypt.checkpw

        def counting_checkpw(*args, **kwargs):
            checks.append(args)
            return real_checkpw(*args, **kwargs)

        monkeypatch.setattr(bcrypt, "checkpw", counting_checkpw)

        for token in (tokens[-1], tokens[0]):
            response = client.post("/auth/refresh-token", json={"refreshToken": token})
            assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.text}"
        assert checks == []
        print("✓ refresh does no bcrypt work per stored session")


class TestStoreWiring:

    def test_every_module_uses_test_database(self, mock_db):
        for module in DB_MODULES:
            assert importlib.import_module(module).db is mock_db, module
