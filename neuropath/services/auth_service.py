import logging
import uuid
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import g, jsonify, request

from neuropath.config import config
from neuropath.services.data_service import data_service

log = logging.getLogger("neuropath.auth")


def public_user(user):
    return {
        "userId": user.get("userId"),
        "username": user.get("username") or "",
        "fullName": user.get("fullName") or "",
        "email": user.get("email") or "",
        "userType": user.get("userType") or "",
    }


class AuthService:
    def get_all_users(self):
        return data_service.load_users()

    def get_user_by_id(self, user_id):
        for u in self.get_all_users():
            if u.get("userId") == user_id:
                return u
        return None

    def authenticate(self, username, password):
        """Return ``(user, message)``; ``user`` is None when login fails."""
        username = (username or "").strip()
        if not username or not (password or "").strip():
            return None, "Username and password are required"

        wanted = username.lower()
        for u in self.get_all_users():
            names = (str(u.get("username") or "").lower(), str(u.get("email") or "").lower())
            if wanted in names and u.get("password") == password and u.get("isActive", True):
                log.info(f"User authenticated successfully: {u.get('fullName')} ({u.get('userType')})")
                return u, "Login successful"

        log.warning(f"Failed login attempt for username: {username}")
        return None, "Invalid username or password"

    def create_token(self, user, now=None):
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user.get("userId")),
            "name": user.get("username") or "",
            "email": user.get("email") or "",
            "role": user.get("userType") or "",
            "fullName": user.get("fullName") or "",
            "jti": str(uuid.uuid4()),
            "iss": config.JWT_ISSUER,
            "aud": config.JWT_AUDIENCE,
            "iat": now,
            "exp": now + timedelta(days=config.JWT_EXPIRATION_DAYS),
        }
        return jwt.encode(payload, config.JWT_SECRET, algorithm="HS256")

    def decode_token(self, token):
        return jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=["HS256"],
            audience=config.JWT_AUDIENCE,
            issuer=config.JWT_ISSUER,
        )

auth_service = AuthService()


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = request.headers.get('Authorization', '')
        if token.startswith('Bearer '):
            token = token[7:]
        if not token:
            return jsonify({'error': 'Token is missing'}), 401
        try:
            g.claims = auth_service.decode_token(token)
        except jwt.ExpiredSignatureError:
            return jsonify({'error': 'Token has expired'}), 401
        except jwt.InvalidTokenError:
            return jsonify({'error': 'Token is invalid'}), 401
        return f(*args, **kwargs)
    return decorated
