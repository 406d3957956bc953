"""
Pytest configuration and shared fixtures.
"""

import os

# Settings are read at import time, so configure them BEFORE django.setup()
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("FIREBASE_PROJECT_ID", "demo-project")
os.environ.setdefault("QUICKSTART_EMAIL_BACKEND", "django.core.mail.backends.locmem.EmailBackend")

import django

django.setup()

import pytest
from django.core import mail

from fakes import FakeDatabase


@pytest.fixture
def mailbox():
    """Outgoing emails captured by the locmem backend."""
    mail.outbox = []
    yield mail.outbox
    mail.outbox = []


@pytest.fixture
def fake_db():
    """In-memory Realtime Database with a small posts/users fixture."""
    return FakeDatabase({
        "users": {
            "alice": {"username": "alice", "email": "alice@example.com"},
            "bob": {"username": "bob", "email": "bob@example.com"},
            "carol": {"username": "carol"},
        },
        "posts": {
            "post-1": {
                "uid": "alice",
                "author": "alice",
                "title": "First post",
                "body": "Hello",
                "starCount": 0,
                "stars": {"bob": True},
            },
        },
        "user-posts": {
            "alice": {
                "post-1": {
                    "uid": "alice",
                    "author": "alice",
                    "title": "First post",
                    "body": "Hello",
                    "starCount": 0,
                    "stars": {"bob": True},
                },
            },
        },
    })
