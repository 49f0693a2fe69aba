"""Shared fixtures: a throwaway SQLite database per test."""

import os
import tempfile
import unittest
import uuid

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fridgeshare_backend import close_database, create_app
from fridgeshare_backend.models import Base
from fridgeshare_backend.services.users import create_user


class DatabaseTestCase(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.database_url = "sqlite:///" + os.path.join(
            self._tmpdir.name, "test.db"
        )
        self.engine = create_engine(self.database_url)
        Base.metadata.create_all(self.engine)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()
        self._tmpdir.cleanup()

    def make_user(
        self, display_name: str, photo_url: str | None = None
    ) -> uuid.UUID:
        with self.session_factory() as session:
            user = create_user(
                session, display_name=display_name, photo_url=photo_url
            )
            session.commit()
            return user.id


class ApiTestCase(DatabaseTestCase):
    app_config: dict = {"AUTH_MODE": "header"}

    def setUp(self):
        super().setUp()
        self.app = create_app(
            {"TESTING": True, "DATABASE_URL": self.database_url, **self.app_config}
        )
        self.client = self.app.test_client()

    def tearDown(self):
        close_database(self.app)
        super().tearDown()

    def as_user(self, user_id) -> dict[str, str]:
        return {"x-user-id": str(user_id)}
