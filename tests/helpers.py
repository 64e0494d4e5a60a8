import json
import unittest

from fastapi.testclient import TestClient

from gameshelf.db import Base, SessionLocal, engine, init_db
from gameshelf.main import app
from gameshelf.models import Console, User
from gameshelf.seed import seed_consoles
from gameshelf.services.storage import get_storage_client

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
DEFAULT_PASSWORD = "Password123"


class ApiTestCase(unittest.TestCase):
    """Fresh schema, seeded consoles and an empty in-memory bucket per test."""

    def setUp(self):
        Base.metadata.drop_all(bind=engine)
        init_db()
        self.storage = get_storage_client()
        self.storage.stored_objects.clear()
        self.db = SessionLocal()
        seed_consoles(self.db)
        self.client = TestClient(app)

    def tearDown(self):
        self.db.close()

    def register(self, username, email=None, password=DEFAULT_PASSWORD):
        response = self.client.post(
            "/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )
        self.assertEqual(response.status_code, 201, response.text)
        payload = response.json()
        return payload["user"], {"Authorization": f"Bearer {payload['accessToken']}"}

    def make_admin(self, user_id):
        user = self.db.get(User, user_id)
        user.is_admin = True
        self.db.commit()

    def console_ids(self, *names):
        consoles = self.db.query(Console).filter(Console.name.in_(names)).all()
        by_name = {console.name: console.id for console in consoles}
        return [by_name[name] for name in names]

    def add_game(self, headers, name, console_ids=(), filename="cover.png"):
        response = self.client.post(
            "/add-game-to-database",
            headers=headers,
            data={"Name": name, "Consoles": json.dumps(list(console_ids))},
            files={"CoverArt": (filename, PNG_BYTES, "image/png")},
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["gameid"]
