import inspect
import json
import unittest
from unittest import mock

from gameshelf.models import SEARCH_NAME_LENGTH
from gameshelf.routes import games, users
from gameshelf.services.search import normalize_name, search_key

from helpers import PNG_BYTES, ApiTestCase


class NormalizeNameTests(unittest.TestCase):
    def test_folds_case_accents_and_whitespace(self):
        self.assertEqual(normalize_name("  Pokémon   X "), "pokemon x")
        self.assertEqual(normalize_name("ÔKAMI"), "okami")
        self.assertEqual(normalize_name(""), "")

    def test_search_key_fits_column(self):
        # NFKD turns the "ff" ligature into two characters.
        key = search_key("\ufb00" * SEARCH_NAME_LENGTH)
        self.assertEqual(len(key), SEARCH_NAME_LENGTH)
        self.assertEqual(set(key), {"f"})


class GamesApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user, self.headers = self.register("link")

    def test_consoles_are_listed_by_name(self):
        response = self.client.get("/api/consoles", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        names = [console["name"] for console in response.json()]
        self.assertEqual(names, sorted(names))
        self.assertIn("Nintendo 64", names)
        self.assertIn("consoleid", response.json()[0])

    def test_add_game_stores_cover_and_consoles(self):
        n64, gamecube = self.console_ids("Nintendo 64", "GameCube")
        game_id = self.add_game(self.headers, "Ocarina of Time", [n64, gamecube])

        response = self.client.get(f"/api/game-info/{game_id}", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        details = response.json()["gameDetails"]
        self.assertEqual(details["gameid"], game_id)
        self.assertEqual(details["name"], "Ocarina of Time")
        self.assertTrue(details["coverart"].startswith("https://storage.test/covers/"))
        self.assertTrue(details["coverart"].endswith(".png"))
        self.assertEqual(
            [console["name"] for console in details["consoles"]], ["GameCube", "Nintendo 64"]
        )
        self.assertEqual(len(self.storage.stored_objects), 1)
        (data, content_type), = self.storage.stored_objects.values()
        self.assertEqual(data, PNG_BYTES)
        self.assertEqual(content_type, "image/png")

    def test_add_game_requires_cover_art(self):
        response = self.client.post(
            "/add-game-to-database", headers=self.headers, data={"Name": "No Cover"}
        )
        self.assertEqual(response.status_code, 400)

    def test_add_game_rejects_bad_console_list(self):
        for consoles in ("not json", json.dumps({"id": 1}), json.dumps([999999])):
            response = self.client.post(
                "/add-game-to-database",
                headers=self.headers,
                data={"Name": "Broken", "Consoles": consoles},
                files={"CoverArt": ("cover.png", PNG_BYTES, "image/png")},
            )
            self.assertEqual(response.status_code, 400, consoles)

    def test_add_game_rejects_unsupported_image(self):
        response = self.client.post(
            "/add-game-to-database",
            headers=self.headers,
            data={"Name": "Script"},
            files={"CoverArt": ("cover.exe", b"MZ", "application/octet-stream")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.storage.stored_objects, {})

    def test_add_game_requires_login(self):
        response = self.client.post(
            "/add-game-to-database",
            data={"Name": "Anonymous"},
            files={"CoverArt": ("cover.png", PNG_BYTES, "image/png")},
        )
        self.assertEqual(response.status_code, 401)

    def test_search_ignores_case_and_accents(self):
        self.add_game(self.headers, "Pokémon Red")
        self.add_game(self.headers, "Pokemon Blue")
        self.add_game(self.headers, "Metroid")

        response = self.client.get("/api/search", params={"q": "POKEMON"}, headers=self.headers)
        self.assertEqual(response.status_code, 200)
        names = [game["Name"] for game in response.json()["results"]]
        self.assertEqual(names, ["Pokemon Blue", "Pokémon Red"])

        response = self.client.get("/api/search", params={"q": "pokém"}, headers=self.headers)
        self.assertEqual(len(response.json()["results"]), 2)

    def test_search_treats_wildcards_literally(self):
        self.add_game(self.headers, "100% Orange Juice")
        self.add_game(self.headers, "1000 Piece Puzzle")
        response = self.client.get("/api/search", params={"q": "100%"}, headers=self.headers)
        names = [game["Name"] for game in response.json()["results"]]
        self.assertEqual(names, ["100% Orange Juice"])

    def test_search_requires_query(self):
        response = self.client.get("/api/search", params={"q": "  "}, headers=self.headers)
        self.assertEqual(response.status_code, 400)
        response = self.client.get("/api/search", headers=self.headers)
        self.assertEqual(response.status_code, 400)

    def test_search_without_matches(self):
        response = self.client.get("/api/search", params={"q": "zelda"}, headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["results"], [])

    def test_search_limit(self):
        for index in range(3):
            self.add_game(self.headers, f"Mega Man {index + 1}")
        response = self.client.get(
            "/api/search", params={"q": "mega man", "limit": 2}, headers=self.headers
        )
        self.assertEqual(response.status_code, 200)
        names = [game["Name"] for game in response.json()["results"]]
        self.assertEqual(names, ["Mega Man 1", "Mega Man 2"])

        response = self.client.get(
            "/api/search", params={"q": "mega man", "limit": 0}, headers=self.headers
        )
        self.assertEqual(response.status_code, 422)

    def test_long_ligature_name_is_searchable(self):
        game_id = self.add_game(self.headers, "ﬀ" * 200)
        response = self.client.get("/api/search", params={"q": "ff"}, headers=self.headers)
        self.assertEqual([game["GameId"] for game in response.json()["results"]], [game_id])

    def test_cover_art_upload_limit(self):
        with mock.patch("gameshelf.routes.deps.MAX_UPLOAD_BYTES", len(PNG_BYTES)):
            self.add_game(self.headers, "Exactly At Limit")

        with mock.patch("gameshelf.routes.deps.MAX_UPLOAD_BYTES", len(PNG_BYTES) - 1):
            response = self.client.post(
                "/add-game-to-database",
                headers=self.headers,
                data={"Name": "Too Big"},
                files={"CoverArt": ("cover.png", PNG_BYTES, "image/png")},
            )
        self.assertEqual(response.status_code, 413)
        self.assertEqual(len(self.storage.stored_objects), 1)

    def test_upload_handlers_are_sync(self):
        # Sync handlers run in the threadpool.
        self.assertFalse(inspect.iscoroutinefunction(games.add_game_to_database))
        self.assertFalse(inspect.iscoroutinefunction(users.upload_avatar))

    def test_game_info_unknown_game(self):
        response = self.client.get("/api/game-info/424242", headers=self.headers)
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
