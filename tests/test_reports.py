import unittest

from gameshelf.services.reports import parse_report_types

from helpers import ApiTestCase


class ParseReportTypesTests(unittest.TestCase):
    def test_splits_and_deduplicates(self):
        self.assertEqual(
            parse_report_types("TotalUsers, TotalWishlists,,TotalUsers"),
            ["TotalUsers", "TotalWishlists"],
        )
        self.assertEqual(parse_report_types(""), [])


class ReportsApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin, self.admin_headers = self.register("zelda")
        self.make_admin(self.admin["userid"])

    def _collect(self, user_id, headers, game_id, rating=None):
        response = self.client.post(
            f"/api/add-game-details/{user_id}/{game_id}",
            headers=headers,
            json={"rating": rating},
        )
        self.assertEqual(response.status_code, 200, response.text)

    def _wish(self, user_id, headers, game_id):
        response = self.client.post(f"/api/add-to-wishlist/{user_id}/{game_id}", headers=headers)
        self.assertEqual(response.status_code, 200, response.text)

    def test_requires_admin(self):
        _, headers = self.register("ganon")
        response = self.client.get("/api/reports/TotalUsers", headers=headers)
        self.assertEqual(response.status_code, 403)
        response = self.client.get("/api/reports/TotalUsers")
        self.assertEqual(response.status_code, 401)

    def test_empty_database_defaults(self):
        response = self.client.get(
            "/api/reports/TotalCollections,TotalWishlists,MostCollectedGame,HighestReviewedGame",
            headers=self.admin_headers,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                "totalCollections": {"count": 0},
                "totalWishlists": {"count": 0},
                "mostCollectedGame": {"count": 0},
                "highestReviewedGame": {"name": "N/A", "rating": "N/A"},
            },
        )

    def test_counts_and_top_games(self):
        user, headers = self.register("impa")
        first = self.add_game(self.admin_headers, "Majora's Mask")
        second = self.add_game(self.admin_headers, "Wind Waker")

        self._collect(self.admin["userid"], self.admin_headers, first, rating=8)
        self._collect(user["userid"], headers, second, rating=9)
        self._collect(self.admin["userid"], self.admin_headers, second)
        self._wish(user["userid"], headers, first)

        response = self.client.get(
            "/api/reports/TotalUsers,TotalCollections,TotalWishlists,"
            "MostCollectedGame,MostWantedGame,HighestReviewedGame",
            headers=self.admin_headers,
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["totalUsers"], {"count": 2})
        self.assertEqual(payload["totalCollections"], {"count": 3})
        self.assertEqual(payload["totalWishlists"], {"count": 1})
        self.assertEqual(payload["mostCollectedGame"]["gameid"], second)
        self.assertEqual(payload["mostCollectedGame"]["count"], 2)
        self.assertEqual(payload["mostWantedGame"]["name"], "Majora's Mask")
        self.assertEqual(payload["highestReviewedGame"]["name"], "Wind Waker")
        self.assertEqual(payload["highestReviewedGame"]["rating"], 9)

    def test_ties_resolve_to_lowest_game_id(self):
        first = self.add_game(self.admin_headers, "Link's Awakening")
        second = self.add_game(self.admin_headers, "Minish Cap")
        self._wish(self.admin["userid"], self.admin_headers, second)
        self._wish(self.admin["userid"], self.admin_headers, first)

        response = self.client.get("/api/reports/MostWantedGame", headers=self.admin_headers)
        self.assertEqual(response.json()["mostWantedGame"]["gameid"], first)

    def test_unknown_report_types_are_ignored(self):
        response = self.client.get("/api/reports/TotalUsers,Bogus", headers=self.admin_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"totalUsers": {"count": 1}})


if __name__ == "__main__":
    unittest.main()
