from unittest.mock import MagicMock

from tests.api.base import *  # noqa: F401,F403


class ListEndpointTests(CockpitApiBase):
    def _query(self, resource: str, **body):
        payload = {"page": 1, "pageSize": 10}
        payload.update(body)
        return self.client.post(f"/api/lists/{resource}", headers=self._auth_headers(), json=payload)

    def test_users_sorted_by_creation_date_descending(self):
        self._seed_users(25)
        response = self._query("users", sortBy="createdAt", sortDirection="desc")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total"], 25)
        self.assertEqual(body["page"], 1)
        self.assertEqual(body["pageSize"], 10)
        self.assertEqual(len(body["data"]), 10)
        self.assertEqual(body["data"][0]["username"], "user25")
        self.assertEqual(body["data"][-1]["username"], "user16")
        self.assertEqual(set(body["data"][0].keys()), {"id", "username", "email", "isPro", "createdAt"})

    def test_page_length_matches_total_for_every_page(self):
        self._seed_users(25)
        for page_size in (1, 7, 10, 25, 30):
            for page in range(1, 6):
                response = self._query("users", page=page, pageSize=page_size, sortBy="id")
                self.assertEqual(response.status_code, 200)
                body = response.json()
                expected = min(page_size, max(0, body["total"] - (page - 1) * page_size))
                self.assertEqual(len(body["data"]), expected, (page, page_size))

    def test_pages_slice_the_sorted_set(self):
        self._seed_users(12)
        first = self._query("users", page=1, pageSize=5, sortBy="username").json()["data"]
        second = self._query("users", page=2, pageSize=5, sortBy="username").json()["data"]
        third = self._query("users", page=3, pageSize=5, sortBy="username").json()["data"]
        names = [row["username"] for row in first + second + third]
        self.assertEqual(names, [f"user{n:02d}" for n in range(1, 13)])

    def test_filters_are_case_insensitive_substring_and_combine_with_and(self):
        self._seed_users(25)
        response = self._query("users", filters=[{"column": "username", "value": "USER1"}])
        self.assertEqual(response.json()["total"], 10)

        response = self._query(
            "users",
            filters=[
                {"column": "username", "value": "user1"},
                {"column": "email", "value": "5@EXAMPLE"},
            ],
        )
        body = response.json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["data"][0]["username"], "user15")

    def test_total_counts_the_filtered_set(self):
        self._seed_users(25)
        body = self._query("users", pageSize=3, filters=[{"column": "username", "value": "user2"}]).json()
        self.assertEqual(body["total"], 6)
        self.assertEqual(len(body["data"]), 3)

    def test_applying_a_filter_twice_changes_nothing(self):
        self._seed_users(25)
        once = self._query("users", pageSize=50, filters=[{"column": "email", "value": "user0"}]).json()
        twice = self._query(
            "users",
            pageSize=50,
            filters=[{"column": "email", "value": "user0"}, {"column": "email", "value": "user0"}],
        ).json()
        self.assertEqual(once, twice)
        self.assertEqual(once["total"], 9)

    def test_like_wildcards_in_filter_values_are_literal(self):
        self._seed_users(5)
        body = self._query("users", filters=[{"column": "username", "value": "%"}]).json()
        self.assertEqual(body["total"], 0)
        body = self._query("users", filters=[{"column": "username", "value": "_"}]).json()
        self.assertEqual(body["total"], 0)

    def test_blank_filter_value_is_ignored(self):
        self._seed_users(4)
        body = self._query("users", filters=[{"column": "username", "value": "  "}]).json()
        self.assertEqual(body["total"], 4)

    def test_reversing_direction_reverses_order(self):
        self._seed_users(8)
        asc_rows = self._query("users", sortBy="email", sortDirection="asc").json()["data"]
        desc_rows = self._query("users", sortBy="email", sortDirection="DESC").json()["data"]
        self.assertEqual([r["email"] for r in asc_rows], [r["email"] for r in reversed(desc_rows)])

    def test_direction_defaults_to_ascending(self):
        self._seed_users(3)
        rows = self._query("users", sortBy="username").json()["data"]
        self.assertEqual([r["username"] for r in rows], ["user01", "user02", "user03"])

    def test_unknown_resource_is_rejected_without_touching_the_database(self):
        fake_db = MagicMock()

        def override_get_db():
            yield fake_db

        app.dependency_overrides[get_db] = override_get_db
        response = self._query("wine_users; DROP TABLE wine_users")
        self.assertEqual(response.status_code, 400)
        self.assertIn("Invalid resource", response.json()["detail"])
        self.assertEqual(fake_db.method_calls, [])
        self.assertEqual(self.media.calls, 0)

    def test_unknown_filter_or_sort_column_is_rejected(self):
        self._seed_users(3)
        bad_filter = self._query("users", filters=[{"column": "has_proaccount", "value": "1"}])
        self.assertEqual(bad_filter.status_code, 400)
        bad_sort = self._query("users", sortBy="created_at; DROP TABLE wine_users")
        self.assertEqual(bad_sort.status_code, 400)

        with self.SessionLocal() as db:
            self.assertEqual(db.query(WineUser).count(), 3)

    def test_page_and_page_size_must_be_positive(self):
        for body in ({"page": 0}, {"pageSize": 0}, {"page": -1}, {"pageSize": "ten"}):
            response = self._query("users", **body)
            self.assertEqual(response.status_code, 400, body)

        missing = self.client.post("/api/lists/users", headers=self._auth_headers(), json={"page": 1})
        self.assertEqual(missing.status_code, 400)

    def test_page_size_is_capped(self):
        settings.MAX_PAGE_SIZE = 50
        response = self._query("users", pageSize=51)
        self.assertEqual(response.status_code, 400)

    def test_wines_filter_on_numeric_columns_uses_text_form(self):
        self._seed_wine(name="Barolo", year=2016)
        self._seed_wine(name="Rioja", country="Spain", region="La Rioja", year=2019, price=Decimal("18.50"))
        body = self._query("wines", filters=[{"column": "year", "value": "19"}]).json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["data"][0]["name"], "Rioja")
        self.assertAlmostEqual(float(body["data"][0]["price"]), 18.5)

        body = self._query("wines", filters=[{"column": "country", "value": "ital"}]).json()
        self.assertEqual([row["name"] for row in body["data"]], ["Barolo"])

    def test_messages_are_listed(self):
        self._seed_message(subject="Bug report")
        self._seed_message(subject="Feature idea", name="Ben")
        body = self._query("messages", sortBy="subject").json()
        self.assertEqual([row["subject"] for row in body["data"]], ["Bug report", "Feature idea"])

    def test_users_wine_count_aggregates_per_user(self):
        ids = self._seed_users(3)
        self._seed_wine(user_id=ids[1])
        self._seed_wine(user_id=ids[1], name="Barbaresco")
        self._seed_wine(user_id=ids[2])

        body = self._query("users_wine_count", sortBy="wineCount", sortDirection="desc").json()
        self.assertEqual(body["total"], 3)
        self.assertEqual([(r["username"], r["wineCount"]) for r in body["data"]], [("user02", 2), ("user03", 1), ("user01", 0)])

        filtered = self._query("users_wine_count", filters=[{"column": "wineCount", "value": "2"}]).json()
        self.assertEqual([r["username"] for r in filtered["data"]], ["user02"])

    def test_image_folders_are_sorted_and_paged_in_memory(self):
        self.media.folders = {"1": 3, "2": 1, "abc": 5}
        body = self._query("image_folders", pageSize=2, sortBy="fileCount", sortDirection="desc").json()
        self.assertEqual(body["total"], 3)
        self.assertEqual([r["folderName"] for r in body["data"]], ["abc", "1"])

        filtered = self._query("image_folders", filters=[{"column": "folderName", "value": "AB"}]).json()
        self.assertEqual(filtered["total"], 1)
        self.assertEqual(filtered["data"][0]["fileCount"], 5)

    def test_image_folder_column_validation_happens_before_media_call(self):
        response = self._query("image_folders", sortBy="size")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.media.calls, 0)

    def test_orphaned_image_folders_exclude_known_wines(self):
        wine_id = self._seed_wine()
        self.media.folders = {str(wine_id): 2, "999": 1, "stray": 4}
        body = self._query("orphaned_image_folders", sortBy="folderName").json()
        self.assertEqual([r["folderName"] for r in body["data"]], ["999", "stray"])

    def test_media_failure_is_an_upstream_error(self):
        self.media.fail = True
        response = self._query("image_folders")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Failed to fetch list data")
