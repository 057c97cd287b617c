import os
import unittest
from datetime import datetime
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from cockpit.db.session import TransientDatabaseError, run_with_retry
from cockpit.models.wine_user import WineUser
from cockpit.schemas.lists import ListRequest
from cockpit.services.list_query import (
    ListQueryError,
    ResourceDescriptor,
    UnknownResourceError,
    _escape_like,
    build_list_statements,
    paginate_rows,
    resolve_resource,
)
from cockpit.services.resources import RESOURCES, USERS


def _lr(**body) -> ListRequest:
    payload = {"page": 1, "pageSize": 10}
    payload.update(body)
    return ListRequest.model_validate(payload)


class ListRequestSchemaTests(unittest.TestCase):
    def test_camel_case_fields_are_accepted(self):
        lr = _lr(page=3, pageSize=20, sortBy="email", sortDirection="DESC")
        self.assertEqual(lr.page_size, 20)
        self.assertEqual(lr.sort_by, "email")
        self.assertEqual(lr.sort_direction, "desc")
        self.assertEqual(lr.offset, 40)

    def test_blank_sort_and_missing_direction(self):
        lr = _lr(sortBy="  ", sortDirection=None)
        self.assertIsNone(lr.sort_by)
        self.assertEqual(lr.sort_direction, "asc")

    def test_unknown_direction_is_rejected(self):
        with self.assertRaises(ValueError):
            _lr(sortDirection="sideways")


class EscapeLikeTests(unittest.TestCase):
    def test_wildcards_and_escape_char_are_escaped(self):
        self.assertEqual(_escape_like("50%_off\\"), "50\\%\\_off\\\\")

    def test_plain_text_is_unchanged(self):
        self.assertEqual(_escape_like("Barolo"), "Barolo")


class ListStatementTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine("sqlite+pysqlite:///:memory:")
        WineUser.__table__.create(bind=cls.engine)
        with Session(cls.engine) as session:
            session.add_all(
                [
                    WineUser(id=1, username="anna", email="anna@x.io", has_proaccount=True, created_at=datetime(2026, 1, 3)),
                    WineUser(id=2, username="bob_b", email="bob@x.io", has_proaccount=False, created_at=datetime(2026, 1, 1)),
                    WineUser(id=3, username="bobby", email="BOBBY@x.io", has_proaccount=False, created_at=datetime(2026, 1, 2)),
                    WineUser(id=4, username="carla", email="carla@x.io", has_proaccount=False, created_at=datetime(2026, 1, 4)),
                ]
            )
            session.commit()

    @classmethod
    def tearDownClass(cls):
        cls.engine.dispose()

    def _run(self, lr: ListRequest):
        page_stmt, count_stmt = build_list_statements(USERS, lr)
        with Session(self.engine) as session:
            total = session.execute(count_stmt).scalar_one()
            rows = [dict(row) for row in session.execute(page_stmt).mappings().all()]
        return total, rows

    def test_filter_escapes_underscore(self):
        total, rows = self._run(_lr(filters=[{"column": "username", "value": "b_b"}]))
        self.assertEqual(total, 1)
        self.assertEqual(rows[0]["username"], "bob_b")

    def test_filter_is_case_insensitive(self):
        total, rows = self._run(_lr(filters=[{"column": "email", "value": "bobby@"}]))
        self.assertEqual([row["id"] for row in rows], [3])

    def test_boolean_column_is_filterable_as_text(self):
        total, _ = self._run(_lr(filters=[{"column": "isPro", "value": "1"}]))
        self.assertEqual(total, 1)

    def test_sort_ties_break_on_key(self):
        _, rows = self._run(_lr(sortBy="isPro", sortDirection="asc"))
        self.assertEqual([row["id"] for row in rows], [2, 3, 4, 1])

    def test_sort_by_date_desc_with_paging(self):
        total, rows = self._run(_lr(page=2, pageSize=2, sortBy="createdAt", sortDirection="desc"))
        self.assertEqual(total, 4)
        self.assertEqual([row["id"] for row in rows], [3, 2])

    def test_statements_bind_values_instead_of_inlining_them(self):
        page_stmt, _ = build_list_statements(USERS, _lr(filters=[{"column": "email", "value": "x' OR '1'='1"}]))
        compiled = page_stmt.compile()
        self.assertNotIn("OR '1'='1", str(compiled))
        self.assertIn("%x' OR '1'='1%", compiled.params.values())

    def test_unknown_columns_raise(self):
        with self.assertRaises(ListQueryError):
            build_list_statements(USERS, _lr(filters=[{"column": "password", "value": "a"}]))
        with self.assertRaises(ListQueryError):
            build_list_statements(USERS, _lr(sortBy="username DESC"))

    def test_page_size_above_limit_raises(self):
        with patch("cockpit.services.list_query.settings") as cfg:
            cfg.MAX_PAGE_SIZE = 5
            with self.assertRaises(ListQueryError):
                build_list_statements(USERS, _lr(pageSize=6))


class PaginateRowsTests(unittest.TestCase):
    descriptor = ResourceDescriptor(
        name="folders",
        columns={"folderName": "folderName", "fileCount": "fileCount"},
        key="folderName",
        loader=lambda db, media: [],
    )
    rows = [
        {"folderName": "12", "fileCount": 4},
        {"folderName": "3", "fileCount": None},
        {"folderName": "7", "fileCount": 1},
        {"folderName": "old", "fileCount": 4},
    ]

    def test_nulls_sort_last_ascending(self):
        result = paginate_rows(self.descriptor, self.rows, _lr(sortBy="fileCount"))
        self.assertEqual([r["folderName"] for r in result["data"]], ["7", "12", "old", "3"])

    def test_descending_reverses_ascending(self):
        asc_names = [r["folderName"] for r in paginate_rows(self.descriptor, self.rows, _lr(sortBy="folderName"))["data"]]
        desc_names = [
            r["folderName"]
            for r in paginate_rows(self.descriptor, self.rows, _lr(sortBy="folderName", sortDirection="desc"))["data"]
        ]
        self.assertEqual(asc_names, list(reversed(desc_names)))

    def test_filter_matches_text_form_of_numbers(self):
        result = paginate_rows(self.descriptor, self.rows, _lr(filters=[{"column": "fileCount", "value": "4"}]))
        self.assertEqual(result["total"], 2)

    def test_page_past_the_end_is_empty(self):
        result = paginate_rows(self.descriptor, self.rows, _lr(page=3, pageSize=2))
        self.assertEqual(result, {"data": [], "total": 4, "page": 3, "pageSize": 2})


class ResolveResourceTests(unittest.TestCase):
    def test_known_resources_resolve(self):
        for name in ("users", "wines", "messages", "users_wine_count", "image_folders", "orphaned_image_folders"):
            self.assertEqual(resolve_resource(RESOURCES, name).name, name)

    def test_unknown_resource_raises(self):
        with self.assertRaises(UnknownResourceError):
            resolve_resource(RESOURCES, "wine_cockpit_auth")


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("server closed the connection"))


class RunWithRetryTests(unittest.TestCase):
    def test_transient_failure_is_retried(self):
        db = MagicMock()
        operation = MagicMock(side_effect=[_operational_error(), 42])
        self.assertEqual(run_with_retry(db, operation, attempts=3, delay_seconds=0), 42)
        self.assertEqual(operation.call_count, 2)
        db.rollback.assert_called_once()

    def test_exhausted_attempts_raise_transient_error(self):
        db = MagicMock()
        operation = MagicMock(side_effect=_operational_error())
        with patch("cockpit.db.session.time.sleep") as sleep:
            with self.assertRaises(TransientDatabaseError):
                run_with_retry(db, operation, attempts=3, delay_seconds=0.25)
        self.assertEqual(operation.call_count, 3)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [0.25, 0.5])

    def test_non_transient_error_propagates_immediately(self):
        db = MagicMock()
        operation = MagicMock(side_effect=IntegrityError("INSERT", {}, Exception("duplicate")))
        with self.assertRaises(IntegrityError):
            run_with_retry(db, operation, attempts=3, delay_seconds=0)
        self.assertEqual(operation.call_count, 1)


if __name__ == "__main__":
    unittest.main()
