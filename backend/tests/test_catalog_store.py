# Overview: Pytest coverage for the catalog store write helpers.

import pytest
from sqlalchemy.exc import OperationalError

from menuhub.errors import AlreadyExistsError
from menuhub.models import Commerce
from menuhub.services.catalog_store import run_with_retry, transaction


def _locked():
    return OperationalError("UPDATE categories", {}, Exception("database is locked"))


class TestRunWithRetry:

    def test_retries_conflicts_then_succeeds(self, db_session, caplog):
        calls = []

        def write():
            calls.append(1)
            if len(calls) < 3:
                raise _locked()
            return "done"

        assert run_with_retry(write, backoff_base=0) == "done"
        assert len(calls) == 3
        assert "Catalog write conflict, retrying" in caplog.text

    def test_gives_up_after_last_attempt(self, db_session):
        def write():
            raise _locked()

        with pytest.raises(OperationalError):
            run_with_retry(write, attempts=2, backoff_base=0)


class TestTransaction:

    def test_duplicate_subdomain_becomes_already_exists(self, db_session, commerce_a):
        with pytest.raises(AlreadyExistsError) as excinfo:
            with transaction():
                db_session.add(Commerce(
                    business_name="Copy", subdomain=commerce_a.subdomain, business_category="Pizza",
                ))

        assert excinfo.value.field == "subdomain"
