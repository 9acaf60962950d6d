"""
Partial-failure behaviour of batch edit/delete.
"""
import pytest
from prometheus_client import REGISTRY

from app.core.errors import InvalidInputError
from app.crud import request as request_crud
from app.crud.request import batch_delete_requests, batch_update_request_statuses
from app.models.request import ItemRequest, RequestStatus
from app.services.batch import run_batch


def _sample(op: str, outcome: str) -> float:
    return REGISTRY.get_sample_value("batch_items_total", {"op": op, "outcome": outcome}) or 0.0


class TestRunBatch:
    def test_outcomes_are_folded_in_processing_order(self):
        store = {"a": 1, "c": 3}
        rolled_back = []

        def apply(key):
            if key == "boom":
                raise RuntimeError("store down")
            return store.get(key)

        result = run_batch("update", ["a", "b", "boom", "c"], key=lambda k: k, apply=apply,
                           on_error=rolled_back.append)

        assert result.succeeded == [1, 3]
        assert result.failed == ["b", "boom"]
        assert len(result.succeeded) + len(result.failed) == 4
        assert rolled_back == ["boom"]

    def test_error_does_not_stop_later_items(self):
        calls = []

        def apply(key):
            calls.append(key)
            raise ValueError(key)

        result = run_batch("delete", ["x", "y", "z"], key=str, apply=apply)
        assert calls == ["x", "y", "z"]
        assert result.succeeded == []
        assert result.failed == ["x", "y", "z"]

    def test_outcome_counters(self):
        before_ok = _sample("delete", "success")
        before_missing = _sample("delete", "not_found")
        run_batch("delete", ["a", "b"], key=str, apply=lambda k: k if k == "a" else None)
        assert _sample("delete", "success") == before_ok + 1
        assert _sample("delete", "not_found") == before_missing + 1


class TestBatchUpdate:
    def test_every_id_lands_in_exactly_one_list(self, session, make_request):
        a = make_request()
        b = make_request(name="John Roe")
        updates = [
            {"id": a.id, "status": "approved"},
            {"id": "missing-1", "status": "rejected"},
            {"id": b.id, "status": "completed"},
        ]

        result = batch_update_request_statuses(session, {"updates": updates})

        assert [s["id"] for s in result.succeeded] == [a.id, b.id]
        assert [s["status"] for s in result.succeeded] == ["approved", "completed"]
        assert result.failed == ["missing-1"]
        assert len(result.succeeded) + len(result.failed) == len(updates)

    def test_status_and_last_edited_move_together(self, session, make_request):
        row = make_request()
        created = row.request_created_date

        result = batch_update_request_statuses(session, {"updates": [{"id": row.id, "status": "rejected"}]})

        snap = result.succeeded[0]
        assert snap["requestCreatedDate"] == created
        assert snap["lastEditedDate"] > created
        session.expire_all()
        assert session.get(ItemRequest, row.id).status == "rejected"

    def test_invalid_pair_leaves_store_untouched(self, session, make_request):
        a = make_request()
        b = make_request()

        with pytest.raises(InvalidInputError):
            batch_update_request_statuses(session, {"updates": [
                {"id": a.id, "status": "approved"},
                {"id": b.id, "status": "shipped"},
            ]})

        session.expire_all()
        assert {r.status for r in session.query(ItemRequest).all()} == {"pending"}

    def test_store_error_is_isolated_and_not_rolled_back(self, session, make_request, monkeypatch):
        a = make_request()
        b = make_request()
        c = make_request()
        real_set_status = request_crud._set_status

        def flaky(db, request_id, status, now):
            if request_id == b.id:
                raise RuntimeError("write conflict")
            return real_set_status(db, request_id, status, now)

        monkeypatch.setattr(request_crud, "_set_status", flaky)

        result = batch_update_request_statuses(session, {"updates": [
            {"id": a.id, "status": "approved"},
            {"id": b.id, "status": "approved"},
            {"id": c.id, "status": "approved"},
        ]})

        assert [s["id"] for s in result.succeeded] == [a.id, c.id]
        assert result.failed == [b.id]
        session.expire_all()
        statuses = {r.id: r.status for r in session.query(ItemRequest).all()}
        assert statuses == {a.id: "approved", b.id: "pending", c.id: "approved"}


class TestBatchDelete:
    def test_missing_ids_are_reported(self, session, make_request):
        row_id = make_request().id

        result = batch_delete_requests(session, {"ids": [row_id, "nonexistent"]})

        assert len(result.succeeded) == 1
        assert result.failed == ["nonexistent"]
        assert session.query(ItemRequest).count() == 0

    def test_second_delete_of_same_id_fails(self, session, make_request):
        row_id = make_request().id

        first = batch_delete_requests(session, {"ids": [row_id]})
        second = batch_delete_requests(session, {"ids": [row_id]})

        assert (len(first.succeeded), first.failed) == (1, [])
        assert (len(second.succeeded), second.failed) == (0, [row_id])

    def test_store_error_is_isolated(self, session, make_request, monkeypatch):
        a_id = make_request().id
        b_id = make_request().id
        real_delete = request_crud._delete_one

        def flaky(db, request_id):
            if request_id == a_id:
                raise RuntimeError("lock timeout")
            return real_delete(db, request_id)

        monkeypatch.setattr(request_crud, "_delete_one", flaky)

        result = batch_delete_requests(session, {"ids": [a_id, b_id]})

        assert result.succeeded == [b_id]
        assert result.failed == [a_id]
        assert [r.id for r in session.query(ItemRequest).all()] == [a_id]

    def test_invalid_id_rejects_whole_batch(self, session, make_request):
        row = make_request()
        with pytest.raises(InvalidInputError):
            batch_delete_requests(session, {"ids": [row.id, ""]})
        assert session.query(ItemRequest).count() == 1

    def test_statuses_are_untouched_by_delete(self, session, make_request):
        keep = make_request(status=RequestStatus.COMPLETED)
        drop_id = make_request().id
        batch_delete_requests(session, {"ids": [drop_id]})
        session.expire_all()
        assert session.get(ItemRequest, keep.id).status == "completed"
