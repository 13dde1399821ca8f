import pytest
from fastapi import status

from leavedesk.models.notification import Notification

API = "/api/leave"


@pytest.fixture
def directory(members, leave_types):
    return members


def _submit(client, as_actor, requester="emp1", **overrides):
    body = {
        "leave_type_name": "Annual Leave",
        "start_date": "2024-06-10",
        "end_date": "2024-06-14",
        "reason": "Family trip",
        "approver_id": "mgr1",
    }
    body.update(overrides)
    return client.post(f"{API}/requests", json=body, headers=as_actor(requester))


def _error_code(response):
    return response.json()["errors"][0]["code"]


def test_missing_actor_header_is_rejected(client, directory):
    response = client.get(f"{API}/types")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert _error_code(response) == "AUTH_FAILED"


def test_unknown_actor_is_rejected(client, directory, as_actor):
    response = client.get(f"{API}/types", headers=as_actor("ghost"))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_leave_types_hide_inactive_by_default(client, directory, as_actor):
    response = client.get(f"{API}/types", headers=as_actor("emp1"))
    assert response.status_code == 200
    assert [t["name"] for t in response.json()["data"]] == ["Annual Leave", "Sick Leave"]

    response = client.get(f"{API}/types", params={"include_inactive": True}, headers=as_actor("emp1"))
    assert len(response.json()["data"]) == 3


def test_eligible_approvers_exclude_caller(client, directory, as_actor):
    response = client.get(f"{API}/approvers", headers=as_actor("mgr1"))
    ids = [m["id"] for m in response.json()["data"]]
    assert "mgr1" not in ids
    assert set(ids) == {"hr1", "mgr2"}


def test_submit_and_approve_flow(client, directory, as_actor, db_session):
    response = _submit(client, as_actor)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    request = body["data"]["request"]
    assert request["status"] == "Pending Manager"
    assert request["requester_name"] == "Eva Lind"

    queue = client.get(f"{API}/approvals/pending", headers=as_actor("mgr1")).json()["data"]
    assert [r["id"] for r in queue] == [request["id"]]

    response = client.post(
        f"{API}/requests/{request['id']}/decision", json={"outcome": "Approve"}, headers=as_actor("mgr1")
    )
    assert response.status_code == 200
    assert response.json()["data"]["request"]["status"] == "Approved"

    titles = [n.title for n in db_session.query(Notification).filter(Notification.member_id == "emp1")]
    assert titles == ["Leave Approved"]

    balance = client.get(f"{API}/balance/emp1", params={"leave_type_name": "Annual Leave"}, headers=as_actor("emp1"))
    assert balance.json()["data"][0]["remaining_days"] == 15


def test_submit_without_approver_is_unprocessable(client, directory, as_actor):
    response = _submit(client, as_actor, approver_id="emp2")
    assert response.status_code == 422
    assert _error_code(response) == "LEAVE_NO_ELIGIBLE_APPROVER"


def test_submit_with_inactive_type_is_unprocessable(client, directory, as_actor):
    response = _submit(client, as_actor, leave_type_name="Sabbatical")
    assert response.status_code == 422
    assert _error_code(response) == "LEAVE_VALIDATION_FAILED"


def test_malformed_payload_uses_request_invalid_code(client, directory, as_actor):
    response = _submit(client, as_actor, start_date="not-a-date")
    assert response.status_code == 422
    assert _error_code(response) == "REQUEST_INVALID"


def test_reject_without_comment_is_unprocessable(client, directory, as_actor):
    request_id = _submit(client, as_actor).json()["data"]["request"]["id"]
    response = client.post(
        f"{API}/requests/{request_id}/decision", json={"outcome": "Reject", "comment": ""}, headers=as_actor("mgr1")
    )
    assert response.status_code == 422


def test_requester_cannot_decide(client, directory, as_actor):
    request_id = _submit(client, as_actor).json()["data"]["request"]["id"]
    response = client.post(
        f"{API}/requests/{request_id}/decision", json={"outcome": "Approve"}, headers=as_actor("emp2")
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert _error_code(response) == "LEAVE_NOT_AUTHORIZED"


def test_edit_after_decision_conflicts(client, directory, as_actor):
    request_id = _submit(client, as_actor).json()["data"]["request"]["id"]
    client.post(f"{API}/requests/{request_id}/decision", json={"outcome": "Approve"}, headers=as_actor("hr1"))

    response = client.put(f"{API}/requests/{request_id}", json={"reason": "Longer trip"}, headers=as_actor("emp1"))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert _error_code(response) == "LEAVE_NOT_EDITABLE"

    response = client.delete(f"{API}/requests/{request_id}", headers=as_actor("emp1"))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert _error_code(response) == "LEAVE_NOT_WITHDRAWABLE"


def test_second_decision_conflicts(client, directory, as_actor):
    request_id = _submit(client, as_actor).json()["data"]["request"]["id"]
    client.post(f"{API}/requests/{request_id}/decision", json={"outcome": "Approve"}, headers=as_actor("mgr1"))
    response = client.post(
        f"{API}/requests/{request_id}/decision", json={"outcome": "Approve"}, headers=as_actor("mgr1")
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert _error_code(response) == "LEAVE_INVALID_TRANSITION"


def test_edit_then_withdraw(client, directory, as_actor):
    request_id = _submit(client, as_actor).json()["data"]["request"]["id"]

    response = client.put(
        f"{API}/requests/{request_id}",
        json={"duration_kind": "Half Day", "expected_status": "Pending Manager"},
        headers=as_actor("emp1"),
    )
    assert response.status_code == 200
    edited = response.json()["data"]["request"]
    assert edited["end_date"] == edited["start_date"] == "2024-06-10"

    response = client.delete(
        f"{API}/requests/{request_id}", params={"expected_status": "Pending Manager"}, headers=as_actor("emp1")
    )
    assert response.status_code == 200
    assert client.get(f"{API}/requests/{request_id}", headers=as_actor("emp1")).status_code == 404


def test_unknown_request_is_not_found(client, directory, as_actor):
    response = client.get(f"{API}/requests/missing", headers=as_actor("hr1"))
    assert response.status_code == 404
    assert _error_code(response) == "LEAVE_NOT_FOUND"


def test_uninvolved_member_cannot_read_request(client, directory, as_actor):
    request_id = _submit(client, as_actor).json()["data"]["request"]["id"]
    assert client.get(f"{API}/requests/{request_id}", headers=as_actor("emp2")).status_code == 403
    assert client.get(f"{API}/requests/{request_id}", headers=as_actor("mgr1")).status_code == 200
    assert client.get(f"{API}/requests/{request_id}", headers=as_actor("adm1")).status_code == 200


def test_listing_is_scoped_to_caller(client, directory, as_actor):
    _submit(client, as_actor, requester="emp1")
    _submit(client, as_actor, requester="emp2", approver_id="mgr2")

    mine = client.get(f"{API}/requests", params={"requester_id": "emp2"}, headers=as_actor("emp1")).json()["data"]
    assert {r["requester_id"] for r in mine} == {"emp1"}

    everyone = client.get(f"{API}/requests", headers=as_actor("hr1")).json()["data"]
    assert {r["requester_id"] for r in everyone} == {"emp1", "emp2"}


def test_requester_sees_only_own_balance(client, directory, as_actor):
    assert client.get(f"{API}/balance/emp2", headers=as_actor("emp1")).status_code == 403
    response = client.get(f"{API}/balance/emp1", headers=as_actor("emp1"))
    assert [b["leave_type_name"] for b in response.json()["data"]] == ["Annual Leave", "Sick Leave"]
