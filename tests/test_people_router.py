"""
Tests for the people API endpoints.
"""

from uuid import uuid4

from fastapi import status


def ingest(test_client, project_id, people):
    response = test_client.post(
        "/api/people/ingest",
        json={"projectId": str(project_id), "people": people},
    )
    assert response.status_code == status.HTTP_200_OK
    return response.json()["created"]


class TestPeopleEndpoints:
    """Tests for listing and ingesting people."""

    def test_ingest_and_list(self, test_client, project_id):
        data = ingest(test_client, project_id, [
            {"name": "刘雪丽", "mentions": 3},
            {"name": ""},
        ])
        assert len(data) == 1
        assert data[0]["extractionStatus"] == "pending"

        response = test_client.get("/api/people", params={"projectId": str(project_id)})

        assert response.status_code == status.HTTP_200_OK
        people = response.json()["people"]
        assert [p["name"] for p in people] == ["刘雪丽"]
        assert people[0]["importanceScore"] == 3.0

    def test_ingest_mixed_payload(self, test_client, project_id):
        """Test that items which are not objects are rejected one by one."""
        response = test_client.post(
            "/api/people/ingest",
            json={"projectId": str(project_id), "people": [{"name": "张三"}, "garbage", None]},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [p["name"] for p in data["created"]] == ["张三"]
        assert data["rejected"] == 2

    def test_list_requires_project(self, test_client):
        response = test_client.get("/api/people")
        assert response.status_code == 422

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["database"] == "connected"


class TestDuplicateEndpoints:
    """Tests for duplicate detection and exclusions."""

    def test_detect_duplicates(self, test_client, project_id):
        ingest(test_client, project_id, [
            {"name": "王大伟", "mentions": 2},
            {"name": "王大伟先生", "mentions": 1},
            {"name": "张三", "mentions": 1},
        ])

        response = test_client.post(
            "/api/people/detect-duplicates", json={"projectId": str(project_id)}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["totalDuplicates"] == 1
        group = data["duplicateGroups"][0]
        assert group["groupId"] == "group-1"
        assert [d["name"] for d in group["details"]] == ["王大伟", "王大伟先生"]
        assert group["pairs"][0]["reason"] == "alias_match"
        assert group["pairs"][0]["score"] == 0.88
        assert "processingTimeMs" in data

    def test_threshold_out_of_range(self, test_client, project_id):
        response = test_client.post(
            "/api/people/detect-duplicates",
            json={"projectId": str(project_id), "threshold": 1.5},
        )
        assert response.status_code == 422

    def test_exclusions(self, test_client, project_id):
        """Test that an excluded pair disappears and comes back when removed."""
        created = ingest(test_client, project_id, [
            {"name": "王大伟", "mentions": 2},
            {"name": "王大伟先生", "mentions": 1},
        ])
        body = {"projectId": str(project_id), "personIds": [p["id"] for p in created]}

        response = test_client.post("/api/people/exclusions", json=body)
        assert response.json()["created"] == 1

        detect = {"projectId": str(project_id)}
        data = test_client.post("/api/people/detect-duplicates", json=detect).json()
        assert data["totalDuplicates"] == 0

        response = test_client.request("DELETE", "/api/people/exclusions", json=body)
        assert response.json()["removed"] is True

        data = test_client.post("/api/people/detect-duplicates", json=detect).json()
        assert data["totalDuplicates"] == 1

    def test_exclusion_unknown_person(self, test_client, project_id):
        [person] = ingest(test_client, project_id, [{"name": "Ann"}])

        response = test_client.post("/api/people/exclusions", json={
            "projectId": str(project_id),
            "personIds": [person["id"], str(uuid4())],
        })

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestMergeEndpoints:
    """Tests for merge, undo and merge history."""

    def test_merge_and_undo(self, test_client, project_id):
        primary, secondary = ingest(test_client, project_id, [
            {"name": "刘雪丽", "aliases": ["Lily"], "mentions": 3},
            {"name": "雪丽", "aliases": ["Xueli"], "mentions": 2},
        ])

        response = test_client.post("/api/people/merge", json={
            "projectId": str(project_id),
            "primaryPersonId": primary["id"],
            "secondaryPersonId": secondary["id"],
            "strategy": "keep_primary",
        })

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["mergedPerson"]["aliases"] == ["Lily", "Xueli"]
        assert data["mergedPerson"]["importanceScore"] == 5.0
        merge_log_id = data["mergeLogId"]

        listed = test_client.get("/api/people", params={"projectId": str(project_id)}).json()
        assert [p["id"] for p in listed["people"]] == [primary["id"]]

        logs = test_client.get(
            "/api/people/merge-logs", params={"projectId": str(project_id)}
        ).json()["mergeLogs"]
        assert [log["id"] for log in logs] == [merge_log_id]
        assert logs[0]["status"] == "active"

        response = test_client.post("/api/people/undo-merge", json={
            "projectId": str(project_id),
            "mergeLogId": merge_log_id,
        })

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["restoredSecondaryPerson"]["id"] == secondary["id"]
        assert data["message"] == "Successfully restored 雪丽"

        response = test_client.post("/api/people/undo-merge", json={
            "projectId": str(project_id),
            "mergeLogId": merge_log_id,
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_merge_same_person(self, test_client, project_id):
        [person] = ingest(test_client, project_id, [{"name": "Ann"}])

        response = test_client.post("/api/people/merge", json={
            "projectId": str(project_id),
            "primaryPersonId": person["id"],
            "secondaryPersonId": person["id"],
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_merge_unknown_person(self, test_client, project_id):
        [person] = ingest(test_client, project_id, [{"name": "Ann"}])

        response = test_client.post("/api/people/merge", json={
            "projectId": str(project_id),
            "primaryPersonId": person["id"],
            "secondaryPersonId": str(uuid4()),
        })

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_undo_unknown_log(self, test_client, project_id):
        response = test_client.post("/api/people/undo-merge", json={
            "projectId": str(project_id),
            "mergeLogId": str(uuid4()),
        })
        assert response.status_code == status.HTTP_404_NOT_FOUND
