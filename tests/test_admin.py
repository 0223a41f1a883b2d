"""Tests for admin moderation, announcements and reports."""

import csv
import io
from datetime import date, datetime, timedelta, timezone

import pytest

from app.config import settings
from app.modules.admin.reports import report_filename, stream_report
from app.modules.admin.service import AdminService
from app.modules.auth.role_resolver import SessionRoleCache

# Rows seeded through fake_db are stamped a few seconds after this instant
SEEDED_AT = datetime(2025, 7, 12, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def admin_id(fake_db) -> str:
    return fake_db.add_user("Ada Admin", role="admin")


class TestAdminGate:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/v1/admin/overview"),
            ("get", "/api/v1/admin/users"),
            ("post", "/api/v1/admin/skills/some-skill/approve"),
            ("post", "/api/v1/admin/messages/some-message/toggle"),
            ("get", "/api/v1/admin/reports/users"),
        ],
    )
    def test_regular_user_is_forbidden(self, test_client, login_as, swap, method, path) -> None:
        login_as(swap["requester"])
        assert getattr(test_client, method)(path).status_code == 403


class TestSkillModeration:
    def test_approve(self, test_client, login_as, admin_id, swap, fake_db) -> None:
        skill_id = fake_db.add_skill(swap["provider"], "Welding", category="other", is_approved=False)
        login_as(admin_id)

        pending = test_client.get("/api/v1/admin/skills", params={"pending_only": True}).json()
        assert [s["id"] for s in pending] == [skill_id]
        assert pending[0]["owner_name"] == "Pat Provider"

        response = test_client.post(f"/api/v1/admin/skills/{skill_id}/approve")
        assert response.json() == {"skill_id": skill_id, "action": "approved"}
        assert fake_db.row("skills", skill_id)["is_approved"] is True

    def test_reject_deletes_skill_and_its_requests(self, test_client, login_as, admin_id, swap, fake_db) -> None:
        skill_id = fake_db.add_skill(swap["provider"], "Welding", category="other", is_approved=False)
        request_id = fake_db.add_request(swap["requester"], swap["provider"], swap["offered_skill"], skill_id)
        login_as(admin_id)

        response = test_client.post(f"/api/v1/admin/skills/{skill_id}/reject")
        assert response.json()["action"] == "rejected"
        assert fake_db.row("skills", skill_id) is None
        assert fake_db.row("skill_requests", request_id) is None

    def test_reject_unknown_skill(self, test_client, login_as, admin_id) -> None:
        login_as(admin_id)
        assert test_client.post("/api/v1/admin/skills/missing/reject").status_code == 404


class TestUserModeration:
    def test_ban_and_unban(self, test_client, login_as, admin_id, swap, fake_db) -> None:
        login_as(admin_id)
        assert test_client.post(f"/api/v1/admin/users/{swap['provider']}/ban").json()["is_banned"] is True
        assert fake_db.profile(swap["provider"])["is_banned"] is True

        banned = test_client.get("/api/v1/admin/users", params={"banned_only": True}).json()
        assert [u["user_id"] for u in banned] == [swap["provider"]]

        assert test_client.post(f"/api/v1/admin/users/{swap['provider']}/unban").json()["is_banned"] is False
        assert fake_db.profile(swap["provider"])["is_banned"] is False

    def test_ban_keeps_history(self, test_client, login_as, admin_id, swap, fake_db) -> None:
        request_id = fake_db.add_request(
            swap["requester"], swap["provider"], swap["offered_skill"], swap["wanted_skill"], status="completed"
        )
        login_as(admin_id)
        test_client.post(f"/api/v1/admin/users/{swap['requester']}/ban")
        assert fake_db.row("skill_requests", request_id) is not None

    def test_ban_unknown_user(self, test_client, login_as, admin_id) -> None:
        login_as(admin_id)
        assert test_client.post("/api/v1/admin/users/missing/ban").status_code == 404

    def test_role_change_invalidates_cached_sessions(self, swap, admin_id, fake_db) -> None:
        cache = SessionRoleCache()
        cache.set("token-a", swap["requester"], "user")
        cache.set("token-b", swap["requester"], "user")
        cache.set("token-c", swap["provider"], "user")

        result = AdminService(fake_db, role_cache=cache).set_role(swap["requester"], "admin", admin_id)

        assert result.invalidated_sessions == 2
        assert cache.get("token-a") is None
        assert cache.get("token-c") == "user"
        roles = [r for r in fake_db.tables["user_roles"] if r["user_id"] == swap["requester"]]
        assert [r["role"] for r in roles] == ["admin"]

    def test_assign_role_endpoint(self, test_client, login_as, admin_id, swap, fake_db) -> None:
        login_as(admin_id)
        response = test_client.put(f"/api/v1/admin/users/{swap['provider']}/role", json={"role": "admin"})
        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        assert test_client.put(
            f"/api/v1/admin/users/{swap['provider']}/role", json={"role": "owner"}
        ).status_code == 422


class TestRequestListing:
    def test_list_requests_with_names_and_titles(self, test_client, login_as, admin_id, swap, fake_db) -> None:
        request_id = fake_db.add_request(
            swap["requester"], swap["provider"], swap["offered_skill"], swap["wanted_skill"], status="accepted"
        )
        fake_db.add_request(swap["requester"], swap["provider"], swap["offered_skill"], swap["wanted_skill"])
        login_as(admin_id)

        accepted = test_client.get("/api/v1/admin/requests", params={"status": "accepted"}).json()
        assert [r["id"] for r in accepted] == [request_id]
        assert accepted[0]["requester_name"] == "Rae Requester"
        assert accepted[0]["provider_name"] == "Pat Provider"
        assert accepted[0]["offered_skill_title"] == "Guitar"
        assert accepted[0]["wanted_skill_title"] == "Python"

        assert len(test_client.get("/api/v1/admin/requests").json()) == 2


class TestAnnouncements:
    def test_create_toggle_and_list(self, test_client, login_as, admin_id, swap) -> None:
        login_as(admin_id)
        created = test_client.post(
            "/api/v1/admin/messages", json={"title": "Maintenance", "message": "Down at 2am"}
        )
        assert created.status_code == 201
        message_id = created.json()["id"]

        login_as(swap["requester"])
        assert [m["id"] for m in test_client.get("/api/v1/announcements").json()] == [message_id]

        login_as(admin_id)
        toggled = test_client.post(f"/api/v1/admin/messages/{message_id}/toggle").json()
        assert toggled["is_active"] is False
        assert len(test_client.get("/api/v1/admin/messages").json()) == 1

        login_as(swap["requester"])
        assert test_client.get("/api/v1/announcements").json() == []

    def test_concurrent_toggles_last_write_wins(self, admin_id, fake_db) -> None:
        service = AdminService(fake_db)
        message_id = fake_db._insert("admin_messages", {
            "admin_id": admin_id, "title": "Hello", "message": "Welcome", "is_active": True,
        })[0]["id"]

        # Two tabs read is_active=True, then both write their flip
        first = service.toggle_message(message_id, admin_id)
        fake_db.row("admin_messages", message_id)["is_active"] = True
        second = service.toggle_message(message_id, admin_id)

        assert first.is_active is False
        assert second.is_active is False
        assert fake_db.row("admin_messages", message_id)["is_active"] is False

    def test_toggle_unknown(self, test_client, login_as, admin_id) -> None:
        login_as(admin_id)
        assert test_client.post("/api/v1/admin/messages/missing/toggle").status_code == 404


class TestOverview:
    def test_counts(self, test_client, login_as, admin_id, swap, fake_db) -> None:
        fake_db.add_skill(swap["provider"], "Welding", is_approved=False)
        fake_db.add_request(swap["requester"], swap["provider"], swap["offered_skill"], swap["wanted_skill"])
        fake_db.profile(swap["requester"])["is_banned"] = True
        login_as(admin_id)

        body = test_client.get("/api/v1/admin/overview").json()
        assert body["total_users"] == 3
        assert body["banned_users"] == 1
        assert body["total_skills"] == 3
        assert body["pending_skills"] == 1
        assert body["requests_by_status"]["pending"] == 1
        assert body["requests_by_status"]["completed"] == 0
        assert body["active_announcements"] == 0
        assert body["average_rating"] == 0.0
        assert "new_users_this_week" in body

    def test_new_users_and_average_rating(self, admin_id, swap, fake_db) -> None:
        fake_db.profile(admin_id)["created_at"] = (SEEDED_AT - timedelta(days=30)).isoformat()
        request_id = fake_db.add_request(
            swap["requester"], swap["provider"], swap["offered_skill"], swap["wanted_skill"], status="completed"
        )
        for rater, rated, stars in [(swap["requester"], swap["provider"], 5), (swap["provider"], swap["requester"], 2)]:
            fake_db.table("ratings").insert(
                {"request_id": request_id, "rater_id": rater, "rated_id": rated, "rating": stars}
            ).execute()

        overview = AdminService(fake_db).get_overview(now=SEEDED_AT + timedelta(days=1))
        assert overview.total_users == 3
        assert overview.new_users_this_week == 2
        assert overview.average_rating == 3.5


class TestReports:
    def test_users_report_download(self, test_client, login_as, admin_id, swap) -> None:
        login_as(admin_id)
        response = test_client.get("/api/v1/admin/reports/users")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "users-report-" in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0] == ["name", "location", "successful_swaps", "average_rating", "is_banned", "created_at"]
        assert {r[0] for r in rows[1:]} == {"Ada Admin", "Rae Requester", "Pat Provider"}
        admin_row = next(r for r in rows[1:] if r[0] == "Ada Admin")
        assert admin_row[1] == "N/A"

    def test_unknown_report_type(self, test_client, login_as, admin_id) -> None:
        login_as(admin_id)
        assert test_client.get("/api/v1/admin/reports/payments").status_code == 422

    def test_swaps_report_is_read_in_pages(self, swap, fake_db, monkeypatch) -> None:
        for _ in range(5):
            fake_db.add_request(
                swap["requester"], swap["provider"], swap["offered_skill"], swap["wanted_skill"], status="completed"
            )
        calls = []
        original_table = fake_db.table

        def counting_table(name):
            calls.append(name)
            return original_table(name)

        monkeypatch.setattr(fake_db, "table", counting_table)
        monkeypatch.setattr(settings, "report_page_size", 2)

        rows = list(csv.reader(io.StringIO("".join(stream_report(fake_db, "swaps")))))
        assert rows[0] == ["status", "created_at"]
        assert len(rows) == 6
        assert calls == ["skill_requests"] * 3

    def test_filename(self) -> None:
        assert report_filename("skills", date(2025, 7, 12)) == "skills-report-2025-07-12.csv"
