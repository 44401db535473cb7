import asyncio
from collections import Counter
from datetime import date, timedelta

from httpx import AsyncClient
from fastapi import status
from sqlalchemy.future import select

from stockaudit.main import app
from stockaudit.models.schedule.schedule_history import ScheduleHistory

CATEGORIES = "/api/v1/schedule/categories"
CONFIGS = "/api/v1/schedule/configs"
ITEMS = "/api/v1/schedule/items"

START = date(2025, 3, 10)  # a Monday

async def create_categories(client: AsyncClient, *names) -> list:
    created = []
    for priority, name in enumerate(names, start=1):
        response = await client.post(f"{CATEGORIES}/", json={"name": name, "priority": priority})
        assert response.status_code == status.HTTP_201_CREATED
        created.append(response.json())
    return created

def config_payload(**overrides) -> dict:
    payload = {
        "name": "Spring cycle",
        "sectors_per_week": 2,
        "start_date": START.isoformat(),
        "total_weeks": 3,
        "work_days": [1, 3, 5],
    }
    payload.update(overrides)
    return payload

async def create_generated_config(client: AsyncClient, **overrides) -> dict:
    response = await client.post(f"{CONFIGS}/", params={"generate": True}, json=config_payload(**overrides))
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


class TestScheduleConfigs:
    async def test_create_without_generating(self, client: AsyncClient):
        response = await client.post(f"{CONFIGS}/", json=config_payload())
        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["items_created"] == 0
        assert body["config"]["is_active"] is True
        assert body["config"]["generated_at"] is None

    async def test_generate_is_fair_and_on_work_days(self, client: AsyncClient):
        cats = await create_categories(client, "Dairy", "Bakery", "Frozen")

        body = await create_generated_config(client)
        assert body["items_created"] == 6
        assert body["config"]["generated_at"] is not None

        items = (await client.get(f"{ITEMS}/", params={"config_id": body["config"]["id"]})).json()
        assert len(items) == 6
        assert Counter(i["category_id"] for i in items) == {c["id"]: 2 for c in cats}
        for item in items:
            assert item["day_of_week"] in {1, 3, 5}
            assert item["status"] == "pending"
            assert START <= date.fromisoformat(item["scheduled_date"]) < START + timedelta(weeks=3)
            assert item["category"]["name"] in {"Dairy", "Bakery", "Frozen"}

    async def test_not_enough_categories(self, client: AsyncClient):
        await create_categories(client, "Dairy")

        response = await client.post(f"{CONFIGS}/", params={"generate": True}, json=config_payload())
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Need at least 2 active categories to generate this cadence (found 1)"

    async def test_no_categories(self, client: AsyncClient):
        response = await client.post(f"{CONFIGS}/", params={"generate": True}, json=config_payload())
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"].startswith("No active categories found")

    async def test_rejected_generate_leaves_existing_configs_alone(self, client: AsyncClient):
        first = (await client.post(f"{CONFIGS}/", json=config_payload(name="First"))).json()["config"]

        response = await client.post(
            f"{CONFIGS}/", params={"generate": True}, json=config_payload(name="Second")
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        configs = [(c["name"], c["is_active"]) for c in (await client.get(f"{CONFIGS}/")).json()]
        assert configs == [("First", True)]
        assert (await client.get(f"{CONFIGS}/{first['id']}")).json()["is_active"] is True

    async def test_generate_waits_for_config_lock_and_reads_fresh_categories(self, client: AsyncClient):
        cats = await create_categories(client, "Dairy", "Bakery", "Frozen")
        config = (await client.post(f"{CONFIGS}/", json=config_payload())).json()["config"]

        async with app.state.locks.hold(f"config:{config['id']}"):
            pending = asyncio.create_task(client.post(f"{CONFIGS}/{config['id']}/generate"))
            await asyncio.sleep(0.05)
            assert not pending.done()

            response = await client.delete(f"{CATEGORIES}/{cats[2]['id']}")
            assert response.status_code == status.HTTP_200_OK

        response = await pending
        assert response.status_code == status.HTTP_200_OK

        items = (await client.get(f"{ITEMS}/", params={"config_id": config["id"]})).json()
        assert items
        assert cats[2]["id"] not in {i["category_id"] for i in items}

    async def test_more_sectors_than_work_days(self, client: AsyncClient):
        response = await client.post(f"{CONFIGS}/", json=config_payload(sectors_per_week=3, work_days=[1, 2]))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_bad_work_day(self, client: AsyncClient):
        response = await client.post(f"{CONFIGS}/", json=config_payload(work_days=[0, 8]))
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_new_active_config_deactivates_previous(self, client: AsyncClient):
        first = (await client.post(f"{CONFIGS}/", json=config_payload(name="First"))).json()["config"]
        second = (await client.post(f"{CONFIGS}/", json=config_payload(name="Second"))).json()["config"]

        configs = {c["id"]: c for c in (await client.get(f"{CONFIGS}/")).json()}
        assert configs[first["id"]]["is_active"] is False
        assert configs[second["id"]]["is_active"] is True

    async def test_regenerate_replaces_items(self, client: AsyncClient):
        await create_categories(client, "Dairy", "Bakery", "Frozen")
        config = (await create_generated_config(client))["config"]

        before = {i["id"] for i in (await client.get(f"{ITEMS}/", params={"config_id": config["id"]})).json()}
        response = await client.post(f"{CONFIGS}/{config['id']}/generate")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["items_created"] == 6

        after = {i["id"] for i in (await client.get(f"{ITEMS}/", params={"config_id": config["id"]})).json()}
        assert len(after) == 6
        assert before.isdisjoint(after)

    async def test_deactivated_category_is_left_out(self, client: AsyncClient):
        cats = await create_categories(client, "Dairy", "Bakery", "Frozen")
        await client.delete(f"{CATEGORIES}/{cats[2]['id']}")

        config = (await create_generated_config(client))["config"]
        items = (await client.get(f"{ITEMS}/", params={"config_id": config["id"]})).json()
        assert cats[2]["id"] not in {i["category_id"] for i in items}

    async def test_update_and_deactivate(self, client: AsyncClient):
        config = (await client.post(f"{CONFIGS}/", json=config_payload())).json()["config"]

        response = await client.put(f"{CONFIGS}/{config['id']}", json={"name": "Renamed"})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Renamed"

        response = await client.post(f"{CONFIGS}/{config['id']}/deactivate")
        assert response.json()["is_active"] is False

    async def test_delete_config_removes_items(self, client: AsyncClient):
        await create_categories(client, "Dairy", "Bakery")
        config = (await create_generated_config(client))["config"]

        response = await client.delete(f"{CONFIGS}/{config['id']}")
        assert response.status_code == status.HTTP_200_OK

        assert (await client.get(f"{CONFIGS}/{config['id']}")).status_code == status.HTTP_404_NOT_FOUND
        assert (await client.get(f"{ITEMS}/")).json() == []


class TestScheduleItems:
    async def _first_item(self, client: AsyncClient) -> dict:
        await create_categories(client, "Dairy", "Bakery", "Frozen")
        config = (await create_generated_config(client))["config"]
        return (await client.get(f"{ITEMS}/", params={"config_id": config["id"]})).json()[0]

    async def test_generation_writes_created_history(self, client: AsyncClient):
        item = await self._first_item(client)

        history = (await client.get(f"{ITEMS}/{item['id']}/history")).json()
        assert len(history) == 1
        assert history[0]["action"] == "created"
        assert history[0]["new_date"] == item["scheduled_date"]

    async def test_complete_item_appends_history(self, client: AsyncClient):
        item = await self._first_item(client)

        response = await client.post(f"{ITEMS}/{item['id']}/status", json={"status": "completed", "notes": "all good"})
        assert response.status_code == status.HTTP_200_OK
        updated = response.json()
        assert updated["status"] == "completed"
        assert updated["completed_at"] is not None
        assert updated["notes"] == "all good"

        history = (await client.get(f"{ITEMS}/{item['id']}/history")).json()
        assert len(history) == 2
        assert history[0]["action"] == "completed"
        assert history[0]["reason"] == "all good"

        category = (await client.get(f"{CATEGORIES}/{item['category_id']}")).json()
        assert category["last_counted_at"] is not None

    async def test_completed_item_cannot_be_skipped(self, client: AsyncClient):
        item = await self._first_item(client)
        await client.post(f"{ITEMS}/{item['id']}/status", json={"status": "completed"})

        response = await client.post(f"{ITEMS}/{item['id']}/status", json={"status": "skipped"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        history = (await client.get(f"{ITEMS}/{item['id']}/history")).json()
        assert len(history) == 2

    async def test_reschedule(self, client: AsyncClient):
        item = await self._first_item(client)
        new_date = date.fromisoformat(item["scheduled_date"]) + timedelta(days=1)

        response = await client.post(
            f"{ITEMS}/{item['id']}/reschedule",
            json={"new_date": new_date.isoformat(), "reason": "delivery day"}
        )
        assert response.status_code == status.HTTP_200_OK
        moved = response.json()
        assert moved["status"] == "rescheduled"
        assert moved["scheduled_date"] == new_date.isoformat()
        assert moved["day_of_week"] == new_date.isoweekday()

        history = (await client.get(f"{ITEMS}/{item['id']}/history")).json()
        assert history[0]["action"] == "rescheduled"
        assert history[0]["old_date"] == item["scheduled_date"]
        assert history[0]["new_date"] == new_date.isoformat()

    async def test_link_count_on_completion(self, client: AsyncClient):
        item = await self._first_item(client)
        count = (await client.post("/api/v1/audit/counts/", json={"name": "Dairy count"})).json()

        response = await client.post(
            f"{ITEMS}/{item['id']}/status",
            json={"status": "completed", "linked_count_id": count["id"]}
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["linked_count_id"] == count["id"]

        response = await client.post(
            f"{ITEMS}/{item['id']}/status",
            json={"status": "pending", "linked_count_id": 9999}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_filters(self, client: AsyncClient):
        item = await self._first_item(client)
        await client.post(f"{ITEMS}/{item['id']}/status", json={"status": "skipped"})

        skipped = (await client.get(f"{ITEMS}/", params={"status": "skipped"})).json()
        assert [i["id"] for i in skipped] == [item["id"]]

        week_one = (await client.get(
            f"{ITEMS}/",
            params={"date_from": START.isoformat(), "date_to": (START + timedelta(days=6)).isoformat()}
        )).json()
        assert len(week_one) == 2
        assert all(i["week_number"] == 1 for i in week_one)

        response = await client.get(f"{ITEMS}/", params={"date_from": "2025-04-01", "date_to": "2025-03-01"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_items_are_scoped_to_owner(self, client: AsyncClient, other_user_headers):
        item = await self._first_item(client)

        response = await client.get(f"{ITEMS}/{item['id']}", headers=other_user_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_delete_item_removes_history(self, client: AsyncClient, db_session):
        item = await self._first_item(client)

        response = await client.delete(f"{ITEMS}/{item['id']}")
        assert response.status_code == status.HTTP_200_OK

        result = await db_session.execute(
            select(ScheduleHistory).where(ScheduleHistory.schedule_item_id == item["id"])
        )
        assert result.scalars().all() == []
