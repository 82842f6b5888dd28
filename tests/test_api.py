import pytest
from httpx import ASGITransport, AsyncClient

from swipeology.config import settings
from swipeology.core.dependencies import get_data_service, get_engine, get_redis_service
from swipeology.core.engine import SwipeMatchEngine
from swipeology.core.security import create_access_token
from swipeology.db.redis import RedisService
from swipeology.main import app


API = settings.API_V1_PREFIX


def auth(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
async def client(data_service, fake_redis, chat_mirror):
    app.dependency_overrides[get_data_service] = lambda: data_service
    app.dependency_overrides[get_redis_service] = lambda: RedisService(fake_redis)
    app.dependency_overrides[get_engine] = lambda: SwipeMatchEngine(data_service, chat_mirror=chat_mirror)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def people(seed):
    await seed("ana", gender="woman", dating_preference="men", interests="hiking, coffee")
    await seed("ben", gender="man", dating_preference="women", interests="coffee, gaming")
    await seed("cam", gender="man", dating_preference="women", phone_verified=False)


async def match_ana_and_ben(client, context="dating"):
    await client.post(f"{API}/matching/swipe", json={"user_to": "ben", "context": context, "liked": True}, headers=auth("ana"))
    response = await client.post(
        f"{API}/matching/swipe", json={"user_to": "ana", "context": context, "liked": True}, headers=auth("ben")
    )
    return response.json()["match"]["id"]


class TestAuth:
    async def test_missing_token(self, client):
        response = await client.get(f"{API}/profiles/me")
        assert response.status_code in (401, 403)

    async def test_invalid_token(self, client):
        response = await client.get(f"{API}/profiles/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_root_sets_request_id(self, client):
        response = await client.get("/", headers={"X-Request-ID": "abc123"})
        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "abc123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    async def test_health_without_optional_services(self, client):
        response = await client.get("/health")

        body = response.json()
        assert body["services"]["database"]["status"] == "healthy"
        assert body["services"]["redis"] == {"status": "not_configured"}
        assert body["services"]["firebase"] == {"status": "not_configured"}
        assert body["status"] == "healthy"


class TestProfiles:
    async def test_registration_normalizes_fields(self, client):
        response = await client.post(
            f"{API}/profiles/me",
            json={"first_name": "Dee", "age": 20, "gender": "Female", "dating_preference": "male", "wants_friends": False},
            headers=auth("dee"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["gender"] == "woman"
        assert body["dating_preference"] == "men"
        assert (body["wants_friends"], body["wants_dating"]) == (False, True)
        assert body["blocked_users"] == []
        assert body["phone_verified"] is False

    async def test_registration_requires_adult(self, client):
        response = await client.post(
            f"{API}/profiles/me", json={"first_name": "Kid", "age": 16, "gender": "man"}, headers=auth("kid")
        )
        assert response.status_code == 422

    async def test_registration_with_taken_school_email(self, client):
        payload = {"first_name": "Dee", "age": 20, "gender": "woman", "school_email": "dee@esu.edu"}
        assert (await client.post(f"{API}/profiles/me", json=payload, headers=auth("dee"))).status_code == 201

        response = await client.post(f"{API}/profiles/me", json=payload, headers=auth("eve"))

        assert response.status_code == 409

    async def test_pronoun_options(self, client):
        response = await client.get(f"{API}/profiles/pronouns")

        assert response.status_code == 200
        labels = [option["label"] for option in response.json()]
        assert labels == sorted(labels)
        assert {"id": "they-them", "label": "They/Them", "value": "they/them"} in response.json()

    async def test_registration_only_once(self, client, people):
        response = await client.post(
            f"{API}/profiles/me", json={"first_name": "Ana", "age": 21, "gender": "woman"}, headers=auth("ana")
        )
        assert response.status_code == 400

    async def test_profile_required(self, client):
        response = await client.get(f"{API}/profiles/me", headers=auth("nobody"))
        assert response.status_code == 404

    async def test_update_keeps_one_intent(self, client, people):
        response = await client.put(
            f"{API}/profiles/me", json={"wants_friends": False, "wants_dating": False}, headers=auth("ana")
        )
        assert response.status_code == 200
        body = response.json()
        assert (body["wants_friends"], body["wants_dating"]) == (True, True)

    async def test_update_validates_badges(self, client, people):
        response = await client.put(
            f"{API}/profiles/me", json={"personality_badges": ["not-a-badge"]}, headers=auth("ana")
        )
        assert response.status_code == 422

    async def test_public_profile_hides_private_state(self, client, people):
        response = await client.get(f"{API}/profiles/ben", headers=auth("ana"))
        assert response.status_code == 200
        assert "blocked_users" not in response.json()
        assert "phone_verified" not in response.json()

    async def test_compatibility(self, client, people):
        response = await client.get(f"{API}/profiles/ben/compatibility", headers=auth("ana"))

        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 20
        assert body["shared_interests"] == ["coffee"]
        assert body["label"] == "Some Common Ground"

    async def test_delete_account(self, client, data_service, people):
        await match_ana_and_ben(client)

        response = await client.delete(f"{API}/profiles/me", headers=auth("ana"))

        assert response.status_code == 200
        assert await data_service.get_profile("ana") is None
        assert await data_service.list_matches("ben") == []


class TestDiscoverAndSwipe:
    async def test_discover_dating(self, client, people):
        response = await client.get(f"{API}/matching/discover", params={"context": "dating"}, headers=auth("ben"))

        assert response.status_code == 200
        body = response.json()
        assert [p["profile"]["id"] for p in body["profiles"]] == ["ana"]
        assert body["profiles"][0]["compatibility_score"] == 20
        assert body["remaining_swipes"] == settings.SWIPE_LIMIT_PER_DAY

    async def test_discover_rejects_unknown_context(self, client, people):
        response = await client.get(f"{API}/matching/discover", params={"context": "romance"}, headers=auth("ben"))
        assert response.status_code == 422

    async def test_phone_verification_required(self, client, people):
        response = await client.get(f"{API}/matching/discover", params={"context": "friends"}, headers=auth("cam"))
        assert response.status_code == 403

    async def test_mutual_swipe_creates_match(self, client, chat_mirror, people):
        first = await client.post(
            f"{API}/matching/swipe", json={"user_to": "ben", "context": "dating", "liked": True}, headers=auth("ana")
        )
        assert first.status_code == 200
        assert first.json()["is_match"] is False

        match_id = await match_ana_and_ben(client)

        matches = await client.get(f"{API}/matching/matches", headers=auth("ana"))
        assert matches.json()["total"] == 1
        assert matches.json()["matches"][0]["match_id"] == match_id
        assert matches.json()["matches"][0]["matched_user"]["id"] == "ben"
        assert chat_mirror.calls[0][:2] == ("create_chat_room", match_id)

        friends = await client.get(f"{API}/matching/matches", params={"context": "friends"}, headers=auth("ana"))
        assert friends.json()["total"] == 0

    async def test_swiped_profile_leaves_the_deck(self, client, people):
        await client.post(
            f"{API}/matching/swipe", json={"user_to": "ana", "context": "dating", "liked": False}, headers=auth("ben")
        )
        response = await client.get(f"{API}/matching/discover", params={"context": "dating"}, headers=auth("ben"))
        assert response.json()["profiles"] == []

    async def test_cannot_swipe_on_self(self, client, people):
        response = await client.post(
            f"{API}/matching/swipe", json={"user_to": "ana", "context": "friends", "liked": True}, headers=auth("ana")
        )
        assert response.status_code == 400

    async def test_swipe_on_unknown_profile(self, client, data_service, people):
        response = await client.post(
            f"{API}/matching/swipe", json={"user_to": "ghost", "context": "friends", "liked": True}, headers=auth("ana")
        )

        assert response.status_code == 404
        assert await data_service.list_swipes("ana") == []

    async def test_daily_limit(self, client, people, monkeypatch):
        monkeypatch.setattr(settings, "SWIPE_LIMIT_PER_DAY", 1)
        payload = {"user_to": "ben", "context": "friends", "liked": True}

        assert (await client.post(f"{API}/matching/swipe", json=payload, headers=auth("ana"))).status_code == 200
        assert (await client.post(f"{API}/matching/swipe", json=payload, headers=auth("ana"))).status_code == 429

    async def test_unmatch(self, client, data_service, people):
        match_id = await match_ana_and_ben(client)
        await client.post(f"{API}/chat/{match_id}/messages", json={"message_text": "hey"}, headers=auth("ana"))

        assert (await client.delete(f"{API}/matching/matches/{match_id}", headers=auth("cam"))).status_code == 404
        response = await client.delete(f"{API}/matching/matches/{match_id}", headers=auth("ben"))

        assert response.status_code == 200
        assert await data_service.list_messages(match_id) == []


class TestChat:
    async def test_send_and_list_messages(self, client, people):
        match_id = await match_ana_and_ben(client, context="friends")

        sent = await client.post(f"{API}/chat/{match_id}/messages", json={"message_text": "hi"}, headers=auth("ana"))
        await client.post(f"{API}/chat/{match_id}/messages", json={"message_text": "hello"}, headers=auth("ben"))

        assert sent.status_code == 201
        assert sent.json()["sender_id"] == "ana"

        listed = await client.get(f"{API}/chat/{match_id}/messages", headers=auth("ben"))
        assert [m["message_text"] for m in listed.json()["messages"]] == ["hi", "hello"]

    async def test_outsiders_cannot_read_or_write(self, client, seed, people):
        await seed("eve")
        match_id = await match_ana_and_ben(client)

        read = await client.get(f"{API}/chat/{match_id}/messages", headers=auth("eve"))
        write = await client.post(f"{API}/chat/{match_id}/messages", json={"message_text": "hi"}, headers=auth("eve"))

        assert read.status_code == 404
        assert write.status_code == 403

    async def test_unknown_match(self, client, people):
        response = await client.post(f"{API}/chat/missing/messages", json={"message_text": "hi"}, headers=auth("ana"))
        assert response.status_code == 404

    async def test_blank_message(self, client, people):
        match_id = await match_ana_and_ben(client)
        response = await client.post(f"{API}/chat/{match_id}/messages", json={"message_text": "   "}, headers=auth("ana"))
        assert response.status_code == 400


class TestSafety:
    async def test_block_hides_profiles_and_removes_matches(self, client, data_service, people):
        await match_ana_and_ben(client, context="friends")

        response = await client.post(f"{API}/profiles/ben/block", headers=auth("ana"))

        assert response.status_code == 200
        assert response.json() == {"blocked_user_id": "ben", "removed_matches": 1}
        assert await data_service.list_matches("ana") == []

        # hidden both ways
        assert (await client.get(f"{API}/profiles/ben", headers=auth("ana"))).status_code == 404
        assert (await client.get(f"{API}/profiles/ana", headers=auth("ben"))).status_code == 404
        deck = await client.get(f"{API}/matching/discover", params={"context": "friends"}, headers=auth("ben"))
        assert "ana" not in [p["profile"]["id"] for p in deck.json()["profiles"]]

    async def test_block_after_like_prevents_a_match(self, client, data_service, people):
        await client.post(
            f"{API}/matching/swipe", json={"user_to": "ben", "context": "dating", "liked": True}, headers=auth("ana")
        )
        await client.post(f"{API}/profiles/ben/block", headers=auth("ana"))

        response = await client.post(
            f"{API}/matching/swipe", json={"user_to": "ana", "context": "dating", "liked": True}, headers=auth("ben")
        )

        assert response.status_code == 404
        assert await data_service.list_matches("ben") == []

    async def test_cannot_block_self(self, client, people):
        response = await client.post(f"{API}/profiles/ana/block", headers=auth("ana"))
        assert response.status_code == 400

    async def test_report(self, client, people):
        response = await client.post(
            f"{API}/profiles/ben/report", json={"reason": "Fake Profile"}, headers=auth("ana")
        )
        assert response.status_code == 201
        assert response.json()["reported_id"] == "ben"
        assert response.json()["reason"] == "Fake Profile"


class TestPhoneVerification:
    async def send_code(self, client, user_id, phone):
        return await client.post(f"{API}/profiles/me/phone/send-code", json={"phone_number": phone}, headers=auth(user_id))

    async def verify(self, client, user_id, phone, code):
        return await client.post(
            f"{API}/profiles/me/phone/verify", json={"phone_number": phone, "code": code}, headers=auth(user_id)
        )

    async def test_verified_phone_unlocks_discover(self, client, fake_redis, people):
        sent = await self.send_code(client, "cam", "+1 555-000-1111")

        assert sent.status_code == 200
        assert sent.json()["code_sent"] is True
        assert sent.json()["debug_code"] is None

        code = fake_redis.get("otp:cam:+15550001111")
        verified = await self.verify(client, "cam", "+15550001111", code)

        assert verified.status_code == 200
        assert verified.json()["phone_verified"] is True
        deck = await client.get(f"{API}/matching/discover", params={"context": "friends"}, headers=auth("cam"))
        assert deck.status_code == 200

    async def test_wrong_code(self, client, fake_redis, data_service, people):
        await self.send_code(client, "cam", "+15550001111")

        response = await self.verify(client, "cam", "+15550001111", "000000")

        assert response.status_code == 400
        assert (await data_service.get_profile("cam")).phone_verified is False

    async def test_code_for_another_number_is_rejected(self, client, fake_redis, people):
        await self.send_code(client, "cam", "+15550001111")
        code = fake_redis.get("otp:cam:+15550001111")

        response = await self.verify(client, "cam", "+15550009999", code)

        assert response.status_code == 400

    async def test_too_many_attempts(self, client, people, monkeypatch):
        monkeypatch.setattr(settings, "OTP_MAX_ATTEMPTS", 1)
        await self.send_code(client, "cam", "+15550001111")

        assert (await self.verify(client, "cam", "+15550001111", "000000")).status_code == 400
        assert (await self.verify(client, "cam", "+15550001111", "000000")).status_code == 429

    async def test_number_already_verified_by_someone_else(self, client, fake_redis, people):
        await self.send_code(client, "ana", "+15550001111")
        await self.verify(client, "ana", "+15550001111", fake_redis.get("otp:ana:+15550001111"))

        await self.send_code(client, "cam", "+15550001111")
        response = await self.verify(client, "cam", "+15550001111", fake_redis.get("otp:cam:+15550001111"))

        assert response.status_code == 409

    async def test_invalid_number(self, client, people):
        response = await self.send_code(client, "cam", "12-34")
        assert response.status_code == 422

    async def test_unavailable_without_redis(self, client, people):
        app.dependency_overrides[get_redis_service] = lambda: RedisService(client=None)

        response = await self.send_code(client, "cam", "+15550001111")

        assert response.status_code == 503
