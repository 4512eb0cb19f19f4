"""HTTP surface tests over the ASGI app."""

from datetime import timedelta

from beanie import PydanticObjectId

from solspore.models import Market, MarketStatus, UserRole
from solspore.utils.time_utils import utc_now

from conftest import minutes_from_now

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


async def _tournament(api, headers) -> dict:
    response = await api.post(
        "/tournaments",
        json={
            "name": "Spring Major",
            "image": "https://cdn.solspore.com/spring.png",
            "description": "Regional qualifiers",
            "start_date": utc_now().isoformat(),
            "end_date": (utc_now() + timedelta(days=7)).isoformat(),
            "game": "Valorant",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _market(api, headers, tournament_id: str) -> dict:
    response = await api.post(
        f"/tournaments/{tournament_id}/markets",
        json={
            "question": "Will Sentinels win?",
            "team_a": "Sentinels",
            "team_b": "LOUD",
            "close_time": (utc_now() + timedelta(hours=2)).isoformat(),
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_root_and_health(api):
    assert (await api.get("/")).json()["name"] == "SolSpore API"
    health = await api.get("/health")
    assert health.status_code == 200
    assert health.json()["service"] == "solspore-api"


async def test_admin_routes_require_identity_and_role(api, auth_headers):
    response = await api.get("/admin/stats")
    assert response.status_code == 401
    assert response.json()["error"] == "authentication_required"

    user_headers = await auth_headers(UserRole.USER, "player")
    response = await api.get("/admin/stats", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "admin_required"

    response = await api.post("/tournaments", json={}, headers=user_headers)
    assert response.status_code in (400, 403)

    bad = await api.get("/admin/stats", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401

    admin_headers = await auth_headers()
    response = await api.get("/admin/stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["users"] == 2


async def test_tournament_market_and_bet_flow(api, auth_headers):
    headers = await auth_headers()
    tournament = await _tournament(api, headers)
    market = await _market(api, headers, tournament["id"])
    assert (market["yes_odds"], market["no_odds"]) == (2.0, 2.0)

    detail = await api.get(f"/tournaments/{tournament['id']}")
    assert detail.status_code == 200
    assert [m["id"] for m in detail.json()["markets"]] == [market["id"]]

    response = await api.post(
        f"/markets/{market['id']}/bet",
        json={
            "outcome": "yes",
            "amount": 100,
            "transaction_signature": "5sig-flow",
            "wallet_address": WALLET,
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["success"] is True
    assert body["bet"]["odds"] == 1.10
    assert body["bet"]["tournament_id"] == tournament["id"]
    assert body["market"]["yes_stake"] == 100
    assert body["market"]["no_odds"] == 10.0

    current = await api.get(f"/markets/{market['id']}")
    assert current.json()["yes_stake"] == 100

    history = await api.get("/bets", params={"wallet_address": WALLET})
    assert history.status_code == 200
    assert history.json()[0]["market"]["id"] == market["id"]

    listing = await api.get("/tournaments", params={"type": "official"})
    assert [t["id"] for t in listing.json()] == [tournament["id"]]


async def test_bet_errors_are_typed(api, container):
    market = Market(
        question="Closed already?",
        team_a="G2",
        team_b="NAVI",
        close_time=minutes_from_now(-1),
    )
    await market.insert()
    base = {"amount": 5, "transaction_signature": "sig-err", "wallet_address": WALLET}

    closed = await api.post(f"/markets/{market.id}/bet", json={**base, "outcome": "yes"})
    assert closed.status_code == 409
    assert closed.json()["error"] == "market_closed"

    market.close_time = minutes_from_now(30)
    await market.save()

    bad_outcome = await api.post(f"/markets/{market.id}/bet", json={**base, "outcome": "maybe"})
    assert bad_outcome.status_code == 400
    assert bad_outcome.json()["error"] == "invalid_outcome"

    bad_stake = await api.post(f"/markets/{market.id}/bet", json={**base, "outcome": "no", "amount": 0})
    assert bad_stake.status_code == 400
    assert bad_stake.json()["error"] == "invalid_stake"

    missing = await api.post(f"/markets/{market.id}/bet", json={"outcome": "yes"})
    assert missing.status_code == 400
    assert missing.json()["error"] == "invalid_request"

    unknown = await api.get("/markets/65f1c0ffee0000000000abcd")
    assert unknown.status_code == 404
    assert unknown.json()["error"] == "market_not_found"

    malformed = await api.get("/markets/xyz")
    assert malformed.status_code == 400
    assert malformed.json()["error"] == "invalid_market_id"

    stored = await Market.get(market.id)
    assert (stored.yes_stake, stored.no_stake) == (0, 0)


async def test_admin_manual_settlement_and_sweep(api, auth_headers):
    headers = await auth_headers()
    tournament = await _tournament(api, headers)
    market = await _market(api, headers, tournament["id"])
    await api.post(
        f"/markets/{market['id']}/bet",
        json={"outcome": "no", "amount": 2, "transaction_signature": "sig-s", "wallet_address": WALLET},
    )

    settled = await api.post(f"/admin/markets/{market['id']}/settle", json={"outcome": "no"}, headers=headers)
    assert settled.status_code == 200, settled.text
    assert settled.json()["bets_settled"] == 1
    reference = settled.json()["reference"]

    again = await api.post(f"/admin/markets/{market['id']}/settle", json={"outcome": "no"}, headers=headers)
    assert again.json()["already_settled"] is True
    assert again.json()["reference"] == reference

    stored = await Market.get(PydanticObjectId(market["id"]))
    assert stored.status == MarketStatus.SETTLED

    sweep = await api.post("/admin/settlements/run", headers=headers)
    assert sweep.status_code == 200
    assert sweep.json()["markets_processed"] == 0

    incidents = await api.get("/admin/incidents", headers=headers)
    assert incidents.json() == []


async def test_login_sets_cookie_and_me(api, container):
    await container.users.create_user("caster", "caster@solspore.com", "long-enough-pw")

    failed = await api.post("/auth/login", json={"login": "caster", "password": "nope-nope"})
    assert failed.status_code == 401

    response = await api.post("/auth/login", json={"login": "caster", "password": "long-enough-pw"})
    assert response.status_code == 200
    token = response.json()["token"]
    assert "auth_token" in response.cookies

    me = await api.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "caster"
    assert "password_hash" not in me.json()

    api.cookies.clear()
    assert (await api.get("/auth/me")).status_code == 401


async def test_admin_user_management(api, auth_headers, container):
    headers = await auth_headers()
    player = await container.users.create_user("player", "player@solspore.com", "long-enough-pw")

    users = await api.get("/admin/users", headers=headers)
    assert {u["username"] for u in users.json()} == {"operator", "player"}

    promoted = await api.patch(f"/admin/users/{player.id}", json={"role": "admin"}, headers=headers)
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "admin"


async def test_wallet_balance_from_payment_rail(api):
    response = await api.get(f"/wallets/{WALLET}/balance")
    assert response.status_code == 200
    assert response.json()["lamports"] == 1_500_000_000
    assert response.json()["sol"] == 1.5


async def test_leaderboard_ranks_wallets_by_winnings(api, auth_headers):
    headers = await auth_headers()
    tournament = await _tournament(api, headers)
    market = await _market(api, headers, tournament["id"])
    rival = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"

    for wallet, outcome, signature in ((WALLET, "yes", "sig-lb-1"), (rival, "no", "sig-lb-2")):
        placed = await api.post(
            f"/markets/{market['id']}/bet",
            json={"outcome": outcome, "amount": 10, "transaction_signature": signature, "wallet_address": wallet},
        )
        assert placed.status_code == 201, placed.text

    await api.post(f"/admin/markets/{market['id']}/settle", json={"outcome": "yes"}, headers=headers)

    board = await api.get("/leaderboard", params={"page": 1, "limit": 1})
    assert board.status_code == 200
    body = board.json()
    assert (body["total"], body["pages"], body["page_size"]) == (2, 2, 1)
    assert body["items"][0]["wallet_address"] == WALLET
    assert body["items"][0]["rank"] == 1
    assert body["items"][0]["bets_won"] == 1

    second = (await api.get("/leaderboard", params={"page": 2, "limit": 1})).json()
    assert second["items"][0]["wallet_address"] == rival
    assert second["items"][0]["rank"] == 2
    assert second["items"][0]["total_winnings"] == 0
