"""Tests for the Kickbase client against a mocked transport."""

import asyncio

import httpx
import pytest

from kickbase_companion.api import (
    ClientTooOldError,
    EmptyResponseError,
    HTMLResponseError,
    InvalidJSONError,
    KickbaseAPIError,
    KickbaseClient,
    KickbaseHTTPError,
    RetryPolicy,
    UnexpectedFormatError,
    is_retryable,
    parse_response,
)

SCHEDULE = {"md": [{"day": 1, "it": []}]}


async def no_sleep(delay: float) -> None:
    return None


class Provider:
    """Mock provider answering with queued responses, repeating the last."""

    def __init__(self, *responses: httpx.Response | Exception):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(answer, Exception):
            raise answer
        # A fresh response per request, the client takes ownership of it
        return httpx.Response(
            answer.status_code, headers=answer.headers, content=answer.content
        )


def make_client(provider: Provider) -> KickbaseClient:
    return KickbaseClient(
        base_url="https://kickbase.test/v4",
        retry_policy=RetryPolicy(is_retryable=is_retryable, sleep=no_sleep),
        transport=httpx.MockTransport(provider),
    )


def fetch(client: KickbaseClient, league_id: str = "123", token: str = "tok"):
    async def run():
        async with client:
            return await client.get_league_matches(league_id, token)

    return asyncio.run(run())


class TestParseResponse:
    def test_json(self):
        assert parse_response(httpx.Response(200, json=SCHEDULE)) == SCHEDULE

    def test_empty(self):
        with pytest.raises(EmptyResponseError):
            parse_response(httpx.Response(200, text="  "))

    def test_html(self):
        with pytest.raises(HTMLResponseError):
            parse_response(httpx.Response(502, text="<!DOCTYPE html><html></html>"))

    def test_not_json(self):
        with pytest.raises(InvalidJSONError):
            parse_response(httpx.Response(200, text="oops"))

    def test_client_too_old(self):
        response = httpx.Response(200, json={"err": 5, "errMsg": "ClientTooOld"})
        with pytest.raises(ClientTooOldError) as exc_info:
            parse_response(response)
        assert exc_info.value.status_code == 400

    def test_error_status(self):
        response = httpx.Response(403, json={"message": "Forbidden league"})
        with pytest.raises(KickbaseHTTPError) as exc_info:
            parse_response(response)
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Forbidden league"


def test_retryable_classification():
    assert is_retryable(EmptyResponseError("x"))
    assert is_retryable(HTMLResponseError("x"))
    assert not is_retryable(ClientTooOldError("x", 400))
    assert not is_retryable(KickbaseHTTPError("x", 403))


class TestGetLeagueMatches:
    def test_success(self):
        provider = Provider(httpx.Response(200, json=SCHEDULE))

        assert fetch(make_client(provider), "123", "secret") == SCHEDULE

        request = provider.requests[0]
        assert request.method == "GET"
        assert request.url == "https://kickbase.test/v4/leagues/123/matches"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["User-Agent"] == "Kickbase/iOS 6.9.0"

    def test_recovers_from_malformed_bodies(self):
        provider = Provider(
            httpx.Response(200, text=""),
            httpx.Response(503, text="<html>busy</html>"),
            httpx.Response(200, json=SCHEDULE),
        )

        assert fetch(make_client(provider)) == SCHEDULE
        assert len(provider.requests) == 3

    def test_recovers_from_transport_error(self):
        provider = Provider(
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json=SCHEDULE),
        )

        assert fetch(make_client(provider)) == SCHEDULE
        assert len(provider.requests) == 2

    def test_exhausted_reports_500(self):
        provider = Provider(httpx.Response(200, text="<!DOCTYPE html>"))

        with pytest.raises(KickbaseAPIError) as exc_info:
            fetch(make_client(provider))

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Received HTML instead of JSON"
        assert len(provider.requests) == 3

    def test_client_too_old_is_terminal(self):
        provider = Provider(httpx.Response(200, json={"err": 5, "errMsg": "ClientTooOld"}))

        with pytest.raises(ClientTooOldError) as exc_info:
            fetch(make_client(provider))

        assert exc_info.value.status_code == 400
        assert len(provider.requests) == 1

    def test_provider_error_is_terminal(self):
        provider = Provider(httpx.Response(401, json={"message": "Unauthorized"}))

        with pytest.raises(KickbaseHTTPError) as exc_info:
            fetch(make_client(provider))

        assert exc_info.value.status_code == 401
        assert len(provider.requests) == 1


def call(client: KickbaseClient, method: str, *args):
    async def run():
        async with client:
            return await getattr(client, method)(*args)

    return asyncio.run(run())


class TestLeagueEndpoints:
    def test_leagues(self):
        leagues = [{"i": "123", "n": "Office"}]
        provider = Provider(httpx.Response(200, json={"it": leagues}))

        assert call(make_client(provider), "get_leagues", "tok") == leagues
        assert provider.requests[0].url == "https://kickbase.test/v4/leagues/selection"

    def test_ranking_resolves_manager_images(self):
        ranking = {
            "us": [
                {"i": "9", "n": "Anna", "r": 1, "p": 1500, "uim": "avatar.png"},
                {"i": "4", "n": "Ben", "r": 2, "p": 1400, "uim": "/user/4/b.png"},
                {"i": "5", "n": "Cem", "r": 3, "p": 1300, "uim": "https://img.test/c.png"},
                {"i": "6", "n": "Dana", "r": 4, "p": 1200},
            ]
        }
        provider = Provider(httpx.Response(200, json=ranking))

        data = call(make_client(provider), "get_league_ranking", "123", "tok")

        images = [user.get("uim") for user in data["us"]]
        assert images == [
            "https://kickbase.b-cdn.net/user/9/avatar.png",
            "https://kickbase.b-cdn.net/user/4/b.png",
            "https://img.test/c.png",
            None,
        ]
        assert provider.requests[0].url == "https://kickbase.test/v4/leagues/123/ranking"

    def test_market(self):
        market = {"marketPlayers": [{"n": "Musiala", "prc": 30_000_000}]}
        provider = Provider(httpx.Response(200, json=market))

        assert call(make_client(provider), "get_market", "123", "tok") == market
        assert provider.requests[0].url == "https://kickbase.test/v4/leagues/123/market"

    @pytest.mark.parametrize(
        "payload", [{"players": []}, {"marketPlayers": None}, [1, 2]]
    )
    def test_market_unexpected_payload_is_empty(self, payload):
        provider = Provider(httpx.Response(200, json=payload))

        assert call(make_client(provider), "get_market", "123", "tok") == {
            "marketPlayers": []
        }

    def test_market_provider_error_is_empty(self):
        provider = Provider(httpx.Response(403, json={"message": "Forbidden league"}))

        assert call(make_client(provider), "get_market", "123", "tok") == {
            "marketPlayers": []
        }
        assert len(provider.requests) == 1

    @pytest.mark.parametrize(
        "payload",
        [
            [{"tid": "2", "tn": "BVB", "cpl": 1, "sp": 70, "tim": "t/2.png"}],
            {"it": [{"tid": "2", "tn": "BVB", "cpl": 1, "sp": 70, "tim": "t/2.png"}]},
        ],
    )
    def test_competition_table(self, payload):
        provider = Provider(httpx.Response(200, json=payload))

        teams = call(make_client(provider), "get_competition_table", "tok")

        assert teams[0]["tn"] == "BVB"
        assert provider.requests[0].url == "https://kickbase.test/v4/competitions/1/table"

    def test_competition_table_unexpected_payload(self):
        provider = Provider(httpx.Response(200, json={"teams": []}))

        with pytest.raises(UnexpectedFormatError) as exc_info:
            call(make_client(provider), "get_competition_table", "tok", "2")

        assert exc_info.value.status_code == 500
        assert provider.requests[0].url == "https://kickbase.test/v4/competitions/2/table"
