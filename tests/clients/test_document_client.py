# tests/clients/test_document_client.py
"""Tests for DocumentClient operations and the re-authentication cycle."""

import json
from collections.abc import Callable

import httpx
import pytest
import respx

from conftest import ADDRESS, LOGIN_PATH, PASSWORD, USERNAME, SleepRecorder, envelope, token_issuer
from indexsync.clients import DocumentClient, Session, Transport
from indexsync.contracts import (
    AuthExpiredError,
    AuthFailureError,
    BusinessError,
    Document,
    DocumentItem,
    Protocol,
    TransportError,
)
from indexsync.core.config import ClientSettings, RetrySettings
from indexsync.engine.retry import RetryConfig, RetryExecutor

MakeClient = Callable[..., DocumentClient]

ITEM = {
    "_index": "products",
    "_type": "item",
    "_id": "42",
    "_version": 1,
    "found": True,
    "_source": {"name": "lamp"},
}


@pytest.fixture
def login_route(service: respx.MockRouter) -> respx.Route:
    return service.post(f"/{LOGIN_PATH}").mock(side_effect=token_issuer())


class TestConstruction:
    def test_construction_logs_in(self, login_route: respx.Route, make_client: MakeClient) -> None:
        client = make_client()

        assert client.token == "tok1"
        assert login_route.call_count == 1

    def test_construction_fails_when_login_rejected(self, service: respx.MockRouter, make_client: MakeClient) -> None:
        service.post(f"/{LOGIN_PATH}").mock(return_value=envelope(3, "bad credentials"))

        with pytest.raises(AuthFailureError, match="bad credentials"):
            make_client()

    def test_from_settings(self, login_route: respx.Route, service: respx.MockRouter) -> None:
        service.get("/products/item/42").mock(return_value=envelope(data=ITEM))
        settings = ClientSettings(
            address=ADDRESS,
            username=USERNAME,
            password=PASSWORD,
            login_path=LOGIN_PATH,
            retry=RetrySettings(max_attempts=2, delay_seconds=0),
        )

        with DocumentClient.from_settings(settings) as client:
            assert client.session.login_url == f"http://{ADDRESS}/{LOGIN_PATH}"
            assert client.get("products", "item", "42").data == ITEM

    def test_from_settings_login_failure(self, service: respx.MockRouter) -> None:
        service.post(f"/{LOGIN_PATH}").mock(side_effect=httpx.ConnectError("connection refused"))
        settings = ClientSettings(address=ADDRESS, username=USERNAME, password=PASSWORD, login_path=LOGIN_PATH)

        with pytest.raises(AuthFailureError, match="login request failed"):
            DocumentClient.from_settings(settings)

    def test_context_manager_closes_transport(self, service: respx.MockRouter, sleeps: SleepRecorder) -> None:
        service.post(f"/{LOGIN_PATH}").mock(side_effect=token_issuer())
        http_client = httpx.Client()
        transport = Transport(Protocol.PLAIN, ADDRESS, client=http_client)
        session = Session(transport, username=USERNAME, password=PASSWORD, login_path=LOGIN_PATH)
        with DocumentClient(transport, session, retry_executor=RetryExecutor(RetryConfig(), sleep=sleeps)):
            assert not http_client.is_closed

        assert http_client.is_closed


class TestOperations:
    """A successful exchange returns the envelope and never re-logs in."""

    def test_get(self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient, sleeps) -> None:
        route = service.get("/products/item/42").mock(return_value=envelope(data=ITEM))
        client = make_client()

        result = client.get("products", "item", "42")

        assert result.ok
        assert result.data == ITEM
        assert route.calls.last.request.headers["Authorization"] == "JWT tok1"
        assert route.calls.last.request.content == b""
        assert login_route.call_count == 1
        assert sleeps.calls == []

    def test_get_item(self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient) -> None:
        service.get("/products/item/42").mock(return_value=envelope(data=ITEM))

        item = make_client().get_item("products", "item", "42")

        assert item == DocumentItem(
            id="42", index="products", doc_type="item", version=1, found=True, source={"name": "lamp"}
        )

    def test_create_posts_to_type_path(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient
    ) -> None:
        route = service.post("/products/item").mock(return_value=envelope(data={"_id": "new-id"}))

        result = make_client().create("products", "item", {"name": "lamp"})

        assert result.data == {"_id": "new-id"}
        assert json.loads(route.calls.last.request.content) == {"name": "lamp"}

    def test_update_puts_to_id_path(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient
    ) -> None:
        route = service.put("/products/item/42").mock(return_value=envelope())

        make_client().update("products", "item", "42", {"name": "desk lamp"})

        assert json.loads(route.calls.last.request.content) == {"name": "desk lamp"}

    def test_delete(self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient) -> None:
        route = service.delete("/products/item/42").mock(return_value=envelope())

        assert make_client().delete("products", "item", "42").ok
        assert route.call_count == 1

    def test_delete_missing_document_is_business_error(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient
    ) -> None:
        service.delete("/products/item/missing").mock(return_value=envelope(404, "document not found"))

        with pytest.raises(BusinessError) as exc_info:
            make_client().delete("products", "item", "missing")

        assert exc_info.value.operation == "Delete"
        assert exc_info.value.code == 404
        assert exc_info.value.server_message == "document not found"

    def test_sync_with_id_updates(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient
    ) -> None:
        route = service.put("/products/item/42").mock(return_value=envelope())

        make_client().sync(Document(index="products", doc_type="item", id="42", fields={"name": "lamp"}))

        assert route.call_count == 1

    def test_sync_without_id_creates(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient
    ) -> None:
        route = service.post("/products/item").mock(return_value=envelope(data={"_id": "new-id"}))

        result = make_client().sync(Document(index="products", doc_type="item", fields={"name": "lamp"}))

        assert route.call_count == 1
        assert result.data == {"_id": "new-id"}


class TestBusinessFailure:
    def test_business_code_raises_without_retry(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient, sleeps
    ) -> None:
        route = service.post("/products/item").mock(return_value=envelope(500, "disk full"))
        client = make_client()

        with pytest.raises(BusinessError) as exc_info:
            client.create("products", "item", {"name": "lamp"})

        assert str(exc_info.value) == "Create failed, code: 500, message: disk full"
        assert exc_info.value.code == 500
        assert route.call_count == 1
        assert login_route.call_count == 1
        assert sleeps.calls == []

    def test_business_code_after_reauth(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient, sleeps
    ) -> None:
        service.get("/products/item/42").mock(side_effect=[envelope(16), envelope(500, "shard offline")])

        with pytest.raises(BusinessError, match="Get failed, code: 500, message: shard offline"):
            make_client().get("products", "item", "42")

        assert login_route.call_count == 2
        assert sleeps.calls == [1.0]


class TestTransportFailure:
    def test_connection_failure_is_fatal(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient, sleeps
    ) -> None:
        route = service.put("/products/item/42").mock(side_effect=httpx.ConnectError("connection refused"))
        client = make_client()

        with pytest.raises(TransportError, match="connection refused"):
            client.update("products", "item", "42", {"name": "lamp"})

        assert route.call_count == 1
        assert login_route.call_count == 1
        assert sleeps.calls == []

    def test_undecodable_response_is_fatal(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient, sleeps
    ) -> None:
        route = service.get("/products/item/42").mock(return_value=httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(TransportError):
            make_client().get("products", "item", "42")

        assert route.call_count == 1
        assert sleeps.calls == []


class TestReauthentication:
    def test_expired_token_relogs_in_and_retries(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient, sleeps
    ) -> None:
        route = service.put("/products/item/42").mock(side_effect=[envelope(16, "token expired"), envelope()])
        client = make_client()

        result = client.update("products", "item", "42", {"name": "lamp"})

        assert result.ok
        assert route.call_count == 2
        assert login_route.call_count == 2
        assert sleeps.calls == [1.0]
        assert route.calls[0].request.headers["Authorization"] == "JWT tok1"
        assert route.calls[1].request.headers["Authorization"] == "JWT tok2"
        assert client.token == "tok2"

    def test_persistent_expiry_exhausts_attempts(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient, sleeps
    ) -> None:
        route = service.put("/products/item/42").mock(return_value=envelope(16, "token expired"))

        with pytest.raises(AuthExpiredError, match="token expired"):
            make_client(max_attempts=3).update("products", "item", "42", {"name": "lamp"})

        assert route.call_count == 3
        assert login_route.call_count == 4
        assert sleeps.calls == [1.0, 1.0]

    @pytest.mark.parametrize("max_attempts", [1, 2, 5])
    def test_relogins_bounded_by_attempt_budget(
        self,
        login_route: respx.Route,
        service: respx.MockRouter,
        make_client: MakeClient,
        sleeps,
        max_attempts: int,
    ) -> None:
        route = service.get("/products/item/42").mock(return_value=envelope(16))

        with pytest.raises(AuthExpiredError):
            make_client(max_attempts=max_attempts, delay=0.5).get("products", "item", "42")

        assert route.call_count == max_attempts
        assert login_route.call_count == 1 + max_attempts
        assert sleeps.calls == [0.5] * (max_attempts - 1)

    def test_login_failure_during_reauth_is_fatal(
        self, service: respx.MockRouter, make_client: MakeClient, sleeps
    ) -> None:
        login = service.post(f"/{LOGIN_PATH}").mock(
            side_effect=[envelope(data="tok1"), envelope(3, "account locked")],
        )
        route = service.put("/products/item/42").mock(return_value=envelope(16))
        client = make_client()

        with pytest.raises(AuthFailureError, match="account locked"):
            client.update("products", "item", "42", {"name": "lamp"})

        assert route.call_count == 1
        assert login.call_count == 2
        assert sleeps.calls == []
        assert client.token == "tok1"

    def test_login_transport_failure_during_reauth_is_fatal(
        self, service: respx.MockRouter, make_client: MakeClient, sleeps
    ) -> None:
        service.post(f"/{LOGIN_PATH}").mock(
            side_effect=[envelope(data="tok1"), httpx.ConnectError("connection refused")],
        )
        service.delete("/products/item/42").mock(return_value=envelope(16))
        client = make_client()

        with pytest.raises(AuthFailureError, match="login request failed"):
            client.delete("products", "item", "42")

        assert sleeps.calls == []

    def test_each_operation_gets_a_fresh_budget(
        self, login_route: respx.Route, service: respx.MockRouter, make_client: MakeClient
    ) -> None:
        route = service.get("/products/item/42").mock(
            side_effect=[envelope(16), envelope(data=ITEM), envelope(16), envelope(data=ITEM)],
        )
        client = make_client(max_attempts=2, delay=0)

        client.get("products", "item", "42")
        client.get("products", "item", "42")

        assert route.call_count == 4
        assert login_route.call_count == 3
