"""
End-to-end tests through the FastAPI application.
"""

import logging

import pytest

from apicontract import (
    API,
    NotFoundException,
    RedirectException,
    RequestDone,
    Settings,
    TxAPI,
    make_app,
)
from apicontract.api import DefinitionError
from apicontract.config import HealthCheckConfig, LatencyTrackerConfig, LoggingConfig
from apicontract.observability import get_metrics


class EchoAPI(API):
    PATH = "/echo"
    DESC = "Echo the input back"
    BODY = {"v": (int, 5)}
    RESPONSE = {"v": int}

    async def compute_response(self, req):
        return {"v": req.body.v}


class ItemAPI(API):
    METHOD = "GET"
    PATH = "/items/:itemId"
    DESC = "Get one item"
    PATH_PARAMS = {"itemId": str}
    RESPONSE = {"id": str}
    ERRORS = [NotFoundException]

    async def compute_response(self, req):
        if req.params.itemId == "missing":
            raise NotFoundException()
        return {"id": req.params.itemId}


class GoAPI(API):
    METHOD = "GET"
    PATH = "/go"
    DESC = "Redirect elsewhere"

    async def compute_response(self, req):
        raise RedirectException("https://example.com/elsewhere")


class PublicAPI(API):
    PATH = "/public"
    DESC = "Callable from any origin"
    CORS_ORIGIN = "*"
    CORS_HEADERS = ("Content-Type", "x-key")
    ERRORS = [NotFoundException]
    BODY = {"fail": (bool, False)}

    async def compute_response(self, req):
        if req.body.fail:
            raise NotFoundException()


class BrokenAPI(API):
    PATH = "/broken"
    DESC = "Returns data that does not match its schema"
    RESPONSE = {"v": int}

    async def compute_response(self, req):
        return {"v": "nope"}


class SloppyAPI(API):
    PATH = "/sloppy"
    DESC = "Raises an error it did not declare"

    async def compute_response(self, req):
        raise NotFoundException()


class PagesAPI(API):
    METHOD = "GET"
    PATH = "/pages"
    DESC = "Paged listing"
    ENABLE_PAGINATION = True
    RESPONSE = {"items": list[int]}

    async def compute_response(self, req):
        start = int(req.query.nextToken or 0)
        end = start + req.query.amount
        page = {"items": list(range(10))[start:end]}
        if end < 10:
            page["nextToken"] = str(end)
        return page


class ConflictingAPI(TxAPI):
    PATH = "/conflicting"
    DESC = "Never manages to commit"
    IS_READ_ONLY = False

    async def compute_response(self, req):
        await req.tx.get("n")
        # a concurrent writer always commits first
        self.app.unit_of_work.store.commit({}, {"n": 0})
        req.tx.put("n", 1)


# =============================================================================
# Success Responses
# =============================================================================


class TestSuccess:
    """Tests for successful requests."""

    def test_echo_default(self, make_client):
        client = make_client([EchoAPI])
        response = client.post("/test/echo")
        assert response.status_code == 200
        assert response.json() == {"v": 5}

    def test_echo_value(self, make_client):
        client = make_client([EchoAPI])
        response = client.post("/test/echo", json={"v": 10})
        assert response.json() == {"v": 10}

    def test_path_params(self, make_client):
        client = make_client([ItemAPI])
        response = client.get("/test/items/i42")
        assert response.json() == {"id": "i42"}

    def test_empty_body(self, make_client):
        client = make_client([PublicAPI])
        response = client.post("/test/public")
        assert response.status_code == 200
        assert response.content == b""

    def test_custom_status(self, make_client):
        Accepted = RequestDone.variant("Accepted", status=202, schema={"queued": bool})

        class QueueAPI(API):
            PATH = "/queue"
            DESC = "Queues work"
            RESPONSE = Accepted

            async def compute_response(self, req):
                raise Accepted({"queued": True})

        client = make_client([QueueAPI])
        response = client.post("/test/queue")
        assert response.status_code == 202
        assert response.json() == {"queued": True}

    def test_pagination(self, make_client):
        client = make_client([PagesAPI])

        first = client.get("/test/pages", params={"amount": 4})
        assert first.json() == {"items": [0, 1, 2, 3], "nextToken": "4"}

        last = client.get("/test/pages", params={"amount": 8, "nextToken": "4"})
        assert last.json() == {"items": [4, 5, 6, 7, 8, 9]}

    def test_pagination_amount_bounds(self, make_client):
        client = make_client([PagesAPI])
        response = client.get("/test/pages", params={"amount": 0})
        assert response.status_code == 400
        assert response.json()["message"].startswith("Query Validation Failure")


# =============================================================================
# Error Responses
# =============================================================================


class TestErrors:
    """Tests for error responses."""

    def test_invalid_input(self, make_client):
        client = make_client([EchoAPI])
        response = client.post("/test/echo", json={"v": "ten"})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "InvalidInputException"
        assert body["message"].startswith("Body Validation Failure: body.v ")
        assert body["data"] == {}

    def test_invalid_json(self, make_client):
        client = make_client([EchoAPI])
        response = client.post(
            "/test/echo", content=b"{", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert "body is not valid JSON" in response.json()["message"]

    def test_undecodable_body(self, make_client):
        client = make_client([EchoAPI])
        response = client.post(
            "/test/echo",
            content=b"\xff\xfe\xfa",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "InvalidInputException"
        assert body["message"].startswith("Body Validation Failure: body is not valid JSON")

    def test_declared_error(self, make_client):
        client = make_client([ItemAPI])
        response = client.get("/test/items/missing")
        assert response.status_code == 404
        assert response.json() == {"code": "NotFoundException", "message": "Not found", "data": {}}

    def test_response_contract_violation(self, make_client):
        client = make_client([BrokenAPI])
        response = client.post("/test/broken")
        assert response.status_code == 500
        assert response.json()["code"] == "ResponseContractError"

    def test_untracked_error_outside_production(self, make_client):
        client = make_client([SloppyAPI])
        response = client.post("/test/sloppy")
        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "UntrackedErrorException"
        assert "NotFoundException" in body["message"]

    def test_untracked_error_in_production(self, make_client, prod_settings):
        client = make_client([SloppyAPI], settings=prod_settings)
        response = client.post("/test/sloppy")
        assert response.status_code == 404
        assert response.json() == {
            "code": "BadRequestException",
            "message": "Not found",
            "data": {},
        }

    def test_transaction_budget_exhausted(self, make_client):
        client = make_client([ConflictingAPI])
        response = client.post("/test/conflicting")
        assert response.status_code == 500
        assert response.json()["code"] == "TransactionFailedError"
        assert get_metrics().tx_failures == 1

    def test_response_contract_violation_in_production(self, make_client, prod_settings):
        client = make_client([BrokenAPI], settings=prod_settings)
        response = client.post("/test/broken")
        assert response.status_code == 500
        assert response.json() == {
            "code": "InternalFailureException",
            "message": "Internal failure",
            "data": {},
        }

    def test_transaction_budget_exhausted_in_production(self, make_client, prod_settings):
        client = make_client([ConflictingAPI], settings=prod_settings)
        response = client.post("/test/conflicting")
        assert response.status_code == 500
        assert response.json()["code"] == "InternalFailureException"
        assert "TransactionFailedError" not in response.text

    def test_error_detail(self, make_client):
        settings = Settings(logging=LoggingConfig(report_error_detail=True))
        client = make_client([BrokenAPI], settings=settings)
        body = client.post("/test/broken").json()
        assert body["detail"] == body["message"]
        assert "ResponseContractError" in body["stack"]

    def test_unknown_route(self, make_client):
        client = make_client([EchoAPI])
        assert client.post("/test/nothing").status_code == 404


# =============================================================================
# Redirects and CORS
# =============================================================================


class TestRedirectsAndCORS:
    """Tests for redirects and cross-origin headers."""

    def test_redirect(self, make_client):
        client = make_client([GoAPI])
        response = client.get("/test/go")
        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/elsewhere"
        assert response.content == b""

    def test_cors_headers(self, make_client):
        client = make_client([PublicAPI])
        response = client.post("/test/public")
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-headers"] == "Content-Type, x-key"

    def test_cors_headers_on_errors(self, make_client):
        client = make_client([PublicAPI])
        response = client.post("/test/public", json={"fail": True})
        assert response.status_code == 404
        assert response.headers["access-control-allow-origin"] == "*"

    def test_preflight(self, make_client):
        client = make_client([PublicAPI])
        response = client.options("/test/public")
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_no_preflight_without_cors(self, make_client):
        client = make_client([EchoAPI])
        assert client.options("/test/echo").status_code == 405


# =============================================================================
# Service Routes
# =============================================================================


class TestServiceRoutes:
    """Tests for health check, latency tracking and startup."""

    def test_health_check(self, make_client):
        client = make_client([EchoAPI])
        response = client.get("/")
        assert response.status_code == 200
        assert response.content == b""

    def test_health_check_disabled(self, make_client):
        settings = Settings(health_check=HealthCheckConfig(disabled=True))
        client = make_client([EchoAPI], settings=settings)
        assert client.get("/").status_code == 404

    def test_latency_header(self, make_client):
        client = make_client([EchoAPI])
        response = client.post("/test/echo")
        assert float(response.headers["x-latency-ms"]) >= 0

    def test_latency_header_disabled(self, make_client):
        settings = Settings(latency_tracker=LatencyTrackerConfig(disabled=True))
        client = make_client([EchoAPI], settings=settings)
        assert "x-latency-ms" not in client.post("/test/echo").headers

    def test_setup_runs_at_startup(self, make_client):
        class WarmAPI(API):
            PATH = "/warm"
            DESC = "Warms a cache at startup"
            RESPONSE = {"warm": bool}

            @classmethod
            async def setup(cls, app):
                app.shared["warm"] = True

            async def compute_response(self, req):
                return {"warm": self.shared.get("warm", False)}

        client = make_client([WarmAPI])
        assert client.post("/test/warm").json() == {"warm": True}

    def test_startup_logs_unit_of_work(self, make_client, caplog):
        with caplog.at_level(logging.INFO, logger="apicontract.app.main"):
            make_client([EchoAPI])

        messages = [r.getMessage() for r in caplog.records if r.name == "apicontract.app.main"]
        assert any("'max_attempts': 4" in m and "NoBackoff" in m for m in messages)

    def test_requests_counted(self, make_client):
        client = make_client([EchoAPI])
        client.post("/test/echo")
        client.post("/test/echo", json={"v": "bad"})
        stats = get_metrics().get_stats()["requests"]
        assert stats["total"] == 2
        assert stats["by_status_class"] == {"2xx": 1, "4xx": 1}

    def test_registry(self, settings):
        app = make_app("test", {"echo": EchoAPI, "items": ItemAPI}, settings=settings)
        registry = app.state.registrator.registry
        assert len(registry) == 2
        assert registry.find("GET", "/test/items/:itemId").name == "ItemAPI"

    def test_duplicate_route_is_rejected(self, settings):
        class OtherEchoAPI(EchoAPI):
            pass

        with pytest.raises(DefinitionError, match="already served by EchoAPI"):
            make_app("test", [EchoAPI, OtherEchoAPI], settings=settings)

    def test_invalid_api_fails_startup(self, settings):
        class NoPathAPI(API):
            DESC = "missing a path"

            async def compute_response(self, req):
                return None

        with pytest.raises(DefinitionError, match="NoPathAPI: path is required"):
            make_app("test", [NoPathAPI], settings=settings)
