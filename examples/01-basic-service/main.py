"""
Basic Service Example

This example demonstrates declarative API contracts:
1. Input schemas with defaults (BODY, QS, PATH_PARAMS, HEADERS)
2. Returning a value vs. raising a completion signal
3. Declared errors and CORS

Run: python examples/01-basic-service/main.py
Then: curl -X POST localhost:8000/demo/echo -d '{}'
"""

from pydantic import BaseModel

from apicontract import (
    API,
    NotFoundException,
    RequestDone,
    Settings,
    make_app,
)
from apicontract.app import serve
from apicontract.config import LoggingConfig

# =============================================================================
# APIs
# =============================================================================


class EchoAPI(API):
    """Returns its input; v defaults to 5."""

    PATH = "/echo"
    DESC = "Echo an integer back"
    BODY = {"v": (int, 5)}
    RESPONSE = {"v": int}

    async def compute_response(self, req):
        return {"v": req.body.v}


class Greeting(BaseModel):
    greeting: str
    shout: bool = False


class GreetAPI(API):
    """Path params, query and a pydantic response model."""

    METHOD = "GET"
    PATH = "/greet/:name"
    DESC = "Greets someone by name"
    PATH_PARAMS = {"name": str}
    QS = {"shout": (bool, False)}
    RESPONSE = Greeting
    CORS_ORIGIN = "*"

    async def compute_response(self, req):
        text = f"hello, {req.params.name}"
        if req.query.shout:
            # leaves compute_response() early from any depth
            raise RequestDone({"greeting": text.upper(), "shout": True})
        return {"greeting": text}


USERS = {"1": "ada", "2": "grace"}


class GetUserAPI(API):
    METHOD = "GET"
    PATH = "/users/:userId"
    DESC = "Looks up a user"
    PATH_PARAMS = {"userId": str}
    RESPONSE = {"name": str}
    ERRORS = [NotFoundException]

    async def compute_response(self, req):
        return {"name": self.find_user(req.params.userId)}

    def find_user(self, user_id: str) -> str:
        if user_id not in USERS:
            raise NotFoundException()
        return USERS[user_id]


class WhoAmIAPI(API):
    """Headers are declared like any other input section."""

    METHOD = "GET"
    PATH = "/whoami"
    DESC = "Echoes the caller's app id header"
    HEADERS = {"x-app": (str, "unknown")}
    RESPONSE = {"app": str}

    async def compute_response(self, req):
        return {"app": req.headers.x_app}


# =============================================================================
# Main
# =============================================================================

app = make_app(
    "demo",
    [EchoAPI, GreetAPI, GetUserAPI, WhoAmIAPI],
    settings=Settings(
        service_name="demo",
        environment="development",
        logging=LoggingConfig(report_error_detail=True),
    ),
)


if __name__ == "__main__":
    serve(app)
