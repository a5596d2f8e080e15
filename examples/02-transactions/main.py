"""
Transactional API Example

This example demonstrates TxAPI:
1. Work done in __init__ / pre_tx_start() runs once, even when attempts retry
2. compute_response() and pre_commit() run inside each attempt
3. post_commit() runs once, only after the commit succeeded
4. A status >= 400 aborts the transaction without retrying

Run: python examples/02-transactions/main.py
Then: curl -X POST localhost:8000/counters/increment \
        -d '{"id": "a", "delta": 1, "numTimesToRetry": 2}'
"""

from apicontract import BadRequestException, Settings, TxAPI, make_app
from apicontract.app import serve
from apicontract.transaction import InMemoryStore, NoBackoff, RetryingUnitOfWork, RetryPolicy


class ForcedRetry(Exception):
    """Simulates contention; the unit of work re-runs the attempt."""

    retryable = True


class IncrementCounterAPI(TxAPI):
    PATH = "/increment"
    DESC = "Adds delta to a counter inside a transaction"
    IS_READ_ONLY = False
    BODY = {
        "id": str,
        "delta": int,
        "numTimesToRetry": (int, 0),
    }
    RESPONSE = {
        "n": int,
        "computeCalls": int,
        "preCommitCalls": int,
        "postCommitMsg": str,
    }
    ERRORS = [BadRequestException]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # not re-initialized between attempts
        self.compute_calls = 0
        self.pre_commit_calls = 0

    async def compute_response(self, req):
        self.compute_calls += 1
        if self.compute_calls <= req.body.numTimesToRetry:
            raise ForcedRetry(f"attempt {self.compute_calls} lost a race")
        if req.body.delta == 0:
            raise BadRequestException("delta must not be 0")

        n = await self.tx.get(f"counter:{req.body.id}", 0) + req.body.delta
        self.tx.put(f"counter:{req.body.id}", n)
        return {"n": n, "computeCalls": self.compute_calls}

    async def pre_commit(self, resp_data):
        self.pre_commit_calls += 1
        resp_data["preCommitCalls"] = self.pre_commit_calls
        return resp_data

    async def post_commit(self, resp_data):
        resp_data["postCommitMsg"] = "commit succeeded"
        return resp_data


class GetCounterAPI(TxAPI):
    METHOD = "GET"
    PATH = "/counter/:id"
    DESC = "Reads a counter in a read-only transaction"
    PATH_PARAMS = {"id": str}
    RESPONSE = {"n": int}

    async def compute_response(self, req):
        return {"n": await self.tx.get(f"counter:{req.params.id}", 0)}


store = InMemoryStore()

app = make_app(
    "counters",
    [IncrementCounterAPI, GetCounterAPI],
    settings=Settings(service_name="counters"),
    unit_of_work=RetryingUnitOfWork(store, RetryPolicy(max_attempts=4, backoff=NoBackoff())),
)


if __name__ == "__main__":
    serve(app)
