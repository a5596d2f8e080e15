"""
Transactional APIs.

A TxAPI computes its response inside a unit of work supplied by the
application (see apicontract.transaction). The request moves through:

    PRE_TX -> ATTEMPT(compute -> pre_commit) -> ABORT | COMMIT -> POST_COMMIT

ATTEMPT may run several times when compute or pre_commit raise a retryable
error. The handler instance is the same object for every attempt: fields
set in __init__ or pre_tx_start() are not re-initialized between attempts.

A response status >= 400 after compute and pre_commit aborts the unit of
work without retrying; the computed response is still returned.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

from .handler import API

if TYPE_CHECKING:
    from apicontract.transaction import TransactionContext

logger = logging.getLogger(__name__)


class TransactionAborted(Exception):
    """Stops a unit of work from committing, carrying the response through."""

    retryable = False

    def __init__(self, resp_data: Any):
        super().__init__("transaction aborted")
        self.resp_data = resp_data


class TxAPI(API):
    """
    API whose response is computed inside a transaction.

    Attributes:
        IS_READ_ONLY: Attempts run in read-only transactions (writes raise)
        tx: Transaction context of the running attempt (None outside attempts)
    """

    IS_READ_ONLY: ClassVar[bool] = True

    tx: TransactionContext | None = None

    async def _compute_response(self) -> Any:
        await self.pre_tx_start()

        try:
            ret = await self.app.unit_of_work.run(
                self._run_attempt, read_only=self.IS_READ_ONLY
            )
        except TransactionAborted as aborted:
            logger.debug(
                f"[{self.definition.name}] transaction aborted "
                f"with HTTP {self.reply.status_code}"
            )
            return aborted.resp_data
        finally:
            self._detach_tx()

        return await self.post_commit(ret)

    async def _run_attempt(self, tx: TransactionContext) -> Any:
        self.tx = tx
        self.req.tx = tx
        try:
            resp_data = await super()._compute_response()
            if self.reply.status_code < 400:
                # pre_commit may change the response data and the status code
                resp_data = await self._call_and_handle_request_done(self.pre_commit, resp_data)
            if self.reply.status_code >= 400:
                raise TransactionAborted(resp_data)
            return resp_data
        finally:
            self._detach_tx()

    def _detach_tx(self) -> None:
        self.tx = None
        self.req.tx = None

    # Hooks

    async def pre_tx_start(self) -> None:
        """
        Runs once before the first attempt, with no transaction.

        Use it for slow work that should not be repeated on retry.
        """

    async def pre_commit(self, resp_data: Any) -> Any:
        """
        Runs inside each attempt, after compute, when status < 400.

        May return new response data or raise a signal. A retryable error
        discards the attempt; any other error prevents the commit.
        """
        return resp_data

    async def post_commit(self, resp_data: Any) -> Any:
        """
        Runs once, only after a successful commit, outside any transaction.

        May return new response data or raise a signal.
        """
        return resp_data


__all__ = [
    "TxAPI",
]
