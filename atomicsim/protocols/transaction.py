"""
Transaction record and vote bookkeeping.
"""

from datetime import datetime
from typing import Optional

from atomicsim.utils.datetime_utils import utc_now
from .states import TransactionState
from .types import Vote


class Transaction:
    """
    One commit attempt: its payload, its vote tally and its outcome.

    A fresh Transaction is created for every run. ``commit`` and ``abort``
    are not guarded against repeated calls; the coordinator calls each at
    most once per run.
    """

    def __init__(self, transaction_id: str, data: str, participant_count: int):
        self.id = transaction_id
        self.data = data
        self.state = TransactionState.INITIATED
        self.start_time: datetime = utc_now()
        self.end_time: Optional[datetime] = None
        self.yes_votes = 0
        self.no_votes = 0
        self.total_votes = participant_count

    def mark_preparing(self) -> None:
        self.state = TransactionState.PREPARING

    def record_vote(self, vote: Vote) -> None:
        if vote is Vote.YES:
            self.yes_votes += 1
        else:
            self.no_votes += 1

    def can_commit(self) -> bool:
        """Unanimous YES from every participant."""
        return self.yes_votes == self.total_votes and self.no_votes == 0

    def has_all_votes(self) -> bool:
        return (self.yes_votes + self.no_votes) == self.total_votes

    def pre_commit(self) -> None:
        self.state = TransactionState.PRE_COMMITTED

    def commit(self) -> None:
        self.state = TransactionState.COMMITTED
        self.end_time = utc_now()

    def abort(self) -> None:
        self.state = TransactionState.ABORTED
        self.end_time = utc_now()

    @property
    def is_terminal(self) -> bool:
        return self.state in (TransactionState.COMMITTED, TransactionState.ABORTED)

    def result_summary(self) -> str:
        if self.state is TransactionState.COMMITTED:
            return f"Transaction {self.id} COMMITTED successfully (All {self.total_votes} participants voted YES)"
        if self.state is TransactionState.ABORTED:
            return f"Transaction {self.id} ABORTED ({self.yes_votes} YES, {self.no_votes} NO votes)"
        if self.state in (TransactionState.PREPARING, TransactionState.PRE_COMMITTED):
            received = self.yes_votes + self.no_votes
            return f"Transaction {self.id} in progress ({received}/{self.total_votes} votes received)"
        return f"Transaction {self.id} initiated"

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, state={self.state.value}, "
            f"yes={self.yes_votes}, no={self.no_votes}, total={self.total_votes})"
        )
