"""
Shared ranking utilities.

Rank is the 1-based position of a participant when everyone is ordered by
points descending, ties going to the earlier registration. Because the
tie-break is itself a total order, no two participants ever share a rank and
the ranks of N participants are exactly 1..N.
"""

from typing import Iterable, List, Tuple
from bot.data_models.leaderboard import RankedParticipant, RankingSnapshot
from bot.database.models import Participant


class RankingUtility:
    """Shared ranking logic used by the engine and its tests."""

    @staticmethod
    def sort_key(participant: Participant) -> Tuple:
        return (-participant.points, participant.registered_at, participant.id)

    @staticmethod
    def assign_ranks(participants: Iterable[Participant]) -> List[Tuple[Participant, int]]:
        """
        Pair each participant with its rank.

        The input is re-sorted so the result does not depend on the order the
        store happened to return rows in.
        """
        ordered = sorted(participants, key=RankingUtility.sort_key)
        return [(participant, position) for position, participant in enumerate(ordered, start=1)]

    @staticmethod
    def build_snapshot(ranked: List[Tuple[Participant, int]], version: int) -> RankingSnapshot:
        entries = tuple(
            RankedParticipant(
                participant_id=participant.id,
                name=participant.name,
                points=participant.points,
                rank=rank,
            )
            for participant, rank in ranked
        )
        return RankingSnapshot(entries=entries, version=version)

    @staticmethod
    def is_dense_permutation(snapshot: RankingSnapshot) -> bool:
        """True when the ranks are exactly 1..N, each once."""
        return sorted(entry.rank for entry in snapshot.entries) == list(range(1, snapshot.total_participants + 1))
