from __future__ import annotations
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from .exceptions import InvalidPhase, RoomFull
from .models import (
    DEFAULT_PROMPTS,
    FALLBACK_ANSWER,
    FALLBACK_QUESTION,
    Participant,
    Phase,
    Prompt,
    RoundData,
)
from .schemas import (
    AllPlayersReadyOut,
    GameEndedOut,
    GameStartedOut,
    OutboundMessage,
    QuestionsStartedOut,
    RoundResultsOut,
    round_out,
)
from .settings import Settings, settings as default_settings
from .utils import new_player_id, scores_of

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def unicast(self, player_id: str, message: OutboundMessage) -> None: ...

    def broadcast(self, message: OutboundMessage, exclude_id: Optional[str] = None) -> None: ...


@dataclass
class LiveRound:
    number: int
    data: RoundData
    timer: Optional[asyncio.Task] = None
    resolved: bool = False


class Room:
    """The single game room.

    Every public method runs to completion without awaiting, so calls made
    from the event loop (inbound events, timers) never interleave. Outbound
    messages go through ``transport`` which only enqueues.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        config: Settings = default_settings,
        prompts: Optional[List[Prompt]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.transport = transport
        self.max_players = config.MAX_PLAYERS
        self.round_timeout = config.round_timeout
        self.results_delay = config.RESULTS_DELAY_SEC
        self.prompts: List[Prompt] = list(prompts if prompts is not None else DEFAULT_PROMPTS)
        self.rng = rng or random.Random()

        self.players: Dict[str, Participant] = {}
        self.host_id: Optional[str] = None
        self.phase: Phase = "lobby"
        self.answers: Dict[str, Dict[int, str]] = {}
        self.votes: Dict[str, str] = {}
        self.current_round = 0
        self.total_rounds = config.DEFAULT_TOTAL_ROUNDS
        self.live_round: Optional[LiveRound] = None
        self.advance_task: Optional[asyncio.Task] = None
        self._seq = 0

    # ---- membership ----

    def ordered_players(self) -> List[Participant]:
        return sorted(self.players.values(), key=lambda p: p.seq)

    def join(self, name: str) -> Participant:
        if len(self.players) >= self.max_players:
            raise RoomFull(self.max_players)

        pid = new_player_id()
        while pid in self.players:
            pid = new_player_id()

        self._seq += 1
        is_host = not self.players
        p = Participant(id=pid, name=name, is_host=is_host, seq=self._seq)
        self.players[pid] = p
        if is_host:
            self.host_id = pid
        return p

    def leave(self, player_id: str) -> Optional[Participant]:
        p = self.players.pop(player_id, None)
        if p is None:
            return None
        self.answers.pop(player_id, None)
        self.votes.pop(player_id, None)

        if player_id == self.host_id:
            self.host_id = None
            remaining = self.ordered_players()
            if remaining:
                remaining[0].is_host = True
                self.host_id = remaining[0].id
                logger.info("Host left, %s is the new host", remaining[0].id)

        if not self.players:
            # nobody left to play; next joiner starts from a clean lobby
            self.reset()
            return p

        if self.phase == "collecting_answers":
            self._check_all_ready()
        elif self.phase == "awaiting_ready" and len(self.players) <= 1:
            # a game needs a guesser; wait for more players to finish answering
            self.phase = "collecting_answers"
            logger.info("Back to collecting answers, only %d player left", len(self.players))
        elif self.phase == "playing":
            self._check_quorum()
        return p

    def is_host(self, player_id: Optional[str]) -> bool:
        return player_id is not None and player_id == self.host_id

    # ---- phases ----

    def begin_answer_collection(self, total_rounds: int):
        if self.phase != "lobby":
            raise InvalidPhase("start questions", self.phase)
        self.total_rounds = total_rounds
        self.phase = "collecting_answers"
        logger.info("Questions phase started (%d rounds)", total_rounds)
        self.transport.broadcast(QuestionsStartedOut(total_rounds=total_rounds, questions=self.prompts))

    def submit_answer(self, player_id: str, question_index: int, answer: str):
        p = self.players.get(player_id)
        if p is None:
            return
        # out-of-range indices are kept; round selection skips them
        self.answers.setdefault(player_id, {})[question_index] = answer
        p.answered = True

    def mark_ready(self, player_id: str):
        p = self.players.get(player_id)
        if p is None:
            return
        p.ready = True
        if self.phase == "collecting_answers":
            self._check_all_ready()

    def _check_all_ready(self):
        if len(self.players) > 1 and all(p.ready for p in self.players.values()):
            self.phase = "awaiting_ready"
            logger.info("All %d players ready", len(self.players))
            self.transport.broadcast(AllPlayersReadyOut())

    def start_game(self):
        if self.phase != "awaiting_ready":
            raise InvalidPhase("start the game", self.phase, "Not all players are ready")
        self.phase = "playing"
        self.current_round = 0
        logger.info("Game started")
        self.start_next_round()

    # ---- rounds ----

    def start_next_round(self):
        self.current_round += 1
        self.votes.clear()
        self._cancel_round_timer()
        self.live_round = None

        if self.current_round > self.total_rounds or not self.players:
            self.current_round = min(self.current_round, self.total_rounds)
            self._end_game()
            return

        data = self._select_round_data()
        live = LiveRound(number=self.current_round, data=data)
        self.live_round = live
        logger.info("Round %d/%d started", self.current_round, self.total_rounds)

        self.transport.broadcast(
            GameStartedOut(
                round_data=round_out(data),
                round=self.current_round,
                total_rounds=self.total_rounds,
            )
        )
        live.timer = asyncio.create_task(self._expire_round(live.number))

    def _select_round_data(self) -> RoundData:
        author = self.rng.choice(self.ordered_players())
        playable = sorted(
            idx for idx in self.answers.get(author.id, {})
            if 0 <= idx < len(self.prompts)
        )
        if not playable:
            return RoundData(
                question=FALLBACK_QUESTION,
                answer=FALLBACK_ANSWER,
                answer_type="text",
                correct_player=author.id,
            )

        idx = self.rng.choice(playable)
        prompt = self.prompts[idx]
        return RoundData(
            question=prompt.question,
            answer=self.answers[author.id][idx],
            answer_type=prompt.type,
            correct_player=author.id,
        )

    def submit_vote(self, voter_id: str, voted_for: str):
        if voter_id == voted_for:
            return
        live = self.live_round
        if live is None or live.resolved or voter_id not in self.players:
            return
        if voter_id == live.data.correct_player:
            return
        self.votes[voter_id] = voted_for
        self._check_quorum()

    def _check_quorum(self):
        live = self.live_round
        if live is None or live.resolved:
            return
        # the author never votes, so only count them out while they are present
        expected = len(self.players) - (1 if live.data.correct_player in self.players else 0)
        if len(self.votes) >= expected:
            self.resolve_round()

    def resolve_round(self):
        live = self.live_round
        if live is None or live.resolved:
            return
        live.resolved = True
        self._cancel_round_timer()

        correct = live.data.correct_player
        for voter, voted_for in self.votes.items():
            if voted_for == correct and voter in self.players:
                self.players[voter].score += 1

        logger.info("Round %d resolved with %d votes", live.number, len(self.votes))
        self.transport.broadcast(
            RoundResultsOut(
                correct_player=correct,
                votes=dict(self.votes),
                scores=scores_of(self.ordered_players()),
            )
        )
        self._cancel_advance()
        self.advance_task = asyncio.create_task(self._advance_after_results(live.number))

    async def _expire_round(self, round_number: int):
        await asyncio.sleep(self.round_timeout)
        live = self.live_round
        if live is None or live.number != round_number or live.resolved:
            return
        logger.info("Round %d timed out", round_number)
        # this task is finishing on its own; resolve_round must not cancel it
        live.timer = None
        self.resolve_round()

    async def _advance_after_results(self, round_number: int):
        await asyncio.sleep(self.results_delay)
        self.advance_task = None
        if self.phase != "playing" or self.current_round != round_number:
            return
        if self.current_round < self.total_rounds:
            self.start_next_round()
        else:
            self._end_game()

    def _end_game(self):
        self.phase = "finished"
        self._cancel_round_timer()
        logger.info("Game ended")
        self.transport.broadcast(GameEndedOut(scores=scores_of(self.ordered_players())))

    # ---- reset / shutdown ----

    def reset(self):
        self.close()
        self.phase = "lobby"
        self.answers.clear()
        self.votes.clear()
        self.current_round = 0
        self.live_round = None
        for p in self.players.values():
            p.ready = False
            p.answered = False
            p.score = 0

    def close(self):
        """Cancel every pending timer."""
        self._cancel_round_timer()
        self._cancel_advance()

    def _cancel_round_timer(self):
        live = self.live_round
        if live is not None and live.timer is not None:
            live.timer.cancel()
            live.timer = None

    def _cancel_advance(self):
        if self.advance_task is not None:
            self.advance_task.cancel()
            self.advance_task = None

    # ---- read-only views ----

    def status(self) -> dict:
        return {
            "players": len(self.players),
            "gameState": self.phase,
            "round": self.current_round,
            "totalRounds": self.total_rounds,
        }
