from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Union

from pydantic import ValidationError

from .connections import Connection, ConnectionManager
from .exceptions import AlreadyJoined, NotHost, WhoSaidError
from .game import Room
from .schemas import (
    INBOUND_KINDS,
    ErrorOut,
    GameResetOut,
    JoinedPlayerOut,
    JoinIn,
    NextRoundIn,
    PlayAgainIn,
    PlayerJoinedOut,
    PlayerLeftOut,
    QuestionAnsweredIn,
    QuestionsCompletedIn,
    StartGameIn,
    StartQuestionsIn,
    VoteIn,
    inbound_adapter,
    players_out,
)
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# event type -> action name shown to non-hosts
HOST_ONLY = {
    "startQuestions": "start the questions",
    "startGame": "start the game",
    "playAgain": "reset the game",
}


class EventRouter:
    """Decode client frames and route them to the room."""

    def __init__(self, room: Room, transport: ConnectionManager, config: Settings = default_settings):
        self.room = room
        self.transport = transport
        self.default_rounds = config.DEFAULT_TOTAL_ROUNDS
        self.handlers: Dict[str, Callable[[Connection, Any], None]] = {
            "join": self._on_join,
            "startQuestions": self._on_start_questions,
            "questionAnswered": self._on_question_answered,
            "questionsCompleted": self._on_questions_completed,
            "startGame": self._on_start_game,
            "vote": self._on_vote,
            "nextRound": self._on_next_round,
            "playAgain": self._on_play_again,
        }

    def handle(self, conn: Connection, raw: Union[str, bytes]):
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            logger.warning("Error parsing message: %s", exc)
            return
        if not isinstance(data, dict):
            logger.warning("Dropping non-object message: %r", data)
            return

        kind = data.get("type")
        if kind not in INBOUND_KINDS:
            logger.info("Unknown message type: %s", kind)
            return

        try:
            event = inbound_adapter.validate_python(data)
        except ValidationError as exc:
            logger.warning("Malformed %s message: %s", kind, exc.errors(include_url=False))
            return

        self.dispatch(conn, event)

    def dispatch(self, conn: Connection, event: Any):
        kind = event.type
        if kind != "join" and conn.player_id is None:
            logger.info("Ignoring %s from connection %s that has not joined", kind, conn.id)
            return

        try:
            if kind in HOST_ONLY and not self.room.is_host(conn.player_id):
                raise NotHost(HOST_ONLY[kind])
            self.handlers[kind](conn, event)
        except WhoSaidError as exc:
            logger.info("Rejected %s from %s: %s", kind, conn.player_id or conn.id, exc)
            self.transport.reply(conn, ErrorOut(message=str(exc)))

    def disconnect(self, conn: Connection):
        if conn.player_id is None:
            return
        player_id = conn.player_id
        logger.info("Player %s disconnected", player_id)
        self.room.leave(player_id)
        self.transport.broadcast(PlayerLeftOut(players=players_out(self.room.ordered_players())))

    # ---- handlers ----

    def _on_join(self, conn: Connection, event: JoinIn):
        if conn.player_id is not None:
            raise AlreadyJoined(conn.player_id)

        player = self.room.join(event.name)
        self.transport.bind(conn, player.id)

        message = PlayerJoinedOut(
            player=JoinedPlayerOut(id=player.id, name=player.name, is_host=player.is_host),
            players=players_out(self.room.ordered_players()),
        )
        self.transport.unicast(player.id, message)
        self.transport.broadcast(message, exclude_id=player.id)
        logger.info("Player %s joined (%d/%d)", player.name, len(self.room.players), self.room.max_players)

    def _on_start_questions(self, conn: Connection, event: StartQuestionsIn):
        self.room.begin_answer_collection(event.total_rounds or self.default_rounds)

    def _on_question_answered(self, conn: Connection, event: QuestionAnsweredIn):
        self.room.submit_answer(conn.player_id, event.question_index, event.answer)

    def _on_questions_completed(self, conn: Connection, event: QuestionsCompletedIn):
        self.room.mark_ready(conn.player_id)
        logger.info("Player %s completed questions", conn.player_id)

    def _on_start_game(self, conn: Connection, event: StartGameIn):
        self.room.start_game()

    def _on_vote(self, conn: Connection, event: VoteIn):
        self.room.submit_vote(conn.player_id, event.voted_for)

    def _on_next_round(self, conn: Connection, event: NextRoundIn):
        # rounds advance on their own
        pass

    def _on_play_again(self, conn: Connection, event: PlayAgainIn):
        self.room.reset()
        self.transport.broadcast(GameResetOut(players=players_out(self.room.ordered_players())))
        logger.info("Game reset for new round")
