from typing import Annotated, Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from .models import Participant, Prompt, PromptType, RoundData


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- inbound events ----

class JoinIn(WireModel):
    type: Literal["join"]
    name: str


class StartQuestionsIn(WireModel):
    type: Literal["startQuestions"]
    total_rounds: Optional[int] = Field(default=None, ge=1)


class QuestionAnsweredIn(WireModel):
    type: Literal["questionAnswered"]
    question_index: int
    answer: str


class QuestionsCompletedIn(WireModel):
    type: Literal["questionsCompleted"]


class StartGameIn(WireModel):
    type: Literal["startGame"]


class VoteIn(WireModel):
    type: Literal["vote"]
    voted_for: str


class NextRoundIn(WireModel):
    type: Literal["nextRound"]


class PlayAgainIn(WireModel):
    type: Literal["playAgain"]


INBOUND_MODELS = (
    JoinIn,
    StartQuestionsIn,
    QuestionAnsweredIn,
    QuestionsCompletedIn,
    StartGameIn,
    VoteIn,
    NextRoundIn,
    PlayAgainIn,
)

InboundEvent = Annotated[Union[INBOUND_MODELS], Field(discriminator="type")]

inbound_adapter: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)

INBOUND_KINDS = frozenset(get_args(m.model_fields["type"].annotation)[0] for m in INBOUND_MODELS)


# ---- outbound messages ----

class PlayerOut(WireModel):
    name: str
    is_host: bool
    ready: bool


class JoinedPlayerOut(WireModel):
    id: str
    name: str
    is_host: bool


class RoundOut(WireModel):
    question: str
    answer: str
    answer_type: PromptType


class PlayerJoinedOut(WireModel):
    type: Literal["playerJoined"] = "playerJoined"
    player: JoinedPlayerOut
    players: Dict[str, PlayerOut]


class PlayerLeftOut(WireModel):
    type: Literal["playerLeft"] = "playerLeft"
    players: Dict[str, PlayerOut]


class QuestionsStartedOut(WireModel):
    type: Literal["questionsStarted"] = "questionsStarted"
    total_rounds: int
    questions: List[Prompt]


class AllPlayersReadyOut(WireModel):
    type: Literal["allPlayersReady"] = "allPlayersReady"


class GameStartedOut(WireModel):
    type: Literal["gameStarted"] = "gameStarted"
    round_data: RoundOut
    round: int
    total_rounds: int


class RoundResultsOut(WireModel):
    type: Literal["roundResults"] = "roundResults"
    correct_player: str
    votes: Dict[str, str]
    scores: Dict[str, int]


class GameEndedOut(WireModel):
    type: Literal["gameEnded"] = "gameEnded"
    scores: Dict[str, int]


class GameResetOut(WireModel):
    type: Literal["gameReset"] = "gameReset"
    players: Dict[str, PlayerOut]


class ErrorOut(WireModel):
    type: Literal["error"] = "error"
    message: str


OutboundMessage = Union[
    PlayerJoinedOut,
    PlayerLeftOut,
    QuestionsStartedOut,
    AllPlayersReadyOut,
    GameStartedOut,
    RoundResultsOut,
    GameEndedOut,
    GameResetOut,
    ErrorOut,
]


def encode(message: OutboundMessage) -> Dict[str, Any]:
    return message.model_dump(by_alias=True)


def players_out(players: List[Participant]) -> Dict[str, PlayerOut]:
    return {p.id: PlayerOut(name=p.name, is_host=p.is_host, ready=p.ready) for p in players}


def round_out(data: RoundData) -> RoundOut:
    # correct_player stays server-side until the round resolves
    return RoundOut(question=data.question, answer=data.answer, answer_type=data.answer_type)
