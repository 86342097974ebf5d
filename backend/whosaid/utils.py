import secrets
import string
from typing import Dict, List

from .models import Participant

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_player_id() -> str:
    return "player_" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))


def scores_of(players: List[Participant]) -> Dict[str, int]:
    return {p.id: p.score for p in players}
