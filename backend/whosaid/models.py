from typing import List, Literal
from pydantic import BaseModel, Field

PromptType = Literal["text", "youtube", "image"]

# States: lobby -> collecting_answers -> awaiting_ready -> playing -> finished, reset -> lobby
Phase = Literal["lobby", "collecting_answers", "awaiting_ready", "playing", "finished"]


class Participant(BaseModel):
    id: str
    name: str
    is_host: bool = False
    ready: bool = False
    answered: bool = False
    score: int = 0
    # join order, used for host hand-over and random selection
    seq: int = Field(default=0, exclude=True)


class Prompt(BaseModel):
    type: PromptType
    question: str


class RoundData(BaseModel):
    question: str
    answer: str
    answer_type: PromptType
    correct_player: str


DEFAULT_PROMPTS: List[Prompt] = [
    Prompt(type="text", question="What's your favorite movie?"),
    Prompt(type="text", question="What's your biggest fear?"),
    Prompt(type="youtube", question="What's your favorite song? (Share YouTube link)"),
    Prompt(type="text", question="What's your dream vacation destination?"),
    Prompt(type="image", question="Upload a photo of your pet or favorite animal"),
    Prompt(type="text", question="What's your hidden talent?"),
    Prompt(type="text", question="What's the weirdest food you've ever eaten?"),
    Prompt(type="image", question="Upload a photo of your favorite meal"),
    Prompt(type="text", question="What's your most embarrassing moment?"),
    Prompt(type="youtube", question="Share a song that makes you happy (YouTube link)"),
]

# Used when the drawn participant has not answered anything
FALLBACK_QUESTION = "What's your favorite color?"
FALLBACK_ANSWER = "Blue"
