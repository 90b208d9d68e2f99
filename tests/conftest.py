"""Shared fakes for the orchestrator tests."""

from __future__ import annotations

import json
from typing import Callable, Dict, List, Sequence, Union

import pytest

from logic.errors import ImageFetchError
from logic.validation import OutfitAnalysisPayload
from models.outfit import OutfitAnalysis
from models.selection import SelectionSet
from models.wardrobe_item import ClothingItem
from tools.image_store import ImageBlob, ImageStore

ANALYSIS_PAYLOAD = {
    "compatibility": 8,
    "colorHarmony": {
        "score": 7,
        "description": "Crisp white against mid-wash denim.",
        "complementaryColors": ["navy", "tan"],
    },
    "styleConsistency": 9,
    "advice": "Roll the sleeves once and keep the shirt untucked.",
    "suggestions": ["Add a brown belt", "White sneakers", "A canvas tote"],
}


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, interval: float, function: Callable[[], None]) -> None:
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False
        self.daemon = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function()


class TimerFactory:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, function: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer


Outcome = Union[str, BaseException]


class ScriptedProvider:
    """Returns or raises the scripted outcome for each model id."""

    def __init__(self, script: Dict[str, Union[Outcome, List[Outcome]]]) -> None:
        self.script = {
            model_id: list(outcome) if isinstance(outcome, list) else [outcome]
            for model_id, outcome in script.items()
        }
        self.calls: List[str] = []
        self.images_seen: List[Sequence[ImageBlob]] = []
        self.prompts: List[str] = []
        self.before_call: Callable[[str], None] | None = None

    def call(self, model_id: str, images: Sequence[ImageBlob], prompt: str) -> str:
        self.calls.append(model_id)
        self.images_seen.append(images)
        self.prompts.append(prompt)
        if self.before_call is not None:
            self.before_call(model_id)
        outcomes = self.script[model_id]
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeImageStore(ImageStore):
    def __init__(self, failing_urls: Sequence[str] = ()) -> None:
        self.failing_urls = set(failing_urls)
        self.fetched: List[str] = []

    def fetch(self, url: str) -> ImageBlob:
        self.fetched.append(url)
        if url in self.failing_urls:
            raise ImageFetchError(f"Failed to fetch image: {url}")
        return ImageBlob(data=url.encode("utf-8"), mime_type="image/png")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def timers() -> TimerFactory:
    return TimerFactory()


@pytest.fixture()
def image_store() -> FakeImageStore:
    return FakeImageStore()


@pytest.fixture()
def scripted_provider() -> Callable[..., ScriptedProvider]:
    return ScriptedProvider


@pytest.fixture()
def analysis_json() -> str:
    return json.dumps(ANALYSIS_PAYLOAD)


@pytest.fixture()
def shirt() -> ClothingItem:
    return ClothingItem(
        item_id="shirt#1",
        category="top",
        name="Oxford shirt",
        color="white",
        image_url="https://cdn.example.com/shirt-1.jpg",
        seasons=("spring", "summer", "autumn"),
    )


@pytest.fixture()
def jeans() -> ClothingItem:
    return ClothingItem(
        item_id="jeans#2",
        category="pants",
        name="Straight jeans",
        color="blue",
        brand="Levi's",
        image_url="https://cdn.example.com/jeans-2.jpg",
        seasons=("spring", "autumn", "winter"),
    )


@pytest.fixture()
def sneakers() -> ClothingItem:
    return ClothingItem(
        item_id="sneakers#3",
        category="footwear",
        name="Canvas sneakers",
        color="white",
        image_url="https://cdn.example.com/sneakers-3.jpg",
        seasons=("spring", "summer", "autumn", "winter"),
    )


@pytest.fixture()
def coat() -> ClothingItem:
    return ClothingItem(
        item_id="coat#4",
        category="outerwear",
        name="Wool coat",
        color="camel",
        image_url="https://cdn.example.com/coat-4.jpg",
        seasons=("autumn", "winter"),
    )


@pytest.fixture()
def analysis(shirt: ClothingItem, jeans: ClothingItem) -> OutfitAnalysis:
    selection = SelectionSet.from_items([shirt, jeans])
    return OutfitAnalysisPayload.model_validate(ANALYSIS_PAYLOAD).to_analysis(selection)
