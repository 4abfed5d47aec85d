import asyncio
import copy
import logging
from typing import Any, Dict, Optional

from maturagrader.core.config import settings

logger = logging.getLogger(__name__)

SAMPLE_RESULT: Dict[str, Any] = {
    "totalScore": 26,
    "criteria": {
        "formalRequirements": {
            "points": 1,
            "reasons": {
                "cardinalError": False,
                "missingReading": False,
                "irrelevant": False,
                "notArgumentative": False,
            },
        },
        "literaryCompetencies": {"points": 11, "factualErrors": 1},
        "structure": {"points": 3},
        "coherence": {"points": 2, "coherenceErrors": 2},
        "style": {"points": 1},
        "language": {"points": 5, "languageErrors": 4},
        "spelling": {"points": 2, "spellingErrors": 0},
        "punctuation": {"points": 1, "punctuationErrors": 3},
    },
    "feedback": (
        "Dobra praca z kilkoma błędami stylistycznymi. Argumentacja jest spójna, ale brakuje "
        "głębszego odwołania do literatury przedmiotu. Zwróć uwagę na interpunkcję w zdaniach "
        "wielokrotnie złożonych."
    ),
    "errors": [
        "Powtórzenie w akapicie 2: 'jest to'",
        "Błąd interpunkcyjny w zdaniu podrzędnym",
        "Zbyt potoczne sformułowanie: 'fajna sprawa'",
        "Błąd rzeczowy: Wokulski nie był pozytywistą w pełnym tego słowa znaczeniu",
    ],
    "suggestions": [
        "Rozbuduj wstęp o kontekst historyczny",
        "Użyj bardziej zróżnicowanego słownictwa (synonimy)",
        "Dodaj cytat potwierdzający tezę z 'Lalki'",
        "Przećwicz stosowanie przecinków przed spójnikami",
    ],
}


class SampleScoringService:
    """Offline demo scorer: waits, then returns a fixed example evaluation."""

    def __init__(self, delay_s: Optional[float] = None, payload: Optional[Dict[str, Any]] = None) -> None:
        self.delay_s = settings.SAMPLE_SCORER_DELAY_S if delay_s is None else delay_s
        self.payload = payload if payload is not None else SAMPLE_RESULT

    async def grade(self, text: str) -> Dict[str, Any]:
        logger.info(f"Sample scorer grading {len(text)} characters (delay {self.delay_s}s)")
        if self.delay_s > 0:
            await asyncio.sleep(self.delay_s)
        return copy.deepcopy(self.payload)
