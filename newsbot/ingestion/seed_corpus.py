"""Built-in seed articles used when every feed source is unreachable."""

from typing import List

from ..models import Document

SEED_SOURCE = "NewsBot Seed Corpus"

_SEED_ARTICLES = [
    {
        'title': "Global leaders gather for climate summit",
        'content': (
            "Heads of state and negotiators met to discuss emission targets, "
            "adaptation funding for vulnerable nations and the phase-down of coal. "
            "Delegates agreed to publish updated national plans within a year."
        ),
        'url': "https://example.com/seed/climate-summit",
    },
    {
        'title': "Central bank holds interest rates steady",
        'content': (
            "The central bank left its benchmark rate unchanged, citing easing "
            "inflation and a cooling labour market. Policymakers signalled that "
            "cuts could follow if price growth keeps slowing."
        ),
        'url': "https://example.com/seed/interest-rates",
    },
    {
        'title': "New AI model sets benchmark records",
        'content': (
            "Researchers released a language model that tops several reasoning "
            "and coding benchmarks. Regulators and safety groups called for "
            "independent evaluation before wide deployment."
        ),
        'url': "https://example.com/seed/ai-model",
    },
    {
        'title': "Space agency confirms crewed lunar mission date",
        'content': (
            "The space agency announced the launch window for its next crewed "
            "mission around the Moon, following successful heat-shield tests "
            "and a full dress rehearsal of the countdown."
        ),
        'url': "https://example.com/seed/lunar-mission",
    },
    {
        'title': "Health officials expand seasonal vaccination campaign",
        'content': (
            "Health authorities widened eligibility for seasonal flu and "
            "respiratory vaccines ahead of winter, urging older adults and "
            "people with chronic conditions to book appointments early."
        ),
        'url': "https://example.com/seed/vaccination",
    },
]


def seed_documents() -> List[Document]:
    """Return a fresh copy of the seed corpus, always in the same order."""
    return [
        Document.create(source=SEED_SOURCE, **article)
        for article in _SEED_ARTICLES
    ]
