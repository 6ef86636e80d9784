from pathlib import Path

import pytest

from lexnav.citations.models import ChatSource
from lexnav.core.config import reset_settings

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def sources() -> list[ChatSource]:
    return [
        ChatSource(
            document_id="DOC-7",
            title="Employment Act",
            excerpt="The Minister may by statutory instrument exclude categories of employees.",
            section_id="sec_3__subsec_2",
            relevance_score=0.9,
            human_readable_id="Act 6 of 2006",
        ),
        ChatSource(
            document_id="DOC-7",
            title="Employment Act",
            excerpt="(1) This Act applies to all employees.",
            section="Section 3(1)",
            relevance_score=0.8,
            human_readable_id="Act 6 of 2006",
        ),
        ChatSource(
            document_id="DOC-9",
            title="Okello v Uganda",
            document_type="judgment",
            excerpt="The appellant was convicted of the offence.",
            relevance_score=0.5,
            human_readable_id="UGSC 2019 12",
        ),
    ]
