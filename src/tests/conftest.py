from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("CONCIERGE_API_KEY_MAP", None)
os.environ["CONCIERGE_LLM_PROVIDER"] = "openai"
os.environ["CONCIERGE_VECTORSTORE"] = "memory"
os.environ["EMBEDDING_PROVIDER"] = "hash"
os.environ["EMBEDDING_DIMENSION"] = "256"
os.environ.setdefault(
    "CONCIERGE_DB_URI", f"sqlite:///{Path(tempfile.mkdtemp()) / 'concierge.db'}"
)

from src.storage.hotels import HotelStore  # noqa: E402

HOTEL_PHONE = "+1 555 0100"
WIFI_ANSWER = "The network is Seaside-Guest and the password is on your key card."


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def db_uri(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'concierge.db'}"


@pytest.fixture
def hotel_store(db_uri) -> HotelStore:
    return HotelStore(db_uri)


@pytest.fixture
def hotel_id(hotel_store) -> int:
    """Active hotel with two FAQs, one hidden FAQ and a guide."""
    hotel = hotel_store.create_hotel(
        "Seaside Inn",
        "seaside",
        description="Boutique hotel on the harbour",
        address="1 Harbour Road",
        phone=HOTEL_PHONE,
        email="desk@seaside.test",
        wifi_ssid="Seaside-Guest",
        wifi_password="harbour-secret",
        check_in_time="15:00",
        check_out_time="11:00",
        breakfast_time_start="07:00",
        breakfast_time_end="10:00",
        emergency_contact="+1 555 0199",
    )
    hotel_store.create_faq(hotel, "What is the WiFi password?", WIFI_ANSWER, category="WiFi", order_index=0)
    hotel_store.create_faq(
        hotel,
        "What time is breakfast served?",
        "Breakfast is served from 7:00 to 10:00 in the garden room.",
        category="Dining",
        order_index=1,
    )
    hotel_store.create_faq(hotel, "Is the spa open?", "The spa is closed for renovation.", is_active=False)
    hotel_store.create_guide_section(hotel, "Dining", content="Breakfast 7-10", order_index=2, section_type="dining")
    hotel_store.create_guide_section(hotel, "WiFi", content="Network: Seaside-Guest", order_index=1, section_type="wifi")
    hotel_store.create_guide_section(hotel, "Old wing", content="Closed", order_index=0, is_enabled=False)
    return hotel
