from __future__ import annotations

"""CLI utility to seed a demo hotel with FAQs and guide sections."""

import argparse

from src.app.settings import settings
from src.storage.hotels import HotelStore

DEMO_FAQS = [
    (
        "What is the WiFi password?",
        "The WiFi password is password123. The network name is DemoHotel-WiFi.",
        "WiFi",
    ),
    (
        "What time is check-in?",
        "Check-in time is 3:00 PM. Early check-in may be available upon request.",
        "Check-in",
    ),
    (
        "What time is check-out?",
        "Check-out time is 11:00 AM. Late check-out may be available upon request.",
        "Check-out",
    ),
    (
        "What time is breakfast served?",
        "Breakfast is served from 7:00 AM to 10:00 AM daily in the main dining room.",
        "Dining",
    ),
    (
        "Is there parking available?",
        "Yes, we offer complimentary parking for all guests. The parking lot is located behind the hotel.",
        "Services",
    ),
]

DEMO_GUIDE_SECTIONS = [
    (
        "WiFi Information",
        "wifi",
        "Network: DemoHotel-WiFi\nPassword: password123\nFree WiFi is available throughout the hotel.",
        "wifi",
    ),
    (
        "Check-in & Check-out",
        "clock",
        "Check-in: 3:00 PM\nCheck-out: 11:00 AM\nEarly check-in and late check-out available upon request.",
        "checkin",
    ),
    (
        "Dining",
        "breakfast",
        "Breakfast: 7:00 AM - 10:00 AM\nRoom service available 24/7\nRestaurant hours: 6:00 AM - 11:00 PM",
        "dining",
    ),
    (
        "Emergency Contact",
        "phone",
        "Emergency: +1 234 567 8900\nFront Desk: +1 234 567 8901\n"
        "For any emergencies, please contact the front desk immediately.",
        "emergency",
    ),
]


def seed(store: HotelStore, slug: str) -> int:
    """Create the demo hotel unless the slug is taken; return its ID."""
    existing = store.get_hotel_by_slug(slug)
    if existing is not None:
        print(f"Hotel already exists: {slug} (id={existing.id})")
        return existing.id

    hotel_id = store.create_hotel(
        "Demo Hotel",
        slug,
        description="A beautiful hotel in the heart of the city",
        address="123 Main Street, City, Country",
        phone="+1 234 567 8900",
        email="info@demohotel.com",
        website="https://demohotel.com",
        wifi_ssid="DemoHotel-WiFi",
        wifi_password="password123",
        check_in_time="15:00",
        check_out_time="11:00",
        breakfast_time_start="07:00",
        breakfast_time_end="10:00",
        emergency_contact="+1 234 567 8900",
    )
    for index, (question, answer, category) in enumerate(DEMO_FAQS):
        store.create_faq(hotel_id, question, answer, category=category, order_index=index)
    for index, (title, icon, content, section_type) in enumerate(DEMO_GUIDE_SECTIONS):
        store.create_guide_section(
            hotel_id,
            title,
            content=content,
            icon=icon,
            order_index=index,
            section_type=section_type,
        )
    print(f"Seeded hotel: {slug} (id={hotel_id})")
    return hotel_id


def main() -> None:
    """Seed the configured database using app settings."""
    parser = argparse.ArgumentParser(description="Seed a demo hotel.")
    parser.add_argument(
        "--db-uri",
        default=settings.db_uri,
        help="Database URI to seed.",
    )
    parser.add_argument("--slug", default="demo", help="Slug for the demo hotel.")
    args = parser.parse_args()
    seed(HotelStore(args.db_uri), args.slug)


if __name__ == "__main__":
    main()
