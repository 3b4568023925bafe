"""
Sample conversation payloads for testing and API documentation.
In production, these come from the client on every request.
"""

import json

# All seven slots filled, camelCase as sent over the wire
FILLED_SLOTS = {
    "destination": "Paris",
    "dates": {"startDate": "2025-06-15", "duration": 5},
    "budget": {"amount": 2000, "currency": "USD", "perPerson": True},
    "travelers": {"adults": 2, "children": 0},
    "travelStyle": "cultural",
    "interests": ["food"],
    "accommodationType": "hotel",
}

PARTIAL_SLOTS = {
    "destination": "Lisbon",
    "dates": {"startDate": None, "duration": 4},
    "budget": {"amount": None, "currency": "EUR", "perPerson": True},
    "travelers": {"adults": 0, "children": 0},
    "travelStyle": None,
    "interests": [],
    "accommodationType": None,
}

SAMPLE_TRIP = {
    "metadata": {
        "destination": "Paris",
        "country": "France",
        "startDate": "2025-06-15",
        "endDate": "2025-06-19",
        "duration": 5,
        "budget": {"total": 2000, "currency": "USD", "perPerson": True},
        "travelers": {"adults": 2, "children": 0},
        "travelStyle": "cultural",
        "interests": ["food"],
        "accommodationType": "hotel",
    },
    "itinerary": [
        {
            "dayNumber": 1,
            "items": [
                {
                    "title": "Check in at Hotel Le Marais",
                    "category": "accommodation",
                    "startTime": "14:00",
                    "endTime": "15:00",
                    "estimatedCost": 180,
                    "location": {
                        "name": "Hotel Le Marais",
                        "address": "12 Rue de Bretagne, Paris",
                        "lat": 48.8625,
                        "lng": 2.3622,
                    },
                    "description": "Boutique hotel in the heart of Le Marais.",
                    "tips": "Ask for a courtyard room.",
                },
                {
                    "title": "Dinner at Le Comptoir",
                    "category": "food",
                    "startTime": "19:30",
                    "endTime": "21:30",
                    "estimatedCost": 90,
                    "location": {"name": "Le Comptoir du Relais", "address": "9 Carrefour de l'Odeon"},
                    "description": "Classic bistro cooking.",
                    "tips": "Book ahead for dinner.",
                },
            ],
        },
        {
            "dayNumber": 2,
            "items": [
                {
                    "title": "Louvre Museum",
                    "category": "activity",
                    "startTime": "09:00",
                    "endTime": "12:30",
                    "estimatedCost": 22,
                    "location": {"name": "Louvre", "address": "Rue de Rivoli"},
                    "description": "Highlights tour of the Louvre.",
                    "tips": "Enter through the Carrousel entrance.",
                }
            ],
        },
    ],
    "recommendations": {
        "doAndDont": {"do": ["Greet shopkeepers with bonjour"], "dont": ["Tip excessively"]},
        "packingList": ["Comfortable walking shoes", "Umbrella"],
        "localPhrases": [{"phrase": "Merci", "meaning": "Thank you"}],
        "emergencyContacts": [{"name": "Emergency", "number": "112"}],
    },
}

EMPTY_TRIP = {"metadata": {}, "itinerary": []}

SAMPLE_CHAT_REQUEST = {
    "sessionId": "chat_1718000000000_k3x9p2a",
    "slots": PARTIAL_SLOTS,
    "conversationState": "gathering",
    "latestMessage": "We're two adults and we love food and old churches.",
}


def slots_block(payload: dict) -> str:
    return f"<!--SLOTS{json.dumps(payload)}SLOTS-->"


def trip_block(payload: dict) -> str:
    return f"<!--TRIP_JSON{json.dumps(payload)}TRIP_JSON-->"


GATHERING_REPLY = (
    "Two food lovers in Lisbon, wonderful! What kind of trip are you after: "
    "relaxed, cultural or adventurous?\n"
    + slots_block({"travelers": {"adults": 2, "children": 0}, "interests": ["food", "churches"]})
)

GENERATION_REPLY = (
    "Here is your 5-day cultural itinerary for Paris!\n"
    + trip_block(SAMPLE_TRIP)
    + "\nLet me know if you'd like to change anything.\n"
    + slots_block({"destination": "Paris"})
)
