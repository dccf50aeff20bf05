# seed.py
from volunteer_api.config import settings
from volunteer_api.db import ConnectionManager
from volunteer_api.utils import utcnow

posts = [
    {
        "title": "Beach Cleanup",
        "description": "Help us pick up litter along the shoreline.",
        "category": "Environment",
        "location": "Santa Monica",
        "volunteersNeeded": 12,
        "deadline": "2026-12-01",
        "thumbnail": "https://picsum.photos/seed/beach/600/400",
        "organizerName": "Alice",
        "organizerEmail": "alice@example.com",
    },
    {
        "title": "Food Bank Sorting",
        "description": "Sort and pack donations for local families.",
        "category": "Social Service",
        "location": "Oakland",
        "volunteersNeeded": 5,
        "deadline": "2026-11-15",
        "thumbnail": "https://picsum.photos/seed/food/600/400",
        "organizerName": "Bob",
        "organizerEmail": "bob@example.com",
    },
    {
        "title": "After School Tutoring",
        "description": "Tutor middle school students in math and reading.",
        "category": "Education",
        "location": "Remote",
        "volunteersNeeded": 3,
        "deadline": "2027-01-10",
        "thumbnail": "https://picsum.photos/seed/tutor/600/400",
        "organizerName": "Alice",
        "organizerEmail": "alice@example.com",
    },
]

conn = ConnectionManager(settings)
conn.ensure_ready()

conn.volunteers.delete_many({})
print("Cleared existing volunteer collection")

now = utcnow()
for post in posts:
    conn.volunteers.insert_one({**post, "createdAt": now, "updatedAt": now})

conn.close()
print(f"Inserted {len(posts)} volunteer posts into {settings.DB_NAME}")
