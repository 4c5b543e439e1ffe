# smartleader/config.py
"""Runtime settings read from the environment (and `.env`)."""
import os
from dotenv import load_dotenv

load_dotenv()

FIRESTORE_PROJECT_ID = os.getenv("FIRESTORE_PROJECT_ID")
STORE_BACKEND = os.getenv("STORE_BACKEND", "firestore" if FIRESTORE_PROJECT_ID else "memory").lower()

# Firestore rejects documents over 1 MiB; listings are kept well below it.
MAX_DOCUMENT_BYTES = int(os.getenv("MAX_DOCUMENT_BYTES", "500000"))
IMAGES_PER_CHUNK = int(os.getenv("IMAGES_PER_CHUNK", "3"))
CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "300"))

PROJECTS_COLLECTION = os.getenv("PROJECTS_COLLECTION", "projects")
CHUNKS_COLLECTION = os.getenv("CHUNKS_COLLECTION", "project_images")
CONTACTS_COLLECTION = os.getenv("CONTACTS_COLLECTION", "contacts")
COUNTERS_COLLECTION = os.getenv("COUNTERS_COLLECTION", "counters")

FIREBASE_API_KEY = os.getenv("FIREBASE_API_KEY")
ADMIN_ROLE = os.getenv("ADMIN_ROLE", "admin")
