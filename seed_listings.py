import os
import sys
import json
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

from smartleader import config, services
from smartleader.auth import Identity
from smartleader.db import get_store
from smartleader.utils import logger

# seeding runs locally with the service account, outside any user session
SEED_IDENTITY = Identity(uid="seed-script", email="seed@localhost", claims={"role": config.ADMIN_ROLE})


def load_seed_file(path):
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    return data.get("projects", []), data.get("contacts", [])


def seed(db, projects, contacts):
    """Create every listing and contact; return the number of failures."""
    failures = 0
    for project in projects:
        result = services.create_listing(db, project, SEED_IDENTITY)
        if result.success:
            logger.info("Seeded listing %s: %s", result.data, project.get("title"))
        else:
            failures += 1
            logger.error("Failed to seed listing %r: %s", project.get("title"), result.error)
    for contact in contacts:
        result = services.submit_contact(db, contact)
        if result.success:
            logger.info("Seeded contact %s: %s", result.data, contact.get("email"))
        else:
            failures += 1
            logger.error("Failed to seed contact %r: %s", contact.get("email"), result.error)
    return failures


if __name__ == "__main__":
    if len(sys.argv) != 2:
        raise SystemExit(f"usage: {os.path.basename(sys.argv[0])} SEED_FILE.json")

    projects, contacts = load_seed_file(sys.argv[1])
    logger.info("Seeding %d listing(s) and %d contact(s)", len(projects), len(contacts))
    failed = seed(get_store(), projects, contacts)
    raise SystemExit(1 if failed else 0)
