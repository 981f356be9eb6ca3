"""
Example: store, find and update a Person.

Run against a database configured through the DB_* environment variables:

    DB_PROTOCOL=mongodb DB_HOST=localhost DB_PORT=27017 \
    DB_USER=admin DB_PASSWORD=admin python -m realm_store.demo
"""

import asyncio
import logging
import sys

from pydantic import BaseModel

from . import Eq, Identity, MessageDescriptor, RealmStoreError, RequestContext, Store

logger = logging.getLogger("realm_store.demo")


class Person(BaseModel):
    id: str = ""
    name: str = ""


PERSON = MessageDescriptor.for_model(Person, "example.Person")


async def run() -> None:
    current_user = Identity.new(realm="skytala")

    async with Store.from_env() as s:
        await s.ping()
        store = s.bind(RequestContext(timeout=10.0), current_user)

        await store.store(PERSON, Person(name="Tom22"))

        persons = await store.filter(PERSON, Eq("name", "Tom22"))
        for person in persons:
            logger.info(f"{person.id}: {person.name}")
        logger.info(f"{len(persons)} person(s) named Tom22")

        if not persons:
            return
        p = persons[0]
        found = await store.get(PERSON, p.id)
        if found is None:
            raise RealmStoreError(f"Person not found by id: {p.id}")
        logger.info(f"Found person by id: {found!r}")

        p.name = "Updated name"
        rev = await store.store(PERSON, p)
        logger.info(f"stored with rev {rev}")


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")
    try:
        asyncio.run(run())
    except RealmStoreError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
