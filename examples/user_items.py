"""
User Items Example — Create, Query, Delete and Update Items
=============================================================

Walks through every SimpleDbClient operation against one "users" domain:
create one user, batch-create a few more, read them back, run a select,
delete some, then apply partial updates.

By default the in-process backend is used, so nothing leaves the machine.
Point it at Amazon SimpleDB with:

    SDB_BACKEND__PROVIDER=aws SDB_BACKEND__REGION=eu-west-1 \\
        python examples/user_items.py

Usage:
    python examples/user_items.py
"""

from __future__ import annotations

import asyncio

from sdbaccess.core.config import load_config
from sdbaccess.core.exceptions import BackendError, PartialUpdateError
from sdbaccess.core.logging import configure_logging
from sdbaccess.core.models import Item
from sdbaccess.facade import SimpleDbClient


def _user(index: int) -> Item:
    return Item.from_dict(
        f"test-item-{index}",
        {
            "Username": f"test-username-{index}",
            "FirstName": f"test-name-{index}",
            "LastName": f"test-lastname-{index}",
            "Age": str(20 + index),
        },
    )


async def main() -> None:
    """Run the item walkthrough and print what happens at each step."""
    config = load_config().model_copy(update={"domain_name": "users"})
    configure_logging(config.log_level, json_logs=config.json_logs)

    async with SimpleDbClient(config) as client:
        await client.ensure_domain()

        # Single create
        john = Item.from_dict(
            "test-user-1",
            {"Username": "JohnD", "FirstName": "John", "LastName": "Doe", "Age": "35"},
        )
        status = await client.create_item(john)
        print(f"Created {john.key} (status {status})")

        # Batch create (at most 25 items per call)
        users = [_user(i) for i in range(2, 8)]
        await client.batch_create_items(users)
        print(f"Batch-created {len(users)} users")

        # Reads
        item = await client.get_item(john.key)
        print(f"Read {john.key}: {item.without_sentinel().to_dict() if item else 'not found'}")

        everyone = await client.get_all_items()
        print(f"Domain holds {len(everyone)} items")

        matches = await client.query_items("select * from `users` where `Age` = '25'")
        print(f"Users aged 25: {[i.key for i in matches]}")

        # Deletes
        await client.delete_item(john.key)
        await client.batch_delete_items(["test-item-3", "test-item-4"])
        print("Deleted test-user-1, test-item-3, test-item-4")

        # Partial updates
        for key in ("test-item-4", "test-item-5"):
            try:
                result = await client.update_item(
                    key,
                    {
                        "Username": "test-username--UPDATED",
                        "FirstName": "test-name--UPDATED",
                        "LastName": "",
                    },
                )
            except PartialUpdateError as e:
                print(f"{key}: values written, deletes pending {[a.name for a in e.pending_deletes]}")
                continue
            except BackendError as e:
                print(f"{key}: update failed ({e.kind})")
                continue
            print(f"{key}: {result.status.value}")

        updated = await client.get_item("test-item-5")
        if updated is not None:
            print(f"test-item-5 now: {updated.without_sentinel().to_dict()}")


if __name__ == "__main__":
    asyncio.run(main())
