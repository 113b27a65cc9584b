"""
Example 02: Unit of work

This example groups several operations in one transaction and shows the
automatic rollback when one of them fails.
"""

from dataclasses import dataclass, field

from row_persist import ConnectionConfig, Engine, UnpersistedEntityError, entity
from row_persist.mapping import integer, map_of, ref, text, varchar


@dataclass
class Customer:
    email: str


@dataclass
class Order:
    customer: Customer
    lines: dict[str, int] = field(default_factory=dict)
    note: str = ""


def count(engine, cls):
    return len(engine.fetch_with_sql(cls, f'SELECT id FROM "{cls.__name__.lower()}"'))


def main():
    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    engine = Engine.from_config(
        config,
        [
            entity(Customer).field("email", varchar()).unique("email").build(),
            entity(Order)
            .field("customer", ref(Customer))
            .field("lines", map_of(varchar(), integer()))
            .field("note", text())
            .build(),
        ],
    )

    print("=== Unit of Work ===\n")

    # Example 1: both saves commit together
    print("1. Successful unit of work:")
    with engine.transaction() as uow:
        alice = uow.save(Customer("alice@example.com"))
        uow.save(Order(alice, {"apples": 3, "pears": 1}))
    print(f"   Customers: {count(engine, Customer)}, orders: {count(engine, Order)}")

    # Example 2: a failure rolls back everything done in the block
    print("\n2. Failed unit of work:")
    try:
        with engine.transaction() as uow:
            uow.save(Customer("bob@example.com"))
            uow.save(Order(Customer("ghost@example.com")))
    except UnpersistedEntityError as e:
        print(f"   Rolled back: {e}")
    print(f"   Customers: {count(engine, Customer)}, orders: {count(engine, Order)}")

    # Example 3: explicit rollback
    print("\n3. Explicit rollback:")
    with engine.transaction() as uow:
        uow.save(Customer("carol@example.com"))
        uow.rollback()
    print(f"   Customers: {count(engine, Customer)}")

    print(f"\nServer time: {engine.now():%Y-%m-%d %H:%M:%S}")
    engine.close()


if __name__ == "__main__":
    main()
