from time import sleep, perf_counter
from itertools import islice

from kvcollection import Collection, DuplicateKeyError, configure_logging

configure_logging("INFO")


def expensive_transform(x):
    # Simulate a costly step so laziness is visible
    print(f"  computing f({x}) ...")
    sleep(0.2)
    return x * x


print("\n--- Demo: laziness (no work until iterated) ---")
pipeline = (
    Collection(range(1, 10_000))
    .map(expensive_transform)
    .filter(lambda v: v % 2 == 0)
    .skip(3)
    .take(5)
)

print("Constructed pipeline. No output yet (nothing computed).")
print("\nIterating (should compute only what's needed for 5 items):")
t0 = perf_counter()
out = pipeline.to_list()
t1 = perf_counter()
print(f"Result: {out}")
print(f"Time: {t1 - t0:.2f}s\n")

print("--- Demo: partial consumption stays lazy ---")
pipeline2 = (
    Collection(range(1, 30))
    .map(expensive_transform)
    .filter(lambda v: v % 3 == 0)
)
print("Taking only the first 3 pairs:")
first_three = list(islice(pipeline2, 3))
print(f"First three: {first_three} (keys are kept from the source)\n")

print("--- Demo: chunking and splitting ---")
orders = Collection([
    {"customer": "ada", "amount": 12.5},
    {"customer": "bob", "amount": 3.0},
    {"customer": "ada", "amount": 7.5},
    {"customer": "eve", "amount": 20.0},
    {"customer": "bob", "amount": 1.0},
])
for index, chunk in enumerate(orders.chunk(2)):
    print(f"  chunk {index}: {chunk.parts('customer')}")
print(f"  split(3) sizes: {[c.count() for c in orders.split(3)]}")
print(f"  totals: {orders.group_by('customer').map(lambda group: group.sum('amount')).to_array()}")
print(f"  median amount: {orders.median('amount')}\n")

print("--- Demo: keys travel with their values ---")
users = Collection([
    {"id": "u1", "name": "ada", "role": "admin"},
    {"id": "u2", "name": "bob", "role": "dev"},
    {"id": "u3", "name": "eve", "role": "dev"},
])
by_id = users.index_by("id")
print(f"  index_by('id') keys: {by_id.keys().to_list()}")
print(f"  u2 -> {by_id.get('u2')['name']}")

overrides = Collection({"u2": {"id": "u2", "name": "bobby", "role": "lead"}})
merged = by_id.merge(overrides)
print(f"  after merge: {merged.map(lambda user: user['name']).to_array()}")
print(f"  non-admin keys: {merged.filter(lambda user: user['role'] != 'admin').keys().to_list()}")

by_role = users.index_by("role")
print(f"  index_by('role') (last write wins): {by_role.map(lambda user: user['name']).to_array(strict=False)}")
try:
    by_role.to_array(strict=True)
except DuplicateKeyError as e:
    print(f"  strict to_array rejected duplicate key {e}")

print(f"  as JSON: {merged.map(lambda user: user['name']).to_json()}")
