"""Test helpers: a controllable clock and store writers for models and uploads."""

INSTANCE = "inst"
START = 1_000_000.0


class FakeClock:
    """Clock whose sleep() advances time instead of blocking."""

    def __init__(self, now: float = START):
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_rows(store, key, rows):
    """Write uncompressed comma-separated rows as one part file."""
    text = "".join(",".join(str(v) for v in row) + "\n" for row in rows)
    store.put(key, text.encode("utf-8"))


def write_model(store, generation_id, users, items, known=None, instance=INSTANCE):
    """users / items: {id: [features]}; known: {user_id: [item_ids]}."""
    prefix = f"{instance}/{generation_id:05d}/model/"
    write_rows(store, prefix + "X/part-00000", [[i, *v] for i, v in users.items()])
    write_rows(store, prefix + "Y/part-00000", [[i, *v] for i, v in items.items()])
    if known:
        write_rows(store, prefix + "knownItems/part-00000", [[u, *its] for u, its in known.items()])


def upload(store, generation_id, name="data.csv", data=b"1,2,3\n", instance=INSTANCE):
    store.put(f"{instance}/{generation_id:05d}/inbound/{name}", data)
