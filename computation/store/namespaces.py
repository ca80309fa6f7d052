"""
Per-generation key layout within an instance.

    <instance>/<00042>/inbound/          upload landing area
    <instance>/<00042>/.done             done marker
    <instance>/<00042>/tmp/              working data, deleted after success
    <instance>/<00042>/computation.conf  configuration used for the run
    <instance>/<00042>/stats.json        run stats
    <instance>/<00042>/model/            factor matrices and known items
    <instance>/<00042>/recommend/        recommendation shards
"""

# Generation IDs wrap to 0 after this value.
MAX_GENERATION = 99999

DONE_MARKER = ".done"
RUNNING_MARKER = ".running"


def instance_prefix(instance_dir: str) -> str:
    return instance_dir.strip("/") + "/"


def generation_prefix(instance_dir: str, generation_id: int) -> str:
    if not 0 <= generation_id <= MAX_GENERATION:
        raise ValueError(f"Bad generation ID {generation_id}")
    return f"{instance_prefix(instance_dir)}{generation_id:05d}/"


def inbound_prefix(instance_dir: str, generation_id: int) -> str:
    return generation_prefix(instance_dir, generation_id) + "inbound/"


def done_key(instance_dir: str, generation_id: int) -> str:
    return generation_prefix(instance_dir, generation_id) + DONE_MARKER


def temp_prefix(instance_dir: str, generation_id: int) -> str:
    return generation_prefix(instance_dir, generation_id) + "tmp/"


def config_key(instance_dir: str, generation_id: int) -> str:
    return generation_prefix(instance_dir, generation_id) + "computation.conf"


def stats_key(instance_dir: str, generation_id: int) -> str:
    return generation_prefix(instance_dir, generation_id) + "stats.json"


def model_prefix(instance_dir: str, generation_id: int) -> str:
    return generation_prefix(instance_dir, generation_id) + "model/"


def recommend_prefix(instance_dir: str, generation_id: int) -> str:
    return generation_prefix(instance_dir, generation_id) + "recommend/"


def running_key(instance_dir: str) -> str:
    return instance_prefix(instance_dir) + RUNNING_MARKER


def last_non_empty_delimited(key: str, delimiter: str = "/") -> str:
    """Last non-empty segment of a key: "a/b/00007/" -> "00007"."""
    for segment in reversed(key.split(delimiter)):
        if segment:
            return segment
    return ""
