"""
Synthetic Kafka event generator for fieldguard.

Emits a deterministic AWS Lambda Kafka event (base64 JSON record values) that
`fieldguard replay` can consume. Keys repeat across the batch and versions
are shuffled, so a live replay exercises applied writes and per-field
conflicts alike.
"""

from __future__ import annotations

import base64
import json
import random
from pathlib import Path
from typing import Any, Dict, List

import typer

app = typer.Typer(help="Generate a synthetic Kafka Lambda event for fieldguard replay.")

STATUSES = ["ON_SALE", "SOLD_OUT", "HIDDEN"]
DIVISIONS = ["FOOD", "GROCERY", "PHARMACY"]

# Fixed epoch so the same seed always yields the same event.
BASE_TIMESTAMP_MS = 1_700_000_000_000


def _item_catalog_document(rng: random.Random, product_id: int, version: int) -> Dict[str, Any]:
    document: Dict[str, Any] = {
        "productId": product_id,
        "version": version,
        "divisionType": rng.choice(DIVISIONS),
        "name": {"en": f"Product {product_id}", "ko": f"상품 {product_id}"},
        "valid": rng.choice([True, False]),
        "createAt": BASE_TIMESTAMP_MS + rng.randint(0, 86_400_000),
        "sequence": rng.randint(1, 1_000),
        "price": rng.randint(10, 500) * 100,
        "status": rng.choice(STATUSES),
    }
    # Drop some fields so partial updates show up in the batch.
    for optional in ("price", "status", "valid"):
        if rng.random() < 0.3:
            document[optional] = None
    return document


def _generate_event(records: int, keys: int, seed: int, topic: str, partitions: int) -> Dict[str, Any]:
    rng = random.Random(seed)
    product_ids = [77_590_000 + i for i in range(keys)]
    grouped: Dict[str, List[Dict[str, Any]]] = {}

    for offset in range(records):
        partition = offset % partitions
        document = _item_catalog_document(rng, rng.choice(product_ids), rng.randint(1, 10))
        value = base64.b64encode(json.dumps(document).encode("utf-8")).decode("ascii")
        grouped.setdefault(f"{topic}-{partition}", []).append(
            {
                "topic": topic,
                "partition": partition,
                "offset": offset,
                "timestamp": BASE_TIMESTAMP_MS + offset,
                "timestampType": "CREATE_TIME",
                "value": value,
            }
        )

    return {"eventSource": "aws:kafka", "records": grouped}


@app.command()
def main(
    output: Path = typer.Option(Path("event.json"), "--output", "-o", help="Where to write the event."),
    records: int = typer.Option(50, "--records", "-n", min=1, help="Number of Kafka records."),
    keys: int = typer.Option(10, "--keys", "-k", min=1, help="Distinct product ids."),
    seed: int = typer.Option(42, "--seed", help="Random seed for reproducible events."),
    topic: str = typer.Option("item-catalog", "--topic", help="Topic name."),
    partitions: int = typer.Option(3, "--partitions", min=1, help="Partitions to spread records over."),
) -> None:
    """
    Write a synthetic item_catalog Kafka event to OUTPUT.
    """
    event = _generate_event(records=records, keys=keys, seed=seed, topic=topic, partitions=partitions)
    output.write_text(json.dumps(event, indent=2, ensure_ascii=False), encoding="utf-8")
    typer.echo(f"Wrote {records} record(s) over {keys} key(s) to {output}")


if __name__ == "__main__":
    app()
