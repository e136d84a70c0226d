"""
Kafka event flattening.

AWS Lambda delivers Kafka batches grouped by "<topic>-<partition>":

    {"eventSource": "aws:kafka",
     "records": {"orders-0": [{"topic": "orders", "partition": 0,
                               "offset": 15, "timestamp": 1700000000000,
                               "key": "...", "value": "<base64>"}]}}

flatten_event turns that into a flat list of messages, preserving the order
of the groups and of the records within each group.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional


@dataclass(frozen=True)
class KafkaMessage:
    topic: Optional[str]
    partition: Optional[int]
    offset: Optional[int]
    value: Optional[str]
    key: Optional[str] = None
    timestamp: Optional[int] = None

    def describe(self) -> str:
        return f"{self.topic}/{self.partition}@{self.offset}"

    @classmethod
    def from_record(cls, record: Mapping[str, Any], group: Optional[str] = None) -> "KafkaMessage":
        topic = record.get("topic")
        if topic is None and group and "-" in group:
            topic = group.rsplit("-", 1)[0]
        return cls(
            topic=topic,
            partition=record.get("partition"),
            offset=record.get("offset"),
            value=record.get("value"),
            key=record.get("key"),
            timestamp=record.get("timestamp"),
        )


def flatten_event(event: Optional[Mapping[str, Any]]) -> List[KafkaMessage]:
    """
    Flatten every record of every topic-partition into one list.

    Returns an empty list for a missing event or an event without records.
    """
    if not event:
        return []
    groups = event.get("records") or {}
    messages: List[KafkaMessage] = []
    for group, records in groups.items():
        for record in records or []:
            messages.append(KafkaMessage.from_record(record, group))
    return messages


__all__ = ["KafkaMessage", "flatten_event"]
