"""
Ingest package: Kafka event flattening and record decoding.
"""

from fieldguard.ingest.decoders import DecoderRegistry, RecordType, default_registry
from fieldguard.ingest.events import KafkaMessage, flatten_event

__all__ = [
    "DecoderRegistry",
    "KafkaMessage",
    "RecordType",
    "default_registry",
    "flatten_event",
]
