"""
Dataflow Layer

Event I/O layer of the candle pipeline. Contains:
- ingestion: trade file reading and record parsing
- candle_aggregation: session predicate and per-resolution aggregators
- persistence: CSV and NATS candle sinks
- adapters: stage handoff and NATS client
"""
