"""
Engine Layer

Run configuration, aggregation orchestration and stage scheduling.
"""
