"""
Command-line tools: target ingest and one-shot evaluation.
"""
