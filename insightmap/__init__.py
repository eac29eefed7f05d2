"""InsightMap: LLM-backed insight extraction and graph storage."""
