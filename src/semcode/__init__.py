"""
Semantic code bridge.

Exposes language server queries as MCP tools, including call-graph checks that
combine several queries into one answer.
"""
