"""Prompt templates and fixed user-visible responses."""

from __future__ import annotations

PROMPTS: dict[str, str] = {}

# Returned for query modes that have no implementation yet (local, global, ...).
PROMPTS["fail_response"] = "Sorry, I'm not able to provide an answer to that question."

# Returned when naive retrieval has nothing to work with: no chunk index, or no hit above threshold.
PROMPTS["no_context_response"] = "Sorry, I could not find any relevant context for that question."

PROMPTS["naive_rag_response"] = """You're a helpful assistant
Below are the knowledge you know:
{content_data}
---
If you don't know the answer or if the provided knowledge do not contain sufficient information to provide an answer, just say so. Do not make anything up.
Generate a response of the target length and format that responds to the user's question, summarizing all information in the input data tables appropriate for the response length and format, and incorporating any relevant general knowledge.
If you don't know the answer, just say so. Do not make anything up.
Do not include information where the supporting evidence for it is not provided.
---Target response length and format---
{response_type}"""


def naive_rag_response(content_data: str, response_type: str) -> str:
    return PROMPTS["naive_rag_response"].format(content_data=content_data, response_type=response_type)
