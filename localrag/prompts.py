"""
Prompt construction shared by the answer generators.
"""
from typing import Dict, List

CONTEXT_SEPARATOR = "\n\n---\n\n"

SYSTEM_PROMPT = (
    "You are a document assistant. Answer the user's question using ONLY the "
    "CONTEXT taken from their uploaded documents.\n\n"
    "Rules:\n"
    "1. Do not add facts that are not in the CONTEXT.\n"
    "2. If the CONTEXT does not contain the answer, say that the documents "
    "do not cover it.\n"
    "3. Keep the answer short and quote the relevant sentence when it helps."
)


def build_context(texts: List[str]) -> str:
    """Join retrieved chunk texts into one context block."""
    return CONTEXT_SEPARATOR.join(texts)


def build_messages(query: str, context: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"QUESTION: {query}\n\nCONTEXT:\n{context}"},
    ]
